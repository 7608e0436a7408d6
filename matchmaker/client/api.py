"""
HTTP client for the remote profile API, with retry logic and normalization.
"""
import asyncio
import logging
from typing import Any, Optional

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import get_config
from ..errors import CollaboratorError
from ..models.image import ImageAsset
from ..models.match import MatchCandidate, MatchResult
from ..models.submission import ProfileSubmission, SubmissionConfirmation
from .base import ImageStore, MatchService, ProfileDirectory, ProfileService


logger = logging.getLogger(__name__)


class ProfileApiClient(ProfileService, ImageStore, ProfileDirectory, MatchService):
    """
    Wrapper around the profile REST API.
    Blocking requests run in a worker thread so every capability is awaitable.
    Returns models instead of raw dicts; HTTP failures become CollaboratorError.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        config = get_config()
        self.base_url = (base_url or config.api.base_url).rstrip("/")
        self.timeout = timeout or config.api.timeout
        self.session = session or requests.Session()

        token = token if token is not None else config.api.token
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        else:
            logger.warning("No API token configured")

        logger.info(f"ProfileApiClient initialized for {self.base_url}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        reraise=True,
        before_sleep=lambda retry_state: logger.warning(
            f"Retry attempt {retry_state.attempt_number}"
        ),
    )
    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        """Send a single request."""
        return self.session.request(
            method,
            f"{self.base_url}{path}",
            timeout=self.timeout,
            **kwargs,
        )

    def _call(self, operation: str, method: str, path: str, **kwargs) -> requests.Response:
        """Send a request and turn transport failures into CollaboratorError."""
        try:
            return self._send(method, path, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{operation} failed: {e}")
            raise CollaboratorError(operation, str(e)) from e

    def _json(self, operation: str, response: requests.Response) -> Any:
        """Decode a successful response or raise with the server's reason."""
        if not response.ok:
            reason = self._error_reason(response)
            logger.error(f"{operation} failed with HTTP {response.status_code}: {reason}")
            raise CollaboratorError(operation, reason, response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise CollaboratorError(operation, "Invalid JSON in response", response.status_code) from e

    @staticmethod
    def _error_reason(response: requests.Response) -> str:
        """Extract a human-readable reason from an error response."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            reason = body.get("error") or body.get("message") or body.get("detail")
            if reason:
                return str(reason)
        return response.reason or f"HTTP {response.status_code}"

    # --- Blocking implementations -------------------------------------

    def _submit_draft(self, submission: ProfileSubmission) -> SubmissionConfirmation:
        response = self._call("submit profile", "POST", "/profiles", json=submission.to_payload())
        data = self._json("submit profile", response) or {}
        profile = data.get("profile") if isinstance(data.get("profile"), dict) else data
        profile_id = profile.get("_id") or profile.get("id") or profile.get("profileId")
        if not profile_id:
            raise CollaboratorError("submit profile", "Response did not include a profile id")
        return SubmissionConfirmation(profile_id=str(profile_id), message=data.get("message"))

    def _upload_image(self, profile_id: str, data: bytes, filename: str, content_type: str) -> ImageAsset:
        response = self._call(
            "upload image",
            "POST",
            f"/admin/profiles/{profile_id}/images",
            files={"file": (filename, data, content_type)},
        )
        body = self._json("upload image", response) or {}
        record = body.get("image") if isinstance(body.get("image"), dict) else body
        try:
            return ImageAsset.from_api(record)
        except ValueError as e:
            raise CollaboratorError("upload image", str(e)) from e

    def _delete_image(self, profile_id: str, asset_id: str) -> None:
        response = self._call("delete image", "DELETE", f"/admin/profiles/{profile_id}/images/{asset_id}")
        self._json("delete image", response)

    def _reorder_images(self, profile_id: str, asset_ids: list[str]) -> None:
        response = self._call(
            "reorder images",
            "PUT",
            f"/admin/profiles/{profile_id}/images/order",
            json={"imageIds": list(asset_ids)},
        )
        self._json("reorder images", response)

    def _list_images(self, profile_id: str) -> list[ImageAsset]:
        response = self._call("list images", "GET", f"/admin/profiles/{profile_id}/images")
        body = self._json("list images", response) or []
        records = body.get("images", []) if isinstance(body, dict) else body

        images = []
        for raw in records:
            try:
                images.append(ImageAsset.from_api(raw))
            except ValueError as e:
                logger.warning(f"Skipping image record: {e}")
        images.sort(key=lambda img: img.position)
        return [img.model_copy(update={"position": i}) for i, img in enumerate(images)]

    def _search_profiles(self, query: str, page: int = 1) -> list[MatchCandidate]:
        response = self._call(
            "search profiles",
            "GET",
            "/admin/profiles",
            params={"search": query, "page": page},
        )
        body = self._json("search profiles", response) or {}
        records = body.get("profiles", []) if isinstance(body, dict) else body

        candidates = []
        for raw in records:
            try:
                candidates.append(MatchCandidate.from_api(raw))
            except ValueError as e:
                logger.warning(f"Skipping profile record: {e}")
        return candidates

    def _update_profile(self, profile_id: str, values: dict[str, Any]) -> None:
        response = self._call("update profile", "PUT", f"/admin/profiles/{profile_id}", json=values)
        self._json("update profile", response)

    def _create_match(self, source_id: str, target_id: str) -> MatchResult:
        response = self._call(
            "create match",
            "POST",
            "/admin/matches",
            json={"fromProfileId": source_id, "toProfileId": target_id},
        )
        if response.status_code == 409:
            return MatchResult(
                success=False,
                error=self._error_reason(response),
                already_matched=True,
            )
        body = self._json("create match", response) or {}
        return MatchResult(
            success=bool(body.get("success", True)),
            error=body.get("error"),
            already_matched=bool(body.get("alreadyMatched", False)),
        )

    # --- Awaitable capabilities -----------------------------------------

    async def submit_draft(self, submission: ProfileSubmission) -> SubmissionConfirmation:
        return await asyncio.to_thread(self._submit_draft, submission)

    async def upload_image(
        self,
        profile_id: str,
        data: bytes,
        filename: str,
        content_type: str,
    ) -> ImageAsset:
        return await asyncio.to_thread(self._upload_image, profile_id, data, filename, content_type)

    async def delete_image(self, profile_id: str, asset_id: str) -> None:
        await asyncio.to_thread(self._delete_image, profile_id, asset_id)

    async def reorder_images(self, profile_id: str, asset_ids: list[str]) -> None:
        await asyncio.to_thread(self._reorder_images, profile_id, asset_ids)

    async def list_images(self, profile_id: str) -> list[ImageAsset]:
        return await asyncio.to_thread(self._list_images, profile_id)

    async def search_profiles(self, query: str, page: int = 1) -> list[MatchCandidate]:
        return await asyncio.to_thread(self._search_profiles, query, page)

    async def update_profile(self, profile_id: str, values: dict[str, Any]) -> None:
        await asyncio.to_thread(self._update_profile, profile_id, values)

    async def create_match(self, source_id: str, target_id: str) -> MatchResult:
        return await asyncio.to_thread(self._create_match, source_id, target_id)
