"""
Collaborator interfaces consumed by the workflow components.
Any transport works; the workflow only relies on these coroutine contracts.
"""
from abc import ABC, abstractmethod
from typing import Any

from ..models.image import ImageAsset
from ..models.match import MatchCandidate, MatchResult
from ..models.submission import ProfileSubmission, SubmissionConfirmation


class ProfileService(ABC):
    """Receives completed profiles from the creation wizard."""

    @abstractmethod
    async def submit_draft(self, submission: ProfileSubmission) -> SubmissionConfirmation:
        ...


class ImageStore(ABC):
    """Authoritative store for profile photos."""

    @abstractmethod
    async def upload_image(
        self,
        profile_id: str,
        data: bytes,
        filename: str,
        content_type: str,
    ) -> ImageAsset:
        ...

    @abstractmethod
    async def delete_image(self, profile_id: str, asset_id: str) -> None:
        ...

    @abstractmethod
    async def reorder_images(self, profile_id: str, asset_ids: list[str]) -> None:
        ...

    @abstractmethod
    async def list_images(self, profile_id: str) -> list[ImageAsset]:
        ...


class ProfileDirectory(ABC):
    """Administrative profile lookup and editing."""

    @abstractmethod
    async def search_profiles(self, query: str, page: int = 1) -> list[MatchCandidate]:
        ...

    @abstractmethod
    async def update_profile(self, profile_id: str, values: dict[str, Any]) -> None:
        ...


class MatchService(ABC):
    """Creates mutual match edges between two profiles."""

    @abstractmethod
    async def create_match(self, source_id: str, target_id: str) -> MatchResult:
        ...
