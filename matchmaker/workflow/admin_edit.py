"""
Administrative profile editing - field edits, photos and manual matches for one profile.
"""
import logging
from typing import Any, Optional

from ..client.base import ImageStore, MatchService, ProfileDirectory
from ..errors import CollaboratorError, DraftValidationError, OperationInProgressError
from ..models.match import MatchCandidate
from ..models.profile import FieldError
from .images import ImageCollectionReconciler
from .manual_match import ManualMatchInitiator
from .validators import validate_full_profile


logger = logging.getLogger(__name__)


class ProfileEditSession:
    """
    Everything an administrator can change on an existing profile.
    Photos and matches are handled by their own components; this class owns
    the field values and the list of current matches.
    """

    def __init__(
        self,
        profile_id: str,
        directory: ProfileDirectory,
        images: ImageCollectionReconciler,
        matcher: ManualMatchInitiator,
        values: Optional[dict[str, Any]] = None,
        matches: Optional[list[MatchCandidate]] = None,
    ):
        self.profile_id = profile_id
        self.directory = directory
        self.images = images
        self.matcher = matcher
        self.values: dict[str, Any] = dict(values or {})
        self.matches: list[MatchCandidate] = list(matches or [])
        self.errors: list[FieldError] = []
        self.save_error: Optional[str] = None
        self._saving = False

        if self.matcher.on_matched is None:
            self.matcher.on_matched = self._record_match

    @classmethod
    async def load(
        cls,
        profile_id: str,
        directory: ProfileDirectory,
        store: ImageStore,
        match_service: MatchService,
        values: Optional[dict[str, Any]] = None,
        matches: Optional[list[MatchCandidate]] = None,
    ) -> "ProfileEditSession":
        """Load the profile's photos and wire up the edit components."""
        images = await ImageCollectionReconciler.load(profile_id, store)
        matcher = ManualMatchInitiator(profile_id, directory, match_service)
        logger.info(f"Opened edit session for {profile_id} with {len(images.images)} images")
        return cls(profile_id, directory, images, matcher, values=values, matches=matches)

    @property
    def is_saving(self) -> bool:
        return self._saving

    def _record_match(self, candidate: MatchCandidate) -> None:
        if all(m.profile_id != candidate.profile_id for m in self.matches):
            self.matches.append(candidate)

    def validate(self, values: dict[str, Any]) -> list[FieldError]:
        return validate_full_profile(values)

    async def save(self, values: dict[str, Any]) -> dict[str, Any]:
        """
        Validate and store edited field values.

        Returns:
            The cleaned values that were sent

        Raises:
            DraftValidationError: Invalid values, nothing was sent
            CollaboratorError: The profile service rejected the update
        """
        if self._saving:
            raise OperationInProgressError("Profile is already being saved")

        errors = self.validate(values)
        if errors:
            self.errors = errors
            raise DraftValidationError(errors)
        self.errors = []

        cleaned = {k: v.strip() if isinstance(v, str) else v for k, v in values.items()}
        cleaned.pop("profileImageIds", None)

        self._saving = True
        self.save_error = None
        try:
            await self.directory.update_profile(self.profile_id, cleaned)
        except CollaboratorError as e:
            self.save_error = e.reason
            logger.error(f"Saving profile {self.profile_id} failed: {e}")
            raise
        except Exception as e:
            self.save_error = str(e)
            logger.error(f"Saving profile {self.profile_id} failed: {e}")
            raise CollaboratorError("update profile", str(e)) from e
        finally:
            self._saving = False

        self.values = cleaned
        logger.info(f"Saved profile {self.profile_id}")
        return cleaned
