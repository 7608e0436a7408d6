"""
Exception hierarchy for the profile composition and matching workflow.

Every error is scoped to the operation that raised it and carries a
human-readable message suitable for showing to the user.
"""
from typing import Optional

from .models.profile import FieldError


class MatchmakerError(Exception):
    """Base class for all workflow errors."""


class DraftValidationError(MatchmakerError):
    """Local, field-scoped validation failure. Never reaches a collaborator."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        fields = ", ".join(e.field for e in self.errors)
        super().__init__(f"Invalid fields: {fields}")

    def as_dict(self) -> dict[str, list[str]]:
        """Group messages by field name."""
        grouped: dict[str, list[str]] = {}
        for error in self.errors:
            grouped.setdefault(error.field, []).append(error.message)
        return grouped


class CollaboratorError(MatchmakerError):
    """A remote operation (upload, delete, search, submit...) failed."""

    def __init__(self, operation: str, reason: str, status_code: Optional[int] = None):
        self.operation = operation
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"{operation} failed: {reason}")


class ImageOperationError(CollaboratorError):
    """An image upload, delete or reorder was rejected by the remote store."""

    def __init__(self, operation: str, reason: str, rolled_back: bool = True):
        self.rolled_back = rolled_back
        super().__init__(operation, reason)
        if rolled_back:
            self.args = (f"{operation} failed: {reason} (local change reverted)",)


class InvariantViolation(MatchmakerError):
    """A match-graph invariant would be broken."""


class SelfMatchError(InvariantViolation):
    def __init__(self, profile_id: str):
        self.profile_id = profile_id
        super().__init__("Cannot match a profile with itself")


class AlreadyMatchedError(InvariantViolation):
    def __init__(self, reason: Optional[str] = None):
        super().__init__(reason or "These profiles are already matched")


class ProfileNotFoundError(MatchmakerError):
    def __init__(self, query: str):
        self.query = query
        super().__init__("No matching profile found")


class MatchCreationError(MatchmakerError):
    """The match service answered but refused to create the edge."""


class ImageNotFoundError(MatchmakerError):
    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        super().__init__(f"Image {asset_id} not found")


class InvalidImageError(MatchmakerError):
    """Upload rejected locally (type or size) before any remote call."""


class OperationInProgressError(MatchmakerError):
    """An overlapping mutating call was rejected."""


class WizardStateError(MatchmakerError):
    """An operation was invoked from a step where it is not allowed."""
