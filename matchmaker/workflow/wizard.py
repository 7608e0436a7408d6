"""
Profile creation wizard - ordered, validated steps ending in one submission.
"""
import logging
from typing import Any, Optional

from ..client.base import ProfileService
from ..config import get_config
from ..errors import (
    CollaboratorError,
    DraftValidationError,
    OperationInProgressError,
    WizardStateError,
)
from ..models.profile import DRAFT_DEFAULTS, FieldError, ProfileDraft, WizardStep
from ..models.submission import ProfileSubmission, SubmissionConfirmation
from .images import ImageCollectionReconciler
from .validators import build_group, validate_about, validate_photos, validate_step


logger = logging.getLogger(__name__)


class WizardController:
    """
    Drives profile composition across the fixed step sequence.

    Each `advance` validates only the active step's fields. Nothing leaves
    the process until the final step, where the draft and the photo list are
    assembled into a single immutable submission.
    """

    STEPS: tuple[WizardStep, ...] = tuple(WizardStep)

    def __init__(
        self,
        service: ProfileService,
        images: Optional[ImageCollectionReconciler] = None,
        initial_values: Optional[dict[str, Any]] = None,
        min_photos: Optional[int] = None,
        block_on_pending_uploads: Optional[bool] = None,
    ):
        config = get_config().wizard
        self.service = service
        self.images = images
        self.min_photos = config.min_photos if min_photos is None else min_photos
        self.block_on_pending_uploads = (
            config.block_on_pending_uploads
            if block_on_pending_uploads is None
            else block_on_pending_uploads
        )
        self.min_partner_age = config.min_partner_age
        self.max_partner_age = config.max_partner_age

        self.draft = ProfileDraft(defaults={**DRAFT_DEFAULTS, **(initial_values or {})})
        self.step_index = 0
        self.errors: list[FieldError] = []

        # Submission outcome
        self.payload: Optional[ProfileSubmission] = None
        self.confirmation: Optional[SubmissionConfirmation] = None
        self.submission_error: Optional[str] = None
        self._submitting = False

    @property
    def step(self) -> WizardStep:
        return self.STEPS[self.step_index]

    @property
    def total_steps(self) -> int:
        return len(self.STEPS)

    @property
    def is_terminal(self) -> bool:
        return self.step_index == self.total_steps - 1

    @property
    def progress(self) -> float:
        """Completion fraction for the progress bar."""
        return (self.step_index + 1) / self.total_steps

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def is_submitted(self) -> bool:
        return self.confirmation is not None

    @property
    def error_map(self) -> dict[str, list[str]]:
        """Current validation errors grouped by field."""
        grouped: dict[str, list[str]] = {}
        for error in self.errors:
            grouped.setdefault(error.field, []).append(error.message)
        return grouped

    def values_for(self, step: Optional[WizardStep] = None) -> dict[str, Any]:
        """Values to pre-fill a step with (defaults, then anything already entered)."""
        return self.draft.values_for(step or self.step)

    def _ensure_idle(self) -> None:
        if self._submitting:
            raise OperationInProgressError("Profile submission is already in progress")

    def _validate(self, step: WizardStep, data: dict[str, Any]) -> list[FieldError]:
        if step is WizardStep.ABOUT:
            return validate_about(data, self.min_partner_age, self.max_partner_age)
        return validate_step(step, data)

    def _validate_photos(self) -> list[FieldError]:
        persisted = len(self.images.persisted_ids) if self.images else 0
        pending = self.images.pending_count if self.images else 0
        return validate_photos(
            persisted,
            pending,
            min_photos=self.min_photos,
            block_on_pending=self.block_on_pending_uploads,
        )

    def _reject(self, errors: list[FieldError]) -> None:
        self.errors = errors
        fields = sorted({e.field for e in errors})
        logger.info(f"Step '{self.step.value}' rejected: {fields}")
        raise DraftValidationError(errors)

    async def advance(
        self,
        candidate_data: Optional[dict[str, Any]] = None,
    ) -> Optional[SubmissionConfirmation]:
        """
        Validate the active step and move forward.

        Candidate data is laid over the values the step already holds, so a
        user who goes back only needs to send what changed.

        Returns:
            The confirmation when the final step was submitted, otherwise None

        Raises:
            DraftValidationError: The step's data is invalid; nothing changed
            CollaboratorError: Final submission failed; the draft is kept
        """
        self._ensure_idle()
        step = self.step

        if step is WizardStep.PHOTOS:
            return await self.assemble_and_submit()

        data = {**self.draft.values_for(step), **(candidate_data or {})}
        group = None
        errors = self._validate(step, data)
        if not errors:
            group, errors = build_group(step, data)
        if errors:
            self._reject(errors)

        self.errors = []
        self.draft = self.draft.with_group(step, group)
        self.step_index += 1
        logger.info(f"Advanced to step {self.step_index + 1}/{self.total_steps}: {self.step.label}")
        return None

    def retreat(self) -> WizardStep:
        """Go back one step. Entered data is kept."""
        self._ensure_idle()
        self.errors = []
        self.step_index = max(self.step_index - 1, 0)
        return self.step

    async def assemble_and_submit(self) -> SubmissionConfirmation:
        """
        Build the submission from the draft and the persisted photo ids, then send it.

        The assembled payload stays on `payload` whatever the outcome, so a
        failed submission can simply be retried.

        Raises:
            WizardStateError: Not on the final step, or the draft is incomplete
            DraftValidationError: Photo requirements not met
            CollaboratorError: The profile service rejected the submission
        """
        if not self.is_terminal:
            raise WizardStateError("The profile can only be submitted from the final step")
        self._ensure_idle()
        if self.confirmation is not None:
            logger.info("Profile already submitted, returning existing confirmation")
            return self.confirmation

        errors = self._validate_photos()
        if errors:
            self._reject(errors)
        self.errors = []

        image_ids = self.images.persisted_ids if self.images else []
        try:
            self.payload = ProfileSubmission.assemble(self.draft, image_ids)
        except ValueError as e:
            raise WizardStateError(str(e)) from e

        self._submitting = True
        self.submission_error = None
        logger.info(f"Submitting profile with {len(image_ids)} photos")
        try:
            confirmation = await self.service.submit_draft(self.payload)
        except CollaboratorError as e:
            self.submission_error = e.reason
            logger.error(f"Profile submission failed: {e}")
            raise
        except Exception as e:
            self.submission_error = str(e)
            logger.error(f"Profile submission failed: {e}")
            raise CollaboratorError("submit profile", str(e)) from e
        finally:
            self._submitting = False

        self.confirmation = confirmation
        logger.info(f"Profile {confirmation.profile_id} created")
        return confirmation
