"""
Submission models - the immutable payload sent when the wizard completes.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .profile import (
    AboutInfo,
    BasicInfo,
    CulturalInfo,
    EducationCareer,
    LocationLifestyle,
    ProfileDraft,
)


class ProfileSubmission(BaseModel):
    """
    Complete, frozen profile payload.
    Built once from a finished draft plus the ordered persisted photo ids.
    """
    model_config = ConfigDict(frozen=True)

    basic_info: BasicInfo
    location: LocationLifestyle
    cultural: CulturalInfo
    education: EducationCareer
    about: AboutInfo
    profile_image_ids: tuple[str, ...] = Field(default=())

    @classmethod
    def assemble(cls, draft: ProfileDraft, image_ids: list[str]) -> "ProfileSubmission":
        """Combine a complete draft with photo identifiers."""
        missing = draft.missing_steps()
        if missing:
            labels = ", ".join(step.label for step in missing)
            raise ValueError(f"Draft is incomplete: {labels}")
        return cls(
            basic_info=draft.basic_info,
            location=draft.location,
            cultural=draft.cultural,
            education=draft.education,
            about=draft.about,
            profile_image_ids=tuple(image_ids),
        )

    def to_payload(self) -> dict[str, Any]:
        """Flatten to the remote API's field names."""
        payload: dict[str, Any] = {}
        for group in (self.basic_info, self.location, self.cultural, self.education, self.about):
            payload.update(group.to_wire())
        payload["profileImageIds"] = list(self.profile_image_ids)
        return payload


class SubmissionConfirmation(BaseModel):
    """Acknowledgement returned by the profile service."""
    profile_id: str
    message: Optional[str] = None
