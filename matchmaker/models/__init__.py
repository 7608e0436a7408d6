"""
Pydantic models for the matchmaker core.
All data contracts are defined here for strict validation.
"""

from .profile import (
    AboutInfo,
    BasicInfo,
    CulturalInfo,
    EducationCareer,
    FieldError,
    LocationLifestyle,
    ProfileDraft,
    WizardStep,
    age_on,
    cm_to_feet_inches,
)
from .image import ImageAsset
from .match import MatchCandidate, MatchEdge, MatchResult
from .submission import ProfileSubmission, SubmissionConfirmation

__all__ = [
    # Profile
    "AboutInfo",
    "BasicInfo",
    "CulturalInfo",
    "EducationCareer",
    "FieldError",
    "LocationLifestyle",
    "ProfileDraft",
    "WizardStep",
    "age_on",
    "cm_to_feet_inches",
    # Images
    "ImageAsset",
    # Matching
    "MatchCandidate",
    "MatchEdge",
    "MatchResult",
    # Submission
    "ProfileSubmission",
    "SubmissionConfirmation",
]
