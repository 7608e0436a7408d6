"""
Profile models - typed field groups, wizard steps and the accumulating draft.
"""
from datetime import date
from enum import Enum
from typing import Any, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator


ProfileFor = Literal["self", "friend", "family"]
Gender = Literal["male", "female", "other", "non-binary", "prefer-not-to-say"]
MaritalStatus = Literal["single", "divorced", "widowed", "annulled"]
PreferredGender = Literal["male", "female", "any", "other"]

PROFILE_FOR_CHOICES: tuple[str, ...] = get_args(ProfileFor)
GENDER_CHOICES: tuple[str, ...] = get_args(Gender)
MARITAL_STATUS_CHOICES: tuple[str, ...] = get_args(MaritalStatus)
PREFERRED_GENDER_CHOICES: tuple[str, ...] = get_args(PreferredGender)

MOTHER_TONGUE_CHOICES = (
    "farsi-dari", "pashto", "uzbeki", "hazaragi",
    "turkmeni", "balochi", "nuristani", "punjabi",
)
RELIGION_CHOICES = ("muslim", "hindu", "sikh")
ETHNICITY_CHOICES = (
    "tajik", "pashtun", "uzbek", "hazara", "turkmen", "baloch",
    "nuristani", "aimaq", "pashai", "qizilbash", "punjabi",
)

# Pre-filled values for a brand new wizard session
DRAFT_DEFAULTS: dict[str, Any] = {
    "profileFor": "self",
    "preferredGender": "any",
}


class FieldError(BaseModel):
    """A single field-scoped validation failure."""
    model_config = ConfigDict(frozen=True)

    field: str = Field(description="Wire name of the offending field")
    message: str


class _Group(BaseModel):
    """Common config for field groups: immutable, populated by wire name."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class BasicInfo(_Group):
    """Identity group."""
    profile_for: ProfileFor = Field(alias="profileFor")
    gender: Gender
    full_name: str = Field(alias="fullName")
    date_of_birth: date = Field(alias="dateOfBirth")
    phone_number: str = Field(alias="phoneNumber")
    height: int = Field(description="Height in centimetres")
    marital_status: MaritalStatus = Field(alias="maritalStatus")

    @property
    def age(self) -> int:
        return age_on(self.date_of_birth)

    @property
    def height_display(self) -> str:
        return cm_to_feet_inches(self.height)


class LocationLifestyle(_Group):
    """Location and lifestyle group."""
    country: str
    city: str
    diet: str
    smoking: str
    drinking: str
    physical_status: str = Field(alias="physicalStatus")


class CulturalInfo(_Group):
    """Cultural group. Every field is optional."""
    mother_tongue: Optional[str] = Field(default=None, alias="motherTongue")
    religion: Optional[str] = None
    ethnicity: Optional[str] = None


class EducationCareer(_Group):
    """Education and career group."""
    education: str
    occupation: str
    annual_income: Optional[float] = Field(
        default=None, alias="annualIncome", ge=0, allow_inf_nan=False
    )


class AboutInfo(_Group):
    """Narrative group, including partner preferences."""
    about_me: str = Field(alias="aboutMe")
    preferred_gender: PreferredGender = Field(default="any", alias="preferredGender")
    partner_preference_age_min: Optional[int] = Field(default=None, alias="partnerPreferenceAgeMin")
    partner_preference_age_max: Optional[int] = Field(default=None, alias="partnerPreferenceAgeMax")
    partner_preference_city: tuple[str, ...] = Field(default=(), alias="partnerPreferenceCity")

    @field_validator("partner_preference_city", mode="before")
    @classmethod
    def split_cities(cls, v: Any) -> tuple[str, ...]:
        """Accept a comma separated string or a list of cities."""
        if v is None:
            return ()
        if isinstance(v, str):
            v = v.split(",")
        return tuple(c.strip() for c in v if c and c.strip())


class WizardStep(Enum):
    """Ordered, fixed sequence of profile composition steps."""
    BASIC_INFO = "basic_info"
    LOCATION = "location"
    CULTURAL = "cultural"
    EDUCATION = "education"
    ABOUT = "about"
    PHOTOS = "photos"

    @property
    def label(self) -> str:
        return STEP_LABELS[self]

    @property
    def fields(self) -> tuple[str, ...]:
        """Wire names of the fields this step is responsible for."""
        return STEP_FIELDS[self]

    @property
    def group_model(self) -> Optional[type[_Group]]:
        return STEP_GROUP_MODELS.get(self)


STEP_LABELS = {
    WizardStep.BASIC_INFO: "Basic Info",
    WizardStep.LOCATION: "Location & Lifestyle",
    WizardStep.CULTURAL: "Cultural",
    WizardStep.EDUCATION: "Education & Career",
    WizardStep.ABOUT: "About",
    WizardStep.PHOTOS: "Photos",
}

STEP_GROUP_MODELS: dict[WizardStep, type[_Group]] = {
    WizardStep.BASIC_INFO: BasicInfo,
    WizardStep.LOCATION: LocationLifestyle,
    WizardStep.CULTURAL: CulturalInfo,
    WizardStep.EDUCATION: EducationCareer,
    WizardStep.ABOUT: AboutInfo,
}

# Draft attribute holding each step's group
STEP_GROUP_ATTRS: dict[WizardStep, str] = {
    WizardStep.BASIC_INFO: "basic_info",
    WizardStep.LOCATION: "location",
    WizardStep.CULTURAL: "cultural",
    WizardStep.EDUCATION: "education",
    WizardStep.ABOUT: "about",
}


def _wire_names(model: type[_Group]) -> tuple[str, ...]:
    return tuple(f.alias or name for name, f in model.model_fields.items())


STEP_FIELDS: dict[WizardStep, tuple[str, ...]] = {
    step: _wire_names(model) for step, model in STEP_GROUP_MODELS.items()
}
STEP_FIELDS[WizardStep.PHOTOS] = ("profileImageIds",)


class ProfileDraft(BaseModel):
    """
    Accumulating, not-yet-submitted profile.
    One optional variant per field group; a group is only ever set to a
    fully validated value.
    """
    basic_info: Optional[BasicInfo] = None
    location: Optional[LocationLifestyle] = None
    cultural: Optional[CulturalInfo] = None
    education: Optional[EducationCareer] = None
    about: Optional[AboutInfo] = None

    defaults: dict[str, Any] = Field(
        default_factory=lambda: dict(DRAFT_DEFAULTS),
        description="Values used to pre-fill steps that were never completed"
    )

    def group(self, step: WizardStep) -> Optional[_Group]:
        """Get the group merged for a step, if any."""
        attr = STEP_GROUP_ATTRS.get(step)
        return getattr(self, attr) if attr else None

    def with_group(self, step: WizardStep, group: _Group) -> "ProfileDraft":
        """Return a copy of the draft with one group replaced."""
        attr = STEP_GROUP_ATTRS[step]
        return self.model_copy(update={attr: group})

    def values_for(self, step: WizardStep) -> dict[str, Any]:
        """Values to pre-fill a step with: defaults overlaid by merged data."""
        values = {k: v for k, v in self.defaults.items() if k in step.fields}
        group = self.group(step)
        if group is not None:
            values.update(group.to_wire())
        return values

    def missing_steps(self) -> list[WizardStep]:
        """Data steps whose group has not been merged yet."""
        return [step for step in STEP_GROUP_ATTRS if self.group(step) is None]

    @property
    def is_complete(self) -> bool:
        return not self.missing_steps()


def age_on(date_of_birth: date, today: Optional[date] = None) -> int:
    """Full years between a birth date and today."""
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def cm_to_feet_inches(cm: float) -> str:
    """Format a height in centimetres as feet and inches, e.g. 5'9\"."""
    total_inches = round(cm / 2.54)
    feet, inches = divmod(total_inches, 12)
    return f"{feet}'{inches}\""
