"""
Step validators - pure functions from raw form data to field-scoped errors.
"""
import math
import re
from datetime import date, datetime
from typing import Any, Callable, Optional

from pydantic import ValidationError

from ..models.profile import (
    ETHNICITY_CHOICES,
    GENDER_CHOICES,
    MARITAL_STATUS_CHOICES,
    MOTHER_TONGUE_CHOICES,
    PREFERRED_GENDER_CHOICES,
    PROFILE_FOR_CHOICES,
    RELIGION_CHOICES,
    FieldError,
    WizardStep,
    age_on,
)


PHONE_PATTERN = re.compile(r"^\+\d{1,4}\s?\d{6,14}$", re.IGNORECASE)

MIN_AGE = 18
MAX_AGE = 120
MIN_HEIGHT_CM = 100
MAX_HEIGHT_CM = 250

Validator = Callable[[dict[str, Any]], list[FieldError]]


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _require(data: dict[str, Any], field: str, message: str, errors: list[FieldError]) -> bool:
    """Record an error if the field is blank. Returns True when present."""
    if _is_blank(data.get(field)):
        errors.append(FieldError(field=field, message=message))
        return False
    return True


def _choice(
    data: dict[str, Any],
    field: str,
    choices: tuple[str, ...],
    errors: list[FieldError],
    required: bool = True,
) -> None:
    value = data.get(field)
    if _is_blank(value):
        if required:
            errors.append(FieldError(field=field, message="Please select an option"))
        return
    if value not in choices:
        errors.append(FieldError(field=field, message=f"Invalid choice: {value}"))


def _to_number(value: Any, separators: bool = False) -> Optional[float]:
    """
    Parse ints, floats and numeric strings. Returns None if not numeric
    or not finite. With `separators`, thousands commas are ignored.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if separators:
            text = text.replace(",", "")
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _to_whole(value: Any) -> Optional[int]:
    """Parse a whole number; "170.5", "1,70" and non-finite text give None."""
    number = _to_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _to_income(value: Any) -> Optional[float]:
    return _to_number(value, separators=True)


def _to_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def validate_basic_info(data: dict[str, Any], today: Optional[date] = None) -> list[FieldError]:
    """Identity group: who the profile is for and who they are."""
    errors: list[FieldError] = []
    _choice(data, "profileFor", PROFILE_FOR_CHOICES, errors)
    _choice(data, "gender", GENDER_CHOICES, errors)
    _choice(data, "maritalStatus", MARITAL_STATUS_CHOICES, errors)

    full_name = data.get("fullName")
    if not isinstance(full_name, str) or len(full_name.strip()) < 2:
        errors.append(FieldError(field="fullName", message="Full name is required"))

    if _require(data, "dateOfBirth", "Date of birth is required", errors):
        dob = _to_date(data["dateOfBirth"])
        if dob is None:
            errors.append(FieldError(field="dateOfBirth", message="Enter a valid date (YYYY-MM-DD)"))
        else:
            age = age_on(dob, today)
            if age < MIN_AGE:
                errors.append(
                    FieldError(field="dateOfBirth", message=f"Must be at least {MIN_AGE} years old")
                )
            elif age > MAX_AGE:
                errors.append(FieldError(field="dateOfBirth", message="Enter a valid date of birth"))

    phone = data.get("phoneNumber")
    if not isinstance(phone, str) or not PHONE_PATTERN.match(phone.strip()):
        errors.append(
            FieldError(field="phoneNumber", message="Enter a valid phone number with country code")
        )

    if _require(data, "height", "Height is required", errors):
        height = _to_whole(data["height"])
        if height is None or not MIN_HEIGHT_CM <= height <= MAX_HEIGHT_CM:
            errors.append(
                FieldError(
                    field="height",
                    message=f"Height must be a whole number between {MIN_HEIGHT_CM} and {MAX_HEIGHT_CM} cm",
                )
            )
    return errors


def validate_location(data: dict[str, Any]) -> list[FieldError]:
    """Location and lifestyle group."""
    errors: list[FieldError] = []
    _require(data, "country", "Country is required", errors)
    _require(data, "city", "City is required", errors)
    _require(data, "diet", "Diet is required", errors)
    _require(data, "smoking", "Smoking is required", errors)
    _require(data, "drinking", "Drinking is required", errors)
    _require(data, "physicalStatus", "Physical status is required", errors)
    return errors


def validate_cultural(data: dict[str, Any]) -> list[FieldError]:
    errors: list[FieldError] = []
    _choice(data, "motherTongue", MOTHER_TONGUE_CHOICES, errors, required=False)
    _choice(data, "religion", RELIGION_CHOICES, errors, required=False)
    _choice(data, "ethnicity", ETHNICITY_CHOICES, errors, required=False)
    return errors


def validate_education(data: dict[str, Any]) -> list[FieldError]:
    errors: list[FieldError] = []
    _require(data, "education", "Education is required", errors)
    _require(data, "occupation", "Occupation is required", errors)
    income = data.get("annualIncome")
    if not _is_blank(income):
        amount = _to_income(income)
        if amount is None or amount < 0:
            errors.append(FieldError(field="annualIncome", message="Annual income must be a positive number"))
    return errors


def validate_about(
    data: dict[str, Any],
    min_age: int = MIN_AGE,
    max_age: int = MAX_AGE,
) -> list[FieldError]:
    """Narrative group and partner preferences."""
    errors: list[FieldError] = []
    _require(data, "aboutMe", "About Me is required", errors)
    _choice(data, "preferredGender", PREFERRED_GENDER_CHOICES, errors, required=False)

    bounds: dict[str, int] = {}
    for field in ("partnerPreferenceAgeMin", "partnerPreferenceAgeMax"):
        raw = data.get(field)
        if _is_blank(raw):
            continue
        value = _to_whole(raw)
        if value is None or not min_age <= value <= max_age:
            errors.append(
                FieldError(field=field, message=f"Age must be a whole number between {min_age} and {max_age}")
            )
        else:
            bounds[field] = value

    low = bounds.get("partnerPreferenceAgeMin")
    high = bounds.get("partnerPreferenceAgeMax")
    if low is not None and high is not None and low > high:
        errors.append(
            FieldError(field="partnerPreferenceAgeMax", message="Maximum age must not be below minimum age")
        )

    cities = data.get("partnerPreferenceCity")
    if cities is not None and not isinstance(cities, (str, list, tuple)):
        errors.append(FieldError(field="partnerPreferenceCity", message="Enter a city or a list of cities"))
    return errors


def validate_photos(
    persisted_count: int,
    pending_count: int = 0,
    min_photos: int = 0,
    block_on_pending: bool = False,
) -> list[FieldError]:
    """Photo step: enough persisted photos, optionally none still uploading."""
    errors: list[FieldError] = []
    if persisted_count < min_photos:
        noun = "photo" if min_photos == 1 else "photos"
        errors.append(
            FieldError(field="profileImageIds", message=f"Upload at least {min_photos} {noun}")
        )
    if block_on_pending and pending_count:
        errors.append(
            FieldError(field="profileImageIds", message="Wait for uploads to finish")
        )
    return errors


NUMERIC_FIELDS: dict[str, Callable[[Any], Optional[float]]] = {
    "height": _to_whole,
    "annualIncome": _to_income,
    "partnerPreferenceAgeMin": _to_whole,
    "partnerPreferenceAgeMax": _to_whole,
}

STEP_VALIDATORS: dict[WizardStep, Validator] = {
    WizardStep.BASIC_INFO: validate_basic_info,
    WizardStep.LOCATION: validate_location,
    WizardStep.CULTURAL: validate_cultural,
    WizardStep.EDUCATION: validate_education,
    WizardStep.ABOUT: validate_about,
}


def validate_step(step: WizardStep, data: dict[str, Any]) -> list[FieldError]:
    """Validate the subset of `data` that belongs to a data step."""
    validator = STEP_VALIDATORS.get(step)
    if validator is None:
        return []
    return validator(data)


def clean_step_data(step: WizardStep, data: dict[str, Any]) -> dict[str, Any]:
    """
    Keep only the step's fields, strip strings and drop blanks.
    Numeric fields that parse are passed on as numbers.
    """
    cleaned = {}
    for field in step.fields:
        value = data.get(field)
        if isinstance(value, str):
            value = value.strip()
        if _is_blank(value):
            continue
        parse = NUMERIC_FIELDS.get(field)
        if parse is not None and parse(value) is not None:
            value = parse(value)
        cleaned[field] = value
    return cleaned


def build_group(step: WizardStep, data: dict[str, Any]):
    """
    Turn validated step data into its typed group.

    Returns:
        (group, errors) - group is None when the model itself rejects the data
    """
    model = step.group_model
    if model is None:
        raise ValueError(f"Step {step.value} has no field group")
    try:
        return model.model_validate(clean_step_data(step, data)), []
    except ValidationError as e:
        errors = []
        for item in e.errors():
            field = str(item["loc"][0]) if item.get("loc") else step.value
            errors.append(FieldError(field=field, message=item.get("msg", "Invalid value")))
        return None, errors


def validate_full_profile(data: dict[str, Any]) -> list[FieldError]:
    """
    Whole-profile validation used by the administrative edit surface.
    Applies every group's rules at once.
    """
    errors: list[FieldError] = []
    for validator in STEP_VALIDATORS.values():
        errors.extend(validator(data))
    return errors
