"""
Field validation and content neutralization for design request submissions.

Validation is declarative: each field's rule lives on ``DesignRequestForm``
and pydantic reports every failing field at once. The errors are translated
into human-readable ``FieldViolation`` entries so the caller can surface all
problems in one response.

Neutralization runs after validation on every string value. It strips
control characters and markup so that stored text cannot be interpreted as
executable content by a downstream viewer.
"""

from __future__ import annotations

import re
import unicodedata
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from .errors import FieldValidationError, FieldViolation
from .models import Budget, ProjectType, StylePreference, Timeline

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
PHONE_PATTERN = r"^[0-9+()\-. ]*$"

# Reference entries that are not URLs are tolerated below this length.
REFERENCE_FALLBACK_LENGTH = 100

FIELD_LABELS: Dict[str, str] = {
    "clientName": "Client name",
    "email": "Email",
    "phoneNumber": "Phone number",
    "projectType": "Project type",
    "timeline": "Timeline",
    "budget": "Budget",
    "designDescription": "Design description",
    "referenceWebsites": "Reference websites",
    "colorPreferences": "Color preferences",
    "stylePreferences": "Style preferences",
    "keyFeatures": "Key features",
}

ENUM_FIELDS = {
    "projectType": ProjectType,
    "timeline": Timeline,
    "budget": Budget,
    "stylePreferences": StylePreference,
}

FORMAT_MESSAGES = {
    "email": "Email must be a valid email address",
    "phoneNumber": "Phone number may only contain digits, spaces and + - ( ) .",
}

REQUIRED_FIELDS = {"clientName": "client_name", "email": "email", "designDescription": "design_description"}

_URL_ADAPTER = TypeAdapter(HttpUrl)
_REFERENCE_SPLIT = re.compile(r"[,\n]+")
_TAG_PATTERN = re.compile(r"<[^>]*>")
_SCRIPT_SCHEME_PATTERN = re.compile(r"(?i)(?:javascript|vbscript|data)\s*:")
_KEPT_CONTROLS = {"\n", "\t"}
_MAX_NEUTRALIZE_PASSES = 10


class DesignRequestForm(BaseModel):
    """Trimmed, type-checked form fields of a design request."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    client_name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=1, max_length=254, pattern=EMAIL_PATTERN)
    phone_number: str = Field("", max_length=30, pattern=PHONE_PATTERN)
    project_type: ProjectType
    timeline: Timeline
    budget: Budget
    design_description: str = Field(min_length=10, max_length=5000)
    reference_websites: str = Field("", max_length=2000)
    color_preferences: str = Field("", max_length=500)
    style_preferences: Optional[StylePreference] = None
    key_features: str = Field("", max_length=2000)

    @field_validator("reference_websites")
    @classmethod
    def check_reference_entries(cls, value: str) -> str:
        for entry in _REFERENCE_SPLIT.split(value):
            entry = entry.strip()
            if not entry or len(entry) < REFERENCE_FALLBACK_LENGTH:
                continue
            try:
                _URL_ADAPTER.validate_python(entry)
            except PydanticValidationError:
                raise PydanticCustomError(
                    "reference_entry",
                    "Reference websites must be valid URLs (entries that are not URLs must be under {limit} characters)",
                    {"limit": REFERENCE_FALLBACK_LENGTH},
                ) from None
        return value


def _strip_controls(value: str) -> str:
    return "".join(
        char for char in value
        if char in _KEPT_CONTROLS or not unicodedata.category(char).startswith("C")
    )


def _neutralize_once(value: str) -> str:
    value = unicodedata.normalize("NFKC", value)
    value = value.replace("\r\n", "\n").replace("\r", "\n")
    value = _strip_controls(value)
    value = _TAG_PATTERN.sub("", value)
    value = value.replace("<", "").replace(">", "")
    value = _SCRIPT_SCHEME_PATTERN.sub("", value)
    return value.strip()


def neutralize_text(value: str) -> str:
    """
    Remove content that a downstream viewer could execute or misrender.

    The cleanup is repeated until the text stops changing, so applying it to
    already-neutralized text is a no-op.

    Example:
        >>> neutralize_text("Hi <script>alert(1)</script>there")
        "Hi alert(1)there"
    """
    for _ in range(_MAX_NEUTRALIZE_PASSES):
        cleaned = _neutralize_once(value)
        if cleaned == value:
            return cleaned
        value = cleaned
    return value


def _describe(error: Dict[str, Any]) -> FieldViolation:
    field = str(error["loc"][0]) if error.get("loc") else "form"
    label = FIELD_LABELS.get(field, field)
    kind = error["type"]
    ctx = error.get("ctx") or {}

    if kind == "missing":
        message = f"{label} is required"
    elif kind == "string_too_short":
        message = f"{label} must be at least {ctx.get('min_length')} characters"
    elif kind == "string_too_long":
        message = f"{label} must be at most {ctx.get('max_length')} characters"
    elif kind == "string_pattern_mismatch":
        message = FORMAT_MESSAGES.get(field, f"{label} has an invalid format")
    elif kind == "enum" and field in ENUM_FIELDS:
        allowed = ", ".join(member.value for member in ENUM_FIELDS[field])
        message = f"{label} must be one of: {allowed}"
    elif kind in ("string_type", "enum"):
        message = f"{label} must be text"
    else:
        message = error["msg"]
    return FieldViolation(field=field, message=message)


def _prepare(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Trim strings and drop empty values so absent and blank are the same."""
    prepared: Dict[str, Any] = {}
    for key in FIELD_LABELS:
        value = fields.get(key)
        if isinstance(value, str):
            value = value.strip()
        if value is None or value == "":
            continue
        prepared[key] = value
    return prepared


def validate_submission(fields: Mapping[str, Any]) -> DesignRequestForm:
    """
    Validate and sanitize raw form fields.

    Args:
        fields: Raw field mapping keyed by the camelCase form names

    Returns:
        The sanitized form

    Raises:
        FieldValidationError: With every violation found, in field order
    """
    try:
        form = DesignRequestForm.model_validate(_prepare(fields))
    except PydanticValidationError as exc:
        raise FieldValidationError([_describe(error) for error in exc.errors()]) from None

    cleaned = {
        name: neutralize_text(value)
        for name, value in form.model_dump().items()
        if isinstance(value, str) and not isinstance(value, Enum)
    }
    violations: List[FieldViolation] = [
        FieldViolation(field=alias, message=f"{FIELD_LABELS[alias]} contains no usable content")
        for alias, attribute in REQUIRED_FIELDS.items()
        if not cleaned[attribute]
    ]
    if violations:
        raise FieldValidationError(violations)

    # Cleanup can shorten or reshape values, so the rules are checked again.
    sanitized = form.model_copy(update=cleaned).model_dump(by_alias=True)
    try:
        return DesignRequestForm.model_validate(sanitized)
    except PydanticValidationError as exc:
        raise FieldValidationError([_describe(error) for error in exc.errors()]) from None
