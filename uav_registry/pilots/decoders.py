"""
Decoding of pilot records exported from the previous document store.

Two record shapes exist in the wild:

- version 1: a single ``category`` string, ``rataCertification`` only,
  dates as timestamp objects ``{"seconds": ...}``
- version 2: ``categories`` list, ``rataCertifications`` list, dates as
  timestamp objects or ISO strings

Both decode into the keyword arguments of the current Pilot model. The
model itself only ever sees the current shape.
"""

from datetime import date, datetime, timezone as dt_timezone

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.utils import timezone

from notifications.services.expiry import to_local_day
from pilots.models import Pilot
from pilots.validators import Category, Certification

CURRENT_VERSION = 2

RATA_TO_CERTIFICATIONS = {
    "IP": [Certification.INTERNAL],
    "EP": [Certification.EXTERNAL],
    "BOTH": [Certification.INTERNAL_EXTERNAL],
}


class DecodeError(ValueError):
    """A stored record cannot be mapped onto the current pilot shape."""


def schema_version(record):
    version = record.get("schemaVersion")
    if version is not None:
        if version not in (1, CURRENT_VERSION):
            raise DecodeError(f"Unsupported schema version {version!r}")
        return version
    if "categories" in record or "rataCertifications" in record:
        return CURRENT_VERSION
    return 1


def _from_epoch(seconds, field):
    try:
        return datetime.fromtimestamp(seconds, tz=dt_timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        raise DecodeError(f"{field}: invalid timestamp {seconds!r}") from None


def decode_timestamp(value, field):
    """
    Timestamp object, epoch milliseconds or ISO string → aware datetime.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime(value.year, value.month, value.day)
    elif isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            raise DecodeError(f"{field}: timestamp object without seconds")
        result = _from_epoch(seconds, field)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        result = _from_epoch(value / 1000, field)
    elif isinstance(value, str):
        try:
            result = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise DecodeError(f"{field}: invalid date {value!r}") from None
    else:
        raise DecodeError(f"{field}: unsupported date value {value!r}")

    if timezone.is_naive(result):
        result = timezone.make_aware(result)
    return result


def decode_day(value, field):
    moment = decode_timestamp(value, field)
    return to_local_day(moment) if moment is not None else None


def _text(record, name, required=False):
    value = record.get(name)
    if value is None or value == "":
        if required:
            raise DecodeError(f"{name} is required")
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"{name}: expected text, got {type(value).__name__}")
    value = value.strip()
    if required and not value:
        raise DecodeError(f"{name} is required")
    return value


def _choice(value, choices, field):
    """Accept either the stored code or the display label."""
    if not isinstance(value, str):
        raise DecodeError(f"{field}: unknown value {value!r}")
    if value in choices.values:
        return str(value)
    by_label = {label: code for code, label in choices.choices}
    if value in by_label:
        return by_label[value]
    raise DecodeError(f"{field}: unknown value {value!r}")


def _choice_list(values, choices, field):
    if not isinstance(values, (list, tuple)):
        raise DecodeError(f"{field}: expected a list, got {type(values).__name__}")
    decoded = []
    for value in values:
        code = _choice(value, choices, field)
        if code not in decoded:
            decoded.append(code)
    return decoded


def decode_pilot_record(record):
    if not isinstance(record, dict):
        raise DecodeError("pilot record must be an object")

    version = schema_version(record)

    if version == 1:
        raw_categories = [record["category"]] if record.get("category") else []
    else:
        raw_categories = record.get("categories") or []

    raw_certifications = record.get("rataCertifications")
    if not raw_certifications:
        rata = record.get("rataCertification")
        if not isinstance(rata, str) or rata not in RATA_TO_CERTIFICATIONS:
            raise DecodeError(f"rataCertification: unknown value {rata!r}")
        raw_certifications = RATA_TO_CERTIFICATIONS[rata]

    medical = decode_day(record.get("healthCertificateExpiry"), "healthCertificateExpiry")
    if medical is None:
        raise DecodeError("healthCertificateExpiry is required")

    fields = {
        "first_name": _text(record, "firstName", required=True),
        "last_name": _text(record, "lastName", required=True),
        "email": _text(record, "email"),
        "certifications": _choice_list(raw_certifications, Certification, "rataCertifications"),
        "categories": _choice_list(raw_categories, Category, "categories"),
        "health_certificate_expiry": medical,
        "is_instructor": bool(record.get("isInstructor")),
        "instructor_license_expiry": decode_day(
            record.get("instructorLicenseExpiry"), "instructorLicenseExpiry"
        ),
        "restrictions": _choice(
            record.get("restrictions") or Pilot.Restriction.NONE,
            Pilot.Restriction,
            "restrictions",
        ),
        "custom_restrictions": _text(record, "customRestrictions"),
    }

    created_at = decode_timestamp(record.get("createdAt"), "createdAt")
    if created_at is not None:
        fields["created_at"] = created_at

    return fields


def decode_manager_record(record):
    if not isinstance(record, dict):
        raise DecodeError("manager record must be an object")

    name = _text(record, "name", required=True)
    email = _text(record, "email", required=True).lower()
    try:
        validate_email(email)
    except ValidationError:
        raise DecodeError(f"invalid manager email {email!r}") from None

    return {
        "name": name,
        "email": email,
        "position": _text(record, "position"),
    }
