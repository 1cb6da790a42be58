"""
Boundary checks for the categorical pilot fields.

Certifications and categories are stored as JSON lists; these validators
are the allowed-values table for them and run from the model, the forms
and the import decoder alike.
"""

from django.core.exceptions import ValidationError
from django.db import models


class Certification(models.TextChoices):
    INTERNAL = "internal", "מטיס פנים"
    EXTERNAL = "external", "מטיס חוץ"
    INTERNAL_EXTERNAL = "internal_external", "מטיס פנים וחוץ"
    INTERNAL_IN_PROGRESS = "internal_in_progress", "בתהליך הוצאת רשיון פנים"
    EXTERNAL_IN_PROGRESS = "external_in_progress", "בתהליך הוצאת רשיון חוץ"


class Category(models.TextChoices):
    FIXED_WING_HEAVY = "fixed_wing_25_2000", "כנף קבועה 25-2000 קג"
    FIXED_WING_LIGHT = "fixed_wing_0_25", "כנף קבועה 0-25 קג"
    TWIN_FIXED_WING_HEAVY = "twin_fixed_wing_25_2000", "כנף קבועה דו מנועי 25-2000 קג"
    VTOL = "vtol", "עילוי ממונע VTOL"
    MULTIROTOR_HEAVY = "multirotor_25_2000", "רחפן 25-2000 קג"
    MULTIROTOR_LIGHT = "multirotor_0_25", "רחפן 0-25 קג"


IN_PROGRESS = {
    Certification.INTERNAL_IN_PROGRESS,
    Certification.EXTERNAL_IN_PROGRESS,
}


def _check_known(values, choices, field_label):
    if not isinstance(values, (list, tuple)):
        raise ValidationError(f"{field_label} must be a list.")

    unknown = [value for value in values if value not in choices.values]
    if unknown:
        raise ValidationError(
            f"Unknown {field_label}: %(unknown)s",
            params={"unknown": ", ".join(map(str, unknown))},
            code="unknown_choice",
        )

    if len(set(values)) != len(values):
        raise ValidationError(
            f"Duplicate {field_label}.", code="duplicate_choice"
        )


def find_certification_conflict(certifications):
    """
    Return a message describing why the combination is invalid, or None.
    """
    selected = set(certifications)

    if {Certification.INTERNAL, Certification.INTERNAL_IN_PROGRESS} <= selected:
        return "An internal license cannot also be in progress."

    if {Certification.EXTERNAL, Certification.EXTERNAL_IN_PROGRESS} <= selected:
        return "An external license cannot also be in progress."

    if Certification.INTERNAL_EXTERNAL in selected and selected & IN_PROGRESS:
        return "Internal and external pilots cannot have a license in progress."

    return None


def validate_certifications(values):
    _check_known(values, Certification, "certifications")

    if not values:
        raise ValidationError(
            "At least one certification is required.", code="required"
        )

    conflict = find_certification_conflict(values)
    if conflict:
        raise ValidationError(conflict, code="conflict")


def validate_categories(values):
    _check_known(values, Category, "categories")


def summarize_certifications(certifications):
    """
    Collapse the certification set into the IP / EP / BOTH summary.
    """
    selected = set(certifications)
    has_internal = Certification.INTERNAL in selected
    has_external = Certification.EXTERNAL in selected

    if Certification.INTERNAL_EXTERNAL in selected:
        return "BOTH"
    if has_internal and has_external:
        return "BOTH"
    if has_internal:
        return "IP"
    if has_external:
        return "EP"
    return "IP"
