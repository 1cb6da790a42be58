from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from pilots.validators import (
    Category,
    validate_categories,
    validate_certifications,
    summarize_certifications,
)


class Pilot(models.Model):
    """
    A licensed UAV pilot and the documents whose expiry we track.
    """

    class RataCertification(models.TextChoices):
        IP = "IP", "מטיס פנים"
        EP = "EP", "מטיס חוץ"
        BOTH = "BOTH", "מטיס פנים וחוץ"

    class Restriction(models.TextChoices):
        NONE = "none", "ללא"
        LAUNCH_RECOVERY = "launch_recovery", "שיגור והנצלה בלבד"
        OTHER = "other", "אחר"

    # =====================================================
    # IDENTITY
    # =====================================================
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)

    email = models.EmailField(
        blank=True,
        help_text="Reminders are skipped for pilots without an email"
    )

    # =====================================================
    # LICENSING
    # =====================================================
    certifications = models.JSONField(
        default=list,
        validators=[validate_certifications],
    )

    rata_certification = models.CharField(
        max_length=4,
        choices=RataCertification.choices,
        default=RataCertification.IP,
        editable=False,
        help_text="Derived from certifications on save"
    )

    categories = models.JSONField(
        default=list,
        blank=True,
        validators=[validate_categories],
    )

    restrictions = models.CharField(
        max_length=20,
        choices=Restriction.choices,
        default=Restriction.NONE,
    )

    custom_restrictions = models.CharField(
        max_length=255,
        blank=True,
    )

    # =====================================================
    # TRACKED EXPIRY DATES
    # =====================================================
    health_certificate_expiry = models.DateField()

    is_instructor = models.BooleanField(default=False)

    instructor_license_expiry = models.DateField(
        null=True,
        blank=True,
    )

    # =====================================================
    # TIMESTAMPS
    # =====================================================
    created_at = models.DateTimeField(
        default=timezone.now,
        db_index=True
    )

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["first_name", "last_name"]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def category_labels(self):
        labels = dict(Category.choices)
        return [labels.get(value, value) for value in self.categories or []]

    @property
    def restriction_display(self):
        if self.restrictions == self.Restriction.OTHER:
            return self.custom_restrictions
        return self.get_restrictions_display()

    def clean(self):
        errors = {}

        if self.is_instructor and not self.instructor_license_expiry:
            errors["instructor_license_expiry"] = (
                "Instructors must have an instructor license expiry date."
            )

        if self.restrictions == self.Restriction.OTHER and not self.custom_restrictions:
            errors["custom_restrictions"] = "Describe the restriction."

        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        self.rata_certification = summarize_certifications(self.certifications or [])
        if self.restrictions != self.Restriction.OTHER:
            self.custom_restrictions = ""
        super().save(*args, **kwargs)


class ManagerRecipient(models.Model):
    """
    Mailing-list entry that receives a copy of every pilot reminder.
    """
    name = models.CharField(max_length=150)
    email = models.EmailField(unique=True)
    position = models.CharField(max_length=150, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        if self.position:
            return f"{self.name} ({self.email}) - {self.position}"
        return f"{self.name} ({self.email})"
