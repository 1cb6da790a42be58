from django import forms

from pilots.models import ManagerRecipient, Pilot
from pilots.validators import Category, Certification


class DateInput(forms.DateInput):
    input_type = "date"


class PilotForm(forms.ModelForm):
    certifications = forms.MultipleChoiceField(
        label="הסמכות",
        choices=Certification.choices,
        widget=forms.CheckboxSelectMultiple,
    )

    categories = forms.MultipleChoiceField(
        label="קטגוריות",
        choices=Category.choices,
        widget=forms.CheckboxSelectMultiple,
        required=False,
    )

    class Meta:
        model = Pilot
        fields = [
            "first_name",
            "last_name",
            "email",
            "certifications",
            "categories",
            "health_certificate_expiry",
            "is_instructor",
            "instructor_license_expiry",
            "restrictions",
            "custom_restrictions",
        ]
        labels = {
            "first_name": "שם פרטי",
            "last_name": "שם משפחה",
            "email": "אימייל",
            "health_certificate_expiry": "תוקף תעודה רפואית",
            "is_instructor": "מדריך",
            "instructor_license_expiry": "תוקף רישיון מדריך",
            "restrictions": "מגבלות",
            "custom_restrictions": "פירוט מגבלה",
        }
        widgets = {
            "health_certificate_expiry": DateInput(format="%Y-%m-%d"),
            "instructor_license_expiry": DateInput(format="%Y-%m-%d"),
        }

    # ----------------------------
    # VALIDATION
    # ----------------------------
    def clean(self):
        cleaned_data = super().clean()

        # Non-instructors carry no instructor license date
        if not cleaned_data.get("is_instructor"):
            cleaned_data["instructor_license_expiry"] = None

        if cleaned_data.get("restrictions") != Pilot.Restriction.OTHER:
            cleaned_data["custom_restrictions"] = ""

        return cleaned_data


class ManagerRecipientForm(forms.ModelForm):
    class Meta:
        model = ManagerRecipient
        fields = ["name", "email", "position"]
        labels = {
            "name": "שם",
            "email": "אימייל",
            "position": "תפקיד",
        }

    def clean_email(self):
        return self.cleaned_data["email"].strip().lower()
