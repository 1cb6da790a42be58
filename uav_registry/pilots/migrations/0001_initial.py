import django.utils.timezone
import pilots.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ManagerRecipient",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("position", models.CharField(blank=True, max_length=150)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Pilot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("first_name", models.CharField(max_length=100)),
                ("last_name", models.CharField(max_length=100)),
                ("email", models.EmailField(blank=True, help_text="Reminders are skipped for pilots without an email", max_length=254)),
                ("certifications", models.JSONField(default=list, validators=[pilots.validators.validate_certifications])),
                ("rata_certification", models.CharField(choices=[("IP", "מטיס פנים"), ("EP", "מטיס חוץ"), ("BOTH", "מטיס פנים וחוץ")], default="IP", editable=False, help_text="Derived from certifications on save", max_length=4)),
                ("categories", models.JSONField(blank=True, default=list, validators=[pilots.validators.validate_categories])),
                ("restrictions", models.CharField(choices=[("none", "ללא"), ("launch_recovery", "שיגור והנצלה בלבד"), ("other", "אחר")], default="none", max_length=20)),
                ("custom_restrictions", models.CharField(blank=True, max_length=255)),
                ("health_certificate_expiry", models.DateField()),
                ("is_instructor", models.BooleanField(default=False)),
                ("instructor_license_expiry", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["first_name", "last_name"],
            },
        ),
    ]
