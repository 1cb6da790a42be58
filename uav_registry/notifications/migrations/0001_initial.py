import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ReminderLedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("subject_id", models.CharField(db_index=True, help_text="Stable id of the pilot the reminder was sent to", max_length=64)),
                ("kind", models.CharField(choices=[("medical", "תעודה רפואית"), ("instructor", "רישיון מדריך")], max_length=20)),
                ("expiry_date", models.DateField()),
                ("subject_name", models.CharField(blank=True, max_length=200)),
                ("sent_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("sent_by", models.CharField(blank=True, default="scheduler", help_text="Trigger that dispatched the reminder", max_length=30)),
            ],
            options={
                "verbose_name": "reminder ledger entry",
                "verbose_name_plural": "reminder ledger",
                "ordering": ["-sent_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="reminderledgerentry",
            constraint=models.UniqueConstraint(fields=("subject_id", "kind", "expiry_date"), name="unique_reminder_per_field_instance"),
        ),
    ]
