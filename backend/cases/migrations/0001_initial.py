import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Case",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("title", models.CharField(max_length=200, verbose_name="Title")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("status", models.CharField(choices=[("OPEN", "Open"), ("PENDING", "Pending Acceptance"), ("IN_PROGRESS", "In Progress"), ("PENDING_COMPLETION_REVIEW", "Pending Completion Review"), ("COMPLETED", "Completed"), ("CLOSED", "Closed")], db_index=True, default="OPEN", max_length=30, verbose_name="Status")),
                ("priority", models.CharField(choices=[("LOW", "Low"), ("MEDIUM", "Medium"), ("HIGH", "High"), ("URGENT", "Urgent")], db_index=True, default="MEDIUM", max_length=10, verbose_name="Priority")),
                ("due_date", models.DateField(blank=True, null=True, verbose_name="Due Date")),
                ("completed_at", models.DateTimeField(blank=True, null=True, verbose_name="Completed At")),
                ("metadata", models.JSONField(blank=True, default=dict, verbose_name="Metadata")),
                ("assigned_to", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="assigned_cases", to=settings.AUTH_USER_MODEL, verbose_name="Assigned To")),
                ("completed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="approved_cases", to=settings.AUTH_USER_MODEL, verbose_name="Completion Approved By")),
                ("created_by", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="created_cases", to=settings.AUTH_USER_MODEL, verbose_name="Created By")),
            ],
            options={
                "verbose_name": "Case",
                "verbose_name_plural": "Cases",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["assigned_to", "status"], name="cases_assignee_status_idx"),
                    models.Index(fields=["created_by", "status"], name="cases_creator_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CaseLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(choices=[("created", "Created"), ("updated", "Updated"), ("assigned", "Assigned"), ("accepted", "Accepted"), ("rejected", "Rejected"), ("completion_requested", "Completion Requested"), ("completion_approved", "Completion Approved"), ("completion_rejected", "Completion Rejected"), ("closed", "Closed"), ("note", "Note")], max_length=30, verbose_name="Action")),
                ("details", models.TextField(blank=True, default="", verbose_name="Details")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created At")),
                ("case", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="logs", to="cases.case", verbose_name="Case")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="case_logs", to=settings.AUTH_USER_MODEL, verbose_name="User")),
            ],
            options={
                "verbose_name": "Case Log",
                "verbose_name_plural": "Case Logs",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
