import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("cases", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("type", models.CharField(choices=[("CASE_ASSIGNED", "Case Assigned"), ("CASE_ACCEPTED", "Case Accepted"), ("CASE_REJECTED", "Case Rejected"), ("CASE_STATUS_CHANGED", "Case Status Changed"), ("CASE_PRIORITY_CHANGED", "Case Priority Changed"), ("CASE_COMMENT_ADDED", "Case Comment Added"), ("COMPLETION_REQUESTED", "Completion Requested"), ("COMPLETION_APPROVED", "Completion Approved"), ("COMPLETION_REJECTED", "Completion Rejected"), ("SYSTEM_ANNOUNCEMENT", "System Announcement")], db_index=True, max_length=30, verbose_name="Type")),
                ("title", models.CharField(max_length=255, verbose_name="Title")),
                ("message", models.TextField(verbose_name="Message")),
                ("is_read", models.BooleanField(default=False, verbose_name="Read")),
                ("read_at", models.DateTimeField(blank=True, null=True, verbose_name="Read At")),
                ("metadata", models.JSONField(blank=True, default=dict, verbose_name="Metadata")),
                ("case", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="notifications", to="cases.case", verbose_name="Related Case")),
                ("recipient", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="notifications", to=settings.AUTH_USER_MODEL, verbose_name="Recipient")),
                ("sender", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="sent_notifications", to=settings.AUTH_USER_MODEL, verbose_name="Sender")),
            ],
            options={
                "verbose_name": "Notification",
                "verbose_name_plural": "Notifications",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["recipient", "is_read"], name="core_notif_recipient_read_idx"),
                ],
            },
        ),
    ]
