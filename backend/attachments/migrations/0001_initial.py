import attachments.models
import attachments.storage
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
            name="Attachment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("file", models.FileField(max_length=255, storage=attachments.storage.select_attachment_storage, upload_to=attachments.models.case_file_path, verbose_name="File")),
                ("original_name", models.CharField(max_length=255, verbose_name="Original Name")),
                ("content_type", models.CharField(max_length=100, verbose_name="Content Type")),
                ("size", models.PositiveBigIntegerField(verbose_name="Size (bytes)")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Uploaded At")),
                ("case", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attachments", to="cases.case", verbose_name="Case")),
                ("uploaded_by", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="uploaded_attachments", to=settings.AUTH_USER_MODEL, verbose_name="Uploaded By")),
            ],
            options={
                "verbose_name": "Attachment",
                "verbose_name_plural": "Attachments",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
