"""
Core app models.

Provides the abstract timestamp base shared by every app and the
``Notification`` model used for in-app alerts about case activity.
"""

from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """
    Abstract base model that provides self-updating ``created_at`` and
    ``updated_at`` timestamp fields for every concrete child model.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name="Updated At",
    )

    class Meta:
        abstract = True


class NotificationType(models.TextChoices):
    """Kinds of events a user can be notified about."""

    CASE_ASSIGNED = "CASE_ASSIGNED", "Case Assigned"
    CASE_ACCEPTED = "CASE_ACCEPTED", "Case Accepted"
    CASE_REJECTED = "CASE_REJECTED", "Case Rejected"
    CASE_STATUS_CHANGED = "CASE_STATUS_CHANGED", "Case Status Changed"
    CASE_PRIORITY_CHANGED = "CASE_PRIORITY_CHANGED", "Case Priority Changed"
    CASE_COMMENT_ADDED = "CASE_COMMENT_ADDED", "Case Comment Added"
    COMPLETION_REQUESTED = "COMPLETION_REQUESTED", "Completion Requested"
    COMPLETION_APPROVED = "COMPLETION_APPROVED", "Completion Approved"
    COMPLETION_REJECTED = "COMPLETION_REJECTED", "Completion Rejected"
    SYSTEM_ANNOUNCEMENT = "SYSTEM_ANNOUNCEMENT", "System Announcement"


class Notification(TimeStampedModel):
    """
    In-app notification delivered to a single recipient.

    Most notifications are produced by the case workflow and point at
    the ``case`` that triggered them.  When the case is deleted the
    notification survives with ``case = NULL``.
    """

    type = models.CharField(
        max_length=30,
        choices=NotificationType.choices,
        db_index=True,
        verbose_name="Type",
    )
    title = models.CharField(max_length=255, verbose_name="Title")
    message = models.TextField(verbose_name="Message")
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        verbose_name="Recipient",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_notifications",
        verbose_name="Sender",
    )
    case = models.ForeignKey(
        "cases.Case",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
        verbose_name="Related Case",
    )
    is_read = models.BooleanField(default=False, verbose_name="Read")
    read_at = models.DateTimeField(null=True, blank=True, verbose_name="Read At")
    metadata = models.JSONField(default=dict, blank=True, verbose_name="Metadata")

    class Meta:
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="core_notif_recipient_read_idx"),
        ]

    def __str__(self):
        return f"[{self.recipient}] {self.title}"
