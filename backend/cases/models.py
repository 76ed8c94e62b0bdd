"""
Cases app models.

Covers the complete case lifecycle: creation, assignment to a
caseworker, acceptance or rejection, the work itself, completion review
by a supervisor, and closure.  Every step leaves a ``CaseLog`` entry.
"""

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class CaseStatus(models.TextChoices):
    """
    Workflow states.  Allowed moves between them are declared in
    ``cases.services.ALLOWED_TRANSITIONS``.
    """

    OPEN = "OPEN", "Open"
    PENDING = "PENDING", "Pending Acceptance"
    IN_PROGRESS = "IN_PROGRESS", "In Progress"
    PENDING_COMPLETION_REVIEW = "PENDING_COMPLETION_REVIEW", "Pending Completion Review"
    COMPLETED = "COMPLETED", "Completed"
    CLOSED = "CLOSED", "Closed"


class CasePriority(models.TextChoices):
    LOW = "LOW", "Low"
    MEDIUM = "MEDIUM", "Medium"
    HIGH = "HIGH", "High"
    URGENT = "URGENT", "Urgent"


class CaseLogAction(models.TextChoices):
    CREATED = "created", "Created"
    UPDATED = "updated", "Updated"
    ASSIGNED = "assigned", "Assigned"
    ACCEPTED = "accepted", "Accepted"
    REJECTED = "rejected", "Rejected"
    COMPLETION_REQUESTED = "completion_requested", "Completion Requested"
    COMPLETION_APPROVED = "completion_approved", "Completion Approved"
    COMPLETION_REJECTED = "completion_rejected", "Completion Rejected"
    CLOSED = "closed", "Closed"
    NOTE = "note", "Note"


#: Statuses in which a case counts against a caseworker's workload.
ACTIVE_STATUSES = (CaseStatus.PENDING, CaseStatus.IN_PROGRESS)

#: Statuses after which case metadata can no longer be edited.
FINAL_STATUSES = (CaseStatus.COMPLETED, CaseStatus.CLOSED)

#: Ordinal rank used when the case list is sorted by priority.
PRIORITY_RANK = {
    CasePriority.LOW: 1,
    CasePriority.MEDIUM: 2,
    CasePriority.HIGH: 3,
    CasePriority.URGENT: 4,
}


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class Case(TimeStampedModel):
    """
    A unit of work raised by any user and worked by one caseworker.

    ``assigned_to`` is set when a supervisor assigns the case (status
    moves to PENDING) and cleared again if the caseworker rejects it.
    """

    title = models.CharField(max_length=200, verbose_name="Title")
    description = models.TextField(blank=True, default="", verbose_name="Description")
    status = models.CharField(
        max_length=30,
        choices=CaseStatus.choices,
        default=CaseStatus.OPEN,
        db_index=True,
        verbose_name="Status",
    )
    priority = models.CharField(
        max_length=10,
        choices=CasePriority.choices,
        default=CasePriority.MEDIUM,
        db_index=True,
        verbose_name="Priority",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_cases",
        verbose_name="Created By",
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_cases",
        verbose_name="Assigned To",
    )
    due_date = models.DateField(null=True, blank=True, verbose_name="Due Date")
    completed_at = models.DateTimeField(null=True, blank=True, verbose_name="Completed At")
    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_cases",
        verbose_name="Completion Approved By",
    )
    metadata = models.JSONField(default=dict, blank=True, verbose_name="Metadata")

    class Meta:
        verbose_name = "Case"
        verbose_name_plural = "Cases"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["assigned_to", "status"], name="cases_assignee_status_idx"),
            models.Index(fields=["created_by", "status"], name="cases_creator_status_idx"),
        ]

    def __str__(self):
        return f"Case #{self.pk}: {self.title}"


class CaseLog(models.Model):
    """
    Append-only audit trail entry for a case.

    Written by the service layer on every create, update and workflow
    transition, and by users as free-text notes.
    """

    case = models.ForeignKey(
        Case,
        on_delete=models.CASCADE,
        related_name="logs",
        verbose_name="Case",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="case_logs",
        verbose_name="User",
    )
    action = models.CharField(
        max_length=30,
        choices=CaseLogAction.choices,
        verbose_name="Action",
    )
    details = models.TextField(blank=True, default="", verbose_name="Details")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="Created At")

    class Meta:
        verbose_name = "Case Log"
        verbose_name_plural = "Case Logs"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"Case #{self.case_id} {self.action} by {self.user_id}"
