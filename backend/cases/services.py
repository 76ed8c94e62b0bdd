"""
Cases app Service Layer.

This module is the **single source of truth** for all business logic
in the ``cases`` app.  Views must remain thin: validate input via
serializers, call a service method, and return the result wrapped in
a DRF ``Response``.

Architecture
------------
- ``CaseQueryService``       — Role scoping, dashboard views, filters, stats.
- ``CaseManagementService``  — Create / update / delete.
- ``CaseWorkflowService``    — Status transitions (accept, reject, review, close).
- ``CaseAssignmentService``  — Assigning cases and caseworker workload.
- ``CaseLogService``         — Audit trail entries and manual notes.

Workflow State-Machine Overview
--------------------------------
  OPEN ──assign──▶ PENDING ──accept──▶ IN_PROGRESS
    ▲                 │                   │
    └─────reject──────┘          request-completion
                                          ▼
  CLOSED ◀──close── COMPLETED ◀──approve── PENDING_COMPLETION_REVIEW
                                 ──reject-completion──▶ IN_PROGRESS
  OPEN ──close──▶ CLOSED

Chairs (ADMIN, MANAGER) assign, review and close; only the assigned
caseworker accepts, rejects or requests completion.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Case as SqlCase
from django.db.models import Avg, Count, DurationField, F, IntegerField, Q, QuerySet, Value, When
from django.utils import timezone

from accounts.models import CHAIR_ROLES, UserRole
from core.constants import MAX_ACTIVE_CASES
from core.domain.access import apply_role_scope, get_user_role, require_role
from core.domain.exceptions import (
    Conflict,
    DomainError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)
from core.domain.notifications import NotificationService
from core.domain.transactions import atomic_transition, lock_for_update
from core.models import NotificationType

from .models import (
    ACTIVE_STATUSES,
    FINAL_STATUSES,
    PRIORITY_RANK,
    Case,
    CaseLog,
    CaseLogAction,
    CasePriority,
    CaseStatus,
)

User = get_user_model()
logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Valid transition map
# ═══════════════════════════════════════════════════════════════════

_CHAIR = "chair"
_ASSIGNEE = "assignee"

#: Maps (from_status, to_status) → who may perform the transition.
#: ``_CHAIR`` means ADMIN or MANAGER; ``_ASSIGNEE`` means the user the
#: case is currently assigned to.  Transitions not present are illegal.
ALLOWED_TRANSITIONS: dict[tuple[str, str], str] = {
    (CaseStatus.OPEN, CaseStatus.PENDING): _CHAIR,
    (CaseStatus.PENDING, CaseStatus.IN_PROGRESS): _ASSIGNEE,
    (CaseStatus.PENDING, CaseStatus.OPEN): _ASSIGNEE,
    (CaseStatus.IN_PROGRESS, CaseStatus.PENDING_COMPLETION_REVIEW): _ASSIGNEE,
    (CaseStatus.PENDING_COMPLETION_REVIEW, CaseStatus.COMPLETED): _CHAIR,
    (CaseStatus.PENDING_COMPLETION_REVIEW, CaseStatus.IN_PROGRESS): _CHAIR,
    (CaseStatus.COMPLETED, CaseStatus.CLOSED): _CHAIR,
    (CaseStatus.OPEN, CaseStatus.CLOSED): _CHAIR,
}

#: Workflow action name (URL slug) → (from_status, to_status).
WORKFLOW_ACTIONS: dict[str, tuple[str, str]] = {
    "assign": (CaseStatus.OPEN, CaseStatus.PENDING),
    "accept": (CaseStatus.PENDING, CaseStatus.IN_PROGRESS),
    "reject": (CaseStatus.PENDING, CaseStatus.OPEN),
    "request-completion": (CaseStatus.IN_PROGRESS, CaseStatus.PENDING_COMPLETION_REVIEW),
    "approve-completion": (CaseStatus.PENDING_COMPLETION_REVIEW, CaseStatus.COMPLETED),
    "reject-completion": (CaseStatus.PENDING_COMPLETION_REVIEW, CaseStatus.IN_PROGRESS),
    "close": (None, CaseStatus.CLOSED),
}


# ═══════════════════════════════════════════════════════════════════
#  Scoping rules
# ═══════════════════════════════════════════════════════════════════

#: Base visibility.  Caseworkers see what they created, what is assigned
#: to them, and the unassigned pool.
CASE_SCOPE_RULES = [
    (CHAIR_ROLES, lambda qs, u: qs),
    ((UserRole.USER,), lambda qs, u: qs.filter(
        Q(created_by=u) | Q(assigned_to=u) | Q(assigned_to__isnull=True)
    )),
]


def _my_cases(qs: QuerySet, user: User) -> QuerySet:
    if get_user_role(user) == UserRole.USER:
        return qs.filter(assigned_to=user)
    return qs.filter(Q(created_by=user) | Q(assigned_to=user))


def _team_cases(qs: QuerySet, user: User) -> QuerySet:
    require_role(user, *CHAIR_ROLES, message="The team view is only available to managers and administrators.")
    return qs.filter(assigned_to__isnull=False)


#: Dashboard view name → narrowing applied on top of the base scope.
CASE_VIEWS: dict[str, Any] = {
    "all": lambda qs, u: qs,
    "my_cases": _my_cases,
    "assigned": lambda qs, u: qs.filter(assigned_to=u),
    "created": lambda qs, u: qs.filter(created_by=u),
    "team": _team_cases,
    "urgent": lambda qs, u: qs.filter(priority=CasePriority.URGENT),
    "pending": lambda qs, u: qs.filter(status=CaseStatus.PENDING),
    "in_progress": lambda qs, u: qs.filter(status=CaseStatus.IN_PROGRESS),
    "completion_review": lambda qs, u: qs.filter(status=CaseStatus.PENDING_COMPLETION_REVIEW),
    "resolved": lambda qs, u: qs.filter(status__in=FINAL_STATUSES),
}

SORT_FIELDS: tuple[str, ...] = ("created_at", "updated_at", "title", "priority", "status", "due_date")
DEFAULT_SORT_FIELD = "created_at"


# ═══════════════════════════════════════════════════════════════════
#  Query Service
# ═══════════════════════════════════════════════════════════════════


class CaseQueryService:
    """
    Builds role-scoped case querysets and aggregates for list views,
    detail access checks and statistics.
    """

    @staticmethod
    def get_visible_queryset(user: User) -> QuerySet[Case]:
        qs = Case.objects.select_related("created_by", "assigned_to", "completed_by")
        return apply_role_scope(qs, user, scope_rules=CASE_SCOPE_RULES)

    @staticmethod
    def can_view(user: User, case: Case) -> bool:
        if get_user_role(user) in CHAIR_ROLES:
            return True
        return (
            case.created_by_id == user.pk
            or case.assigned_to_id == user.pk
            or case.assigned_to_id is None
        )

    @staticmethod
    def get_filtered_queryset(user: User, filters: dict[str, Any]) -> tuple[QuerySet[Case], dict[str, Any]]:
        """
        Apply the dashboard view, filters and sorting.

        Parameters
        ----------
        user : User
            The requesting user; determines the base scope.
        filters : dict
            Validated output of ``CaseFilterSerializer``.

        Returns
        -------
        tuple
            ``(queryset, applied)`` where ``applied`` echoes the filters
            that actually narrowed the result, for the response envelope.

        Raises
        ------
        PermissionDenied
            A caseworker asked for the ``team`` view.
        """
        qs = CaseQueryService.get_visible_queryset(user)
        applied: dict[str, Any] = {}

        view = filters.get("view") or "all"
        qs = CASE_VIEWS[view](qs, user)
        applied["view"] = view

        simple_filters = {
            "status": "status",
            "priority": "priority",
            "assigned_to": "assigned_to_id",
            "created_by": "created_by_id",
            "created_after": "created_at__date__gte",
            "created_before": "created_at__date__lte",
            "updated_after": "updated_at__date__gte",
            "updated_before": "updated_at__date__lte",
        }
        for key, lookup in simple_filters.items():
            value = filters.get(key)
            if value is not None:
                qs = qs.filter(**{lookup: value})
                applied[key] = value

        search = filters.get("search")
        if search:
            qs = qs.filter(Q(title__icontains=search) | Q(description__icontains=search))
            applied["search"] = search

        sort_by = filters.get("sort_by")
        if sort_by not in SORT_FIELDS:
            sort_by = DEFAULT_SORT_FIELD
        sort_order = filters.get("sort_order") or "desc"
        applied["sort_by"] = sort_by
        applied["sort_order"] = sort_order

        sort_key = sort_by
        if sort_by == "priority":
            qs = qs.annotate(
                priority_rank=SqlCase(
                    *[When(priority=p, then=Value(rank)) for p, rank in PRIORITY_RANK.items()],
                    default=Value(0),
                    output_field=IntegerField(),
                )
            )
            sort_key = "priority_rank"

        prefix = "-" if sort_order == "desc" else ""
        qs = qs.order_by(f"{prefix}{sort_key}", f"{prefix}id")
        return qs, applied

    @staticmethod
    def available_filters() -> dict[str, Any]:
        return {
            "views": list(CASE_VIEWS.keys()),
            "statuses": [value for value, _ in CaseStatus.choices],
            "priorities": [value for value, _ in CasePriority.choices],
            "sort_by": list(SORT_FIELDS),
            "sort_order": ["asc", "desc"],
        }

    @staticmethod
    def get_case_detail(user: User, case_id: int) -> Case:
        """
        Fetch a single case the user is allowed to see.

        Raises
        ------
        NotFound
            No case with that id.
        PermissionDenied
            The case exists but is outside the user's scope.
        """
        try:
            case = Case.objects.select_related(
                "created_by", "assigned_to", "completed_by",
            ).get(pk=case_id)
        except Case.DoesNotExist:
            raise NotFound(f"Case with id {case_id} not found.")

        if not CaseQueryService.can_view(user, case):
            raise PermissionDenied("You do not have access to this case.")
        return case

    @staticmethod
    def get_stats(user: User) -> dict[str, Any]:
        """
        Aggregate statistics within the caller's visibility scope.

        ``team`` is ``None`` for caseworkers.
        """
        qs = CaseQueryService.get_visible_queryset(user)
        now = timezone.now()
        week_ago = now - datetime.timedelta(days=7)
        two_weeks_ago = now - datetime.timedelta(days=14)

        overview = qs.aggregate(
            total=Count("id"),
            open=Count("id", filter=Q(status=CaseStatus.OPEN)),
            pending=Count("id", filter=Q(status=CaseStatus.PENDING)),
            in_progress=Count("id", filter=Q(status=CaseStatus.IN_PROGRESS)),
            completion_review=Count("id", filter=Q(status=CaseStatus.PENDING_COMPLETION_REVIEW)),
            resolved=Count("id", filter=Q(status__in=FINAL_STATUSES)),
            urgent=Count("id", filter=Q(priority=CasePriority.URGENT) & ~Q(status__in=FINAL_STATUSES)),
            this_week=Count("id", filter=Q(created_at__gte=week_ago)),
            last_week=Count("id", filter=Q(created_at__gte=two_weeks_ago, created_at__lt=week_ago)),
        )
        this_week = overview.pop("this_week")
        last_week = overview.pop("last_week")

        personal = qs.aggregate(
            created=Count("id", filter=Q(created_by=user)),
            assigned=Count("id", filter=Q(assigned_to=user)),
            active=Count("id", filter=Q(assigned_to=user, status__in=ACTIVE_STATUSES)),
        )

        team = None
        if get_user_role(user) in CHAIR_ROLES:
            team = {
                "caseworkers": User.objects.filter(role=UserRole.USER, is_active=True).count(),
                "unassigned": qs.filter(status=CaseStatus.OPEN, assigned_to__isnull=True).count(),
                "overdue": qs.filter(due_date__lt=now.date()).exclude(status__in=FINAL_STATUSES).count(),
            }

        avg_resolution = qs.filter(completed_at__isnull=False).aggregate(
            avg=Avg(F("completed_at") - F("created_at"), output_field=DurationField()),
        )["avg"]
        total = overview["total"]
        trends = {
            "this_week": this_week,
            "last_week": last_week,
            "completion_rate": round(overview["resolved"] / total * 100, 1) if total else 0.0,
            "avg_resolution_hours": (
                round(avg_resolution.total_seconds() / 3600, 1) if avg_resolution is not None else None
            ),
        }

        status_counts = dict(qs.values_list("status").annotate(n=Count("id")).order_by())
        priority_counts = dict(qs.values_list("priority").annotate(n=Count("id")).order_by())
        charts = {
            "by_status": [
                {"status": value, "label": label, "count": status_counts.get(value, 0)}
                for value, label in CaseStatus.choices
            ],
            "by_priority": [
                {"priority": value, "label": label, "count": priority_counts.get(value, 0)}
                for value, label in CasePriority.choices
            ],
        }

        return {
            "overview": overview,
            "personal": personal,
            "team": team,
            "trends": trends,
            "charts": charts,
        }


# ═══════════════════════════════════════════════════════════════════
#  Audit Log Service
# ═══════════════════════════════════════════════════════════════════


class CaseLogService:
    """Writes and reads ``CaseLog`` entries."""

    @staticmethod
    def record(case: Case, user: User, action: str, details: str = "") -> CaseLog:
        return CaseLog.objects.create(case=case, user=user, action=action, details=details)

    @staticmethod
    def list_logs(user: User, case_id: int) -> QuerySet[CaseLog]:
        case = CaseQueryService.get_case_detail(user, case_id)
        return case.logs.select_related("user").order_by("-created_at", "-id")

    @staticmethod
    @transaction.atomic
    def add_note(user: User, case_id: int, details: str) -> CaseLog:
        """
        Append a free-text note and tell the creator and assignee
        (other than the author) about it.
        """
        case = CaseQueryService.get_case_detail(user, case_id)
        log = CaseLogService.record(case, user, CaseLogAction.NOTE, details)
        NotificationService.create(
            actor=user,
            recipients=[case.created_by, case.assigned_to],
            event_type=NotificationType.CASE_COMMENT_ADDED,
            case=case,
            extra={"log_id": log.pk},
        )
        return log


# ═══════════════════════════════════════════════════════════════════
#  Assignment Service
# ═══════════════════════════════════════════════════════════════════


class CaseAssignmentService:
    """Assigning cases to caseworkers and reporting their workload."""

    @staticmethod
    def count_active_cases(user: User) -> int:
        return Case.objects.filter(assigned_to=user, status__in=ACTIVE_STATUSES).count()

    @staticmethod
    def count_in_progress_cases(user: User) -> int:
        return Case.objects.filter(assigned_to=user, status=CaseStatus.IN_PROGRESS).count()

    @staticmethod
    def resolve_assignee(user_id: int) -> User:
        """
        Load, lock and validate the prospective assignee.

        Must run inside a transaction: the user row stays locked until it
        ends, so concurrent assignments to one caseworker count in turn.

        Raises
        ------
        NotFound
            No such user.
        DomainError
            The user is inactive, not a caseworker, or already at
            ``MAX_ACTIVE_CASES``.
        """
        try:
            assignee = lock_for_update(User, user_id)
        except NotFound:
            raise NotFound(f"User with id {user_id} not found.")

        if not assignee.is_active:
            raise DomainError("Cases can only be assigned to active users.")
        if assignee.role != UserRole.USER:
            raise DomainError("Cases can only be assigned to caseworkers.")
        if CaseAssignmentService.count_active_cases(assignee) >= MAX_ACTIVE_CASES:
            raise DomainError(
                f"{assignee.username} already has {MAX_ACTIVE_CASES} active cases."
            )
        return assignee

    @staticmethod
    @transaction.atomic
    def assign(case: Case, assignee_id: int, requesting_user: User, message: str = "") -> Case:
        """
        Assign an OPEN case to a caseworker (OPEN → PENDING).

        Raises
        ------
        PermissionDenied
            Caller is not a chair.
        InvalidTransition
            The case is not OPEN.
        NotFound / DomainError
            See ``resolve_assignee``.
        """
        CaseWorkflowService.check_transition(case, CaseStatus.PENDING, requesting_user)
        assignee = CaseAssignmentService.resolve_assignee(assignee_id)

        case = CaseWorkflowService.transition_state(
            case,
            CaseStatus.PENDING,
            requesting_user,
            log_action=CaseLogAction.ASSIGNED,
            details=message or f"Assigned to {assignee.username}.",
            changes={"assigned_to": assignee},
        )
        NotificationService.create(
            actor=requesting_user,
            recipients=assignee,
            event_type=NotificationType.CASE_ASSIGNED,
            case=case,
            extra={"message": message or None},
        )
        return case

    @staticmethod
    def available_caseworkers(requesting_user: User) -> list[dict[str, Any]]:
        """
        Active caseworkers with their workload, those who can take more
        work first, then by fewest active cases.
        """
        require_role(requesting_user, *CHAIR_ROLES)

        workers = (
            User.objects
            .filter(role=UserRole.USER, is_active=True)
            .annotate(active_cases=Count(
                "assigned_cases",
                filter=Q(assigned_cases__status__in=ACTIVE_STATUSES),
            ))
        )
        rows = [
            {
                "id": worker.pk,
                "username": worker.username,
                "email": worker.email,
                "first_name": worker.first_name,
                "last_name": worker.last_name,
                "active_cases": worker.active_cases,
                "can_accept_more": worker.active_cases < MAX_ACTIVE_CASES,
            }
            for worker in workers
        ]
        rows.sort(key=lambda r: (not r["can_accept_more"], r["active_cases"], r["username"]))
        return rows


# ═══════════════════════════════════════════════════════════════════
#  Workflow Service
# ═══════════════════════════════════════════════════════════════════


class CaseWorkflowService:
    """
    Manages **all** status transitions in the case lifecycle.

    ``transition_state`` is the validated gateway through
    ``ALLOWED_TRANSITIONS``; the named methods add each step's
    preconditions, side effects and notifications.
    """

    @staticmethod
    def check_transition(case: Case, target_status: str, requesting_user: User) -> None:
        """
        Raise unless ``requesting_user`` may move ``case`` to
        ``target_status`` right now.

        Raises
        ------
        InvalidTransition
            ``(case.status, target_status)`` is not in the table.
        PermissionDenied
            The caller is not the required chair / assignee.
        """
        key = (case.status, target_status)
        if key not in ALLOWED_TRANSITIONS:
            raise InvalidTransition(current=case.status, target=target_status)

        required = ALLOWED_TRANSITIONS[key]
        if required == _CHAIR and get_user_role(requesting_user) not in CHAIR_ROLES:
            raise PermissionDenied("Only managers and administrators can perform this transition.")
        if required == _ASSIGNEE and case.assigned_to_id != requesting_user.pk:
            raise PermissionDenied("Only the assigned caseworker can perform this transition.")

    @staticmethod
    def available_actions(case: Case, user: User) -> list[str]:
        """Workflow action slugs ``user`` could trigger on ``case`` now."""
        actions = []
        for name, (source, target) in WORKFLOW_ACTIONS.items():
            if source is not None and source != case.status:
                continue
            try:
                CaseWorkflowService.check_transition(case, target, user)
            except (InvalidTransition, PermissionDenied):
                continue
            actions.append(name)
        return actions

    @staticmethod
    @transaction.atomic
    def transition_state(
        case: Case,
        target_status: str,
        requesting_user: User,
        *,
        log_action: str,
        details: str = "",
        changes: dict[str, Any] | None = None,
    ) -> Case:
        """
        **The central state-machine gateway.**

        Validates the move, applies it under a row lock (the stored
        status must still equal the one validated), and writes the
        audit log entry.  Notifications are the caller's job.
        """
        CaseWorkflowService.check_transition(case, target_status, requesting_user)
        source = case.status

        case = atomic_transition(
            instance=case,
            target_status=target_status,
            allowed_sources={source},
            changes=changes,
        )
        CaseLogService.record(case, requesting_user, log_action, details)

        logger.info(
            "Case #%s: %s → %s by %s",
            case.pk, source, target_status, requesting_user.username,
        )
        return case

    @staticmethod
    @transaction.atomic
    def accept(case: Case, requesting_user: User, message: str = "") -> Case:
        """PENDING → IN_PROGRESS, limited by the caseworker's in-progress load."""
        CaseWorkflowService.check_transition(case, CaseStatus.IN_PROGRESS, requesting_user)
        # one workload check per caseworker at a time
        lock_for_update(User, requesting_user.pk)
        if CaseAssignmentService.count_in_progress_cases(requesting_user) >= MAX_ACTIVE_CASES:
            raise DomainError(
                f"You already have {MAX_ACTIVE_CASES} cases in progress."
            )

        case = CaseWorkflowService.transition_state(
            case, CaseStatus.IN_PROGRESS, requesting_user,
            log_action=CaseLogAction.ACCEPTED,
            details=message or "Case accepted.",
        )
        NotificationService.create(
            actor=requesting_user,
            recipients=case.created_by,
            event_type=NotificationType.CASE_ACCEPTED,
            case=case,
        )
        return case

    @staticmethod
    @transaction.atomic
    def reject(case: Case, requesting_user: User, reason: str = "") -> Case:
        """PENDING → OPEN; the case returns to the unassigned pool."""
        case = CaseWorkflowService.transition_state(
            case, CaseStatus.OPEN, requesting_user,
            log_action=CaseLogAction.REJECTED,
            details=f"Case rejected. Reason: {reason}" if reason else "Case rejected.",
            changes={"assigned_to": None},
        )
        NotificationService.create(
            actor=requesting_user,
            recipients=case.created_by,
            event_type=NotificationType.CASE_REJECTED,
            case=case,
            extra={"reason": reason or "not given"},
        )
        return case

    @staticmethod
    @transaction.atomic
    def request_completion(case: Case, requesting_user: User, message: str = "") -> Case:
        """IN_PROGRESS → PENDING_COMPLETION_REVIEW; every active chair is told."""
        case = CaseWorkflowService.transition_state(
            case, CaseStatus.PENDING_COMPLETION_REVIEW, requesting_user,
            log_action=CaseLogAction.COMPLETION_REQUESTED,
            details=message or "Completion review requested.",
        )
        chairs = User.objects.filter(role__in=CHAIR_ROLES, is_active=True)
        NotificationService.create(
            actor=requesting_user,
            recipients=[*chairs, case.created_by],
            event_type=NotificationType.COMPLETION_REQUESTED,
            case=case,
            extra={"message": message or None},
        )
        return case

    @staticmethod
    @transaction.atomic
    def approve_completion(case: Case, requesting_user: User, message: str = "") -> Case:
        """PENDING_COMPLETION_REVIEW → COMPLETED; stamps completion fields."""
        case = CaseWorkflowService.transition_state(
            case, CaseStatus.COMPLETED, requesting_user,
            log_action=CaseLogAction.COMPLETION_APPROVED,
            details=message or "Completion approved.",
            changes={"completed_at": timezone.now(), "completed_by": requesting_user},
        )
        NotificationService.create(
            actor=requesting_user,
            recipients=[case.assigned_to, case.created_by],
            event_type=NotificationType.COMPLETION_APPROVED,
            case=case,
        )
        return case

    @staticmethod
    @transaction.atomic
    def reject_completion(case: Case, requesting_user: User, reason: str = "") -> Case:
        """PENDING_COMPLETION_REVIEW → IN_PROGRESS; work continues."""
        case = CaseWorkflowService.transition_state(
            case, CaseStatus.IN_PROGRESS, requesting_user,
            log_action=CaseLogAction.COMPLETION_REJECTED,
            details=f"Completion rejected. Reason: {reason}" if reason else "Completion rejected.",
        )
        NotificationService.create(
            actor=requesting_user,
            recipients=case.assigned_to,
            event_type=NotificationType.COMPLETION_REJECTED,
            case=case,
            extra={"reason": reason or "not given"},
        )
        return case

    @staticmethod
    @transaction.atomic
    def close(case: Case, requesting_user: User, message: str = "") -> Case:
        """COMPLETED → CLOSED, or OPEN → CLOSED to withdraw an unassigned case."""
        case = CaseWorkflowService.transition_state(
            case, CaseStatus.CLOSED, requesting_user,
            log_action=CaseLogAction.CLOSED,
            details=message or "Case closed.",
        )
        NotificationService.create(
            actor=requesting_user,
            recipients=[case.created_by, case.assigned_to],
            event_type=NotificationType.CASE_STATUS_CHANGED,
            case=case,
            extra={"status": CaseStatus.CLOSED.label},
        )
        return case


# ═══════════════════════════════════════════════════════════════════
#  Management (CRUD) Service
# ═══════════════════════════════════════════════════════════════════

#: Fields a PATCH may touch; status only moves through the workflow.
_EDITABLE_FIELDS = ("title", "description", "priority", "due_date")


class CaseManagementService:
    """Creation, metadata edits and deletion of cases."""

    @staticmethod
    @transaction.atomic
    def create_case(validated_data: dict[str, Any], requesting_user: User) -> Case:
        """
        Create a case.  Chairs may assign it immediately, in which case it
        starts PENDING; otherwise it starts OPEN.

        Raises
        ------
        PermissionDenied
            A caseworker supplied ``assigned_to``.
        NotFound / DomainError
            The assignee failed validation.
        """
        data = dict(validated_data)
        assignee_id = data.pop("assigned_to", None)

        assignee = None
        if assignee_id is not None:
            require_role(
                requesting_user, *CHAIR_ROLES,
                message="Only managers and administrators can assign cases.",
            )
            assignee = CaseAssignmentService.resolve_assignee(assignee_id)

        case = Case.objects.create(
            created_by=requesting_user,
            assigned_to=assignee,
            status=CaseStatus.PENDING if assignee else CaseStatus.OPEN,
            **data,
        )
        CaseLogService.record(case, requesting_user, CaseLogAction.CREATED, f"Case \"{case.title}\" created.")

        if assignee is not None:
            CaseLogService.record(
                case, requesting_user, CaseLogAction.ASSIGNED,
                f"Assigned to {assignee.username}.",
            )
            NotificationService.create(
                actor=requesting_user,
                recipients=assignee,
                event_type=NotificationType.CASE_ASSIGNED,
                case=case,
            )

        logger.info("Case #%s created by %s", case.pk, requesting_user.username)
        return case

    @staticmethod
    @transaction.atomic
    def update_case(case_id: int, validated_data: dict[str, Any], requesting_user: User) -> Case:
        """
        Edit case metadata.

        Rules
        -----
        * Caseworkers may only edit cases they created.
        * Chairs may only edit cases that are not yet assigned.
        * COMPLETED and CLOSED cases are read-only.

        A priority change notifies the creator and the assignee.
        """
        case = CaseQueryService.get_case_detail(requesting_user, case_id)
        role = get_user_role(requesting_user)

        if role == UserRole.USER and case.created_by_id != requesting_user.pk:
            raise PermissionDenied("You can only edit cases you created.")
        if role in CHAIR_ROLES and case.assigned_to_id is not None:
            raise PermissionDenied("Assigned cases can no longer be edited by managers.")
        if case.status in FINAL_STATUSES:
            raise Conflict(f"A {case.get_status_display().lower()} case cannot be edited.")

        changes = []
        for field in _EDITABLE_FIELDS:
            if field not in validated_data:
                continue
            old, new = getattr(case, field), validated_data[field]
            if old != new:
                changes.append((field, old, new))
                setattr(case, field, new)

        if not changes:
            return case

        case.save(update_fields=[field for field, _, _ in changes] + ["updated_at"])
        summary = ", ".join(f"{field}: {old} → {new}" for field, old, new in changes)
        CaseLogService.record(case, requesting_user, CaseLogAction.UPDATED, summary)

        if any(field == "priority" for field, _, _ in changes):
            NotificationService.create(
                actor=requesting_user,
                recipients=[case.created_by, case.assigned_to],
                event_type=NotificationType.CASE_PRIORITY_CHANGED,
                case=case,
                extra={"priority": case.get_priority_display()},
            )
        return case

    @staticmethod
    @transaction.atomic
    def delete_case(case_id: int, requesting_user: User) -> None:
        """
        Delete a case with its logs and attachments.  Allowed for ADMIN
        and for the case's creator.
        """
        from attachments.services import AttachmentService

        case = CaseQueryService.get_case_detail(requesting_user, case_id)
        if get_user_role(requesting_user) != UserRole.ADMIN and case.created_by_id != requesting_user.pk:
            raise PermissionDenied("Only administrators or the creator can delete a case.")

        AttachmentService.purge_case_files(case)
        case.delete()
        logger.info("Case #%s deleted by %s", case_id, requesting_user.username)
