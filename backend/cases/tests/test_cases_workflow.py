"""
Integration tests — case workflow end to end.

Scenario:
  1. Manager creates a case (OPEN) and assigns it to a caseworker (PENDING).
  2. Caseworker accepts (IN_PROGRESS), then requests completion.
  3. Manager rejects the completion once, approves it the second time.
  4. Manager closes the case.

Around the happy path:
  - Only the assignee accepts, rejects and requests completion.
  - Only chairs assign, review and close.
  - Illegal transitions answer 409 and leave the case untouched.
  - Workload limits block a sixth active assignment / acceptance.
  - Every step writes a log entry and notifies the right people.
"""

from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import UserRole
from cases import services as case_services
from cases.models import Case, CaseLog, CaseLogAction, CaseStatus
from cases.services import CaseAssignmentService
from core.models import Notification, NotificationType

User = get_user_model()


class CaseWorkflowTestBase(TestCase):

    password = "Str0ngPass"

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(
            username="wf_admin", email="wf_admin@example.com",
            password=cls.password, role=UserRole.ADMIN,
        )
        cls.manager = User.objects.create_user(
            username="wf_manager", email="wf_manager@example.com",
            password=cls.password, role=UserRole.MANAGER,
        )
        cls.worker = User.objects.create_user(
            username="wf_worker", email="wf_worker@example.com",
            password=cls.password, role=UserRole.USER,
        )
        cls.other_worker = User.objects.create_user(
            username="wf_other", email="wf_other@example.com",
            password=cls.password, role=UserRole.USER,
        )

    def setUp(self):
        self.client = APIClient()

    # ── helpers ──────────────────────────────────────────────────────

    def login(self, user):
        resp = self.client.post(
            reverse("accounts:login"),
            {"identifier": user.username, "password": self.password},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")

    def make_case(self, *, status_=CaseStatus.OPEN, assigned_to=None, created_by=None, **kwargs):
        return Case.objects.create(
            title=kwargs.pop("title", "Broken badge reader"),
            created_by=created_by or self.manager,
            assigned_to=assigned_to,
            status=status_,
            **kwargs,
        )

    def post_action(self, case, name, data=None):
        return self.client.post(
            reverse(f"case-{name}", kwargs={"pk": case.pk}), data or {}, format="json",
        )


class TestCaseLifecycle(CaseWorkflowTestBase):

    def test_full_happy_path(self):
        self.login(self.manager)
        resp = self.client.post(
            reverse("case-list"),
            {"title": "Printer jam", "description": "Third floor", "priority": "HIGH"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.OPEN)
        case = Case.objects.get(pk=resp.data["id"])

        resp = self.post_action(case, "assign", {"assigned_to": self.worker.pk, "message": "Please take this"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.PENDING)
        self.assertEqual(resp.data["assigned_to"]["id"], self.worker.pk)

        self.login(self.worker)
        resp = self.post_action(case, "accept")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.IN_PROGRESS)

        resp = self.post_action(case, "request-completion", {"message": "Fixed"})
        self.assertEqual(resp.data["status"], CaseStatus.PENDING_COMPLETION_REVIEW)

        self.login(self.manager)
        resp = self.post_action(case, "reject-completion", {"reason": "Toner still leaking"})
        self.assertEqual(resp.data["status"], CaseStatus.IN_PROGRESS)

        self.login(self.worker)
        self.post_action(case, "request-completion")

        self.login(self.manager)
        resp = self.post_action(case, "approve-completion")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.COMPLETED)
        self.assertEqual(resp.data["completed_by"]["id"], self.manager.pk)
        self.assertIsNotNone(resp.data["completed_at"])

        resp = self.post_action(case, "close")
        self.assertEqual(resp.data["status"], CaseStatus.CLOSED)
        self.assertEqual(resp.data["allowed_actions"], [])

        actions = list(
            CaseLog.objects.filter(case=case).order_by("created_at", "id").values_list("action", flat=True)
        )
        self.assertEqual(actions, [
            CaseLogAction.CREATED,
            CaseLogAction.ASSIGNED,
            CaseLogAction.ACCEPTED,
            CaseLogAction.COMPLETION_REQUESTED,
            CaseLogAction.COMPLETION_REJECTED,
            CaseLogAction.COMPLETION_REQUESTED,
            CaseLogAction.COMPLETION_APPROVED,
            CaseLogAction.CLOSED,
        ])

    def test_create_with_assignee_starts_pending(self):
        self.login(self.admin)
        resp = self.client.post(
            reverse("case-list"),
            {"title": "Laptop refresh", "assigned_to": self.worker.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.PENDING)
        self.assertTrue(
            Notification.objects.filter(
                recipient=self.worker, type=NotificationType.CASE_ASSIGNED,
            ).exists()
        )

    def test_caseworker_cannot_assign_on_create(self):
        self.login(self.worker)
        resp = self.client.post(
            reverse("case-list"),
            {"title": "Self assigned", "assigned_to": self.other_worker.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Case.objects.filter(title="Self assigned").exists())

    def test_reject_returns_case_to_pool(self):
        case = self.make_case(status_=CaseStatus.PENDING, assigned_to=self.worker)
        self.login(self.worker)
        resp = self.post_action(case, "reject", {"reason": "Not my area"})
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(resp.data["status"], CaseStatus.OPEN)
        self.assertIsNone(resp.data["assigned_to"])

        note = Notification.objects.get(recipient=self.manager, type=NotificationType.CASE_REJECTED)
        self.assertIn("Not my area", note.message)

    def test_open_case_can_be_closed_directly(self):
        case = self.make_case()
        self.login(self.manager)
        resp = self.post_action(case, "close")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], CaseStatus.CLOSED)


class TestTransitionGuards(CaseWorkflowTestBase):

    def test_only_assignee_can_accept(self):
        case = self.make_case(status_=CaseStatus.PENDING, assigned_to=self.worker)
        self.login(self.manager)
        resp = self.post_action(case, "accept")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        case.refresh_from_db()
        self.assertEqual(case.status, CaseStatus.PENDING)

    def test_caseworker_cannot_approve_own_completion(self):
        case = self.make_case(status_=CaseStatus.PENDING_COMPLETION_REVIEW, assigned_to=self.worker)
        self.login(self.worker)
        resp = self.post_action(case, "approve-completion")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_caseworker_cannot_assign(self):
        case = self.make_case(created_by=self.worker)
        self.login(self.worker)
        resp = self.post_action(case, "assign", {"assigned_to": self.other_worker.pk})
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_illegal_transition_is_conflict(self):
        case = self.make_case(status_=CaseStatus.IN_PROGRESS, assigned_to=self.worker)
        self.login(self.manager)
        for name in ("assign", "approve-completion", "close"):
            data = {"assigned_to": self.other_worker.pk} if name == "assign" else {}
            resp = self.post_action(case, name, data)
            self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT, name)
        case.refresh_from_db()
        self.assertEqual(case.status, CaseStatus.IN_PROGRESS)

    def test_closed_case_is_terminal(self):
        case = self.make_case(status_=CaseStatus.CLOSED)
        self.login(self.admin)
        resp = self.post_action(case, "close")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_assign_to_manager_rejected(self):
        case = self.make_case()
        self.login(self.admin)
        resp = self.post_action(case, "assign", {"assigned_to": self.manager.pk})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_assign_to_inactive_caseworker_rejected(self):
        dormant = User.objects.create_user(
            username="dormant", email="dormant@example.com",
            password=self.password, is_active=False,
        )
        case = self.make_case()
        self.login(self.manager)
        resp = self.post_action(case, "assign", {"assigned_to": dormant.pk})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_assign_to_missing_user_is_404(self):
        case = self.make_case()
        self.login(self.manager)
        resp = self.post_action(case, "assign", {"assigned_to": 999999})
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_assignment_capped_at_five_active_cases(self):
        for i in range(5):
            self.make_case(title=f"Load {i}", status_=CaseStatus.PENDING, assigned_to=self.worker)
        case = self.make_case(title="One too many")

        self.login(self.manager)
        resp = self.post_action(case, "assign", {"assigned_to": self.worker.pk})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        case.refresh_from_db()
        self.assertEqual(case.status, CaseStatus.OPEN)
        self.assertIsNone(case.assigned_to)

    def test_accept_capped_at_five_in_progress(self):
        for i in range(5):
            self.make_case(title=f"Busy {i}", status_=CaseStatus.IN_PROGRESS, assigned_to=self.worker)
        case = self.make_case(title="Waiting", status_=CaseStatus.PENDING, assigned_to=self.worker)

        self.login(self.worker)
        resp = self.post_action(case, "accept")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        case.refresh_from_db()
        self.assertEqual(case.status, CaseStatus.PENDING)

    def _record_workload_checks(self, counter_name):
        """Patch the user-row lock and a workload counter, recording call order."""
        events = []
        real_lock = case_services.lock_for_update
        real_count = getattr(CaseAssignmentService, counter_name)

        def lock(model, pk):
            events.append(("lock", model, pk))
            return real_lock(model, pk)

        def count(user):
            events.append(("count", user.pk))
            return real_count(user)

        patches = (
            patch("cases.services.lock_for_update", side_effect=lock),
            patch.object(CaseAssignmentService, counter_name, side_effect=count),
        )
        return events, patches

    def test_assign_locks_caseworker_before_counting(self):
        case = self.make_case()
        self.login(self.manager)

        events, (lock_patch, count_patch) = self._record_workload_checks("count_active_cases")
        with lock_patch, count_patch:
            resp = self.post_action(case, "assign", {"assigned_to": self.worker.pk})

        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(events, [("lock", User, self.worker.pk), ("count", self.worker.pk)])

    def test_accept_locks_caseworker_before_counting(self):
        case = self.make_case(status_=CaseStatus.PENDING, assigned_to=self.worker)
        self.login(self.worker)

        events, (lock_patch, count_patch) = self._record_workload_checks("count_in_progress_cases")
        with lock_patch, count_patch:
            resp = self.post_action(case, "accept")

        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.assertEqual(events, [("lock", User, self.worker.pk), ("count", self.worker.pk)])

    def test_other_caseworker_cannot_see_assigned_case(self):
        case = self.make_case(status_=CaseStatus.PENDING, assigned_to=self.worker)
        self.login(self.other_worker)
        resp = self.client.get(reverse("case-detail", kwargs={"pk": case.pk}))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_case_is_404(self):
        self.login(self.manager)
        resp = self.client.post(reverse("case-close", kwargs={"pk": 999999}), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)


class TestAllowedActions(CaseWorkflowTestBase):

    def test_chair_sees_assign_and_close_on_open_case(self):
        case = self.make_case()
        self.login(self.manager)
        resp = self.client.get(reverse("case-detail", kwargs={"pk": case.pk}))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(sorted(resp.data["allowed_actions"]), ["assign", "close"])

    def test_assignee_sees_accept_and_reject(self):
        case = self.make_case(status_=CaseStatus.PENDING, assigned_to=self.worker)
        self.login(self.worker)
        resp = self.client.get(reverse("case-detail", kwargs={"pk": case.pk}))
        self.assertEqual(sorted(resp.data["allowed_actions"]), ["accept", "reject"])


class TestWorkflowNotifications(CaseWorkflowTestBase):

    def test_completion_request_notifies_chairs_and_creator(self):
        case = self.make_case(
            status_=CaseStatus.IN_PROGRESS, assigned_to=self.worker, created_by=self.other_worker,
        )
        self.login(self.worker)
        self.post_action(case, "request-completion")

        recipients = set(
            Notification.objects.filter(type=NotificationType.COMPLETION_REQUESTED)
            .values_list("recipient__username", flat=True)
        )
        self.assertEqual(recipients, {"wf_admin", "wf_manager", "wf_other"})

    def test_accept_notifies_creator_not_actor(self):
        case = self.make_case(status_=CaseStatus.PENDING, assigned_to=self.worker)
        self.login(self.worker)
        self.post_action(case, "accept")

        self.assertTrue(
            Notification.objects.filter(recipient=self.manager, type=NotificationType.CASE_ACCEPTED).exists()
        )
        self.assertFalse(Notification.objects.filter(recipient=self.worker).exists())

    def test_approval_notifies_assignee(self):
        case = self.make_case(status_=CaseStatus.PENDING_COMPLETION_REVIEW, assigned_to=self.worker)
        self.login(self.admin)
        self.post_action(case, "approve-completion")
        self.assertTrue(
            Notification.objects.filter(
                recipient=self.worker, type=NotificationType.COMPLETION_APPROVED, case=case,
            ).exists()
        )
