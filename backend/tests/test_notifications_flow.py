"""
Integration tests for the notification inbox (``/api/core/notifications/``).

Covers:
  - Workflow events land in the right inbox.
  - Listing is private, paged (10 per page) and filterable.
  - Read / read-all / delete only touch the caller's notifications.
  - Chairs send direct notifications; ADMIN broadcasts announcements.
"""

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import UserRole
from cases.models import Case, CaseStatus
from core.models import Notification, NotificationType

User = get_user_model()


class NotificationTestBase(TestCase):

    password = "Str0ngPass"

    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(
            username="n_admin", email="n_admin@example.com",
            password=cls.password, role=UserRole.ADMIN,
        )
        cls.manager = User.objects.create_user(
            username="n_manager", email="n_manager@example.com",
            password=cls.password, role=UserRole.MANAGER,
        )
        cls.worker = User.objects.create_user(
            username="n_worker", email="n_worker@example.com",
            password=cls.password, role=UserRole.USER,
        )
        cls.inactive = User.objects.create_user(
            username="n_inactive", email="n_inactive@example.com",
            password=cls.password, is_active=False,
        )

    def setUp(self):
        self.client = APIClient()
        self.list_url = reverse("core:notification-list")

    def login(self, user):
        resp = self.client.post(
            reverse("accounts:login"),
            {"identifier": user.username, "password": self.password},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")

    def notify(self, recipient, *, type_=NotificationType.CASE_STATUS_CHANGED, is_read=False, **kwargs):
        return Notification.objects.create(
            type=type_,
            title=kwargs.pop("title", "Status changed"),
            message=kwargs.pop("message", "Something happened."),
            recipient=recipient,
            is_read=is_read,
            **kwargs,
        )


class TestWorkflowProducesNotifications(NotificationTestBase):

    def test_assignment_reaches_caseworker_inbox(self):
        case = Case.objects.create(title="Broken chair", created_by=self.manager)

        self.login(self.manager)
        resp = self.client.post(
            reverse("case-assign", kwargs={"pk": case.pk}),
            {"assigned_to": self.worker.pk},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.data)

        self.login(self.worker)
        resp = self.client.get(self.list_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["meta"]["unread"], 1)

        item = resp.data["data"][0]
        self.assertEqual(item["type"], NotificationType.CASE_ASSIGNED)
        self.assertEqual(item["case"], case.pk)
        self.assertEqual(item["sender"]["username"], "n_manager")
        self.assertIn("Broken chair", item["message"])
        self.assertEqual(item["metadata"]["case_id"], case.pk)

    def test_closing_notifies_creator_and_assignee(self):
        case = Case.objects.create(
            title="Old ticket", created_by=self.worker, status=CaseStatus.COMPLETED,
        )
        self.login(self.admin)
        self.client.post(reverse("case-close", kwargs={"pk": case.pk}), {}, format="json")

        note = Notification.objects.get(recipient=self.worker)
        self.assertEqual(note.type, NotificationType.CASE_STATUS_CHANGED)
        self.assertIn("Closed", note.message)


class TestInbox(NotificationTestBase):

    def test_list_is_private_and_paged_by_ten(self):
        for i in range(12):
            self.notify(self.worker, title=f"n{i}")
        self.notify(self.manager)

        self.login(self.worker)
        resp = self.client.get(self.list_url)
        self.assertEqual(len(resp.data["data"]), 10)
        self.assertEqual(resp.data["meta"]["total"], 12)
        self.assertEqual(resp.data["meta"]["limit"], 10)
        self.assertEqual(resp.data["data"][0]["title"], "n11")

    def test_paging_edges(self):
        for i in range(3):
            self.notify(self.worker, title=f"n{i}")
        self.login(self.worker)

        resp = self.client.get(self.list_url, {"page": 5})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["data"], [])
        self.assertEqual(resp.data["meta"]["total_pages"], 1)
        self.assertTrue(resp.data["meta"]["has_previous_page"])
        self.assertEqual(resp.data["meta"]["unread"], 3)

        for params in ({"limit": 0}, {"limit": 101}, {"page": 0}):
            resp = self.client.get(self.list_url, params)
            self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST, params)

    def test_filter_by_read_state_and_type(self):
        self.notify(self.worker, is_read=True)
        self.notify(self.worker, type_=NotificationType.CASE_ASSIGNED)

        self.login(self.worker)
        resp = self.client.get(self.list_url, {"is_read": "false"})
        self.assertEqual(resp.data["meta"]["total"], 1)
        self.assertEqual(resp.data["data"][0]["type"], NotificationType.CASE_ASSIGNED)

        resp = self.client.get(self.list_url, {"type": NotificationType.CASE_STATUS_CHANGED})
        self.assertEqual(resp.data["meta"]["total"], 1)
        self.assertTrue(resp.data["data"][0]["is_read"])

    def test_mark_as_read_sets_timestamp_once(self):
        note = self.notify(self.worker)
        self.login(self.worker)

        url = reverse("core:notification-mark-as-read", kwargs={"pk": note.pk})
        resp = self.client.post(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["is_read"])
        first_read_at = resp.data["read_at"]
        self.assertIsNotNone(first_read_at)

        resp = self.client.post(url)
        self.assertEqual(resp.data["read_at"], first_read_at)

    def test_cannot_touch_someone_elses_notification(self):
        note = self.notify(self.manager)
        self.login(self.worker)

        resp = self.client.post(reverse("core:notification-mark-as-read", kwargs={"pk": note.pk}))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        resp = self.client.delete(reverse("core:notification-detail", kwargs={"pk": note.pk}))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Notification.objects.filter(pk=note.pk).exists())

    def test_mark_all_as_read(self):
        for _ in range(3):
            self.notify(self.worker)
        self.notify(self.worker, is_read=True)
        self.notify(self.manager)

        self.login(self.worker)
        resp = self.client.post(reverse("core:notification-mark-all-as-read"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["updated"], 3)
        self.assertFalse(Notification.objects.filter(recipient=self.worker, is_read=False).exists())
        self.assertTrue(Notification.objects.filter(recipient=self.manager, is_read=False).exists())

    def test_delete(self):
        note = self.notify(self.worker)
        self.login(self.worker)
        resp = self.client.delete(reverse("core:notification-detail", kwargs={"pk": note.pk}))
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Notification.objects.filter(pk=note.pk).exists())

    def test_stats(self):
        self.notify(self.worker)
        self.notify(self.worker, is_read=True)
        self.notify(self.worker, type_=NotificationType.CASE_ASSIGNED)

        self.login(self.worker)
        resp = self.client.get(reverse("core:notification-stats"))
        self.assertEqual(resp.data, {
            "total": 3,
            "unread": 2,
            "read": 1,
            "by_type": {
                "CASE_STATUS_CHANGED": 2,
                "CASE_ASSIGNED": 1,
            },
        })


class TestSendingAndAnnouncements(NotificationTestBase):

    def test_manager_sends_direct_notification(self):
        self.login(self.manager)
        resp = self.client.post(self.list_url, {
            "recipient": self.worker.pk,
            "type": NotificationType.CASE_STATUS_CHANGED,
            "title": "Heads up",
            "message": "Please check the queue.",
        }, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertEqual(resp.data["sender"]["id"], self.manager.pk)
        self.assertTrue(Notification.objects.filter(recipient=self.worker, title="Heads up").exists())

    def test_caseworker_cannot_send(self):
        self.login(self.worker)
        resp = self.client.post(self.list_url, {
            "recipient": self.manager.pk,
            "type": NotificationType.CASE_STATUS_CHANGED,
            "title": "Hi",
            "message": "Hello",
        }, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_send_to_missing_recipient_is_404(self):
        self.login(self.manager)
        resp = self.client.post(self.list_url, {
            "recipient": 999999,
            "type": NotificationType.CASE_STATUS_CHANGED,
            "title": "Hi",
            "message": "Hello",
        }, format="json")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_announces_to_active_users(self):
        self.login(self.admin)
        resp = self.client.post(
            reverse("core:notification-announce"),
            {"title": "Maintenance", "message": "Down at 22:00."},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertEqual(resp.data["sent"], 2)

        recipients = set(
            Notification.objects.filter(type=NotificationType.SYSTEM_ANNOUNCEMENT)
            .values_list("recipient__username", flat=True)
        )
        self.assertEqual(recipients, {"n_manager", "n_worker"})

    def test_announcement_to_selected_users(self):
        self.login(self.admin)
        resp = self.client.post(
            reverse("core:notification-announce"),
            {"title": "Training", "message": "Friday.", "recipients": [self.worker.pk]},
            format="json",
        )
        self.assertEqual(resp.data["sent"], 1)

    def test_manager_cannot_announce(self):
        self.login(self.manager)
        resp = self.client.post(
            reverse("core:notification-announce"),
            {"title": "x", "message": "y"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
