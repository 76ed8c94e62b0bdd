"""
Management command: seed_demo_data
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the database with demo accounts (one per role, plus spare
caseworkers) and a handful of sample cases spread across the workflow.

The command is **idempotent** — safe to run multiple times.  Accounts
are matched by username and only created when missing; sample cases are
matched by title.  ``--reset-passwords`` re-applies the demo passwords
to existing accounts.

Usage::

    python manage.py seed_demo_data
    python manage.py seed_demo_data --reset-passwords

Prerequisites::

    python manage.py migrate
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from accounts.models import UserRole
from cases.models import Case, CaseLog, CaseLogAction, CasePriority, CaseStatus

User = get_user_model()

# ────────────────────────────────────────────────────────────────────
# Demo accounts
# ────────────────────────────────────────────────────────────────────
# (username, email, password, role, is_superuser)

DEMO_USERS: list[tuple[str, str, str, str, bool]] = [
    ("admin", "admin@example.com", "admin123", UserRole.ADMIN, True),
    ("manager", "manager@example.com", "manager123", UserRole.MANAGER, False),
    ("user1", "user1@example.com", "user123", UserRole.USER, False),
    ("user2", "user2@example.com", "user123", UserRole.USER, False),
    ("clerk", "clerk@example.com", "clerk123", UserRole.USER, False),
]

# (title, description, status, priority, creator, assignee)
DEMO_CASES: list[tuple[str, str, str, str, str, str | None]] = [
    (
        "Login failures after password reset",
        "Several users report they cannot sign in after resetting their password.",
        CaseStatus.IN_PROGRESS, CasePriority.HIGH, "manager", "user1",
    ),
    (
        "Slow report generation",
        "Monthly reports take several minutes to render.",
        CaseStatus.PENDING, CasePriority.MEDIUM, "manager", "user2",
    ),
    (
        "New starter permissions",
        "Configure accounts and roles for the new team members.",
        CaseStatus.COMPLETED, CasePriority.LOW, "admin", "user1",
    ),
    (
        "Printer on floor 3 offline",
        "",
        CaseStatus.OPEN, CasePriority.URGENT, "user2", None,
    ),
]


class Command(BaseCommand):
    help = (
        "Seeds demo users (admin, manager, caseworkers) and sample cases.  "
        "Safe to run multiple times (idempotent)."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset-passwords",
            action="store_true",
            help="Re-apply the demo password to accounts that already exist.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n══════════════════════════════════════════"
            "\n  Demo data — users & sample cases"
            "\n══════════════════════════════════════════\n"
        ))

        users: dict[str, User] = {}
        for username, email, password, role, is_superuser in DEMO_USERS:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    "email": email,
                    "role": role,
                    "is_superuser": is_superuser,
                    "is_staff": is_superuser,
                },
            )
            if created or options["reset_passwords"]:
                user.set_password(password)
                user.save(update_fields=["password"])
            users[username] = user

            action = "Created" if created else "Exists "
            self.stdout.write(self.style.SUCCESS(
                f"  ✔  {action} user: {username:<10s} ({role})"
            ))

        cases_created = 0
        for title, description, status, priority, creator, assignee in DEMO_CASES:
            if Case.objects.filter(title=title).exists():
                continue

            completed = status == CaseStatus.COMPLETED
            case = Case.objects.create(
                title=title,
                description=description,
                status=status,
                priority=priority,
                created_by=users[creator],
                assigned_to=users[assignee] if assignee else None,
                completed_at=timezone.now() if completed else None,
                completed_by=users[creator] if completed else None,
            )
            CaseLog.objects.create(
                case=case,
                user=users[creator],
                action=CaseLogAction.CREATED,
                details=f"Case \"{title}\" created.",
            )
            cases_created += 1
            self.stdout.write(self.style.SUCCESS(
                f"  ✔  Created case: {title} [{status}]"
            ))

        # ── Summary ─────────────────────────────────────────────────
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n──────────────────────────────────────────"
        ))
        self.stdout.write(self.style.SUCCESS(
            f"  Done!  {len(users)} user(s) ensured, {cases_created} case(s) created.\n"
        ))
