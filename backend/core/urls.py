"""
Core app URL configuration.

Cross-app endpoints: dashboard aggregates, the notification inbox and
health probes.

URL prefix (registered in ``casedesk/urls.py``)::

    path('api/core/', include('core.urls'))

Endpoint summary
----------------
GET  /api/core/dashboard/                     — Role-scoped counters.
GET  /api/core/dashboard/recent-activity/     — Latest visible case log entries.
GET  /api/core/dashboard/my-tasks/            — Caller's open cases.
*    /api/core/notifications/...              — Notification inbox (router).
GET  /api/core/health/                        — Liveness (public).
GET  /api/core/health/detailed/               — Liveness plus database (public).
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = "core"

# ── Router for ViewSet-based endpoints ───────────────────────────────
router = DefaultRouter()
router.register(
    prefix=r"notifications",
    viewset=views.NotificationViewSet,
    basename="notification",
)

urlpatterns = [
    # ── Dashboard ────────────────────────────────────────────────────
    path("dashboard/", views.DashboardStatsView.as_view(), name="dashboard-stats"),
    path("dashboard/recent-activity/", views.RecentActivityView.as_view(), name="dashboard-recent-activity"),
    path("dashboard/my-tasks/", views.MyTasksView.as_view(), name="dashboard-my-tasks"),

    # ── Health ───────────────────────────────────────────────────────
    path("health/", views.HealthView.as_view(), name="health"),
    path("health/detailed/", views.DetailedHealthView.as_view(), name="health-detailed"),

    # ── Notifications (router-generated URLs) ────────────────────────
    path("", include(router.urls)),
]
