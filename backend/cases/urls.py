"""
Cases app URL configuration.

All routes are registered under the ``/api/`` prefix.

Route Hierarchy
---------------
  /api/cases/                              → list / create
  /api/cases/{id}/                         → retrieve / partial_update / destroy

  ── Workflow @actions ───────────────────────────────────────────
  POST /api/cases/{id}/assign/              → chair assigns (OPEN → PENDING)
  POST /api/cases/{id}/accept/              → assignee accepts
  POST /api/cases/{id}/reject/              → assignee rejects
  POST /api/cases/{id}/request-completion/  → assignee asks for review
  POST /api/cases/{id}/approve-completion/  → chair approves
  POST /api/cases/{id}/reject-completion/   → chair sends back
  POST /api/cases/{id}/close/               → chair closes

  ── Sub-resource @actions ───────────────────────────────────────
  GET  /api/cases/{id}/logs/
  POST /api/cases/{id}/logs/
  GET  /api/cases/{id}/attachments/
  POST /api/cases/{id}/attachments/

  ── Collection @actions ─────────────────────────────────────────
  GET  /api/cases/stats/
  GET  /api/cases/available-caseworkers/
"""

from rest_framework.routers import DefaultRouter

from .views import CaseViewSet

router = DefaultRouter()
router.register(
    prefix=r"cases",
    viewset=CaseViewSet,
    basename="case",
)

urlpatterns = router.urls
