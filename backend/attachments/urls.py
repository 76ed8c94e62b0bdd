"""
Attachments app URL configuration.

  GET    /api/attachments/{id}/           → info
  DELETE /api/attachments/{id}/           → delete (uploader or ADMIN)
  GET    /api/attachments/{id}/download/  → {url, expires_in}
"""

from rest_framework.routers import DefaultRouter

from .views import AttachmentViewSet

app_name = "attachments"

router = DefaultRouter()
router.register(r"attachments", AttachmentViewSet, basename="attachment")

urlpatterns = router.urls
