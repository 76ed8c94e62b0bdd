"""
Accounts app URL configuration.

Included from ``casedesk/urls.py`` as::

    path("api/accounts/", include("accounts.urls")),

Endpoint Map
------------
Authentication
    POST   /auth/register/              → RegisterView
    POST   /auth/login/                 → LoginView
    POST   /auth/token/refresh/         → TokenRefreshView (SimpleJWT)
    POST   /auth/logout/                → LogoutView

Current User Profile ("Me")
    GET    /me/                         → MeView  (retrieve)
    PATCH  /me/                         → MeView  (partial update)

User Management (ADMIN writes, chairs read)
    GET    /users/                      → UserViewSet.list
    POST   /users/                      → UserViewSet.create
    GET    /users/{id}/                 → UserViewSet.retrieve
    PATCH  /users/{id}/                 → UserViewSet.partial_update
    DELETE /users/{id}/                 → UserViewSet.destroy (deactivates)
    POST   /users/{id}/activate/        → UserViewSet.activate
    POST   /users/{id}/deactivate/      → UserViewSet.deactivate
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from .views import LoginView, LogoutView, MeView, RegisterView, UserViewSet

app_name = "accounts"

router = DefaultRouter()
router.register(r"users", UserViewSet, basename="user")

urlpatterns = [
    # ── Authentication ───────────────────────────────────────────────
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),

    # ── Current User (Me) ───────────────────────────────────────────
    path("me/", MeView.as_view(), name="me"),

    # ── Router-registered viewsets (users/) ──────────────────────────
    path("", include(router.urls)),
]
