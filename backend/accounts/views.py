"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, and return the result
wrapped in a DRF ``Response``.  **No business logic** resides here.

View Map
--------
- ``RegisterView``  — POST /auth/register/
- ``LoginView``     — POST /auth/login/
- ``LogoutView``    — POST /auth/logout/
- ``MeView``        — GET / PATCH /me/
- ``UserViewSet``   — /users/  (list, create, retrieve, partial_update,
                      destroy, activate, deactivate)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from core.pagination import MetaPagination

from .serializers import (
    CustomTokenObtainPairSerializer,
    LogoutRequestSerializer,
    MeUpdateSerializer,
    RegisterRequestSerializer,
    UserCreateSerializer,
    UserDetailSerializer,
    UserFilterSerializer,
    UserListSerializer,
    UserUpdateSerializer,
)
from .services import (
    AuthenticationService,
    CurrentUserService,
    UserManagementService,
    UserRegistrationService,
)


# ═══════════════════════════════════════════════════════════════════
#  Authentication Views
# ═══════════════════════════════════════════════════════════════════


class RegisterView(generics.CreateAPIView):
    """
    POST /api/accounts/auth/register/

    Public endpoint.  Creates a new caseworker (``USER``) account.
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = RegisterRequestSerializer

    @extend_schema(
        summary="Register",
        description="Create a new caseworker account. Username and email must be unique.",
        request=RegisterRequestSerializer,
        responses={
            201: OpenApiResponse(response=UserDetailSerializer, description="User created."),
            400: OpenApiResponse(description="Validation error."),
            409: OpenApiResponse(description="Username or email already taken."),
        },
        tags=["Auth"],
    )
    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserRegistrationService.register_user(serializer.validated_data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    POST /api/accounts/auth/login/

    Public endpoint.  Authenticates with ``identifier`` (username or
    email) plus ``password`` and returns a JWT pair with the user profile.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Login",
        description="Exchange username/email and password for a JWT access/refresh pair.",
        request=CustomTokenObtainPairSerializer,
        responses={
            200: OpenApiResponse(description="`{access, refresh, user}`"),
            400: OpenApiResponse(description="Invalid credentials or inactive account."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = CustomTokenObtainPairSerializer(
            data=request.data,
            context={"request": request},
        )
        serializer.is_valid(raise_exception=True)

        payload = dict(serializer.validated_data)
        payload["user"] = UserDetailSerializer(serializer.user).data
        return Response(payload, status=status.HTTP_200_OK)


class LogoutView(APIView):
    """
    POST /api/accounts/auth/logout/

    Blacklists the supplied refresh token so it can no longer mint
    access tokens.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Logout",
        description="Revoke a refresh token.",
        request=LogoutRequestSerializer,
        responses={
            205: OpenApiResponse(description="Token revoked."),
            400: OpenApiResponse(description="Missing, invalid or foreign token."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = LogoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        AuthenticationService.logout(serializer.validated_data["refresh"], request.user)
        return Response(status=status.HTTP_205_RESET_CONTENT)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me") View
# ═══════════════════════════════════════════════════════════════════


class MeView(APIView):
    """
    GET   /api/accounts/me/ → Retrieve own profile.
    PATCH /api/accounts/me/ → Update own names / email.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Current user",
        responses={200: UserDetailSerializer},
        tags=["Auth"],
    )
    def get(self, request: Request) -> Response:
        return Response(UserDetailSerializer(request.user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update current user",
        request=MeUpdateSerializer,
        responses={
            200: UserDetailSerializer,
            409: OpenApiResponse(description="Email already taken."),
        },
        tags=["Auth"],
    )
    def patch(self, request: Request) -> Response:
        serializer = MeUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = CurrentUserService.update_profile(request.user, serializer.validated_data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  User Management ViewSet
# ═══════════════════════════════════════════════════════════════════


class UserViewSet(viewsets.ViewSet):
    """
    /api/accounts/users/

    Administrative user management.  Chairs (ADMIN, MANAGER) may read;
    only ADMIN may write.  All role checks live in
    ``UserManagementService``.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="List users",
        parameters=[
            OpenApiParameter(name="role", type=str, description="ADMIN, MANAGER or USER."),
            OpenApiParameter(name="is_active", type=bool),
            OpenApiParameter(name="search", type=str, description="Match on username, email or name."),
            OpenApiParameter(name="page", type=int),
            OpenApiParameter(name="limit", type=int),
        ],
        responses={200: UserListSerializer(many=True)},
        tags=["Users"],
    )
    def list(self, request: Request) -> Response:
        filters = UserFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        qs = UserManagementService.list_users(request.user, **filters.validated_data)

        paginator = MetaPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        serializer = UserListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @extend_schema(
        summary="Create user",
        request=UserCreateSerializer,
        responses={
            201: UserDetailSerializer,
            403: OpenApiResponse(description="Caller is not an ADMIN."),
            409: OpenApiResponse(description="Username or email already taken."),
        },
        tags=["Users"],
    )
    def create(self, request: Request) -> Response:
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserManagementService.create_user(request.user, serializer.validated_data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Retrieve user", responses={200: UserDetailSerializer}, tags=["Users"])
    def retrieve(self, request: Request, pk: str = None) -> Response:
        user = UserManagementService.get_user(request.user, int(pk))
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Update user",
        request=UserUpdateSerializer,
        responses={200: UserDetailSerializer},
        tags=["Users"],
    )
    def partial_update(self, request: Request, pk: str = None) -> Response:
        serializer = UserUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = UserManagementService.update_user(request.user, int(pk), serializer.validated_data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Delete user",
        description="Soft delete: the account is deactivated and its history kept.",
        responses={204: None},
        tags=["Users"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        UserManagementService.deactivate_user(request.user, int(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(summary="Activate user", request=None, responses={200: UserDetailSerializer}, tags=["Users"])
    @action(detail=True, methods=["post"], url_path="activate")
    def activate(self, request: Request, pk: str = None) -> Response:
        user = UserManagementService.activate_user(request.user, int(pk))
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(summary="Deactivate user", request=None, responses={200: UserDetailSerializer}, tags=["Users"])
    @action(detail=True, methods=["post"], url_path="deactivate")
    def deactivate(self, request: Request, pk: str = None) -> Response:
        user = UserManagementService.deactivate_user(request.user, int(pk))
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)
