from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db.models import Q
from django.utils import timezone
from rest_framework import mixins, serializers, status, viewsets
from rest_framework.authtoken import models as authtoken_models
from rest_framework.authtoken.views import ObtainAuthToken
from rest_framework.permissions import AllowAny, BasePermission, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from accounts.models import UserRole

Token = authtoken_models.Token


class IsAdminRole(BasePermission):
    """
    Allow access to staff, superusers and accounts carrying the admin role.
    """

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and user.is_admin_role)


def _user_payload(user):
    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "name": user.display_name,
        "role": user.role,
        "department": user.department,
        "year": user.year,
        "phone": user.phone,
        "is_staff": user.is_staff,
        "is_superuser": user.is_superuser,
        "last_login": user.last_login.isoformat() if user.last_login else None,
    }


class UserSummarySerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = get_user_model()
        fields = ("id", "username", "name", "email", "role", "department", "year", "is_active")


class AuthTokenSerializer(serializers.Serializer):
    username = serializers.CharField(write_only=True)
    password = serializers.CharField(write_only=True, style={"input_type": "password"})

    default_error_messages = {
        "invalid_credentials": "Unable to log in with provided credentials.",
        "inactive": "User account is disabled.",
    }

    def validate(self, attrs):
        username_or_email = attrs.get("username")
        password = attrs.get("password")
        if not username_or_email or not password:
            raise serializers.ValidationError(self.error_messages["invalid_credentials"], code="authorization")

        user_model = get_user_model()
        user = (
            user_model.objects.filter(Q(username=username_or_email) | Q(email__iexact=username_or_email))
            .order_by("id")
            .first()
        )
        if not user or not user.check_password(password):
            raise serializers.ValidationError(self.error_messages["invalid_credentials"], code="authorization")
        if not user.is_active:
            raise serializers.ValidationError(self.error_messages["inactive"], code="authorization")

        attrs["user"] = user
        return attrs


class ObtainAuthTokenView(ObtainAuthToken):
    """
    Issue an auth token for any active user.
    Accepts either username or email in the "username" field.
    """

    permission_classes = [AllowAny]
    serializer_class = AuthTokenSerializer
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "login"

    def post(self, request, *args, **kwargs):
        serializer = self.serializer_class(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        token, _ = Token.objects.get_or_create(user=user)
        # Token auth never goes through django.contrib.auth.login.
        user.last_login = timezone.now()
        user.save(update_fields=["last_login"])
        return Response({"token": token.key, "user": _user_payload(user)}, status=status.HTTP_200_OK)


class CurrentUserView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, *_args, **_kwargs):
        return Response(_user_payload(request.user), status=status.HTTP_200_OK)

    def patch(self, request, *_args, **_kwargs):
        user = request.user
        user_model = get_user_model()

        email = request.data.get("email")
        phone = request.data.get("phone")
        current_password = request.data.get("current_password")
        new_password = request.data.get("new_password")
        confirm_password = request.data.get("confirm_password")

        update_fields = []
        if email is not None:
            email = email.strip()
            if email and user_model.objects.exclude(pk=user.pk).filter(email__iexact=email).exists():
                return Response({"detail": "Email is already in use."}, status=status.HTTP_400_BAD_REQUEST)
            if email != user.email:
                user.email = email
                update_fields.append("email")

        if phone is not None:
            phone = phone.strip() or None
            if phone != user.phone:
                user.phone = phone
                update_fields.append("phone")

        if current_password or new_password or confirm_password:
            if not current_password or not new_password:
                return Response(
                    {"detail": "Current password and new password are required."},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            if new_password != confirm_password:
                return Response({"detail": "New passwords do not match."}, status=status.HTTP_400_BAD_REQUEST)
            if not user.check_password(current_password):
                return Response({"detail": "Current password is incorrect."}, status=status.HTTP_400_BAD_REQUEST)
            try:
                validate_password(new_password, user)
            except ValidationError as exc:
                return Response({"detail": " ".join(exc.messages)}, status=status.HTTP_400_BAD_REQUEST)
            user.set_password(new_password)
            update_fields.append("password")

        if update_fields:
            user.save(update_fields=update_fields)
        return Response(_user_payload(user), status=status.HTTP_200_OK)


class UserViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Admin listing of user accounts. ``?role=FACULTY`` lists the invigilator pool.
    """

    serializer_class = UserSummarySerializer
    permission_classes = [IsAdminRole]
    throttle_classes: list = []

    def get_queryset(self):
        queryset = get_user_model().objects.order_by("pk")
        role = (self.request.query_params.get("role") or "").upper()
        if role:
            if role not in UserRole.values:
                return queryset.none()
            queryset = queryset.filter(role=role)
        department = self.request.query_params.get("department")
        if department:
            queryset = queryset.filter(department=department)
        return queryset
