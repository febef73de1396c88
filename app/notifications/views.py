"""
Views for the push notification API.

Endpoints:
    POST /api/v1/notifications/tokens/  - Register the caller's device token
    POST /api/v1/notifications/test/    - Show a test notification to the caller
    POST /api/v1/notifications/trigger/ - Trigger a notification for any user (admin)
    GET  /api/v1/notifications/audit/   - Browse the audit log (admin)

Every write endpoint builds a request-scoped PushNotificationService whose
identity is the request user, and answers with ServiceResult.to_response().
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from notifications.identity import StaticIdentitySource
from notifications.models import NotificationAuditRecord
from notifications.serializers import (
    AuditRecordSerializer,
    DeviceTokenSerializer,
    ServiceResultSerializer,
    TriggerNotificationSerializer,
)
from notifications.services import build_notification_service

AUDIT_FILTERS = ("step", "status", "notification_type", "target_user_id")


def _service_for(request):
    return build_notification_service(identity=StaticIdentitySource(request.user))


def _result_response(result, success_status=status.HTTP_200_OK) -> Response:
    return Response(
        result.to_response(),
        status=success_status if result.success else status.HTTP_400_BAD_REQUEST,
    )


class DeviceTokenView(APIView):
    """Associate a device delivery token with the authenticated user."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="register_device_token",
        summary="Register device token",
        description=(
            "Store the device's push delivery token on the caller's profile. "
            "Pending entries for the same token are marked associated."
        ),
        request=DeviceTokenSerializer,
        responses={
            200: ServiceResultSerializer,
            400: OpenApiResponse(description="Invalid token or storage failure"),
        },
        tags=["Notifications - Push"],
    )
    def post(self, request):
        serializer = DeviceTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = _service_for(request)
        token = serializer.validated_data["token"]
        service.analytics.record_token(token)
        return _result_response(service.tokens.save_token(token))


class TestNotificationView(APIView):
    """Show a test notification addressed to the caller."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="show_test_notification",
        summary="Show test notification",
        request=None,
        responses={
            200: ServiceResultSerializer,
            400: OpenApiResponse(description="Notification was not displayed"),
        },
        tags=["Notifications - Push"],
    )
    def post(self, request):
        return _result_response(_service_for(request).show_test())


class TriggerNotificationView(APIView):
    """Create an inbox entry for a user and display it."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="trigger_notification",
        summary="Trigger notification",
        description=(
            "Create an in-app notification of any type for the target user "
            "and display it. Title and body fall back to generic texts."
        ),
        request=TriggerNotificationSerializer,
        responses={
            201: ServiceResultSerializer,
            400: OpenApiResponse(description="Invalid request or delivery failure"),
        },
        tags=["Notifications - Push"],
    )
    def post(self, request):
        serializer = TriggerNotificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = _service_for(request).trigger_server_notification(
            notification_type=data["type"],
            target_user_id=data["target_user_id"],
            title=data.get("title") or None,
            body=data.get("body") or None,
            custom_data=data.get("custom_data"),
        )
        return _result_response(result, success_status=status.HTTP_201_CREATED)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_notification_audit",
        summary="List audit records",
        description="Paginated push notification audit log, oldest first.",
        parameters=[
            OpenApiParameter(
                name=name,
                type=str,
                location=OpenApiParameter.QUERY,
                required=False,
                description=f"Exact match on {name}",
            )
            for name in AUDIT_FILTERS
        ],
        tags=["Notifications - Audit"],
    ),
    retrieve=extend_schema(
        operation_id="get_notification_audit_record",
        summary="Get audit record",
        tags=["Notifications - Audit"],
    ),
)
class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    """Read-only access to the audit log for staff."""

    permission_classes = [IsAdminUser]
    serializer_class = AuditRecordSerializer

    def get_queryset(self):
        queryset = NotificationAuditRecord.objects.all()
        for name in AUDIT_FILTERS:
            value = self.request.query_params.get(name)
            if value:
                queryset = queryset.filter(**{name: value})
        return queryset
