"""
URL configuration for the push notification API.

Routes:
    /tokens/        - Register device token (POST)
    /test/          - Show test notification (POST)
    /trigger/       - Trigger notification for a user (POST, admin)
    /audit/         - Audit log list (GET, admin)
    /audit/{id}/    - Audit record detail (GET, admin)
"""

from django.urls import path

from rest_framework.routers import DefaultRouter

from notifications.views import (
    AuditLogViewSet,
    DeviceTokenView,
    TestNotificationView,
    TriggerNotificationView,
)

router = DefaultRouter()
router.register(r"audit", AuditLogViewSet, basename="audit")

app_name = "notifications"
urlpatterns = [
    path("tokens/", DeviceTokenView.as_view(), name="device-token"),
    path("test/", TestNotificationView.as_view(), name="test-notification"),
    path("trigger/", TriggerNotificationView.as_view(), name="trigger-notification"),
] + router.urls
