"""
URL configuration for the push notification backend.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin (audit log, pending tokens)
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - JWT endpoints
        token/                     - Obtain access/refresh pair
        token/refresh/             - Refresh access token
    /api/v1/notifications/         - Push notification endpoints
        tokens/                    - Register device token
        test/                      - Show test notification
        trigger/                   - Trigger notification (admin)
        audit/                     - Audit log (admin)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("notifications/", include("notifications.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Push Notifications Admin"
admin.site.site_title = "Push Notifications"
admin.site.index_title = "Delivery and audit"
