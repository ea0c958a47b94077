"""
URL configuration for the escrow release service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/escrow/                - Escrow endpoints
        delivery-token/            - Issue a delivery confirmation credential (store members)
        confirm-delivery/          - Buyer presents a token or OTP
        confirm-receipt/           - Legacy order + phone confirmation
        escrow-sweep/              - Scheduler-triggered auto-release sweep
        stores/{id}/audit-logs/    - Store audit trail (store members)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    path("escrow/", include("escrow.urls")),
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

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Escrow Admin"
admin.site.site_title = "Escrow Admin Portal"
admin.site.index_title = "Escrow records, confirmations and audit trail"
