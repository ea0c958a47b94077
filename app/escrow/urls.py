"""
URL configuration for the escrow app.

All routes are prefixed with /api/v1/escrow/ when included in the main URLconf.
"""

from django.urls import path

from escrow import views

app_name = "escrow"

urlpatterns = [
    path("delivery-token/", views.DeliveryTokenView.as_view(), name="delivery_token"),
    path("confirm-delivery/", views.ConfirmDeliveryView.as_view(), name="confirm_delivery"),
    path("confirm-receipt/", views.ConfirmReceiptView.as_view(), name="confirm_receipt"),
    path("escrow-sweep/", views.EscrowSweepView.as_view(), name="escrow_sweep"),
    path(
        "stores/<uuid:store_id>/audit-logs/",
        views.StoreAuditLogView.as_view(),
        name="store_audit_logs",
    ),
]
