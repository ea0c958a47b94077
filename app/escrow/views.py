"""
DRF views for the escrow app.

Endpoints:
    POST /api/v1/escrow/delivery-token/ - Issue a delivery credential (store member)
    POST /api/v1/escrow/confirm-delivery/ - Buyer confirms with token or OTP
    POST /api/v1/escrow/confirm-receipt/ - Legacy confirmation by order identity
    POST /api/v1/escrow/escrow-sweep/ - Run one auto-release pass (service secret)
    GET /api/v1/escrow/stores/{store_id}/audit-logs/ - Store audit trail

Related files:
    - services/: issuance, confirmation pipeline, escrow ledger, sweep
    - serializers.py: Request/response serializers
    - permissions.py: Service secret and store membership
    - throttles.py: confirm-delivery rate limit

Error Responses:
    Domain errors become {"success": false, "error", "error_code"} with the
    status from ERROR_STATUS. Anything unexpected is logged with its
    traceback and answered with a bare 500 "Internal error".
"""

from __future__ import annotations

import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError
from core.helpers import get_client_ip
from escrow.audit.services import AuditRecorder
from escrow.permissions import HasServiceSecret, IsStoreMember
from escrow.serializers import (
    AuditLogEntrySerializer,
    ConfirmDeliveryResponseSerializer,
    ConfirmDeliverySerializer,
    ConfirmReceiptResponseSerializer,
    ConfirmReceiptSerializer,
    DeliveryTokenRequestSerializer,
    DeliveryTokenResponseSerializer,
    SweepReportSerializer,
)
from escrow.services import AutoReleaseSweeper, ConfirmationIssuer, ConfirmationVerifier
from escrow.strategies import ConfirmationRequest, CredentialStrategy, WeakIdentityStrategy
from escrow.throttles import DeliveryConfirmationThrottle

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "CREDENTIAL_INVALID": status.HTTP_404_NOT_FOUND,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ORDER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ESCROW_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PERMISSION_DENIED": status.HTTP_403_FORBIDDEN,
    "STORE_ACCESS_DENIED": status.HTTP_403_FORBIDDEN,
}

INTERNAL_ERROR = {"error": "Internal error"}

DEFAULT_AUDIT_LIMIT = 50


def failure_response(error: str | None, error_code: str | None) -> Response:
    """Map a domain failure to its HTTP response."""
    http_status = ERROR_STATUS.get(error_code or "")
    if http_status is None:
        return Response(INTERNAL_ERROR, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(
        {"success": False, "error": error, "error_code": error_code},
        status=http_status,
    )


class EscrowAPIView(APIView):
    """
    Base view turning escrow failures into responses.

    DRF handles its own exceptions (validation, auth, throttling).
    Application errors are mapped through ERROR_STATUS; everything else is
    logged and hidden behind a generic 500.
    """

    def handle_exception(self, exc):
        if isinstance(exc, (APIException, Http404, PermissionDenied)):
            return super().handle_exception(exc)

        if isinstance(exc, BaseApplicationError) and exc.error_code in ERROR_STATUS:
            return failure_response(exc.message, exc.error_code)

        logger.exception(
            "Unhandled error in escrow endpoint",
            extra={"view": self.__class__.__name__},
        )
        return Response(INTERNAL_ERROR, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class DeliveryTokenView(EscrowAPIView):
    """
    Issue a delivery credential for an order.

    POST /api/v1/escrow/delivery-token/

    Request body:
        {"order_id": "<uuid>", "store_id": "<uuid>", "regenerate": false}

    Returns (201):
        {"token": "...", "otp": "483920", "expires_at": "..."}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        request=DeliveryTokenRequestSerializer,
        responses={
            201: DeliveryTokenResponseSerializer,
            403: OpenApiResponse(description="Not a member of the store"),
            404: OpenApiResponse(description="Order not found in this store"),
        },
        tags=["Escrow"],
    )
    def post(self, request):
        serializer = DeliveryTokenRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = ConfirmationIssuer.issue(
            order_id=data["order_id"],
            store_id=data["store_id"],
            user=request.user,
            regenerate=data["regenerate"],
        )
        if not result.success:
            return failure_response(result.error, result.error_code)

        issued = result.data
        output = DeliveryTokenResponseSerializer(
            {"token": issued.token, "otp": issued.otp, "expires_at": issued.expires_at}
        )
        return Response(output.data, status=status.HTTP_201_CREATED)


class ConfirmDeliveryView(EscrowAPIView):
    """
    Confirm a delivery with a single-use credential.

    POST /api/v1/escrow/confirm-delivery/

    Request body:
        {"token": "..."}
        {"otp": "483920", "method": "otp", "order_number": "ORD-1001"}

    Returns (200):
        {"success": true, "order_number": "ORD-1001", "escrow_released": true}

    A wrong, expired or used credential always yields the same 404.
    """

    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [DeliveryConfirmationThrottle]

    @extend_schema(
        request=ConfirmDeliverySerializer,
        responses={
            200: ConfirmDeliveryResponseSerializer,
            404: OpenApiResponse(description="Invalid, expired or already used credential"),
            429: OpenApiResponse(description="Too many attempts"),
        },
        tags=["Escrow"],
    )
    def post(self, request):
        serializer = ConfirmDeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = ConfirmationVerifier(CredentialStrategy()).confirm(
            ConfirmationRequest(
                token=data.get("token"),
                otp=data.get("otp"),
                method=data.get("method"),
                order_number=data.get("order_number"),
                client_ip=get_client_ip(request),
            )
        )
        if not result.success:
            return failure_response(result.error, result.error_code)

        return Response(
            {
                "success": True,
                "order_number": result.data.order_number,
                "escrow_released": result.data.escrow_released,
            }
        )


class ConfirmReceiptView(EscrowAPIView):
    """
    Legacy receipt confirmation by order identity.

    POST /api/v1/escrow/confirm-receipt/

    Request body:
        {"order_id": "<uuid>"}
        {"order_number": "ORD-1001", "phone": "+223 70 00 00 00"}

    Returns (200):
        {"success": true, "released": true}
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        request=ConfirmReceiptSerializer,
        responses={
            200: ConfirmReceiptResponseSerializer,
            404: OpenApiResponse(description="Order or escrow not found"),
        },
        tags=["Escrow"],
    )
    def post(self, request):
        serializer = ConfirmReceiptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = ConfirmationVerifier(WeakIdentityStrategy()).confirm(
            ConfirmationRequest(
                order_id=data.get("order_id"),
                order_number=data.get("order_number"),
                phone=data.get("phone"),
                client_ip=get_client_ip(request),
            )
        )
        if not result.success:
            return failure_response(result.error, result.error_code)

        return Response({"success": True, "released": result.data.escrow_released})


class EscrowSweepView(EscrowAPIView):
    """
    Run one auto-release pass on demand.

    POST /api/v1/escrow/escrow-sweep/

    Headers:
        X-Service-Secret: <ESCROW_SWEEP_SECRET>
        (or Authorization: Bearer <ESCROW_SWEEP_SECRET>)
    """

    authentication_classes = []
    permission_classes = [HasServiceSecret]
    throttle_classes = []

    @extend_schema(
        request=None,
        responses={
            200: SweepReportSerializer,
            403: OpenApiResponse(description="Missing or wrong service secret"),
        },
        tags=["Escrow"],
    )
    def post(self, request):
        report = AutoReleaseSweeper.run()
        return Response(SweepReportSerializer(report.to_dict()).data)


class StoreAuditLogView(EscrowAPIView):
    """
    Audit trail of a store, newest first.

    GET /api/v1/escrow/stores/{store_id}/audit-logs/?limit=50
    """

    permission_classes = [IsAuthenticated, IsStoreMember]

    @extend_schema(
        parameters=[
            OpenApiParameter("limit", OpenApiTypes.INT, description="Maximum entries (1-200)"),
        ],
        responses={200: AuditLogEntrySerializer(many=True)},
        tags=["Escrow"],
    )
    def get(self, request, store_id):
        try:
            limit = int(request.query_params.get("limit", DEFAULT_AUDIT_LIMIT))
        except ValueError:
            limit = DEFAULT_AUDIT_LIMIT

        entries = AuditRecorder.for_store(store_id, limit=limit)
        return Response(AuditLogEntrySerializer(entries, many=True).data)
