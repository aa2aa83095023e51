# payments/views.py

import logging

from django.conf import settings

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from currency.exceptions import ConversionError
from .exceptions import LedgerError
from .models import ActorKind
from .serializers import (
    AdminTransactionSerializer,
    GuestActionSerializer,
    GuestTransactionSerializer,
    TransactionRequestSerializer,
    TransactionSerializer,
)
from .services import TransactionLedger

logger = logging.getLogger(__name__)

CORE_ERRORS = (LedgerError, ConversionError)


def _error(exc):
    return Response({"error": exc.code, "detail": str(exc)}, status=exc.status_code)


def _client_ip(request):
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def _request_payload(request):
    serializer = TransactionRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


# -------------------------------------------------------
# REGISTERED USERS
# -------------------------------------------------------


class TransactionViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    serializer_class = TransactionSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return TransactionLedger().list_for_user(self.request.user)

    def create(self, request, *args, **kwargs):
        payload = _request_payload(request)
        try:
            txn = TransactionLedger().create(
                actor_kind=ActorKind.USER,
                user=request.user,
                client_ip=_client_ip(request),
                **payload,
            )
        except CORE_ERRORS as exc:
            return _error(exc)

        return Response(
            {
                "message": "Transaction created.",
                "sender_email": request.user.email,
                **TransactionSerializer(txn).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["post"])
    def preview(self, request):
        payload = _request_payload(request)
        try:
            quote = TransactionLedger().quote(actor_kind=ActorKind.USER, **payload)
        except CORE_ERRORS as exc:
            return _error(exc)
        return Response({"sender_email": request.user.email, **quote.as_dict()})


# -------------------------------------------------------
# GUESTS
# -------------------------------------------------------


@api_view(["POST"])
@permission_classes([AllowAny])
def guest_preview(request):
    payload = _request_payload(request)
    try:
        quote = TransactionLedger().quote(actor_kind=ActorKind.GUEST, **payload)
    except CORE_ERRORS as exc:
        return _error(exc)
    return Response({"sender": "guest-preview", **quote.as_dict()})


@api_view(["POST"])
@permission_classes([AllowAny])
def guest_create(request):
    payload = _request_payload(request)
    try:
        txn = TransactionLedger().create(
            actor_kind=ActorKind.GUEST,
            client_ip=_client_ip(request),
            **payload,
        )
    except CORE_ERRORS as exc:
        return _error(exc)
    return Response(GuestTransactionSerializer(txn).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([AllowAny])
def guest_complete(request):
    serializer = GuestActionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    ledger = TransactionLedger()
    try:
        ledger.guest_mark_complete(data["tx_id"], data["guest_key"])
        return Response(ledger.get_status(data["tx_id"], data["guest_key"]))
    except CORE_ERRORS as exc:
        return _error(exc)


@api_view(["GET"])
@permission_classes([AllowAny])
def guest_status(request):
    serializer = GuestActionSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        return Response(TransactionLedger().get_status(data["tx_id"], data["guest_key"]))
    except CORE_ERRORS as exc:
        return _error(exc)


# -------------------------------------------------------
# ADMIN SETTLEMENT
# -------------------------------------------------------


@api_view(["GET"])
@permission_classes([IsAdminUser])
def admin_transactions(request):
    rows = TransactionLedger().list_all()
    return Response(AdminTransactionSerializer(rows, many=True).data)


@api_view(["GET"])
@permission_classes([IsAdminUser])
def admin_summary(request):
    return Response(TransactionLedger().summary())


@api_view(["PUT", "POST"])
@permission_classes([IsAdminUser])
def admin_mark_paid(request, pk):
    try:
        txn = TransactionLedger().mark_paid(pk)
    except CORE_ERRORS as exc:
        return _error(exc)
    logger.info("Admin %s marked transaction %s paid", request.user.pk, pk)
    return Response(AdminTransactionSerializer(txn).data)


@api_view(["PUT", "POST"])
@permission_classes([IsAdminUser])
def admin_archive(request, pk):
    try:
        txn = TransactionLedger().archive(pk)
    except CORE_ERRORS as exc:
        return _error(exc)
    logger.info("Admin %s archived transaction %s", request.user.pk, pk)
    return Response(AdminTransactionSerializer(txn).data)


@api_view(["GET"])
@permission_classes([AllowAny])
def deposit_address(request):
    address = settings.BITCOIN_DEPOSIT_ADDRESS
    if not address:
        logger.error("BITCOIN_DEPOSIT_ADDRESS is not configured")
        return Response(
            {"error": "not_configured", "detail": "Deposit address is not configured"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return Response({"address": address})
