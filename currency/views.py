# currency/views.py

import logging

from django.conf import settings
from rest_framework import status, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response

from .conversion import convert
from .exceptions import ConversionError
from .models import ExchangeRate
from .rates import DatabaseRateSource, upsert_rate
from .serializers import ConvertQuerySerializer, ExchangeRateSerializer, RateUpsertSerializer

logger = logging.getLogger(__name__)


class ExchangeRateViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = ExchangeRate.objects.all()
    serializer_class = ExchangeRateSerializer
    permission_classes = [AllowAny]

    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        response["Cache-Control"] = "no-store"
        return response


@api_view(["POST"])
@permission_classes([IsAdminUser])
def set_exchange_rate(request):
    serializer = RateUpsertSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    row, created = upsert_rate(data["code"], data["rate"], base_currency=data["base_currency"])
    return Response(
        ExchangeRateSerializer(row).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@api_view(["GET"])
@permission_classes([AllowAny])
def supported_currencies(request):
    return Response({"currencies": list(settings.SUPPORTED_CURRENCIES)})


@api_view(["GET"])
@permission_classes([AllowAny])
def convert_currency(request):
    query = ConvertQuerySerializer(data=request.GET)
    if not query.is_valid():
        return Response({"error": "invalid_request", "detail": query.errors}, status=status.HTTP_400_BAD_REQUEST)
    params = query.validated_data

    try:
        result = convert(
            params["direction"],
            params["amount"],
            params["currency"],
            DatabaseRateSource(),
            crypto_code=settings.CRYPTO_PRICE_CODE,
        )
    except ConversionError as exc:
        logger.info("Conversion %s failed: %s", params["direction"], exc)
        return Response({"error": exc.code, "detail": str(exc)}, status=exc.status_code)

    return Response({"direction": params["direction"], **result.as_dict()})
