# currency/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ExchangeRateViewSet, convert_currency, set_exchange_rate, supported_currencies

router = DefaultRouter()
router.register(r'exchange-rates', ExchangeRateViewSet)

urlpatterns = [
    path('', include(router.urls)),
    path('rates/', set_exchange_rate, name='set-exchange-rate'),
    path('currencies/', supported_currencies, name='supported-currencies'),
    path('convert/', convert_currency, name='convert-currency'),
]
