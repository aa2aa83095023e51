# payments/urls.py

from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import (
    TransactionViewSet,
    admin_archive,
    admin_mark_paid,
    admin_summary,
    admin_transactions,
    deposit_address,
    guest_complete,
    guest_create,
    guest_preview,
    guest_status,
)

router = SimpleRouter()
router.register(r'', TransactionViewSet, basename="transaction")

urlpatterns = [
    path("guest/", guest_create, name="guest-transaction"),
    path("guest/preview/", guest_preview, name="guest-preview"),
    path("guest/complete/", guest_complete, name="guest-complete"),
    path("guest/status/", guest_status, name="guest-status"),
    path("admin/", admin_transactions, name="admin-transactions"),
    path("admin/summary/", admin_summary, name="admin-summary"),
    path("admin/<int:pk>/mark-paid/", admin_mark_paid, name="admin-mark-paid"),
    path("admin/<int:pk>/archive/", admin_archive, name="admin-archive"),
    path("deposit-address/", deposit_address, name="deposit-address"),
    path('', include(router.urls)),
]
