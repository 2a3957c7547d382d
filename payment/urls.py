from django.urls import path
from .views import (
    CreatePaymentView, VNPayReturnView, VNPayIPNView, CheckPaymentStatusView,
    QueryTransactionView, RefundView,
)

urlpatterns = [
    # Payment URLs
    path("payment/vnpay/create/", CreatePaymentView.as_view(), name="create-payment"),
    path("payment/vnpay/return/", VNPayReturnView.as_view(), name="vnpay-return"),
    path("payment/vnpay/ipn/", VNPayIPNView.as_view(), name="vnpay-ipn"),
    path("payment/status/<str:order_code>/", CheckPaymentStatusView.as_view(), name="check-payment-status"),

    # Merchant API (staff)
    path("payment/vnpay/query/", QueryTransactionView.as_view(), name="vnpay-query"),
    path("payment/vnpay/refund/", RefundView.as_view(), name="vnpay-refund"),
]
