"""
Xử lý IPN (Instant Payment Notification) từ VNPay.

VNPay chỉ đọc RspCode trong body, nên mọi kết quả (kể cả lỗi) đều phải
trả về một mã trong bộ mã cố định. Nếu không nhận được phản hồi hợp lệ,
VNPay sẽ gửi lại IPN.
"""
import logging
from dataclasses import dataclass

from django.conf import settings
from django.db import transaction

from .models import Order, PaymentCallback
from .vnpay_service import CallbackEvent, extract_vnp_params, verify_signature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IPNResponse:
    code: str
    message: str

    @property
    def accepted(self):
        return self.code == '00'

    def as_dict(self):
        return {'RspCode': self.code, 'Message': self.message}


CONFIRM_SUCCESS = IPNResponse('00', 'Confirm Success')
ORDER_NOT_FOUND = IPNResponse('01', 'Order not found')
ORDER_ALREADY_CONFIRMED = IPNResponse('02', 'This order has been updated to the payment status')
INVALID_AMOUNT = IPNResponse('04', 'Amount invalid')
CHECKSUM_FAILED = IPNResponse('97', 'Checksum failed')
INVALID_REQUEST = IPNResponse('99', 'Invalid request')
CONFIGURATION_ERROR = IPNResponse('99', 'Configuration error')
UNKNOWN_ERROR = IPNResponse('99', 'Unknown error')


def process_ipn(query_params, hash_secret=None):
    """
    Xác thực IPN và cập nhật đơn hàng.

    Args:
        query_params: tham số VNPay gửi tới (QueryDict hoặc dict)
        hash_secret: mặc định lấy từ settings.VNPAY_HASH_SECRET

    Returns:
        IPNResponse. Không bao giờ raise.
    """
    event = None
    try:
        event = CallbackEvent.from_params(extract_vnp_params(query_params), source=PaymentCallback.SOURCE_IPN)
        logger.info(
            f"[VNPay IPN] Received order={event.txn_ref} response_code={event.response_code} "
            f"amount={event.amount_vnd} transaction_no={event.transaction_no}"
        )
        response = _handle_event(event, hash_secret)
    except Exception:
        logger.exception("[VNPay IPN] Unexpected error while processing notification")
        response = UNKNOWN_ERROR

    if event is not None:
        record_callback(event, response.code)

    log = logger.info if response.accepted else logger.warning
    log(f"[VNPay IPN] Order {event.txn_ref if event else '?'} -> {response.code} {response.message}")
    return response


def _handle_event(event, hash_secret):
    missing = event.missing_fields
    if missing:
        logger.warning(f"[VNPay IPN] Missing required parameters: {', '.join(missing)}")
        return INVALID_REQUEST

    if hash_secret is None:
        hash_secret = (getattr(settings, 'VNPAY_HASH_SECRET', '') or '').strip()
    if not hash_secret:
        logger.error("[VNPay IPN] VNPay hash secret not configured")
        return CONFIGURATION_ERROR

    signature_valid = verify_signature(event.signed_params, hash_secret, event.secure_hash)

    # Khóa dòng đơn hàng để các IPN trùng lặp được xử lý tuần tự
    with transaction.atomic():
        order = Order.objects.select_for_update().filter(order_code=event.txn_ref).first()

        if order is not None and not order.is_pending:
            logger.warning(f"[VNPay IPN] Order {order.order_code} already processed (status={order.status})")
            return ORDER_ALREADY_CONFIRMED

        if not signature_valid:
            logger.warning(
                f"[VNPay IPN] Checksum failed for order {event.txn_ref}, "
                f"received {event.secure_hash[:10]}..."
            )
            return CHECKSUM_FAILED

        if order is None:
            logger.warning(f"[VNPay IPN] Order not found: {event.txn_ref}")
            return ORDER_NOT_FOUND

        if not order.matches_vnp_amount(event.amount):
            logger.warning(
                f"[VNPay IPN] Amount mismatch for order {order.order_code}: "
                f"expected {order.vnp_amount}, received {event.amount}"
            )
            return INVALID_AMOUNT

        order.apply_vnpay_result(event)

    logger.info(f"[VNPay IPN] Order {order.order_code} updated to {order.status}")
    return CONFIRM_SUCCESS


def record_callback(event, result_code):
    """Lưu nhật ký callback; lỗi ghi log không được làm hỏng phản hồi cho VNPay"""
    try:
        with transaction.atomic():
            return PaymentCallback.record(event, result_code)
    except Exception:
        logger.exception(f"[VNPay] Failed to record {event.source} callback for order {event.txn_ref}")
        return None
