import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .exceptions import VNPayGatewayError
from .models import Order
from .vnpay_service import VNPayService

logger = logging.getLogger(__name__)

# vnp_TransactionStatus được coi là kết thúc khi đối soát
PAID_STATUS = '00'
DECLINED_STATUS = '02'


def reconcile_pending_orders(older_than_minutes=None, vnpay_service=None, server_ip='127.0.0.1'):
    """
    Đối soát các đơn hàng còn pending (không nhận được IPN) bằng querydr.

    Lỗi khi gọi VNPay chỉ được ghi log rồi bỏ qua đơn hàng đó,
    lần chạy sau sẽ thử lại.

    Returns:
        dict: số đơn đã kiểm tra / hoàn thành / thất bại / lỗi
    """
    if older_than_minutes is None:
        older_than_minutes = int(getattr(settings, 'VNPAY_RECONCILE_AFTER_MINUTES', 15))
    vnpay_service = vnpay_service or VNPayService()

    cutoff = timezone.now() - timedelta(minutes=older_than_minutes)
    pending_orders = Order.objects.filter(
        status=Order.STATUS_PENDING,
        created_at__lte=cutoff,
        vnp_create_date__isnull=False,
    ).exclude(vnp_create_date='')

    summary = {'checked': 0, 'completed': 0, 'failed': 0, 'errors': 0}

    for order in pending_orders:
        summary['checked'] += 1
        try:
            result = vnpay_service.query_transaction(
                txn_ref=order.order_code,
                transaction_date=order.vnp_create_date,
                ip_addr=server_ip,
            )
        except VNPayGatewayError as e:
            logger.warning(f"[VNPay Reconcile] Query failed for order {order.order_code}: {str(e)}")
            summary['errors'] += 1
            continue

        outcome = _apply_query_result(order.pk, result)
        if outcome:
            summary[outcome] += 1

    logger.info(f"[VNPay Reconcile] Done: {summary}")
    return summary


def _apply_query_result(order_pk, result):
    if not result['success']:
        return None

    data = result['data']
    transaction_status = data.get('transaction_status')

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order_pk)
        if not order.is_pending:
            return None

        if transaction_status == PAID_STATUS:
            if data.get('amount') != int(order.amount):
                logger.warning(
                    f"[VNPay Reconcile] Amount mismatch for order {order.order_code}: "
                    f"expected {order.amount}, gateway reported {data.get('amount')}"
                )
                return None
            order.status = Order.STATUS_COMPLETED
            order.completed_at = timezone.now()
            outcome = 'completed'
        elif transaction_status == DECLINED_STATUS:
            order.status = Order.STATUS_FAILED
            outcome = 'failed'
        else:
            return None

        order.vnp_transaction_no = data.get('transaction_no') or order.vnp_transaction_no
        order.vnp_transaction_status = transaction_status
        order.vnp_bank_code = data.get('bank_code') or order.vnp_bank_code
        order.vnp_pay_date = data.get('pay_date') or order.vnp_pay_date
        order.save()

    logger.info(f"[VNPay Reconcile] Order {order.order_code} -> {order.status}")
    return outcome
