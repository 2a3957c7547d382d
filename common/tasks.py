"""
Scheduled Tasks for Django-Q
"""
from django.core.management import call_command
import logging

logger = logging.getLogger(__name__)


def reconcile_pending_orders():
    """
    Task đối soát các đơn hàng VNPay còn pending (không nhận được IPN)
    Chạy mỗi 10 phút
    """
    try:
        logger.info("[Scheduled Task] Starting VNPay order reconciliation...")
        call_command('reconcile_vnpay_orders')
        logger.info("[Scheduled Task] Reconciliation completed!")
        return "Reconciliation completed"

    except Exception as e:
        logger.error(f"[Scheduled Task] Reconciliation failed: {str(e)}")
        raise
