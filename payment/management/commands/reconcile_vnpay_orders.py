"""
Django Management Command: đối soát đơn hàng VNPay còn pending

Usage: python manage.py reconcile_vnpay_orders [--older-than 15]
"""
from django.core.management.base import BaseCommand, CommandError

from payment.exceptions import VNPayConfigError
from payment.reconcile_service import reconcile_pending_orders


class Command(BaseCommand):
    help = 'Query VNPay (querydr) for pending orders that never received an IPN'

    def add_arguments(self, parser):
        parser.add_argument(
            '--older-than',
            type=int,
            default=None,
            help='Chỉ đối soát đơn hàng tạo trước N phút (mặc định: VNPAY_RECONCILE_AFTER_MINUTES)',
        )

    def handle(self, *args, **options):
        try:
            summary = reconcile_pending_orders(older_than_minutes=options['older_than'])
        except VNPayConfigError as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(
            f"Checked {summary['checked']} orders: {summary['completed']} completed, "
            f"{summary['failed']} failed, {summary['errors']} errors"
        ))
