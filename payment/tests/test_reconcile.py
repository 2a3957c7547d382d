from datetime import timedelta
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from django.utils import timezone

from payment.exceptions import VNPayGatewayError
from payment.models import Order
from payment.reconcile_service import reconcile_pending_orders
from payment.vnpay_service import VNPayService
from .helpers import VNPAY_TEST_SETTINGS, api_response, make_config


def _query_result(**fields):
    return VNPayService._summarize(api_response(**fields), {})


class ReconcilePendingOrdersTest(TestCase):
    def setUp(self):
        self.vnpay_service = mock.Mock()
        self.order = self._create_order("ORDER1", minutes_ago=30)

    def _create_order(self, order_code, minutes_ago, **fields):
        fields.setdefault("vnp_create_date", "20240101120000")
        order = Order.objects.create(
            order_code=order_code,
            amount=100000,
            **fields
        )
        Order.objects.filter(pk=order.pk).update(created_at=timezone.now() - timedelta(minutes=minutes_ago))
        return order

    def test_paid_order_is_completed(self):
        self.vnpay_service.query_transaction.return_value = _query_result()

        summary = reconcile_pending_orders(older_than_minutes=15, vnpay_service=self.vnpay_service)

        self.assertEqual(summary, {"checked": 1, "completed": 1, "failed": 0, "errors": 0})
        self.vnpay_service.query_transaction.assert_called_once_with(
            txn_ref="ORDER1", transaction_date="20240101120000", ip_addr="127.0.0.1",
        )
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_COMPLETED)
        self.assertEqual(self.order.vnp_transaction_no, "14012345")
        self.assertIsNotNone(self.order.completed_at)

    def test_declined_order_is_failed(self):
        self.vnpay_service.query_transaction.return_value = _query_result(vnp_TransactionStatus="02")

        summary = reconcile_pending_orders(older_than_minutes=15, vnpay_service=self.vnpay_service)

        self.assertEqual(summary["failed"], 1)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_FAILED)

    def test_processing_order_is_left_pending(self):
        self.vnpay_service.query_transaction.return_value = _query_result(vnp_TransactionStatus="01")

        summary = reconcile_pending_orders(older_than_minutes=15, vnpay_service=self.vnpay_service)

        self.assertEqual(summary, {"checked": 1, "completed": 0, "failed": 0, "errors": 0})
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PENDING)

    def test_amount_mismatch_is_not_completed(self):
        self.vnpay_service.query_transaction.return_value = _query_result(vnp_Amount="100")

        reconcile_pending_orders(older_than_minutes=15, vnpay_service=self.vnpay_service)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PENDING)

    def test_unsuccessful_query_is_ignored(self):
        self.vnpay_service.query_transaction.return_value = _query_result(vnp_ResponseCode="91")

        summary = reconcile_pending_orders(older_than_minutes=15, vnpay_service=self.vnpay_service)

        self.assertEqual(summary["completed"], 0)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PENDING)

    def test_gateway_error_continues_with_next_order(self):
        self._create_order("ORDER2", minutes_ago=20)
        self.vnpay_service.query_transaction.side_effect = [
            VNPayGatewayError("timeout"),
            _query_result(),
        ]

        summary = reconcile_pending_orders(older_than_minutes=15, vnpay_service=self.vnpay_service)

        self.assertEqual(summary, {"checked": 2, "completed": 1, "failed": 0, "errors": 1})

    @mock.patch("payment.vnpay_service.requests.post")
    def test_malformed_gateway_payload_continues_with_next_order(self, mock_post):
        self._create_order("ORDER2", minutes_ago=20)
        mock_post.side_effect = [
            mock.Mock(ok=True, status_code=200, json=mock.Mock(return_value=["unexpected"])),
            mock.Mock(ok=True, status_code=200, json=mock.Mock(return_value=api_response())),
        ]

        summary = reconcile_pending_orders(older_than_minutes=15, vnpay_service=VNPayService(make_config()))

        self.assertEqual(summary, {"checked": 2, "completed": 1, "failed": 0, "errors": 1})
        self.assertEqual(mock_post.call_count, 2)

    def test_skips_recent_and_finished_orders(self):
        self._create_order("ORDERNEW", minutes_ago=1)
        self._create_order("ORDERDONE", minutes_ago=60, status=Order.STATUS_COMPLETED)
        self._create_order("ORDERNODATE", minutes_ago=60, vnp_create_date="")
        self.vnpay_service.query_transaction.return_value = _query_result(vnp_TransactionStatus="01")

        summary = reconcile_pending_orders(older_than_minutes=15, vnpay_service=self.vnpay_service)

        self.assertEqual(summary["checked"], 1)
        self.assertEqual(self.vnpay_service.query_transaction.call_args.kwargs["txn_ref"], "ORDER1")


class ReconcileCommandTest(TestCase):
    @override_settings(**VNPAY_TEST_SETTINGS)
    @mock.patch("payment.vnpay_service.requests.post")
    def test_command_reports_summary(self, mock_post):
        mock_post.return_value = mock.Mock(ok=True, status_code=200, json=mock.Mock(return_value=api_response()))
        order = Order.objects.create(order_code="ORDER1", amount=100000, vnp_create_date="20240101120000")
        Order.objects.filter(pk=order.pk).update(created_at=timezone.now() - timedelta(hours=1))
        out = StringIO()

        call_command("reconcile_vnpay_orders", "--older-than", "15", stdout=out)

        self.assertIn("Checked 1 orders: 1 completed, 0 failed, 0 errors", out.getvalue())
        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_COMPLETED)

    @override_settings(VNPAY_TMN_CODE="", VNPAY_HASH_SECRET="")
    def test_command_fails_without_configuration(self):
        with self.assertRaises(CommandError):
            call_command("reconcile_vnpay_orders", stdout=StringIO())

    def test_explicit_service_is_used(self):
        service = VNPayService(make_config())
        with mock.patch.object(service, "query_transaction") as query:
            summary = reconcile_pending_orders(vnpay_service=service)
        self.assertEqual(summary["checked"], 0)
        query.assert_not_called()
