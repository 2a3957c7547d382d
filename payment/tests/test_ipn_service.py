from unittest import mock

from django.contrib import admin
from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase, override_settings

from payment.ipn_service import process_ipn
from payment.models import Order, PaymentCallback
from .helpers import TEST_SECRET, VNPAY_TEST_SETTINGS, build_callback_params


@override_settings(**VNPAY_TEST_SETTINGS)
class ProcessIPNTest(TestCase):
    def setUp(self):
        self.order = Order.objects.create(
            order_code="ORDER123ABC456",
            amount=100000,
            order_info="Thanh toan don hang ORDER123ABC456",
            vnp_create_date="20240101120000",
        )

    def _params(self, **kwargs):
        return build_callback_params(self.order.order_code, 100000, **kwargs)

    def test_successful_payment_is_confirmed(self):
        response = process_ipn(self._params())

        self.assertEqual(response.as_dict(), {"RspCode": "00", "Message": "Confirm Success"})
        self.assertTrue(response.accepted)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_COMPLETED)
        self.assertIsNotNone(self.order.completed_at)
        self.assertEqual(self.order.vnp_transaction_no, "14012345")
        self.assertEqual(self.order.vnp_bank_code, "NCB")
        self.assertEqual(self.order.vnp_pay_date, "20240101120500")

        callback = PaymentCallback.objects.get()
        self.assertEqual(callback.source, PaymentCallback.SOURCE_IPN)
        self.assertEqual(callback.result_code, "00")
        self.assertEqual(callback.txn_ref, self.order.order_code)

    def test_failed_payment_is_acknowledged(self):
        response = process_ipn(self._params(response_code="24"))

        self.assertEqual(response.code, "00")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_FAILED)
        self.assertEqual(self.order.vnp_response_code, "24")

    def test_declined_transaction_status_marks_failed(self):
        process_ipn(self._params(response_code="00", transaction_status="02"))
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_FAILED)

    def test_invalid_signature(self):
        params = self._params()
        params["vnp_SecureHash"] = "0" * 128

        response = process_ipn(params)

        self.assertEqual(response.as_dict(), {"RspCode": "97", "Message": "Checksum failed"})
        self.assertFalse(response.accepted)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PENDING)
        self.assertIsNone(self.order.vnp_response_code)

    def test_tampered_amount_fails_checksum(self):
        params = self._params()
        params["vnp_Amount"] = "100"
        self.assertEqual(process_ipn(params).code, "97")

    def test_signed_with_other_secret(self):
        params = build_callback_params(self.order.order_code, 100000, secret="NOT_OUR_SECRET")
        self.assertEqual(process_ipn(params).code, "97")

    def test_order_not_found(self):
        params = build_callback_params("ORDERUNKNOWN", 100000)
        self.assertEqual(process_ipn(params).as_dict(), {"RspCode": "01", "Message": "Order not found"})

    def test_amount_mismatch(self):
        params = build_callback_params(self.order.order_code, 50000)

        self.assertEqual(process_ipn(params).as_dict(), {"RspCode": "04", "Message": "Amount invalid"})
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PENDING)

    def test_already_processed_order(self):
        self.order.status = Order.STATUS_COMPLETED
        self.order.save()

        self.assertEqual(process_ipn(self._params(response_code="24")).code, "02")

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_COMPLETED)

    def test_already_processed_order_with_invalid_signature(self):
        self.order.status = Order.STATUS_FAILED
        self.order.save()
        params = self._params()
        params["vnp_SecureHash"] = "f" * 128

        self.assertEqual(process_ipn(params).code, "02")

    def test_duplicate_notification(self):
        params = self._params()
        self.assertEqual(process_ipn(params).code, "00")
        self.assertEqual(process_ipn(params).code, "02")
        self.assertEqual(PaymentCallback.objects.count(), 2)

    def test_missing_parameters(self):
        params = self._params()
        params.pop("vnp_Amount")

        response = process_ipn(params)

        self.assertEqual(response.code, "99")
        self.assertEqual(response.message, "Invalid request")

    def test_empty_request(self):
        self.assertEqual(process_ipn({}).code, "99")

    @override_settings(VNPAY_HASH_SECRET="")
    def test_missing_secret(self):
        response = process_ipn(self._params())
        self.assertEqual(response.as_dict(), {"RspCode": "99", "Message": "Configuration error"})

    @override_settings(VNPAY_HASH_SECRET="")
    def test_explicit_secret(self):
        self.assertEqual(process_ipn(self._params(), hash_secret=TEST_SECRET).code, "00")

    def test_order_row_is_locked(self):
        with mock.patch.object(
            Order.objects, "select_for_update", wraps=Order.objects.select_for_update
        ) as select_for_update:
            response = process_ipn(self._params())

        self.assertEqual(response.code, "00")
        select_for_update.assert_called_once_with()

    def test_unexpected_error_maps_to_unknown_error(self):
        with mock.patch.object(Order.objects, "select_for_update", side_effect=RuntimeError("db down")):
            response = process_ipn(self._params())

        self.assertEqual(response.as_dict(), {"RspCode": "99", "Message": "Unknown error"})
        self.assertEqual(PaymentCallback.objects.get().result_code, "99")

    def test_callback_log_is_append_only(self):
        process_ipn(self._params())
        callback = PaymentCallback.objects.get()
        callback.result_code = "97"
        with self.assertRaises(ValueError):
            callback.save()


class PaymentCallbackAdminTest(TestCase):
    def test_callback_log_is_read_only_in_admin(self):
        superuser = get_user_model().objects.create_superuser(username="root", password="secret")
        request = RequestFactory().get("/admin/")
        request.user = superuser
        model_admin = admin.site._registry[PaymentCallback]

        self.assertFalse(model_admin.has_add_permission(request))
        self.assertFalse(model_admin.has_change_permission(request))
        self.assertFalse(model_admin.has_delete_permission(request))
