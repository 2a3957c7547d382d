from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import RequestFactory, TestCase
from django_q.models import Schedule
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.request import Request
from rest_framework_simplejwt.tokens import AccessToken

from common import tasks
from common.authentication import CustomJWTAuthentication


class ScheduledTaskTest(TestCase):
    @mock.patch("common.tasks.call_command")
    def test_reconcile_task_runs_command(self, mock_call):
        self.assertEqual(tasks.reconcile_pending_orders(), "Reconciliation completed")
        mock_call.assert_called_once_with("reconcile_vnpay_orders")

    @mock.patch("common.tasks.call_command", side_effect=RuntimeError("boom"))
    def test_reconcile_task_reraises(self, mock_call):
        with self.assertRaises(RuntimeError):
            tasks.reconcile_pending_orders()

    def test_setup_schedules_is_idempotent(self):
        call_command("setup_schedules", stdout=StringIO())
        call_command("setup_schedules", stdout=StringIO())

        schedule = Schedule.objects.get(name="reconcile_vnpay_orders")
        self.assertEqual(schedule.func, "common.tasks.reconcile_pending_orders")
        self.assertEqual(schedule.schedule_type, Schedule.MINUTES)
        self.assertEqual(schedule.minutes, 10)


class CustomJWTAuthenticationTest(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.auth = CustomJWTAuthentication()
        self.user = get_user_model().objects.create_user(username="admin", password="secret", is_staff=True)

    def _request(self, header=None):
        extra = {"HTTP_AUTHORIZATION": header} if header else {}
        return Request(self.factory.get("/", **extra))

    def test_without_header(self):
        self.assertIsNone(self.auth.authenticate(self._request()))

    def test_valid_token(self):
        token = AccessToken.for_user(self.user)
        user, _ = self.auth.authenticate(self._request(f"Bearer {token}"))
        self.assertEqual(user, self.user)

    def test_inactive_user(self):
        token = AccessToken.for_user(self.user)
        self.user.is_active = False
        self.user.save()
        with self.assertRaises(AuthenticationFailed):
            self.auth.authenticate(self._request(f"Bearer {token}"))

    def test_garbage_token(self):
        with self.assertRaises(AuthenticationFailed):
            self.auth.authenticate(self._request("Bearer abc.def.ghi"))
