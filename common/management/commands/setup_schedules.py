"""
Django Management Command: Setup Scheduled Tasks for Django-Q

Usage: python manage.py setup_schedules
"""
from django.core.management.base import BaseCommand
from django_q.models import Schedule

RECONCILE_SCHEDULE_NAME = 'reconcile_vnpay_orders'
RECONCILE_TASK = 'common.tasks.reconcile_pending_orders'


class Command(BaseCommand):
    help = 'Setup scheduled tasks for VNPay order reconciliation'

    def handle(self, *args, **options):
        # Xóa schedule cũ nếu có
        Schedule.objects.filter(name=RECONCILE_SCHEDULE_NAME).delete()

        schedule = Schedule.objects.create(
            name=RECONCILE_SCHEDULE_NAME,
            func=RECONCILE_TASK,
            schedule_type=Schedule.MINUTES,
            minutes=10,
            repeats=-1,  # Chạy vô hạn
        )

        self.stdout.write(self.style.SUCCESS(f'Created schedule: {RECONCILE_SCHEDULE_NAME}'))
        self.stdout.write(f'   - Function: {RECONCILE_TASK}')
        self.stdout.write('   - Schedule: every 10 minutes')
        self.stdout.write(f'   - Next run: {schedule.next_run}')
        self.stdout.write('Đảm bảo Django-Q cluster đang chạy: python manage.py qcluster')
