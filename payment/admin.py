from django.contrib import admin
from .models import Order, PaymentCallback


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'order_code', 'customer_name', 'amount', 'status', 'payment_method', 'created_at']
    list_filter = ['status', 'payment_method', 'created_at']
    search_fields = ['order_code', 'customer_name', 'customer_email', 'vnp_transaction_no']
    readonly_fields = ['order_code', 'vnp_create_date', 'vnp_transaction_no', 'vnp_response_code',
                       'vnp_transaction_status', 'vnp_bank_code', 'vnp_pay_date',
                       'created_at', 'updated_at', 'completed_at']


@admin.register(PaymentCallback)
class PaymentCallbackAdmin(admin.ModelAdmin):
    list_display = ['id', 'source', 'txn_ref', 'response_code', 'result_code', 'received_at']
    list_filter = ['source', 'result_code', 'received_at']
    search_fields = ['txn_ref', 'transaction_no']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
