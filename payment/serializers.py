from rest_framework import serializers

from .constants import REFUND_TYPE_CHOICES, REFUND_FULL, SUPPORTED_LOCALES, get_transaction_status_message
from .models import Order
from .utils import is_allowed_redirect_url

VNP_DATE_VALIDATOR_MESSAGE = "Format: YYYYMMDDHHmmss"


class OrderSerializer(serializers.ModelSerializer):
    transaction_status_message = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_code', 'amount', 'order_info', 'status',
            'customer_name', 'customer_email', 'customer_phone',
            'vnp_create_date', 'vnp_transaction_no', 'vnp_response_code',
            'vnp_transaction_status', 'vnp_bank_code', 'vnp_pay_date',
            'payment_method', 'created_at', 'updated_at', 'completed_at',
            'transaction_status_message',
        ]
        read_only_fields = fields[:-1]

    def get_transaction_status_message(self, obj):
        if not obj.vnp_transaction_status:
            return None
        return get_transaction_status_message(obj.vnp_transaction_status)


class CreatePaymentSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=1, help_text="Số tiền (VND)")
    order_info = serializers.CharField(max_length=255, required=False, allow_blank=True)
    locale = serializers.ChoiceField(choices=SUPPORTED_LOCALES, required=False, default='vn')
    bank_code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    return_url = serializers.URLField(required=False, allow_blank=True,
                                      help_text="URL frontend để redirect sau khi thanh toán")
    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    customer_email = serializers.EmailField(required=False, allow_blank=True)
    customer_phone = serializers.CharField(max_length=20, required=False, allow_blank=True)

    def validate_return_url(self, value):
        if value and not is_allowed_redirect_url(value):
            raise serializers.ValidationError("Return URL host is not allowed")
        return value


class QueryTransactionSerializer(serializers.Serializer):
    order_code = serializers.CharField(max_length=50)
    transaction_date = serializers.RegexField(
        r'^\d{14}$', required=False,
        error_messages={'invalid': VNP_DATE_VALIDATOR_MESSAGE}
    )


class RefundSerializer(serializers.Serializer):
    order_code = serializers.CharField(max_length=50)
    transaction_type = serializers.ChoiceField(choices=REFUND_TYPE_CHOICES, default=REFUND_FULL)
    amount = serializers.IntegerField(min_value=1, required=False, help_text="Số tiền hoàn (VND)")
    transaction_date = serializers.RegexField(
        r'^\d{14}$', required=False,
        error_messages={'invalid': VNP_DATE_VALIDATOR_MESSAGE}
    )
    transaction_no = serializers.CharField(max_length=100, required=False, allow_blank=True)
