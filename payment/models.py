from django.db import models
from django.utils import timezone


class Order(models.Model):
    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"
    STATUS_CANCELLED = "cancelled"
    STATUS_REFUNDED = "refunded"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_REFUNDED, "Refunded"),
    ]

    id = models.BigAutoField(primary_key=True)
    order_code = models.CharField(max_length=50, unique=True, help_text="Mã đơn hàng duy nhất (vnp_TxnRef)")
    amount = models.DecimalField(max_digits=14, decimal_places=0, help_text="Số tiền thanh toán (VND)")
    order_info = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)

    # Customer info
    customer_name = models.CharField(max_length=255, blank=True, default="")
    customer_email = models.EmailField(blank=True, default="")
    customer_phone = models.CharField(max_length=20, blank=True, default="")

    # VNPay transaction info
    vnp_create_date = models.CharField(max_length=14, null=True, blank=True, help_text="vnp_CreateDate lúc tạo URL thanh toán")
    vnp_transaction_no = models.CharField(max_length=100, null=True, blank=True, help_text="Mã giao dịch tại VNPay")
    vnp_response_code = models.CharField(max_length=10, null=True, blank=True, help_text="Mã phản hồi từ VNPay")
    vnp_transaction_status = models.CharField(max_length=10, null=True, blank=True)
    vnp_bank_code = models.CharField(max_length=20, null=True, blank=True, help_text="Mã ngân hàng")
    vnp_pay_date = models.CharField(max_length=14, null=True, blank=True, help_text="Thời gian thanh toán")

    # Additional info
    payment_method = models.CharField(max_length=50, default="vnpay", help_text="Phương thức thanh toán")
    metadata = models.JSONField(null=True, blank=True, help_text="Thông tin bổ sung")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True, help_text="Thời gian hoàn thành thanh toán")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Order {self.order_code} - {self.amount} VND - {self.status}"

    @property
    def is_pending(self):
        return self.status == self.STATUS_PENDING

    @property
    def vnp_amount(self):
        """Số tiền theo định dạng VNPay (VND * 100)"""
        return int(self.amount * 100)

    @property
    def frontend_return_url(self):
        return (self.metadata or {}).get("frontend_return_url", "")

    def matches_vnp_amount(self, vnp_amount):
        try:
            return int(vnp_amount) == self.vnp_amount
        except (TypeError, ValueError):
            return False

    def apply_vnpay_result(self, event):
        """Ghi kết quả thanh toán từ callback đã xác thực"""
        self.vnp_transaction_no = event.transaction_no
        self.vnp_response_code = event.response_code
        self.vnp_transaction_status = event.transaction_status or None
        self.vnp_bank_code = event.bank_code
        self.vnp_pay_date = event.pay_date

        if event.is_paid:
            self.status = self.STATUS_COMPLETED
            self.completed_at = timezone.now()
        else:
            self.status = self.STATUS_FAILED
        self.save()


class PaymentCallback(models.Model):
    """Nhật ký các lần VNPay gọi về. Chỉ thêm mới, không sửa."""

    SOURCE_RETURN = "return"
    SOURCE_IPN = "ipn"
    SOURCE_CHOICES = [
        (SOURCE_RETURN, "Return URL"),
        (SOURCE_IPN, "IPN"),
    ]

    id = models.BigAutoField(primary_key=True)
    source = models.CharField(max_length=10, choices=SOURCE_CHOICES)
    txn_ref = models.CharField(max_length=100, blank=True, default="", db_index=True)
    transaction_no = models.CharField(max_length=100, blank=True, default="")
    response_code = models.CharField(max_length=10, blank=True, default="")
    transaction_status = models.CharField(max_length=10, blank=True, default="")
    amount = models.CharField(max_length=20, blank=True, default="")
    secure_hash = models.CharField(max_length=256, blank=True, default="")
    params = models.JSONField(default=dict)
    result_code = models.CharField(max_length=10, help_text="Mã trả về cho VNPay / frontend")
    received_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "payment_callbacks"
        ordering = ["-received_at"]

    def __str__(self):
        return f"{self.source} {self.txn_ref} -> {self.result_code}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError("Payment callbacks are append-only")
        super().save(*args, **kwargs)

    @classmethod
    def record(cls, event, result_code):
        return cls.objects.create(
            source=event.source,
            txn_ref=event.txn_ref[:100],
            transaction_no=event.transaction_no[:100],
            response_code=event.response_code[:10],
            transaction_status=event.transaction_status[:10],
            amount=event.amount[:20],
            secure_hash=event.secure_hash[:256],
            params=event.all_params,
            result_code=result_code,
        )
