from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("order_code", models.CharField(help_text="Mã đơn hàng duy nhất (vnp_TxnRef)", max_length=50, unique=True)),
                ("amount", models.DecimalField(decimal_places=0, help_text="Số tiền thanh toán (VND)", max_digits=14)),
                ("order_info", models.CharField(blank=True, default="", max_length=255)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("completed", "Completed"), ("failed", "Failed"), ("cancelled", "Cancelled"), ("refunded", "Refunded")], default="pending", max_length=20)),
                ("customer_name", models.CharField(blank=True, default="", max_length=255)),
                ("customer_email", models.EmailField(blank=True, default="", max_length=254)),
                ("customer_phone", models.CharField(blank=True, default="", max_length=20)),
                ("vnp_create_date", models.CharField(blank=True, help_text="vnp_CreateDate lúc tạo URL thanh toán", max_length=14, null=True)),
                ("vnp_transaction_no", models.CharField(blank=True, help_text="Mã giao dịch tại VNPay", max_length=100, null=True)),
                ("vnp_response_code", models.CharField(blank=True, help_text="Mã phản hồi từ VNPay", max_length=10, null=True)),
                ("vnp_transaction_status", models.CharField(blank=True, max_length=10, null=True)),
                ("vnp_bank_code", models.CharField(blank=True, help_text="Mã ngân hàng", max_length=20, null=True)),
                ("vnp_pay_date", models.CharField(blank=True, help_text="Thời gian thanh toán", max_length=14, null=True)),
                ("payment_method", models.CharField(default="vnpay", help_text="Phương thức thanh toán", max_length=50)),
                ("metadata", models.JSONField(blank=True, help_text="Thông tin bổ sung", null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("completed_at", models.DateTimeField(blank=True, help_text="Thời gian hoàn thành thanh toán", null=True)),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PaymentCallback",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("source", models.CharField(choices=[("return", "Return URL"), ("ipn", "IPN")], max_length=10)),
                ("txn_ref", models.CharField(blank=True, db_index=True, default="", max_length=100)),
                ("transaction_no", models.CharField(blank=True, default="", max_length=100)),
                ("response_code", models.CharField(blank=True, default="", max_length=10)),
                ("transaction_status", models.CharField(blank=True, default="", max_length=10)),
                ("amount", models.CharField(blank=True, default="", max_length=20)),
                ("secure_hash", models.CharField(blank=True, default="", max_length=256)),
                ("params", models.JSONField(default=dict)),
                ("result_code", models.CharField(help_text="Mã trả về cho VNPay / frontend", max_length=10)),
                ("received_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "payment_callbacks",
                "ordering": ["-received_at"],
            },
        ),
    ]
