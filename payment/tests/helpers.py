from payment.vnpay_service import VNPayConfig, encode_params, sign

TEST_TMN_CODE = "TESTTMN1"
TEST_SECRET = "TESTSECRETKEY0123456789ABCDEFGHIJ"
TEST_PAYMENT_URL = "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html"
TEST_API_URL = "https://sandbox.vnpayment.vn/merchant_webapi/api/transaction"
TEST_RETURN_URL = "http://testserver/api/payment/vnpay/return/"

VNPAY_TEST_SETTINGS = {
    "VNPAY_TMN_CODE": TEST_TMN_CODE,
    "VNPAY_HASH_SECRET": TEST_SECRET,
    "VNPAY_URL": TEST_PAYMENT_URL,
    "VNPAY_RETURN_URL": TEST_RETURN_URL,
    "VNPAY_API_URL": TEST_API_URL,
    "VNPAY_FRONTEND_RESULT_URL": "",
    "VNPAY_ALLOWED_REDIRECT_HOSTS": ["localhost:3000"],
}


def make_config(**overrides):
    values = {
        "tmn_code": TEST_TMN_CODE,
        "hash_secret": TEST_SECRET,
        "payment_url": TEST_PAYMENT_URL,
        "return_url": TEST_RETURN_URL,
        "api_url": TEST_API_URL,
    }
    values.update(overrides)
    return VNPayConfig(**values)


def build_callback_params(order_code, amount, response_code="00", transaction_status=None,
                          secret=TEST_SECRET, **extra):
    """Tham số giống VNPay gửi về return URL / IPN, đã ký"""
    params = {
        "vnp_Amount": str(int(amount) * 100),
        "vnp_BankCode": "NCB",
        "vnp_BankTranNo": "VNP14012345",
        "vnp_CardType": "ATM",
        "vnp_OrderInfo": f"Thanh toan don hang {order_code}",
        "vnp_PayDate": "20240101120500",
        "vnp_ResponseCode": response_code,
        "vnp_TmnCode": TEST_TMN_CODE,
        "vnp_TransactionNo": "14012345",
        "vnp_TransactionStatus": response_code if transaction_status is None else transaction_status,
        "vnp_TxnRef": order_code,
    }
    params.update(extra)
    params["vnp_SecureHash"] = sign(encode_params(params), secret)
    return params


def api_response(**fields):
    data = {
        "vnp_ResponseId": "a1b2c3",
        "vnp_Command": "querydr",
        "vnp_ResponseCode": "00",
        "vnp_Message": "Success",
        "vnp_TmnCode": TEST_TMN_CODE,
        "vnp_TxnRef": "ORDER1",
        "vnp_Amount": "10000000",
        "vnp_OrderInfo": "Truy van GD ma:ORDER1",
        "vnp_BankCode": "NCB",
        "vnp_PayDate": "20240101120500",
        "vnp_TransactionNo": "14012345",
        "vnp_TransactionType": "01",
        "vnp_TransactionStatus": "00",
    }
    data.update(fields)
    return data
