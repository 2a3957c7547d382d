import hashlib
import hmac
import logging
import urllib.parse
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation

import requests
from dateutil.tz import gettz
from django.conf import settings

from .constants import (
    QUERY_RESPONSE_MESSAGES, REFUND_RESPONSE_MESSAGES, REFUND_FULL, REFUND_PARTIAL,
    SUPPORTED_LOCALES, UNKNOWN_RESPONSE_MESSAGE, get_transaction_status_message,
)
from .exceptions import VNPayConfigError, VNPayGatewayError

logger = logging.getLogger(__name__)

VNP_VERSION = '2.1.0'
VNP_DATE_FORMAT = '%Y%m%d%H%M%S'
VIETNAM_TZ = gettz('Asia/Ho_Chi_Minh')

SECURE_HASH_FIELD = 'vnp_SecureHash'
HASH_FIELDS = (SECURE_HASH_FIELD, 'vnp_SecureHashType')

# Giống encodeURIComponent: giữ nguyên A-Z a-z 0-9 - _ . ! ~ * ' ( )
_URI_COMPONENT_SAFE = "-_.!~*'()"


# ===== Canonicalization / chữ ký =====

def _quote(value):
    return urllib.parse.quote(str(value), safe=_URI_COMPONENT_SAFE)


def encode_params(params):
    """
    Chuỗi chuẩn hóa dùng để ký: key đã encode, sắp xếp theo alphabet,
    value encode như encodeURIComponent rồi đổi %20 thành '+'.

    Mọi nơi (tạo URL, return, IPN) đều dùng đúng một hàm này.
    """
    pairs = sorted(
        (_quote(key), _quote(value).replace('%20', '+'))
        for key, value in params.items()
    )
    return '&'.join(f'{key}={value}' for key, value in pairs)


def sign(data, secret):
    """HMAC-SHA512 (hex chữ thường) trên chuỗi UTF-8"""
    return hmac.new(
        secret.encode('utf-8'),
        data.encode('utf-8'),
        hashlib.sha512
    ).hexdigest()


def verify_signature(params, secret, secure_hash=None):
    """
    Tính lại chữ ký cho tập tham số và so sánh với chữ ký nhận được.

    Args:
        params: dict tham số (có thể chứa vnp_SecureHash, sẽ bị loại khi ký)
        secret: hash secret của merchant
        secure_hash: chữ ký cần kiểm tra; mặc định lấy từ params

    Returns:
        True nếu khớp. Không bao giờ raise.
    """
    if secure_hash is None:
        secure_hash = params.get(SECURE_HASH_FIELD)
    if not secure_hash or not secret:
        return False

    signing_params = {k: v for k, v in params.items() if k not in HASH_FIELDS}
    expected = sign(encode_params(signing_params), secret)
    received = str(secure_hash).strip().lower()

    return hmac.compare_digest(expected.encode('utf-8'), received.encode('utf-8'))


def extract_vnp_params(query_params):
    """Chỉ giữ các tham số vnp_* (QueryDict hoặc dict)"""
    if hasattr(query_params, 'dict'):
        query_params = query_params.dict()
    return {str(k): str(v) for k, v in query_params.items() if str(k).startswith('vnp_')}


# ===== Ngày giờ =====

def format_vnp_date(value=None, tzinfo=VIETNAM_TZ):
    """
    Định dạng YYYYMMDDHHmmss theo múi giờ truyền vào.
    Datetime naive được coi là đã ở múi giờ đó.
    """
    if value is None:
        value = datetime.now(tzinfo)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=tzinfo)
    else:
        value = value.astimezone(tzinfo)
    return value.strftime(VNP_DATE_FORMAT)


def parse_vnp_date(text, tzinfo=VIETNAM_TZ):
    return datetime.strptime(text, VNP_DATE_FORMAT).replace(tzinfo=tzinfo)


# ===== Cấu hình =====

@dataclass(frozen=True)
class VNPayConfig:
    tmn_code: str
    hash_secret: str
    payment_url: str = ''
    return_url: str = ''
    api_url: str = ''
    expire_minutes: int = 15
    api_timeout: int = 30

    @classmethod
    def from_settings(cls):
        tmn_code = (getattr(settings, 'VNPAY_TMN_CODE', '') or '').strip()
        hash_secret = (getattr(settings, 'VNPAY_HASH_SECRET', '') or '').strip()

        missing = [
            name for name, value in (
                ('VNPAY_TMN_CODE', tmn_code),
                ('VNPAY_HASH_SECRET', hash_secret),
            ) if not value
        ]
        if missing:
            raise VNPayConfigError(f"VNPay configuration is incomplete: missing {', '.join(missing)}")

        return cls(
            tmn_code=tmn_code,
            hash_secret=hash_secret,
            payment_url=getattr(settings, 'VNPAY_URL', ''),
            return_url=getattr(settings, 'VNPAY_RETURN_URL', ''),
            api_url=getattr(settings, 'VNPAY_API_URL', ''),
            expire_minutes=int(getattr(settings, 'VNPAY_EXPIRE_MINUTES', 15)),
            api_timeout=int(getattr(settings, 'VNPAY_API_TIMEOUT', 30)),
        )


# ===== Callback =====

@dataclass(frozen=True)
class CallbackEvent:
    """Một lần VNPay gọi về (return hoặc IPN). Không thay đổi sau khi tạo."""
    source: str
    txn_ref: str
    amount: str
    response_code: str
    transaction_status: str
    transaction_no: str
    bank_code: str
    pay_date: str
    secure_hash: str
    params: tuple

    REQUIRED_FIELDS = ('vnp_TxnRef', 'vnp_Amount', 'vnp_ResponseCode', SECURE_HASH_FIELD)

    @classmethod
    def from_params(cls, params, source):
        params = dict(params)
        return cls(
            source=source,
            txn_ref=params.get('vnp_TxnRef', ''),
            amount=params.get('vnp_Amount', ''),
            response_code=params.get('vnp_ResponseCode', ''),
            transaction_status=params.get('vnp_TransactionStatus', ''),
            transaction_no=params.get('vnp_TransactionNo', ''),
            bank_code=params.get('vnp_BankCode', ''),
            pay_date=params.get('vnp_PayDate', ''),
            secure_hash=params.get(SECURE_HASH_FIELD, ''),
            params=tuple(sorted(params.items())),
        )

    @property
    def all_params(self):
        return dict(self.params)

    @property
    def signed_params(self):
        return {k: v for k, v in self.params if k not in HASH_FIELDS}

    @property
    def missing_fields(self):
        values = self.all_params
        return [name for name in self.REQUIRED_FIELDS if not values.get(name)]

    @property
    def amount_vnd(self):
        try:
            return Decimal(self.amount) / 100
        except (InvalidOperation, TypeError):
            return None

    @property
    def is_paid(self):
        return VNPayService.is_success_response(self.response_code) and \
            self.transaction_status in ('', '00')


class VNPayService:
    """
    Service xử lý thanh toán VNPay
    Tài liệu: https://sandbox.vnpayment.vn/apis/docs/thanh-toan-pay/pay.html
    """

    def __init__(self, config=None):
        self.config = config or VNPayConfig.from_settings()

    def create_payment_url(self, order_code, amount, order_desc, ip_addr, locale='vn',
                           bank_code=None, create_date=None):
        """
        Tạo URL thanh toán VNPay

        Args:
            order_code: Mã đơn hàng (vnp_TxnRef)
            amount: Số tiền (VND)
            order_desc: Mô tả đơn hàng
            ip_addr: IP address của người dùng
            locale: Ngôn ngữ (vn hoặc en)
            bank_code: Mã ngân hàng (optional)
            create_date: Thời điểm tạo (mặc định: bây giờ)

        Returns:
            URL thanh toán VNPay
        """
        if not self.config.payment_url:
            raise VNPayConfigError("VNPay configuration is incomplete: missing VNPAY_URL")

        create_date = create_date or datetime.now(VIETNAM_TZ)
        expire_date = create_date + timedelta(minutes=self.config.expire_minutes)

        vnp_params = {
            'vnp_Version': VNP_VERSION,
            'vnp_Command': 'pay',
            'vnp_TmnCode': self.config.tmn_code,
            'vnp_Amount': str(int(Decimal(str(amount)) * 100)),  # VNPay yêu cầu số tiền nhân 100
            'vnp_CurrCode': 'VND',
            'vnp_TxnRef': str(order_code),
            'vnp_OrderInfo': str(order_desc),
            'vnp_OrderType': 'other',
            'vnp_Locale': locale if locale in SUPPORTED_LOCALES else 'vn',
            'vnp_ReturnUrl': self.config.return_url,
            'vnp_IpAddr': str(ip_addr),
            'vnp_CreateDate': format_vnp_date(create_date),
            'vnp_ExpireDate': format_vnp_date(expire_date),
        }
        if bank_code:
            vnp_params['vnp_BankCode'] = bank_code

        query_string = encode_params(vnp_params)
        secure_hash = self._create_secure_hash(query_string)

        logger.info(f"[VNPay] Created payment URL for order {order_code}, amount {vnp_params['vnp_Amount']}")

        return f"{self.config.payment_url}?{query_string}&{SECURE_HASH_FIELD}={secure_hash}"

    def validate_response(self, query_params, source='return'):
        """
        Xác thực response từ VNPay

        Args:
            query_params: Dictionary chứa các tham số từ VNPay callback

        Returns:
            tuple: (is_valid, CallbackEvent)
        """
        event = CallbackEvent.from_params(extract_vnp_params(query_params), source=source)
        is_valid = verify_signature(event.signed_params, self.config.hash_secret, event.secure_hash)

        if not is_valid:
            logger.warning(
                f"[VNPay] Invalid signature on {source} callback for order {event.txn_ref}, "
                f"received {event.secure_hash[:10]}..."
            )
        return is_valid, event

    def query_transaction(self, txn_ref, transaction_date, ip_addr, order_info=None):
        """
        Truy vấn trạng thái giao dịch (querydr)

        Args:
            txn_ref: Mã đơn hàng
            transaction_date: vnp_CreateDate của giao dịch gốc (YYYYMMDDHHmmss)
            ip_addr: IP của máy chủ gửi yêu cầu
        """
        request_id = uuid.uuid4().hex
        create_date = format_vnp_date()
        order_info = order_info or f"Truy van GD ma:{txn_ref}"

        hash_data = '|'.join([
            request_id, VNP_VERSION, 'querydr', self.config.tmn_code, str(txn_ref),
            str(transaction_date), create_date, str(ip_addr), order_info,
        ])
        payload = {
            'vnp_RequestId': request_id,
            'vnp_Version': VNP_VERSION,
            'vnp_Command': 'querydr',
            'vnp_TmnCode': self.config.tmn_code,
            'vnp_TxnRef': str(txn_ref),
            'vnp_OrderInfo': order_info,
            'vnp_TransactionDate': str(transaction_date),
            'vnp_CreateDate': create_date,
            'vnp_IpAddr': str(ip_addr),
            'vnp_SecureHash': self._create_secure_hash(hash_data),
        }

        response_data = self._post_api(payload)
        return self._summarize(response_data, QUERY_RESPONSE_MESSAGES)

    def refund_transaction(self, txn_ref, amount, transaction_date, create_by, ip_addr,
                           transaction_type=REFUND_FULL, transaction_no=None):
        """
        Gửi yêu cầu hoàn tiền

        Args:
            txn_ref: Mã đơn hàng
            amount: Số tiền hoàn (VND)
            transaction_date: vnp_CreateDate của giao dịch gốc
            create_by: Người thực hiện hoàn tiền
            ip_addr: IP của máy chủ gửi yêu cầu
            transaction_type: '02' toàn phần, '03' một phần
            transaction_no: Mã giao dịch tại VNPay (mặc định '0')
        """
        if transaction_type not in (REFUND_FULL, REFUND_PARTIAL):
            raise ValueError(f"Invalid refund transaction type: {transaction_type}")

        request_id = uuid.uuid4().hex
        create_date = format_vnp_date()
        vnp_amount = str(int(Decimal(str(amount)) * 100))
        transaction_no = str(transaction_no or '0')
        order_info = f"Hoan tien GD ma:{txn_ref}"

        hash_data = '|'.join([
            request_id, VNP_VERSION, 'refund', self.config.tmn_code, transaction_type,
            str(txn_ref), vnp_amount, transaction_no, str(transaction_date), str(create_by),
            create_date, str(ip_addr), order_info,
        ])
        payload = {
            'vnp_RequestId': request_id,
            'vnp_Version': VNP_VERSION,
            'vnp_Command': 'refund',
            'vnp_TmnCode': self.config.tmn_code,
            'vnp_TransactionType': transaction_type,
            'vnp_TxnRef': str(txn_ref),
            'vnp_Amount': vnp_amount,
            'vnp_TransactionNo': transaction_no,
            'vnp_TransactionDate': str(transaction_date),
            'vnp_CreateBy': str(create_by),
            'vnp_CreateDate': create_date,
            'vnp_IpAddr': str(ip_addr),
            'vnp_OrderInfo': order_info,
            'vnp_SecureHash': self._create_secure_hash(hash_data),
        }

        response_data = self._post_api(payload)
        return self._summarize(response_data, REFUND_RESPONSE_MESSAGES)

    def _post_api(self, payload):
        if not self.config.api_url:
            raise VNPayConfigError("VNPay configuration is incomplete: missing VNPAY_API_URL")

        command = payload.get('vnp_Command')
        logger.info(f"[VNPay] Sending {command} for order {payload.get('vnp_TxnRef')}")

        try:
            response = requests.post(
                self.config.api_url,
                json=payload,
                timeout=self.config.api_timeout
            )
        except requests.exceptions.RequestException as e:
            raise VNPayGatewayError(f"Failed to call VNPay API ({command}): {str(e)}")

        if not response.ok:
            raise VNPayGatewayError(
                f"VNPay API error ({response.status_code}): {response.text}",
                status_code=response.status_code
            )

        try:
            response_data = response.json()
        except ValueError:
            raise VNPayGatewayError(f"VNPay API returned invalid JSON ({command})")

        if not isinstance(response_data, dict):
            raise VNPayGatewayError(
                f"VNPay API returned unexpected payload ({command}): {type(response_data).__name__}"
            )
        return response_data

    @staticmethod
    def _summarize(response_data, messages):
        response_code = response_data.get('vnp_ResponseCode', '')
        vnp_amount = response_data.get('vnp_Amount')
        try:
            amount = int(vnp_amount) // 100 if vnp_amount else 0
        except ValueError:
            amount = 0

        return {
            'success': response_code == '00',
            'status_message': messages.get(response_code, UNKNOWN_RESPONSE_MESSAGE),
            'data': {
                'response_code': response_code,
                'message': response_data.get('vnp_Message'),
                'order_code': response_data.get('vnp_TxnRef'),
                'amount': amount,
                'order_info': response_data.get('vnp_OrderInfo'),
                'bank_code': response_data.get('vnp_BankCode'),
                'pay_date': response_data.get('vnp_PayDate'),
                'transaction_no': response_data.get('vnp_TransactionNo'),
                'transaction_type': response_data.get('vnp_TransactionType'),
                'transaction_status': response_data.get('vnp_TransactionStatus'),
                'transaction_status_message': get_transaction_status_message(
                    response_data.get('vnp_TransactionStatus')
                ),
                'promotion_code': response_data.get('vnp_PromotionCode'),
                'promotion_amount': response_data.get('vnp_PromotionAmount'),
            },
        }

    def _create_secure_hash(self, data):
        """
        Tạo secure hash theo chuẩn HMAC SHA512

        Args:
            data: Chuỗi dữ liệu cần hash

        Returns:
            Chuỗi hash
        """
        return sign(data, self.config.hash_secret)

    @staticmethod
    def is_success_response(response_code):
        """
        Kiểm tra mã response có thành công không

        Args:
            response_code: Mã response từ VNPay

        Returns:
            True nếu thành công, False nếu thất bại
        """
        return response_code == '00'
