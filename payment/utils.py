import re
import urllib.parse
import uuid

from django.conf import settings
from django.utils.http import url_has_allowed_host_and_scheme


def get_client_ip(request):
    """Lấy IP của client (ưu tiên header từ reverse proxy)"""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    x_real_ip = request.META.get('HTTP_X_REAL_IP')
    if x_real_ip:
        return x_real_ip.strip()
    return request.META.get('REMOTE_ADDR') or '127.0.0.1'


def generate_order_code():
    return f"ORDER{uuid.uuid4().hex[:12].upper()}"


def sanitize_order_info(text, max_length=255):
    """
    VNPay chỉ chấp nhận: a-z, A-Z, 0-9, space trong vnp_OrderInfo
    (tiếng Việt có dấu sẽ bị loại bỏ ký tự đặc biệt)
    """
    safe_text = re.sub(r'[^a-zA-Z0-9 ]', '', text or '')
    safe_text = re.sub(r' +', ' ', safe_text).strip()
    return safe_text[:max_length]


def get_allowed_redirect_hosts():
    allowed_hosts = set(getattr(settings, 'VNPAY_ALLOWED_REDIRECT_HOSTS', []))
    default_url = getattr(settings, 'VNPAY_FRONTEND_RESULT_URL', '')
    if default_url:
        allowed_hosts.add(urllib.parse.urlparse(default_url).netloc)
    return allowed_hosts


def is_allowed_redirect_url(url):
    """URL frontend tuyệt đối, http(s), host nằm trong danh sách cho phép"""
    if not url or not urllib.parse.urlparse(url).netloc:
        return False
    return url_has_allowed_host_and_scheme(url, allowed_hosts=get_allowed_redirect_hosts())


def append_query(url, params):
    separator = '&' if '?' in url else '?'
    return f"{url}{separator}{urllib.parse.urlencode(params)}"
