from django.test import RequestFactory, SimpleTestCase, override_settings

from payment.utils import (
    append_query, generate_order_code, get_client_ip, is_allowed_redirect_url, sanitize_order_info,
)


class GetClientIPTest(SimpleTestCase):
    def setUp(self):
        self.factory = RequestFactory()

    def test_forwarded_for_takes_first_address(self):
        request = self.factory.get("/", HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.2")
        self.assertEqual(get_client_ip(request), "203.0.113.7")

    def test_real_ip_header(self):
        request = self.factory.get("/", HTTP_X_REAL_IP=" 198.51.100.4 ")
        self.assertEqual(get_client_ip(request), "198.51.100.4")

    def test_remote_addr(self):
        request = self.factory.get("/", REMOTE_ADDR="192.0.2.10")
        self.assertEqual(get_client_ip(request), "192.0.2.10")

    def test_fallback(self):
        request = self.factory.get("/")
        request.META.pop("REMOTE_ADDR", None)
        self.assertEqual(get_client_ip(request), "127.0.0.1")


class SanitizeOrderInfoTest(SimpleTestCase):
    def test_strips_special_characters(self):
        self.assertEqual(sanitize_order_info("Thanh toán #123 - Giày"), "Thanh ton 123 Giy")

    def test_collapses_spaces(self):
        self.assertEqual(sanitize_order_info("  don   hang  1 "), "don hang 1")

    def test_empty(self):
        self.assertEqual(sanitize_order_info(None), "")
        self.assertEqual(sanitize_order_info("@@@"), "")

    def test_truncates(self):
        self.assertEqual(len(sanitize_order_info("a" * 300)), 255)


class MiscUtilsTest(SimpleTestCase):
    def test_order_code_format(self):
        code = generate_order_code()
        self.assertRegex(code, r"^ORDER[0-9A-F]{12}$")
        self.assertNotEqual(code, generate_order_code())

    def test_append_query(self):
        self.assertEqual(append_query("http://shop.vn/kq", {"a": "1 2"}), "http://shop.vn/kq?a=1+2")
        self.assertEqual(append_query("http://shop.vn/kq?x=1", {"a": "b"}), "http://shop.vn/kq?x=1&a=b")


@override_settings(VNPAY_ALLOWED_REDIRECT_HOSTS=["localhost:3000"], VNPAY_FRONTEND_RESULT_URL="https://shop.vn/ket-qua")
class AllowedRedirectTest(SimpleTestCase):
    def test_allowed_hosts(self):
        self.assertTrue(is_allowed_redirect_url("http://localhost:3000/payment/vnpay/result"))
        self.assertTrue(is_allowed_redirect_url("https://shop.vn/don-hang/1"))

    def test_rejected_urls(self):
        for url in ("https://evil.example/phish", "//evil.example/phish", "javascript:alert(1)",
                    "/relative/path", "", None, "https://localhost:3001/"):
            with self.subTest(url=url):
                self.assertFalse(is_allowed_redirect_url(url))
