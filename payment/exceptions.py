class VNPayError(Exception):
    """Lỗi chung khi làm việc với cổng VNPay"""


class VNPayConfigError(VNPayError):
    """Thiếu cấu hình merchant (TMN code, hash secret, URL...)"""


class VNPayGatewayError(VNPayError):
    """
    Lỗi khi gọi merchant API của VNPay (querydr, refund).
    Lỗi tạm thời: bên gọi tự quyết định có thử lại hay không.
    """

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code
