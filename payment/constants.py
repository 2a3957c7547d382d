# Mã phản hồi khi khách hàng thanh toán (vnp_ResponseCode trên return/IPN)
PAYMENT_RESPONSE_MESSAGES = {
    '00': 'Giao dịch thành công',
    '07': 'Trừ tiền thành công. Giao dịch bị nghi ngờ (liên quan tới lừa đảo, giao dịch bất thường).',
    '09': 'Giao dịch không thành công do: Thẻ/Tài khoản của khách hàng chưa đăng ký dịch vụ InternetBanking tại ngân hàng.',
    '10': 'Giao dịch không thành công do: Khách hàng xác thực thông tin thẻ/tài khoản không đúng quá 3 lần',
    '11': 'Giao dịch không thành công do: Đã hết hạn chờ thanh toán. Xin quý khách vui lòng thực hiện lại giao dịch.',
    '12': 'Giao dịch không thành công do: Thẻ/Tài khoản của khách hàng bị khóa.',
    '13': 'Giao dịch không thành công do Quý khách nhập sai mật khẩu xác thực giao dịch (OTP). Xin quý khách vui lòng thực hiện lại giao dịch.',
    '24': 'Giao dịch không thành công do: Khách hàng hủy giao dịch',
    '51': 'Giao dịch không thành công do: Tài khoản của quý khách không đủ số dư để thực hiện giao dịch.',
    '65': 'Giao dịch không thành công do: Tài khoản của Quý khách đã vượt quá hạn mức giao dịch trong ngày.',
    '75': 'Ngân hàng thanh toán đang bảo trì.',
    '79': 'Giao dịch không thành công do: KH nhập sai mật khẩu thanh toán quá số lần quy định. Xin quý khách vui lòng thực hiện lại giao dịch',
    '97': 'Chữ ký không hợp lệ',
    '99': 'Các lỗi khác (lỗi còn lại, không có trong danh sách mã lỗi đã liệt kê)',
}

# Trạng thái giao dịch (vnp_TransactionStatus)
TRANSACTION_STATUS_MESSAGES = {
    '00': 'Giao dịch thanh toán được thực hiện thành công',
    '01': 'Giao dịch đã được ghi nhận và đang chờ được xử lý',
    '02': 'Giao dịch bị từ chối bởi ngân hàng phát hành thẻ',
    '04': 'Giao dịch bị từ chối do vi phạm quy định',
    '05': 'VNPAY đang xử lý giao dịch này (GD hoàn tiền)',
    '06': 'VNPAY đã gửi yêu cầu hoàn tiền sang Ngân hàng (GD hoàn tiền)',
    '07': 'Giao dịch bị nghi ngờ là giao dịch gian lận',
    '09': 'Giao dịch hoàn trả bị từ chối',
}

# Mã phản hồi của merchant API (querydr / refund)
QUERY_RESPONSE_MESSAGES = {
    '00': 'Query successful',
    '01': 'Order not found',
    '02': 'Invalid request',
    '03': 'Invalid merchant',
    '04': 'Invalid signature',
    '91': 'Transaction not found',
    '94': 'Duplicate request',
    '97': 'Invalid checksum',
    '99': 'System error',
}

REFUND_RESPONSE_MESSAGES = {
    '00': 'Refund successful',
    '01': 'Order not found',
    '02': 'Invalid request',
    '03': 'Invalid merchant',
    '04': 'Invalid signature',
    '13': 'Invalid amount',
    '91': 'Transaction not found',
    '93': 'Invalid refund amount',
    '94': 'Duplicate refund request',
    '95': 'Transaction already refunded',
    '97': 'Invalid checksum',
    '99': 'System error',
}

UNKNOWN_RESPONSE_MESSAGE = 'Lỗi không xác định'
UNKNOWN_STATUS_MESSAGE = 'Trạng thái không xác định'

REFUND_FULL = '02'
REFUND_PARTIAL = '03'
REFUND_TYPE_CHOICES = [
    (REFUND_FULL, 'Hoàn tiền toàn phần'),
    (REFUND_PARTIAL, 'Hoàn tiền một phần'),
]

SUPPORTED_LOCALES = ['vn', 'en']


def get_response_message(response_code):
    return PAYMENT_RESPONSE_MESSAGES.get(response_code, UNKNOWN_RESPONSE_MESSAGE)


def get_transaction_status_message(status):
    return TRANSACTION_STATUS_MESSAGES.get(status, UNKNOWN_STATUS_MESSAGE)
