import logging
from datetime import datetime

from django.conf import settings
from django.http import JsonResponse
from django.shortcuts import redirect
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from common.authentication import CustomJWTAuthentication
from .constants import REFUND_FULL, get_response_message
from .exceptions import VNPayConfigError, VNPayGatewayError
from .ipn_service import process_ipn, record_callback
from .models import Order, PaymentCallback
from .serializers import (
    OrderSerializer, CreatePaymentSerializer, QueryTransactionSerializer, RefundSerializer
)
from .utils import (
    get_client_ip, generate_order_code, sanitize_order_info, append_query, is_allowed_redirect_url
)
from .vnpay_service import VIETNAM_TZ, VNPayService, format_vnp_date

logger = logging.getLogger(__name__)

CONFIG_ERROR_RESPONSE = {"error": "Payment gateway configuration error"}


class CreatePaymentView(APIView):
    """Tạo đơn hàng và URL thanh toán VNPay"""
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        """
        Body: {
            "amount": int (VND),
            "order_info": string (optional),
            "locale": "vn" | "en" (optional),
            "bank_code": string (optional),
            "return_url": string (optional) - URL frontend để redirect sau khi thanh toán
        }
        """
        serializer = CreatePaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        try:
            vnpay_service = VNPayService()
        except VNPayConfigError as e:
            logger.error(f"[VNPay] {str(e)}")
            return Response(CONFIG_ERROR_RESPONSE, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        order_code = generate_order_code()
        order_desc = sanitize_order_info(data.get('order_info')) or f"Thanh toan don hang {order_code}"
        created_at = datetime.now(VIETNAM_TZ)

        order = Order.objects.create(
            order_code=order_code,
            amount=data['amount'],
            order_info=order_desc,
            customer_name=data.get('customer_name', ''),
            customer_email=data.get('customer_email', ''),
            customer_phone=data.get('customer_phone', ''),
            vnp_create_date=format_vnp_date(created_at),
            metadata={
                'frontend_return_url': data.get('return_url', ''),
            }
        )

        try:
            payment_url = vnpay_service.create_payment_url(
                order_code=order_code,
                amount=order.amount,
                order_desc=order_desc,
                ip_addr=get_client_ip(request),
                locale=data.get('locale', 'vn'),
                bank_code=data.get('bank_code') or None,
                create_date=created_at,
            )
        except VNPayConfigError as e:
            logger.error(f"[VNPay] {str(e)}")
            order.status = Order.STATUS_CANCELLED
            order.save(update_fields=['status', 'updated_at'])
            return Response(CONFIG_ERROR_RESPONSE, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({
            "order_id": order.id,
            "order_code": order.order_code,
            "amount": order.amount,
            "payment_url": payment_url,
        }, status=status.HTTP_201_CREATED)


class VNPayReturnView(APIView):
    """Xử lý redirect từ VNPay sau khi thanh toán"""
    authentication_classes = []  # Callback từ trình duyệt khách hàng
    permission_classes = []

    def get(self, request):
        """
        VNPay sẽ redirect về URL này với các tham số:
        - vnp_TxnRef: Mã đơn hàng
        - vnp_ResponseCode: Mã phản hồi (00 = thành công)
        - vnp_TransactionNo: Mã giao dịch tại VNPay
        - vnp_SecureHash: Chữ ký để xác thực
        - ...

        Trạng thái đơn hàng chỉ được cập nhật qua IPN; ở đây chỉ xác thực
        chữ ký và chuyển khách hàng về trang kết quả.
        """
        query_params = request.query_params.dict()
        txn_ref = query_params.get('vnp_TxnRef', '')

        try:
            vnpay_service = VNPayService()
            is_valid, event = vnpay_service.validate_response(query_params, source=PaymentCallback.SOURCE_RETURN)
        except VNPayConfigError as e:
            logger.error(f"[VNPay Return] {str(e)}")
            return self._respond(None, txn_ref, '99', status.HTTP_500_INTERNAL_SERVER_ERROR)

        result_code = event.response_code if is_valid else '97'
        record_callback(event, result_code)

        order = Order.objects.filter(order_code=event.txn_ref).first() if event.txn_ref else None
        logger.info(
            f"[VNPay Return] order={event.txn_ref} response_code={event.response_code} "
            f"valid={is_valid} amount={event.amount_vnd}"
        )

        if not is_valid:
            return self._respond(order, event.txn_ref, result_code, status.HTTP_400_BAD_REQUEST)
        if order is None:
            return self._respond(None, event.txn_ref, result_code, status.HTTP_404_NOT_FOUND)
        return self._respond(order, event.txn_ref, result_code, status.HTTP_200_OK)

    def _respond(self, order, txn_ref, result_code, http_status):
        order_status = order.status if order else 'unknown'
        message = get_response_message(result_code)

        frontend_return_url = order.frontend_return_url if order else ''
        if frontend_return_url and not is_allowed_redirect_url(frontend_return_url):
            logger.warning(f"[VNPay Return] Ignoring disallowed return URL for order {txn_ref}: {frontend_return_url}")
            frontend_return_url = ''
        frontend_return_url = frontend_return_url or getattr(settings, 'VNPAY_FRONTEND_RESULT_URL', '')
        if frontend_return_url:
            return redirect(append_query(frontend_return_url, {
                'order_code': txn_ref,
                'vnp_ResponseCode': result_code,
                'status': order_status,
                'message': message,
            }))

        # Nếu không có frontend URL, trả về JSON
        return Response({
            "order_code": txn_ref,
            "status": order_status,
            "response_code": result_code,
            "message": message,
        }, status=http_status)


class VNPayIPNView(APIView):
    """
    IPN từ máy chủ VNPay.
    Luôn trả về HTTP 200; kết quả nằm trong RspCode.
    """
    authentication_classes = []
    permission_classes = []

    def get(self, request):
        ipn_response = process_ipn(request.query_params)
        return JsonResponse(ipn_response.as_dict(), status=200)


class CheckPaymentStatusView(APIView):
    """Kiểm tra trạng thái thanh toán"""
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request, order_code):
        """
        Kiểm tra trạng thái đơn hàng
        URL: /api/payment/status/<order_code>/
        """
        try:
            order = Order.objects.get(order_code=order_code)
        except Order.DoesNotExist:
            return Response(
                {"error": "Order not found"},
                status=status.HTTP_404_NOT_FOUND
            )

        serializer = OrderSerializer(order)
        return Response(serializer.data, status=status.HTTP_200_OK)


class QueryTransactionView(APIView):
    """Truy vấn trạng thái giao dịch tại VNPay (querydr)"""
    authentication_classes = [CustomJWTAuthentication]
    permission_classes = [IsAdminUser]

    def post(self, request):
        serializer = QueryTransactionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        order = Order.objects.filter(order_code=data['order_code']).first()
        transaction_date = data.get('transaction_date') or (order.vnp_create_date if order else None)
        if not transaction_date:
            return Response(
                {"error": "Transaction date is required (format: YYYYMMDDHHmmss)"},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            result = VNPayService().query_transaction(
                txn_ref=data['order_code'],
                transaction_date=transaction_date,
                ip_addr=get_client_ip(request),
            )
        except VNPayConfigError as e:
            logger.error(f"[VNPay Query] {str(e)}")
            return Response(CONFIG_ERROR_RESPONSE, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        except VNPayGatewayError as e:
            logger.warning(f"[VNPay Query] {str(e)}")
            return Response(
                {"error": "Failed to query VNPay API", "message": str(e)},
                status=status.HTTP_502_BAD_GATEWAY
            )

        return Response(result, status=status.HTTP_200_OK)


class RefundView(APIView):
    """Hoàn tiền giao dịch VNPay"""
    authentication_classes = [CustomJWTAuthentication]
    permission_classes = [IsAdminUser]

    def post(self, request):
        serializer = RefundSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        try:
            order = Order.objects.get(order_code=data['order_code'])
        except Order.DoesNotExist:
            return Response({"error": "Order not found"}, status=status.HTTP_404_NOT_FOUND)

        if order.status != Order.STATUS_COMPLETED:
            return Response(
                {"error": f"Only completed orders can be refunded (current status: {order.status})"},
                status=status.HTTP_400_BAD_REQUEST
            )

        amount = data.get('amount') or int(order.amount)
        if amount > order.amount:
            return Response(
                {"error": "Refund amount exceeds order amount"},
                status=status.HTTP_400_BAD_REQUEST
            )
        if data['transaction_type'] == REFUND_FULL and amount != order.amount:
            return Response(
                {"error": "Full refund must cover the whole order amount (use transaction_type 03 for partial refunds)"},
                status=status.HTTP_400_BAD_REQUEST
            )

        transaction_date = data.get('transaction_date') or order.vnp_create_date
        if not transaction_date:
            return Response(
                {"error": "Transaction date is required (format: YYYYMMDDHHmmss)"},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            result = VNPayService().refund_transaction(
                txn_ref=order.order_code,
                amount=amount,
                transaction_date=transaction_date,
                create_by=request.user.get_username(),
                ip_addr=get_client_ip(request),
                transaction_type=data['transaction_type'],
                transaction_no=data.get('transaction_no') or order.vnp_transaction_no,
            )
        except VNPayConfigError as e:
            logger.error(f"[VNPay Refund] {str(e)}")
            return Response(CONFIG_ERROR_RESPONSE, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        except VNPayGatewayError as e:
            logger.warning(f"[VNPay Refund] {str(e)}")
            return Response(
                {"error": "Failed to send refund request to VNPay API", "message": str(e)},
                status=status.HTTP_502_BAD_GATEWAY
            )

        if result['success']:
            logger.info(f"[VNPay Refund] Refund successful for order {order.order_code}, amount {amount}")
            if data['transaction_type'] == REFUND_FULL:
                order.status = Order.STATUS_REFUNDED
                order.save(update_fields=['status', 'updated_at'])
        else:
            logger.warning(f"[VNPay Refund] Refund failed for order {order.order_code}: {result['status_message']}")

        return Response(result, status=status.HTTP_200_OK)
