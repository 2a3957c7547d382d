from django.contrib.auth import get_user_model
from rest_framework.authentication import BaseAuthentication
from rest_framework import exceptions
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken


class CustomJWTAuthentication(BaseAuthentication):
    """Bearer access token (simplejwt) -> user đang hoạt động"""
    keyword = "Bearer"

    def authenticate(self, request):
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith(f"{self.keyword} "):
            return None

        token_str = auth_header.split(" ", 1)[1].strip()
        try:
            token = AccessToken(token_str)
        except TokenError:
            raise exceptions.AuthenticationFailed("Invalid token")

        user_id = token.get("user_id")
        if not user_id:
            raise exceptions.AuthenticationFailed("User not found")

        User = get_user_model()
        try:
            user = User.objects.get(pk=user_id, is_active=True)
        except User.DoesNotExist:
            raise exceptions.AuthenticationFailed("User not found")

        return (user, token)

    def authenticate_header(self, request):
        return self.keyword
