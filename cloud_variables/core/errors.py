"""
Error taxonomy shared by every layer.

Services raise these, never HTTPException. The app registers one handler that renders
{"error": <code>, "detail": <message>} with the class's status code, so callers can branch on
the stable code (e.g. "quota_exceeded" to show an upgrade prompt).
Messages are caller-visible: never put storage paths, hashes, secrets or tokens in them.
"""
from fastapi import status


class AppError(Exception):
    code: str = "app_error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = ""):
        self.message = message or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class NotFoundError(AppError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class BlobNotFoundError(NotFoundError):
    """No blob at the requested storage path."""


class ConflictError(AppError):
    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class ValidationError(AppError):
    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class QuotaExceededError(AppError):
    code = "quota_exceeded"
    status_code = status.HTTP_402_PAYMENT_REQUIRED


class RateLimitExceededError(QuotaExceededError):
    code = "rate_limit_exceeded"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class AuthenticationError(AppError):
    code = "authentication_error"
    status_code = status.HTTP_401_UNAUTHORIZED


class TokenInvalidError(AuthenticationError):
    code = "token_invalid"


class TokenExpiredError(AuthenticationError):
    code = "token_expired"


class TokenSignatureError(AuthenticationError):
    code = "token_signature_mismatch"


class AuthorizationError(AppError):
    code = "authorization_error"
    status_code = status.HTTP_403_FORBIDDEN


class UnavailableError(AppError):
    code = "unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class CredentialConfigurationError(AppError):
    code = "credential_configuration_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
