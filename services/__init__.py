from services.auth_service import (
    ActionResult,
    AuthError,
    AuthResult,
    AuthService,
    ErrorCategory,
)

__all__ = ["ActionResult", "AuthError", "AuthResult", "AuthService", "ErrorCategory"]
