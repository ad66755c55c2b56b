from app.services.auth_dependencies import BusinessContext, require_user_auth

__all__ = [
    "BusinessContext",
    "require_user_auth",
]
