from traechan.services.auth_service import (
    AuthenticationResult,
    AuthRepositories,
    authenticate_with_external_provider,
    build_registration_input,
)
from traechan.services.user_service import get_user_by_id

__all__ = [
    "AuthRepositories",
    "AuthenticationResult",
    "authenticate_with_external_provider",
    "build_registration_input",
    "get_user_by_id",
]
