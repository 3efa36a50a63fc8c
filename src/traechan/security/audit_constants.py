from __future__ import annotations

from typing import Final

# String values used in security-audit logging.

# Auth events
AUTH_EVENT_GOOGLE_CALLBACK: Final[str] = "google_callback"
AUTH_EVENT_TOKEN: Final[str] = "token"

# Auth denied reasons
AUTH_REASON_INVALID_REQUEST: Final[str] = "invalid_request"
AUTH_REASON_OAUTH_ERROR: Final[str] = "oauth_error"
AUTH_REASON_MISSING_TOKEN: Final[str] = "missing_token"
AUTH_REASON_INVALID_TOKEN: Final[str] = "invalid_token"
AUTH_REASON_USER_NOT_FOUND: Final[str] = "user_not_found"
