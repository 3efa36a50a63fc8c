from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

import httpx
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.httpx_client import AsyncOAuth2Client

from traechan.domain import GOOGLE_PROVIDER, ExternalIdentity
from traechan.errors import IdentityProviderError
from traechan.logging_config import log_with_fields
from traechan.settings import Settings, get_settings

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
DEFAULT_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GoogleConfig:
    client_id: str
    client_secret: str
    callback_url: str
    timeout_seconds: float = 10.0


def get_google_config(settings: Settings | None = None) -> GoogleConfig | None:
    selected = settings if settings is not None else get_settings()
    if selected.google_client_id is None or selected.google_client_secret is None:
        return None

    return GoogleConfig(
        client_id=selected.google_client_id,
        client_secret=selected.google_client_secret.get_secret_value(),
        callback_url=selected.google_callback_url,
        timeout_seconds=selected.google_timeout_seconds,
    )


def google_enabled(settings: Settings | None = None) -> bool:
    return get_google_config(settings) is not None


def identity_from_userinfo(userinfo: Mapping[str, object]) -> ExternalIdentity:
    external_id = userinfo.get("id")
    if external_id is None or not str(external_id).strip():
        raise IdentityProviderError("Google userinfo response is missing the account id")

    def _optional(key: str) -> str | None:
        value = userinfo.get(key)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    return ExternalIdentity(
        provider=GOOGLE_PROVIDER,
        external_id=str(external_id),
        email=_optional("email"),
        display_name=_optional("name"),
        avatar_url=_optional("picture"),
    )


class GoogleOAuthClient:
    """Authorization-code client for Google sign-in.

    Each exchange runs on its own ``AsyncOAuth2Client`` so the access token of
    one caller never leaks into a concurrent exchange.
    """

    def __init__(
        self,
        config: GoogleConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def _client(self, scopes: Sequence[str] = DEFAULT_SCOPES) -> AsyncOAuth2Client:
        kwargs: dict[str, object] = {"timeout": self._config.timeout_seconds}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return AsyncOAuth2Client(
            client_id=self._config.client_id,
            client_secret=self._config.client_secret,
            scope=" ".join(scopes),
            redirect_uri=self._config.callback_url,
            **kwargs,
        )

    async def build_authorization_url(
        self,
        *,
        state: str | None = None,
        prompt: str = "consent",
        access_type: str = "offline",
        scopes: Sequence[str] = DEFAULT_SCOPES,
    ) -> str:
        async with self._client(scopes) as client:
            url, _ = client.create_authorization_url(
                GOOGLE_AUTHORIZE_URL,
                state=state,
                access_type=access_type,
                prompt=prompt,
            )
        return url

    async def exchange_code_for_identity(self, code: str) -> ExternalIdentity:
        async with self._client() as client:
            try:
                await client.fetch_token(GOOGLE_TOKEN_URL, code=code)
                response = await client.get(GOOGLE_USERINFO_URL)
                response.raise_for_status()
                userinfo = response.json()
            except (AuthlibBaseError, httpx.HTTPError, ValueError) as exc:
                log_with_fields(
                    logger,
                    logging.WARNING,
                    "google code exchange failed",
                    error_type=type(exc).__name__,
                )
                raise IdentityProviderError("Google authorization code exchange failed") from exc

        if not isinstance(userinfo, Mapping):
            raise IdentityProviderError("Google userinfo response is not an object")
        return identity_from_userinfo(userinfo)
