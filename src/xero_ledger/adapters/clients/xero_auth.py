"""OAuth2 token handling for the Xero identity service."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any

from dotenv import set_key
import httpx
from loguru import logger
from pydantic import BaseModel

from xero_ledger.adapters.clients.errors import XeroAuthError

TOKEN_URL = "https://identity.xero.com/connect/token"
DEFAULT_REFRESH_TOKEN_PATH = Path(".xero-refresh-token")
BEARER_TOKEN_ENV_VAR = "XERO_CLIENT_BEARER_TOKEN"

# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class XeroCredentials:
    """Credentials used to authenticate against a single Xero tenant."""

    client_id: str | None = None
    client_secret: str | None = None
    bearer_token: str | None = None
    tenant_id: str | None = None
    base_url: str | None = None

    @property
    def has_client_secret(self) -> bool:
        return bool(self.client_id and self.client_secret)


def _getenv(name: str) -> str | None:
    value = os.environ.get(name, "").strip()
    return value or None


def load_xero_credentials_from_env() -> XeroCredentials:
    """Load Xero credentials from environment variables.

    Either XERO_CLIENT_BEARER_TOKEN or both XERO_CLIENT_ID and
    XERO_CLIENT_SECRET must be set. XERO_TENANT_ID and XERO_API_BASE_URL
    are optional.

    Raises:
        XeroAuthError: If no usable credentials are configured.
    """
    credentials = XeroCredentials(
        client_id=_getenv("XERO_CLIENT_ID"),
        client_secret=_getenv("XERO_CLIENT_SECRET"),
        bearer_token=_getenv(BEARER_TOKEN_ENV_VAR),
        tenant_id=_getenv("XERO_TENANT_ID"),
        base_url=_getenv("XERO_API_BASE_URL"),
    )
    if not credentials.bearer_token and not credentials.has_client_secret:
        raise XeroAuthError(
            f"Missing Xero credentials: set {BEARER_TOKEN_ENV_VAR} or both "
            "XERO_CLIENT_ID and XERO_CLIENT_SECRET"
        )
    return credentials


# ---------------------------------------------------------------------------
# Token exchange
# ---------------------------------------------------------------------------


class TokenSet(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_in: int = 1800
    token_type: str = "Bearer"


async def exchange_token(
    params: dict[str, str],
    credentials: XeroCredentials,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> TokenSet:
    """POST a grant to the Xero token endpoint and return the issued tokens.

    Args:
        params: Form fields for the grant (``grant_type`` and friends).
        credentials: Must carry a client id and secret for HTTP Basic auth.
        http_client: Optional client to reuse; a short-lived one is created
            otherwise.

    Raises:
        XeroAuthError: On missing client credentials, transport failure, or
            an OAuth error response.
    """
    if not credentials.has_client_secret:
        raise XeroAuthError("XERO_CLIENT_ID and XERO_CLIENT_SECRET are required")

    auth = httpx.BasicAuth(credentials.client_id or "", credentials.client_secret or "")
    owns_client = http_client is None
    client = http_client or httpx.AsyncClient(timeout=30.0)
    try:
        response = await client.post(TOKEN_URL, data=params, auth=auth)
    except httpx.HTTPError as e:
        raise XeroAuthError(f"Network error calling Xero identity: {e}") from e
    finally:
        if owns_client:
            await client.aclose()

    try:
        body: dict[str, Any] = response.json()
    except ValueError as e:
        raise XeroAuthError(
            f"Failed to parse token response ({response.status_code}): {response.text}"
        ) from e

    if "error" in body or response.status_code >= 400:
        reason = body.get("error_description") or body.get("error") or response.text
        raise XeroAuthError(f"Token exchange failed: {reason}")

    logger.bind(grant_type=params.get("grant_type")).debug("Issued Xero access token")
    return TokenSet.model_validate(body)


async def client_credentials_token(
    credentials: XeroCredentials,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> TokenSet:
    """Issue a token for a Xero custom connection."""
    return await exchange_token(
        {"grant_type": "client_credentials"},
        credentials,
        http_client=http_client,
    )


async def refresh_access_token(
    credentials: XeroCredentials,
    refresh_token: str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> TokenSet:
    """Trade a refresh token for a fresh access token (and a rotated refresh token)."""
    return await exchange_token(
        {"grant_type": "refresh_token", "refresh_token": refresh_token},
        credentials,
        http_client=http_client,
    )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def load_refresh_token(path: Path = DEFAULT_REFRESH_TOKEN_PATH) -> str | None:
    try:
        token = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    return token or None


def save_refresh_token(token: str, path: Path = DEFAULT_REFRESH_TOKEN_PATH) -> None:
    path.write_text(token, encoding="utf-8")


def save_bearer_token(token: str, env_path: Path) -> None:
    """Write the access token into a dotenv file for the next process start."""
    env_path.touch(exist_ok=True)
    set_key(str(env_path), BEARER_TOKEN_ENV_VAR, token)
