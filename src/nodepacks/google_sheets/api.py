"""
Google Sheets REST transport: authentication, retries and error mapping.

Two credential schemes are supported, selected by the node's
``authentication`` parameter:

- ``oAuth2``: a ``googleSheetsOAuth2Api`` credential holding
  ``oauthTokenData``. Expired tokens are refreshed against
  ``accessTokenUrl`` and written back through the execution context.
- ``serviceAccount``: a ``googleApi`` credential holding a service
  account email/private key. Tokens are minted with google-auth.

SYNC-CELERY SAFE: every request carries a timeout.
"""

from __future__ import annotations

import base64
import logging
import random
import socket
import ssl
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Optional, Protocol
from urllib.parse import urlencode

import requests
from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from node_sdk.basenode import NodeApiError, NodeExecutionContext, NodeOperationError
from node_sdk.config import Settings, get_settings


logger = logging.getLogger(__name__)

SHEETS_SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/drive.metadata",
]

OAUTH2_CREDENTIAL = "googleSheetsOAuth2Api"
SERVICE_ACCOUNT_CREDENTIAL = "googleApi"

RETRYABLE_STATUS = (408, 429, 500, 502, 503, 504)
RATE_LIMIT_REASONS = {"ratelimitexceeded", "userratelimitexceeded", "quotaexceeded"}

TRANSIENT_SNIPPETS = [
    "SSLEOFError",
    "UNEXPECTED_EOF_WHILE_READING",
    "ConnectionResetError",
    "RemoteDisconnected",
    "ReadTimeout",
    "TimeoutError",
    "ConnectionError",
]


def is_transient_exc(e: Exception) -> bool:
    """Network/TLS failures that are worth retrying."""
    if isinstance(e, (requests.ConnectionError, requests.Timeout)):
        return True
    msg = repr(e)
    return any(s in msg for s in TRANSIENT_SNIPPETS) or isinstance(
        e, (ssl.SSLError, TimeoutError, ConnectionError, socket.timeout, socket.gaierror)
    )


class TokenProvider(Protocol):
    def get_token(self, force_refresh: bool = False) -> str: ...


# ==============================================================================
# OAuth2
# ==============================================================================

class OAuth2TokenProvider:
    """Access tokens from a stored OAuth2 credential, refreshed on demand."""

    def __init__(
        self,
        context: NodeExecutionContext,
        credential_type: str = OAUTH2_CREDENTIAL,
        session: Optional[requests.Session] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._context = context
        self._credential_type = credential_type
        self._session = session or requests.Session()
        self._settings = settings or get_settings()

    @staticmethod
    def unwrap(credentials_data: Dict[str, Any]) -> Dict[str, Any]:
        """Some hosts nest the credential fields under "data"."""
        if isinstance(credentials_data.get("data"), dict):
            return credentials_data["data"]
        return credentials_data

    @classmethod
    def has_access_token(cls, credentials_data: Dict[str, Any]) -> bool:
        credentials_data = cls.unwrap(credentials_data)
        oauth_token_data = credentials_data.get("oauthTokenData")
        if not isinstance(oauth_token_data, dict):
            return False
        return "access_token" in oauth_token_data

    @staticmethod
    def is_token_expired(oauth_data: Dict[str, Any]) -> bool:
        if "expires_at" not in oauth_data:
            return False
        # 30 second buffer
        return time.time() > (float(oauth_data["expires_at"]) - 30)

    def get_token(self, force_refresh: bool = False) -> str:
        stored = self._context.get_credentials(self._credential_type)
        credentials = self.unwrap(stored)
        if not self.has_access_token(credentials):
            raise NodeOperationError(
                "Google Sheets OAuth2 access token not found",
                description="Connect the Google Sheets account again.",
            )
        if force_refresh or self.is_token_expired(credentials["oauthTokenData"]):
            wrapped = credentials is not stored
            credentials = self.refresh(credentials)
            self._context.update_credentials(
                self._credential_type,
                {**stored, "data": credentials} if wrapped else credentials,
            )
        return credentials["oauthTokenData"]["access_token"]

    def refresh(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Exchange the refresh token for a new access token; returns the updated credential fields."""
        oauth_data = data.get("oauthTokenData") or {}
        if not oauth_data.get("refresh_token"):
            raise NodeOperationError("No refresh token available for Google Sheets credential")

        token_data = {
            "grant_type": "refresh_token",
            "refresh_token": oauth_data["refresh_token"],
        }
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        if data.get("authentication", "header") == "header":
            auth_header = base64.b64encode(f"{data['clientId']}:{data['clientSecret']}".encode()).decode()
            headers["Authorization"] = f"Basic {auth_header}"
        else:
            token_data.update({
                "client_id": data["clientId"],
                "client_secret": data["clientSecret"],
            })

        token_url = data.get("accessTokenUrl") or self._settings.google_token_url
        try:
            response = self._session.post(
                token_url,
                data=urlencode(token_data),
                headers=headers,
                timeout=self._settings.http_timeout_s,
            )
        except requests.RequestException as e:
            raise NodeApiError(f"Token refresh request failed: {e}") from e

        if response.status_code == 400:
            try:
                err_data = response.json()
            except ValueError:
                err_data = {"error": response.text}
            if err_data.get("error") == "invalid_grant":
                raise NodeOperationError(
                    "OAuth token invalid (invalid_grant)",
                    description="Reconnect the Google Sheets account.",
                )
        if not response.ok:
            raise NodeApiError(
                f"Token refresh failed ({response.status_code})",
                status_code=response.status_code,
                response_body=response.text[:1000],
            )

        new_token_data = response.json()
        updated = dict(oauth_data)
        updated["access_token"] = new_token_data["access_token"]
        if "expires_in" in new_token_data:
            updated["expires_at"] = time.time() + float(new_token_data["expires_in"])
        for k, v in new_token_data.items():
            if k not in ("access_token", "expires_in"):
                updated[k] = v

        data = dict(data)
        data["oauthTokenData"] = updated
        logger.info("Refreshed Google Sheets OAuth2 access token")
        return data


# ==============================================================================
# Service account
# ==============================================================================

class ServiceAccountTokenProvider:
    """Access tokens minted from a service account key."""

    def __init__(
        self,
        credentials_data: Dict[str, Any],
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        email = (credentials_data.get("email") or "").strip()
        private_key = credentials_data.get("privateKey") or ""
        if not email or not private_key:
            raise NodeOperationError("Service account credential needs an email and a private key")

        info = {
            "type": "service_account",
            "client_email": email,
            "private_key": private_key.replace("\\n", "\n"),
            "token_uri": settings.google_token_url,
        }
        creds = service_account.Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)
        delegated = (credentials_data.get("delegatedEmail") or "").strip()
        if delegated:
            creds = creds.with_subject(delegated)
        self._credentials = creds

    def get_token(self, force_refresh: bool = False) -> str:
        if force_refresh or not self._credentials.valid:
            try:
                self._credentials.refresh(GoogleAuthRequest())
            except RefreshError as e:
                raise NodeApiError(f"Service account token request failed: {e}") from e
        return self._credentials.token


def build_token_provider(
    context: NodeExecutionContext,
    authentication: str,
    settings: Optional[Settings] = None,
) -> TokenProvider:
    """Pick the token provider for the node's authentication parameter."""
    if authentication == "serviceAccount":
        return ServiceAccountTokenProvider(
            context.get_credentials(SERVICE_ACCOUNT_CREDENTIAL), settings=settings
        )
    if authentication == "oAuth2":
        return OAuth2TokenProvider(context, settings=settings)
    raise NodeOperationError(f"Unsupported authentication '{authentication}'")


# ==============================================================================
# Transport
# ==============================================================================

class GoogleSheetsApi:
    """
    Thin JSON client for the Sheets v4 REST API.

    Retries rate-limited and transient failures with exponential backoff
    (honouring Retry-After) and refreshes the token once on a 401.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._token_provider = token_provider
        self._settings = settings or get_settings()
        self._session = session or requests.Session()
        self.base_url = self._settings.sheets_base_url.rstrip("/")

    def request(
        self,
        method: str,
        endpoint: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make a request to the Sheets API.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: Path appended to the base URL, or a full URL
            body: JSON body for POST/PUT requests
            params: Query parameters

        Returns:
            Decoded JSON response ({} for empty bodies)
        """
        url = endpoint if endpoint.startswith("https://") else f"{self.base_url}{endpoint}"
        max_retries = self._settings.api_max_retries
        did_refresh_token = False
        token = self._token_provider.get_token()
        attempt = 0

        while True:
            headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
            try:
                response = self._session.request(
                    method,
                    url,
                    params=params,
                    json=body,
                    headers=headers,
                    timeout=self._settings.http_timeout_s,
                )
            except requests.RequestException as e:
                if not is_transient_exc(e) or attempt >= max_retries:
                    logger.error("Google API request failed (no more retries): %s", e)
                    raise NodeApiError(f"Google API request failed: {e}") from e
                self._backoff(attempt, None, f"exc={e.__class__.__name__}")
                attempt += 1
                continue

            if response.status_code == 401 and not did_refresh_token:
                did_refresh_token = True
                token = self._token_provider.get_token(force_refresh=True)
                continue

            if self._is_retryable(response) and attempt < max_retries:
                self._backoff(attempt, response, f"status={response.status_code}")
                attempt += 1
                continue

            if not response.ok:
                message = self._error_message(response)
                logger.error("Google API request failed: %s %s -> %s", method, url, message)
                raise NodeApiError(
                    message,
                    status_code=response.status_code,
                    response_body=response.text[:1000] if response.text else None,
                )

            if response.status_code == 204 or not response.content:
                return {}
            try:
                return response.json()
            except ValueError:
                return {}

    def _backoff(self, attempt: int, response: Optional[requests.Response], kind: str) -> None:
        retry_after = self._parse_retry_after(response) if response is not None else None
        if retry_after is not None:
            delay = retry_after
        else:
            delay = self._settings.api_base_delay_s * (2 ** attempt)
            delay += random.uniform(0, 0.25 * delay)
        logger.warning(
            "Google API transient error (%s), retrying in %.2fs (attempt %d/%d)",
            kind, delay, attempt + 1, self._settings.api_max_retries,
        )
        time.sleep(delay)

    @staticmethod
    def _parse_retry_after(response: requests.Response) -> Optional[float]:
        """Parse Retry-After header (seconds or HTTP-date) to seconds."""
        ra = response.headers.get("Retry-After")
        if not ra:
            return None
        if ra.isdigit():
            return float(ra)
        try:
            dt = parsedate_to_datetime(ra)
        except (TypeError, ValueError):
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return max(0.0, (dt - datetime.now(timezone.utc)).total_seconds())

    @staticmethod
    def _is_retryable(response: requests.Response) -> bool:
        """HTTP 408/429/5xx, plus 403s that Google uses for quota errors."""
        if response.status_code in RETRYABLE_STATUS:
            return True
        if response.status_code != 403:
            return False
        try:
            err = (response.json() or {}).get("error") or {}
        except ValueError:
            return False
        if not isinstance(err, dict):
            return False
        details = err.get("errors") or []
        reasons = {str(e.get("reason", "")).lower() for e in details if isinstance(e, dict)}
        if reasons & RATE_LIMIT_REASONS:
            return True
        message = str(err.get("message", "")).lower()
        if any(h in message for h in ("rate limit", "quota", "too many requests")):
            return True
        return str(err.get("status", "")).upper() == "RESOURCE_EXHAUSTED"

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            data = response.json()
            err = data.get("error", {})
            if isinstance(err, dict) and err.get("message"):
                return f"Google API Error: {err['message']}"
        except ValueError:
            pass
        return f"Google API Error: HTTP {response.status_code}"


__all__ = [
    "SHEETS_SCOPES",
    "OAUTH2_CREDENTIAL",
    "SERVICE_ACCOUNT_CREDENTIAL",
    "TokenProvider",
    "OAuth2TokenProvider",
    "ServiceAccountTokenProvider",
    "build_token_provider",
    "GoogleSheetsApi",
    "is_transient_exc",
]
