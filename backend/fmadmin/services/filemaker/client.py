"""FileMaker Server Admin API client with bearer-token session handling.

Tokens come from a Basic-Auth exchange against ``/user/auth`` and are shared
through a ``SessionManager``. Every call is classified into the error
taxonomy in ``errors.py``; the only automatic retry is a single
re-authentication after a 401.

See: https://help.claris.com/en/server-admin-api-guide/
"""
import logging
import ssl
from functools import partial
from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx

from fmadmin.core.config import settings, PROJECT_ROOT
from fmadmin.services.filemaker.credentials import AdminCredentials
from fmadmin.services.filemaker.endpoints import AUTH_PATH
from fmadmin.services.filemaker.errors import (
    FileMakerAPIError,
    FileMakerAuthenticationError,
    FileMakerConnectionError,
    FileMakerEndpointUnavailableError,
    FileMakerMalformedResponseError,
    FileMakerPrivilegeError,
    FileMakerServerError,
)
from fmadmin.services.filemaker.session_manager import SessionManager

# Set up logger for this module
logger = logging.getLogger(__name__)

# Re-authentications allowed per request after a 401
MAX_REAUTH_ATTEMPTS = 1


def _server_message(response: httpx.Response) -> Optional[str]:
    """First message text from a FileMaker error envelope, if any."""
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    messages = data.get("messages") or []
    if messages and isinstance(messages[0], dict):
        return messages[0].get("message") or None
    return None


def classify_response(response: httpx.Response, endpoint: str) -> None:
    """
    Raise the classified error for a non-2xx response.

    Args:
        response: Response to inspect
        endpoint: Endpoint path, for messages

    Raises:
        FileMakerAuthenticationError: 401
        FileMakerPrivilegeError: 403
        FileMakerEndpointUnavailableError: 404
        FileMakerServerError: 5xx
        FileMakerAPIError: any other non-2xx status
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    server_message = _server_message(response)
    if status == 401:
        raise FileMakerAuthenticationError("FileMaker session token was rejected.", status)
    if status == 403:
        raise FileMakerPrivilegeError("FileMaker admin account lacks required privileges.", status)
    if status == 404:
        raise FileMakerEndpointUnavailableError(
            server_message or "Setting not available on this FileMaker version.",
            status,
        )
    if status >= 500:
        raise FileMakerServerError(
            server_message or "FileMaker Server error. Check server logs.",
            status,
        )
    raise FileMakerAPIError(
        server_message or f"FileMaker API error ({status}) on {endpoint}",
        status,
        response.text,
    )


def parse_envelope(response: httpx.Response, endpoint: str) -> Dict[str, Any]:
    """Return the payload wrapped under ``response`` in a FileMaker envelope."""
    try:
        data = response.json()
    except ValueError as e:
        raise FileMakerMalformedResponseError(
            f"FileMaker returned a non-JSON body for {endpoint}",
            details=response.text[:500],
        ) from e

    if not isinstance(data, dict) or not isinstance(data.get("response"), dict):
        raise FileMakerMalformedResponseError(
            f"FileMaker response for {endpoint} has no 'response' payload",
            details=data,
        )
    return data["response"]


class FileMakerAdminClient:
    """Authenticated Request Executor for the FileMaker Admin API."""

    def __init__(
        self,
        session_manager: SessionManager,
        api_prefix: Optional[str] = None,
        timeout: Optional[float] = None,
        verify_ssl: Optional[bool] = None,
    ):
        """
        Initialize FileMaker Admin API client.

        Args:
            session_manager: Process-wide token cache and auth coordinator
            api_prefix: Admin API path prefix (defaults to settings)
            timeout: Per-request timeout in seconds (defaults to settings)
            verify_ssl: Verify TLS certificates (defaults to settings)
        """
        self.sessions = session_manager
        self.api_prefix = (api_prefix or settings.FM_ADMIN_API_PREFIX).rstrip('/')
        self.timeout = timeout or settings.FM_REQUEST_TIMEOUT

        # SSL verification setting
        self.verify_ssl: Union[bool, ssl.SSLContext]
        if verify_ssl is False:
            self.verify_ssl = False
        elif settings.FM_SSL_CERT_PATH:
            cert_path = Path(settings.FM_SSL_CERT_PATH).expanduser()
            if not cert_path.is_absolute():
                cert_path = PROJECT_ROOT / cert_path
            cert_path = cert_path.resolve()
            if not cert_path.exists():
                raise ValueError(
                    f"FileMaker SSL certificate file not found: {cert_path} "
                    f"(resolved from: {settings.FM_SSL_CERT_PATH})"
                )
            self.verify_ssl = ssl.create_default_context(cafile=str(cert_path))
        else:
            self.verify_ssl = settings.FM_VERIFY_SSL if verify_ssl is None else verify_ssl

        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            verify=self.verify_ssl,
        )

    def _url(self, credentials: AdminCredentials, endpoint: str) -> str:
        return f"{credentials.base_url}{self.api_prefix}/{endpoint.lstrip('/')}"

    @staticmethod
    def _bearer_headers(token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def sign_in(self, credentials: AdminCredentials) -> str:
        """
        Exchange admin credentials for a bearer token (HTTP Basic auth).

        Returns:
            Bearer token

        Raises:
            FileMakerAuthenticationError: Credentials rejected
            FileMakerServerError: Server error during authentication
            FileMakerConnectionError: Network error or timeout
            FileMakerMalformedResponseError: No token in the response
        """
        auth_url = self._url(credentials, AUTH_PATH)
        logger.debug(f"Signing in to FileMaker Admin API: {auth_url} as {credentials.username}")

        try:
            response = await self._client.post(
                auth_url,
                auth=httpx.BasicAuth(credentials.username, credentials.password),
                headers={"Content-Type": "application/json"},
            )
        except httpx.RequestError as e:
            raise FileMakerConnectionError(f"Unable to connect to FileMaker Server: {e}") from e

        status = response.status_code
        if status in (401, 403):
            raise FileMakerAuthenticationError(
                "Authentication failed. Check admin username/password.", status
            )
        if status >= 500:
            raise FileMakerServerError(f"Authentication failed with status {status}", status)
        if not 200 <= status < 300:
            raise FileMakerAuthenticationError(
                _server_message(response) or f"Authentication failed with status {status}",
                status,
            )

        payload = parse_envelope(response, AUTH_PATH)
        token = payload.get("token")
        if not token or not isinstance(token, str):
            raise FileMakerMalformedResponseError("No token in authentication response", details=payload)
        return token

    async def sign_out(self, credentials: AdminCredentials, token: str) -> bool:
        """
        End the remote admin session for ``token``.

        Best-effort cleanup: failures are logged, never raised.

        Returns:
            True if the server confirmed the logout
        """
        logout_url = self._url(credentials, f"{AUTH_PATH}/{token}")
        try:
            response = await self._client.delete(logout_url, headers=self._bearer_headers(token))
        except httpx.HTTPError as e:
            logger.warning(f"FileMaker logout failed for {credentials.base_url}: {e}")
            return False

        if not 200 <= response.status_code < 300:
            logger.warning(
                f"FileMaker logout returned {response.status_code} for {credentials.base_url}"
            )
            return False
        logger.debug(f"Closed FileMaker admin session on {credentials.base_url}")
        return True

    async def request(
        self,
        identity: str,
        credentials: AdminCredentials,
        endpoint: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
        *,
        session: Optional["AdminSession"] = None,
    ) -> Dict[str, Any]:
        """
        Make an authenticated Admin API request.

        A 401 invalidates the token, forces one fresh authentication and
        retries once; a second 401 is final. Nothing else is retried.

        Args:
            identity: Server identity (token cache key)
            credentials: Admin credentials for this server
            endpoint: Path relative to the admin API prefix (e.g. /server/config/general)
            method: HTTP method
            body: Flat JSON object of setting keys
            session: Scope that records the tokens used, for logout

        Returns:
            Payload from the response envelope

        Raises:
            FileMakerAPIError: Classified failure (see errors.py)
        """
        url = self._url(credentials, endpoint)
        sign_in = partial(self.sign_in, credentials)

        token = await self.sessions.ensure_token(identity, sign_in)
        reauth_attempts = 0

        while True:
            if session is not None:
                session.record(token)

            logger.debug(f"Making {method} request to: {url}")
            try:
                response = await self._client.request(
                    method,
                    url,
                    headers=self._bearer_headers(token),
                    json=body,
                )
            except httpx.RequestError as e:
                raise FileMakerConnectionError(f"Request to {endpoint} failed: {e}") from e

            if response.status_code != 401:
                break

            # A rejected token has no remote session left to close
            if session is not None:
                session.forget(token)
            if reauth_attempts >= MAX_REAUTH_ATTEMPTS:
                self.sessions.invalidate(identity, token)
                raise FileMakerAuthenticationError(
                    "FileMaker rejected the session token again after re-authentication.", 401
                )
            reauth_attempts += 1
            logger.info(f"FileMaker returned 401 for {endpoint} (token likely expired), re-authenticating...")
            token = await self.sessions.reauthenticate(identity, sign_in, rejected_token=token)

        classify_response(response, endpoint)
        return parse_envelope(response, endpoint)

    def session(self, identity: str, credentials: AdminCredentials) -> "AdminSession":
        """Scope for one aggregate operation; logs out exactly once on exit."""
        return AdminSession(self, identity, credentials)

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


class AdminSession:
    """Session Closer for one aggregate operation.

    Requests issued through the session record every token they used, and
    drop the ones the server rejected. On exit, whatever the outcome, each
    remaining token is logged out once and dropped from the cache (unless the
    cache already moved on to a newer token).
    """

    def __init__(self, client: FileMakerAdminClient, identity: str, credentials: AdminCredentials):
        self.client = client
        self.identity = identity
        self.credentials = credentials
        # Insertion-ordered set
        self.tokens: Dict[str, None] = {}

    def record(self, token: str) -> None:
        self.tokens[token] = None

    def forget(self, token: str) -> None:
        self.tokens.pop(token, None)

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return await self.client.request(
            self.identity, self.credentials, endpoint, method, body, session=self
        )

    async def close(self) -> None:
        tokens, self.tokens = list(self.tokens), {}
        for token in tokens:
            try:
                await self.client.sign_out(self.credentials, token)
            finally:
                self.client.sessions.invalidate(self.identity, token)

    async def __aenter__(self) -> "AdminSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
