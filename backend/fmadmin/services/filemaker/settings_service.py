"""Read and write FileMaker Server settings across the Admin API endpoints.

Settings are spread over nine endpoints. Reads fan out in parallel and
tolerate partial failure: whatever could not be fetched falls back to its
default and is reported in the failure list. Writes go to the one endpoint
that owns the field, except email notifications, which the server only
accepts as a complete object. Each operation runs in a single admin session
that is logged out on exit.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError

from fmadmin.models.filemaker import (
    EmailNotifications,
    GeneralConfig,
    NormalizedSettings,
    SecurityConfig,
    ServerMetadata,
    SettingsCategory,
    WebPublishing,
)
from fmadmin.services.filemaker.client import AdminSession, FileMakerAdminClient
from fmadmin.services.filemaker.credentials import AdminCredentials
from fmadmin.services.filemaker.endpoints import (
    EMAIL,
    EMAIL_FIELDS,
    GENERAL,
    METADATA_PATH,
    PARTIAL_WRITE_ENDPOINTS,
    PHP,
    SECURITY,
    SETTINGS_ENDPOINTS,
    SMTP_PASSWORD_KEY,
    WEB_PUBLISHING_ENDPOINTS,
    SettingsEndpoint,
)
from fmadmin.services.filemaker.errors import (
    FileMakerAPIError,
    FileMakerAggregateError,
    FileMakerMalformedResponseError,
    InvalidSettingError,
)
from fmadmin.services.filemaker.secret_store import SmtpPasswordStore

logger = logging.getLogger(__name__)

# Model holding the valid keys of each partially writable category
PARTIAL_WRITE_MODELS = {
    SettingsCategory.GENERAL: GeneralConfig,
    SettingsCategory.SECURITY: SecurityConfig,
}

# Endpoint name -> section model its payload must validate against
SECTION_MODELS = {
    GENERAL.name: GeneralConfig,
    SECURITY.name: SecurityConfig,
    EMAIL.name: EmailNotifications,
}


@dataclass
class EndpointFailure:
    """One endpoint that could not be fetched during an aggregate read."""
    endpoint: str
    reason: str
    kind: str
    status_code: int

    @classmethod
    def from_error(cls, endpoint: SettingsEndpoint, error: FileMakerAPIError) -> "EndpointFailure":
        return cls(
            endpoint=endpoint.name,
            reason=error.message,
            kind=error.kind,
            status_code=error.status_code,
        )


@dataclass
class SettingsFetchResult:
    """Normalized settings plus the endpoints that fell back to defaults."""
    settings: NormalizedSettings
    failures: List[EndpointFailure] = field(default_factory=list)


@dataclass
class SettingsUpdateResult:
    """Authoritative settings re-read after a write."""
    settings: NormalizedSettings
    failures: List[EndpointFailure] = field(default_factory=list)
    concurrent_update_warning: bool = False


def section_from_payload(endpoint: SettingsEndpoint, payload: Dict[str, Any]) -> Optional[BaseModel]:
    """
    Validate one endpoint's payload into its settings section.

    Technology endpoints carry a single ``enabled`` flag and have no section
    of their own; they return None.

    Raises:
        FileMakerMalformedResponseError: A field has the wrong type
    """
    model = SECTION_MODELS.get(endpoint.name)
    if model is None:
        return None
    try:
        return model.from_payload(payload)
    except ValidationError as e:
        raise FileMakerMalformedResponseError(
            f"FileMaker returned invalid {endpoint.name} settings",
            details=e.errors(include_url=False),
        ) from e


def normalize_settings(payloads: Dict[str, Dict[str, Any]]) -> NormalizedSettings:
    """
    Build a total NormalizedSettings from per-endpoint payloads.

    Args:
        payloads: Endpoint name -> payload, for the endpoints that succeeded

    Returns:
        Settings with every field populated (defaults where missing)
    """
    def payload(endpoint: SettingsEndpoint) -> Dict[str, Any]:
        return payloads.get(endpoint.name) or {}

    return NormalizedSettings(
        general=section_from_payload(GENERAL, payload(GENERAL)),
        webPublishing=WebPublishing(**{
            flag: payload(endpoint).get("enabled") is True
            for flag, endpoint in WEB_PUBLISHING_ENDPOINTS.items()
        }),
        security=section_from_payload(SECURITY, payload(SECURITY)),
        email=section_from_payload(EMAIL, payload(EMAIL)),
    )


def failure_warnings(failures: List[EndpointFailure]) -> List[str]:
    """Human-readable warnings for a failure list.

    A server without PHP installed is normal and only mentioned when the
    server says its config file is missing.
    """
    warnings: List[str] = []
    for failure in failures:
        if failure.endpoint == EMAIL.name:
            warnings.append("Email notification settings are not available on this FileMaker Server version.")
        elif failure.endpoint == PHP.name:
            if "PHP config file does not exist" in (failure.reason or ""):
                warnings.append("PHP is not installed on this server.")
        else:
            warnings.append(f"{failure.endpoint} settings could not be retrieved: {failure.reason}")
    return warnings


class FileMakerSettingsService:
    """Parallel Settings Aggregator and Settings Update Coordinator."""

    def __init__(
        self,
        client: FileMakerAdminClient,
        smtp_passwords: Optional[SmtpPasswordStore] = None,
    ):
        self.client = client
        self.smtp_passwords = smtp_passwords

    async def fetch_all(self, identity: str, credentials: AdminCredentials) -> SettingsFetchResult:
        """
        Fetch all settings from FileMaker Server.

        Args:
            identity: Server identity
            credentials: Admin credentials for this server

        Returns:
            Total settings and the list of endpoints that failed

        Raises:
            FileMakerAggregateError: Every endpoint failed
        """
        async with self.client.session(identity, credentials) as session:
            return await self._fetch_all(session)

    async def _fetch_all(self, session: AdminSession) -> SettingsFetchResult:
        results = await asyncio.gather(
            *(self._fetch_endpoint(session, endpoint) for endpoint in SETTINGS_ENDPOINTS),
            return_exceptions=True,
        )

        payloads: Dict[str, Dict[str, Any]] = {}
        failures: List[EndpointFailure] = []
        first_error: Optional[FileMakerAPIError] = None
        for endpoint, result in zip(SETTINGS_ENDPOINTS, results):
            if isinstance(result, FileMakerAPIError):
                logger.warning(
                    f"Failed to fetch {endpoint.name} settings for server={session.identity}: "
                    f"[{result.kind}] {result.message}"
                )
                failures.append(EndpointFailure.from_error(endpoint, result))
                if first_error is None:
                    first_error = result
            elif isinstance(result, BaseException):
                raise result
            else:
                payloads[endpoint.name] = result

        if not payloads:
            raise FileMakerAggregateError(
                f"All {len(SETTINGS_ENDPOINTS)} FileMaker settings endpoints failed: {first_error.message}",
                first_error,
                failures,
            ) from first_error

        if failures:
            logger.info(
                f"Fetched FileMaker settings for server={session.identity} "
                f"with {len(failures)} of {len(SETTINGS_ENDPOINTS)} endpoint(s) defaulted"
            )
        return SettingsFetchResult(settings=normalize_settings(payloads), failures=failures)

    @staticmethod
    async def _fetch_endpoint(session: AdminSession, endpoint: SettingsEndpoint) -> Dict[str, Any]:
        payload = await session.request(endpoint.path)
        # Invalid payloads fail this endpoint only
        section_from_payload(endpoint, payload)
        return payload

    async def update_field(
        self,
        identity: str,
        credentials: AdminCredentials,
        category: Union[SettingsCategory, str],
        key: str,
        value: Any,
        *,
        updated_by: Optional[str] = None,
        last_updated_by: Optional[str] = None,
    ) -> SettingsUpdateResult:
        """
        Update a single setting on FileMaker Server, then re-read all settings.

        Args:
            identity: Server identity
            credentials: Admin credentials for this server
            category: Setting category
            key: Setting key within category
            value: New value
            updated_by: Who is making this change
            last_updated_by: Who made the last known change

        Returns:
            Refetched settings, failures, and the concurrent-update flag

        Raises:
            InvalidSettingError: Unknown category or key (no request is sent)
            FileMakerAPIError: The write failed
        """
        category = self._category(category)
        write = self._plan_write(category, key, value)

        concurrent_update_warning = bool(last_updated_by) and last_updated_by != updated_by
        if concurrent_update_warning:
            logger.warning(
                f"Settings for server={identity} were last changed by {last_updated_by}; "
                f"{updated_by} is overwriting {category.value}.{key}"
            )

        async with self.client.session(identity, credentials) as session:
            if write is None:
                await self._rewrite_email(session, key, value)
            else:
                path, payload = write
                await session.request(path, "PATCH", payload)
            logger.info(f"Updated {category.value}.{key} on server={identity}")

            # The server may coerce or ignore values; report what it actually holds
            refetched = await self._fetch_all(session)

        return SettingsUpdateResult(
            settings=refetched.settings,
            failures=refetched.failures,
            concurrent_update_warning=concurrent_update_warning,
        )

    @staticmethod
    def _category(category: Union[SettingsCategory, str]) -> SettingsCategory:
        try:
            return SettingsCategory(category)
        except ValueError:
            raise InvalidSettingError(f"Unknown category: {category}") from None

    @staticmethod
    def _plan_write(category: SettingsCategory, key: str, value: Any):
        """Endpoint path and body for a partial write, or None for a full email rewrite."""
        if category is SettingsCategory.EMAIL:
            if key not in EMAIL_FIELDS:
                raise InvalidSettingError(f"Unknown email setting: {key}")
            return None
        if category is SettingsCategory.WEB_PUBLISHING:
            endpoint = WEB_PUBLISHING_ENDPOINTS.get(key)
            if endpoint is None:
                raise InvalidSettingError(f"Unknown web publishing setting: {key}")
            return endpoint.path, {"enabled": value}
        if key not in PARTIAL_WRITE_MODELS[category].model_fields:
            raise InvalidSettingError(f"Unknown {category.value} setting: {key}")
        return PARTIAL_WRITE_ENDPOINTS[category].path, {key: value}

    async def _rewrite_email(self, session: AdminSession, key: str, value: Any) -> None:
        current = section_from_payload(EMAIL, await session.request(EMAIL.path))

        if key == SMTP_PASSWORD_KEY:
            smtp_password = "" if value is None else str(value)
        else:
            stored = self.smtp_passwords.get_smtp_password(session.identity) if self.smtp_passwords else None
            smtp_password = stored or ""

        payload: Dict[str, Any] = current.model_dump()
        payload[SMTP_PASSWORD_KEY] = smtp_password
        if key != SMTP_PASSWORD_KEY:
            payload[key] = value

        # Email settings uses POST, not PATCH
        await session.request(EMAIL.path, "POST", payload)

        if key == SMTP_PASSWORD_KEY and self.smtp_passwords is not None:
            self.smtp_passwords.set_smtp_password(session.identity, smtp_password)

    async def fetch_server_metadata(self, identity: str, credentials: AdminCredentials) -> ServerMetadata:
        """Fetch server version and host details."""
        async with self.client.session(identity, credentials) as session:
            payload = await session.request(METADATA_PATH)
        try:
            return ServerMetadata.model_validate(payload)
        except ValidationError as e:
            raise FileMakerMalformedResponseError(
                "FileMaker returned invalid server metadata",
                details=e.errors(include_url=False),
            ) from e

    def clear_sessions(self) -> int:
        """Forget every cached admin token so the next call signs in fresh."""
        return self.client.sessions.clear()
