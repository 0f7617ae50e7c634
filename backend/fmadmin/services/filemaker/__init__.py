"""FileMaker Admin API service modules."""
from fmadmin.services.filemaker.client import AdminSession, FileMakerAdminClient
from fmadmin.services.filemaker.credentials import AdminCredentials
from fmadmin.services.filemaker.errors import (
    FileMakerAPIError,
    FileMakerAggregateError,
    FileMakerAuthenticationError,
    FileMakerConnectionError,
    FileMakerEndpointUnavailableError,
    FileMakerMalformedResponseError,
    FileMakerPrivilegeError,
    FileMakerServerError,
    InvalidSettingError,
)
from fmadmin.services.filemaker.secret_store import InMemorySmtpPasswordStore, SmtpPasswordStore
from fmadmin.services.filemaker.session_manager import SessionManager
from fmadmin.services.filemaker.settings_service import (
    EndpointFailure,
    FileMakerSettingsService,
    SettingsFetchResult,
    SettingsUpdateResult,
    failure_warnings,
)
from fmadmin.services.filemaker.token_cache import TokenCache

__all__ = [
    "AdminCredentials",
    "AdminSession",
    "EndpointFailure",
    "FileMakerAPIError",
    "FileMakerAdminClient",
    "FileMakerAggregateError",
    "FileMakerAuthenticationError",
    "FileMakerConnectionError",
    "FileMakerEndpointUnavailableError",
    "FileMakerMalformedResponseError",
    "FileMakerPrivilegeError",
    "FileMakerServerError",
    "FileMakerSettingsService",
    "InMemorySmtpPasswordStore",
    "InvalidSettingError",
    "SessionManager",
    "SettingsFetchResult",
    "SettingsUpdateResult",
    "SmtpPasswordStore",
    "TokenCache",
    "failure_warnings",
]
