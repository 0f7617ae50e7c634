"""FileMaker Admin API endpoint table.

Paths are relative to the admin API prefix (``/fmi/admin/api/v2``).
"""
from dataclasses import dataclass
from typing import Dict, Tuple

from fmadmin.models.filemaker import EmailNotifications, SettingsCategory

AUTH_PATH = "/user/auth"
METADATA_PATH = "/server/metadata"


@dataclass(frozen=True)
class SettingsEndpoint:
    """One remote settings endpoint fetched by the aggregator."""
    name: str
    path: str


GENERAL = SettingsEndpoint("General", "/server/config/general")
SECURITY = SettingsEndpoint("Security", "/server/config/security")
PHP = SettingsEndpoint("PHP", "/php/config")
XML = SettingsEndpoint("XML", "/xml/config")
XDBC = SettingsEndpoint("XDBC", "/xdbc/config")
DATA_API = SettingsEndpoint("Data API", "/fmdapi/config")
ODATA = SettingsEndpoint("OData", "/fmodata/config")
WEBDIRECT = SettingsEndpoint("WebDirect", "/webdirect/config")
EMAIL = SettingsEndpoint("Email Settings", "/server/emailsettings")

# Fetch order for an aggregate read
SETTINGS_ENDPOINTS: Tuple[SettingsEndpoint, ...] = (
    GENERAL,
    SECURITY,
    PHP,
    XML,
    XDBC,
    DATA_API,
    ODATA,
    WEBDIRECT,
    EMAIL,
)

# webPublishing flag -> technology endpoint; each accepts {"enabled": bool}
WEB_PUBLISHING_ENDPOINTS: Dict[str, SettingsEndpoint] = {
    "phpEnabled": PHP,
    "xmlEnabled": XML,
    "xdbcEnabled": XDBC,
    "dataApiEnabled": DATA_API,
    "odataEnabled": ODATA,
    "webDirectEnabled": WEBDIRECT,
}

# Categories whose endpoint accepts a partial PATCH of {key: value}
PARTIAL_WRITE_ENDPOINTS: Dict[SettingsCategory, SettingsEndpoint] = {
    SettingsCategory.GENERAL: GENERAL,
    SettingsCategory.SECURITY: SECURITY,
}

SMTP_PASSWORD_KEY = "smtpPassword"

# Full body of an email settings write; the server rejects anything less
EMAIL_FIELDS: Tuple[str, ...] = tuple(EmailNotifications.model_fields) + (SMTP_PASSWORD_KEY,)
