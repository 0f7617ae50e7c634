"""FileMaker Server settings models."""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class SettingsCategory(str, Enum):
    """FileMaker settings category enumeration."""
    GENERAL = "general"
    WEB_PUBLISHING = "webPublishing"
    SECURITY = "security"
    EMAIL = "email"


class GeneralConfig(BaseModel):
    """General server configuration."""
    cacheSize: int = 100
    maxFiles: int = 20
    maxProConnections: int = 200
    maxPSOS: int = 30
    useSchedules: bool = True

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "GeneralConfig":
        defaults = cls()
        return cls(
            cacheSize=data.get("cacheSize") or defaults.cacheSize,
            maxFiles=data.get("maxFiles") or defaults.maxFiles,
            maxProConnections=data.get("maxProConnections") or defaults.maxProConnections,
            maxPSOS=data.get("maxPSOS") or defaults.maxPSOS,
            useSchedules=data.get("useSchedules") is not False,
        )


class WebPublishing(BaseModel):
    """Web publishing technology switches, one remote endpoint each."""
    phpEnabled: bool = False
    xmlEnabled: bool = False
    xdbcEnabled: bool = False
    dataApiEnabled: bool = False
    odataEnabled: bool = False
    webDirectEnabled: bool = False


class SecurityConfig(BaseModel):
    """Security configuration."""
    requireSecureDB: bool = False

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "SecurityConfig":
        return cls(requireSecureDB=data.get("requireSecureDB") is True)


class EmailNotifications(BaseModel):
    """Email notification settings.

    The SMTP password is never part of this model: the server does not return
    it and it is stored separately by the caller.
    """
    smtpServerAddress: str = ""
    smtpServerPort: int = 25
    smtpUsername: str = ""
    emailSenderAddress: str = ""
    emailRecipients: str = ""
    smtpAuthType: int = 0
    smtpSecurity: int = 0
    notifyLevel: int = 0

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "EmailNotifications":
        defaults = cls()
        return cls(**{
            name: data.get(name) or getattr(defaults, name)
            for name in cls.model_fields
        })


class NormalizedSettings(BaseModel):
    """Total view of FileMaker Server settings.

    Every field is always populated, either from the server or from the
    documented default for that field.
    """
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    webPublishing: WebPublishing = Field(default_factory=WebPublishing)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    email: EmailNotifications = Field(default_factory=EmailNotifications)


class ServerMetadata(BaseModel):
    """Server metadata returned by /server/metadata."""
    model_config = ConfigDict(extra="allow")

    serverVersion: Optional[str] = None
    serverName: Optional[str] = None
    hostName: Optional[str] = None
