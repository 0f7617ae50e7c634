# Settings models
from fmadmin.models.filemaker import (
    SettingsCategory,
    GeneralConfig,
    WebPublishing,
    SecurityConfig,
    EmailNotifications,
    NormalizedSettings,
    ServerMetadata,
)

__all__ = ["SettingsCategory", "GeneralConfig", "WebPublishing", "SecurityConfig", "EmailNotifications", "NormalizedSettings", "ServerMetadata"]
