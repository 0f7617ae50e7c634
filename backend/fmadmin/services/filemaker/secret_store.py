"""SMTP password storage abstraction.

FileMaker never returns the SMTP password, yet every email settings write
must include it. The caller keeps it (encrypted, outside this package) and
exposes it through this interface.
"""
import logging
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class SmtpPasswordStore(Protocol):
    """Protocol for SMTP password storage."""

    def get_smtp_password(self, identity: str) -> Optional[str]:
        """Get the stored SMTP password for a server, or None."""
        ...

    def set_smtp_password(self, identity: str, password: str) -> None:
        """Store a new SMTP password for a server."""
        ...


class InMemorySmtpPasswordStore:
    """In-memory SMTP password store for tests and single-process use."""

    def __init__(self, passwords: Optional[Dict[str, str]] = None):
        self._passwords: Dict[str, str] = dict(passwords or {})

    def get_smtp_password(self, identity: str) -> Optional[str]:
        return self._passwords.get(identity)

    def set_smtp_password(self, identity: str, password: str) -> None:
        self._passwords[identity] = password
        logger.debug(f"Stored SMTP password for server={identity}")
