"""In-memory cache for FileMaker Admin API bearer tokens.

One entry per server identity. The TTL is a local guess at the server's
session lifetime, not a contract: a 401 from the server is what actually
retires a token, so callers must invalidate promptly on rejection.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from fmadmin.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class TokenEntry:
    """Cached token with its local expiry."""
    token: str
    expires_at: datetime


class TokenCache:
    """Token Lifecycle Manager: server identity -> bearer token."""

    def __init__(self, ttl_seconds: Optional[int] = None):
        self.ttl = timedelta(seconds=ttl_seconds or settings.FM_TOKEN_TTL_SECONDS)
        self._entries: Dict[str, TokenEntry] = {}

    def _purge_expired(self) -> None:
        now = datetime.now(timezone.utc)
        for identity in [k for k, entry in self._entries.items() if entry.expires_at <= now]:
            del self._entries[identity]
            logger.debug(f"Purged expired FileMaker token for server={identity}")

    def get(self, identity: str) -> Optional[str]:
        """Get cached token if not expired (expired entries are purged first)."""
        self._purge_expired()
        entry = self._entries.get(identity)
        return entry.token if entry else None

    def put(self, identity: str, token: str) -> None:
        """Store token with expires_at = now + TTL."""
        self._entries[identity] = TokenEntry(
            token=token,
            expires_at=datetime.now(timezone.utc) + self.ttl,
        )
        logger.debug(f"Cached FileMaker token for server={identity}")

    def invalidate(self, identity: str, token: Optional[str] = None) -> None:
        """Remove cached token (called on 401 and after logout).

        With ``token``, the entry is only removed if it still holds that token.
        """
        entry = self._entries.get(identity)
        if entry is None:
            return
        if token is not None and entry.token != token:
            return
        del self._entries[identity]
        logger.info(f"Invalidated FileMaker token cache for server={identity}")

    def clear(self) -> int:
        """Drop every cached token. Returns the number of entries removed."""
        count = len(self._entries)
        self._entries.clear()
        if count:
            logger.info(f"Cleared {count} cached FileMaker token(s)")
        return count

    def __len__(self) -> int:
        self._purge_expired()
        return len(self._entries)
