"""Caller-supplied admin credentials."""
from dataclasses import dataclass
from urllib.parse import urlparse


def normalize_admin_url(admin_url: str) -> str:
    """
    Reduce an admin console URL to the server base URL.

    Adds ``https://`` when no scheme is given and drops any path, so both
    ``fms.example.com`` and ``https://fms.example.com/admin-console/`` become
    ``https://fms.example.com``.
    """
    url = (admin_url or "").strip()
    if not url:
        raise ValueError("FileMaker admin URL is required")
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    parsed = urlparse(url)
    if not parsed.netloc:
        raise ValueError(f"Invalid FileMaker admin URL: {admin_url}")
    return f"{parsed.scheme}://{parsed.netloc}"


@dataclass(frozen=True)
class AdminCredentials:
    """Admin console credentials for one server.

    The password is plaintext, already decrypted by the caller. Nothing here
    is persisted.
    """
    admin_url: str
    username: str
    password: str

    @property
    def base_url(self) -> str:
        return normalize_admin_url(self.admin_url)

    def __repr__(self) -> str:
        return f"AdminCredentials(admin_url={self.admin_url!r}, username={self.username!r}, password='***')"
