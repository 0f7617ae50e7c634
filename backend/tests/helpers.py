"""Fake FileMaker Admin API used by the client and settings service tests."""
import asyncio
import copy
import json
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import Mock

API_PREFIX = "/fmi/admin/api/v2"
BASE_URL = "https://fms.example.com"

DEFAULT_PAYLOADS: Dict[str, Dict[str, Any]] = {
    "/server/config/general": {
        "cacheSize": 512,
        "maxFiles": 125,
        "maxProConnections": 250,
        "maxPSOS": 50,
        "useSchedules": False,
    },
    "/server/config/security": {"requireSecureDB": True},
    "/php/config": {"enabled": True},
    "/xml/config": {"enabled": False},
    "/xdbc/config": {"enabled": True},
    "/fmdapi/config": {"enabled": True},
    "/fmodata/config": {"enabled": False},
    "/webdirect/config": {"enabled": True},
    "/server/emailsettings": {
        "smtpServerAddress": "smtp.example.com",
        "smtpServerPort": 587,
        "smtpUsername": "alerts",
        "emailSenderAddress": "fms@example.com",
        "emailRecipients": "ops@example.com",
        "smtpAuthType": 1,
        "smtpSecurity": 2,
        "notifyLevel": 1,
    },
    "/server/metadata": {
        "serverVersion": "21.0.1",
        "serverName": "Production FMS",
        "hostName": "fms.example.com",
        "osVersion": "Ubuntu 22.04",
    },
}

SETTINGS_PATHS = [
    "/server/config/general",
    "/server/config/security",
    "/php/config",
    "/xml/config",
    "/xdbc/config",
    "/fmdapi/config",
    "/fmodata/config",
    "/webdirect/config",
    "/server/emailsettings",
]


def envelope(payload: Any) -> Dict[str, Any]:
    """Wrap a payload the way the Admin API does."""
    return {"response": payload, "messages": [{"code": "0", "text": "OK"}]}


def make_response(status_code: int = 200, json_data: Any = None) -> Mock:
    """Mock httpx.Response; json() raises ValueError when json_data is None."""
    response = Mock()
    response.status_code = status_code
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = ""
    else:
        response.json.return_value = json_data
        response.text = json.dumps(json_data)
    return response


def error_response(status_code: int, message: str = "") -> Mock:
    return make_response(status_code, {"response": {}, "messages": [{"code": str(status_code), "message": message}]})


class FakeAdminServer:
    """In-process stand-in for a FileMaker Server Admin API.

    Wired into the mocked httpx.AsyncClient: ``post`` signs in, ``request``
    serves settings endpoints, ``delete`` logs out.
    """

    def __init__(self):
        self.payloads = copy.deepcopy(DEFAULT_PAYLOADS)
        self.failures: Dict[str, Any] = {}
        self.auth_status = 200
        self.auth_error: Optional[BaseException] = None
        self.auth_delay = 0.0
        self.auth_calls = 0
        self.auth_headers: List[Any] = []
        self.rejected_tokens = set()
        self.reject_all_tokens = False
        self.requests: List[Tuple[str, str, str, Any]] = []
        self.logouts: List[str] = []

    @staticmethod
    def path_of(url: str) -> str:
        assert url.startswith(BASE_URL + API_PREFIX), url
        return url[len(BASE_URL + API_PREFIX):]

    def fail(self, path: str, status_code: int, message: str = "", method: Optional[str] = None) -> None:
        """Fail every call to ``path``, or only calls with ``method``."""
        self.failures[(method, path) if method else path] = (status_code, message)

    def fail_all(self, status_code: int = 500) -> None:
        for path in SETTINGS_PATHS:
            self.fail(path, status_code)

    def raise_on(self, path: str, error: BaseException) -> None:
        self.failures[path] = error

    async def sign_in(self, url, auth=None, headers=None):
        assert self.path_of(url) == "/user/auth"
        self.auth_calls += 1
        call = self.auth_calls
        self.auth_headers.append(auth)
        # Yield so concurrent callers get a chance to pile up behind this exchange
        await asyncio.sleep(self.auth_delay)
        if self.auth_error is not None:
            raise self.auth_error
        if self.auth_status != 200:
            return error_response(self.auth_status, "Invalid user account and/or password")
        return make_response(200, envelope({"token": f"token-{call}"}))

    async def handle(self, method, url, headers=None, json=None):
        path = self.path_of(url)
        token = headers["Authorization"].split(" ", 1)[1]
        self.requests.append((method, path, token, copy.deepcopy(json)))
        await asyncio.sleep(0)

        if self.reject_all_tokens or token in self.rejected_tokens:
            return error_response(401, "Unauthorized")

        failure = self.failures.get((method, path), self.failures.get(path))
        if isinstance(failure, BaseException):
            raise failure
        if failure:
            return error_response(*failure)

        if method == "GET":
            return make_response(200, envelope(copy.deepcopy(self.payloads.get(path, {}))))

        stored = self.payloads.setdefault(path, {})
        stored.update({k: v for k, v in (json or {}).items() if k != "smtpPassword"})
        return make_response(200, envelope({}))

    async def logout(self, url, headers=None):
        path = self.path_of(url)
        assert path.startswith("/user/auth/")
        self.logouts.append(path.rsplit("/", 1)[1])
        return make_response(200, envelope({}))

    def gets(self) -> List[str]:
        return [path for method, path, _, _ in self.requests if method == "GET"]

    def writes(self) -> List[Tuple[str, str, Any]]:
        return [(method, path, body) for method, path, _, body in self.requests if method != "GET"]
