"""Per-server authentication coordination for the FileMaker Admin API.

FileMaker Server caps the number of concurrent admin sessions, so when many
request handlers need a token for the same server at once, only one of them
may run the Basic-Auth exchange; everyone else awaits that exchange's result.
The same holds after a 401: every request that was rejected with the same
token shares one re-authentication.

All bookkeeping happens synchronously between ``await`` points on a single
event loop, so looking up and registering an in-flight exchange is atomic.
"""
import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable, Dict, Optional

from fmadmin.services.filemaker.token_cache import TokenCache

logger = logging.getLogger(__name__)

SignIn = Callable[[], Awaitable[str]]


@dataclass
class _Exchange:
    """An in-flight exchange and the rejected token it replaces, if any."""
    task: asyncio.Future
    supersedes: Optional[str] = None


class SessionManager:
    """Authentication Coordinator shared by every client in the process.

    Owns the token cache and the registry of in-flight exchanges, both keyed
    by server identity. Construct one per process (or per test) and pass it to
    each ``FileMakerAdminClient``.
    """

    def __init__(self, token_cache: Optional[TokenCache] = None):
        self.tokens = token_cache or TokenCache()
        self._in_flight: Dict[str, _Exchange] = {}

    async def ensure_token(self, identity: str, sign_in: SignIn) -> str:
        """
        Return a live token for ``identity``, authenticating at most once.

        Args:
            identity: Server identity (cache key)
            sign_in: Coroutine function performing the Basic-Auth exchange

        Returns:
            Bearer token

        Raises:
            FileMakerAPIError: The classified failure of the shared exchange,
                identical for every caller that awaited it
        """
        token = self.tokens.get(identity)
        if token:
            return token

        pending = self._in_flight.get(identity)
        if pending is None:
            task = self._start_exchange(identity, sign_in)
        else:
            logger.debug(f"Joining in-flight FileMaker authentication for server={identity}")
            task = pending.task

        # A cancelled waiter must not cancel the exchange other callers share
        return await asyncio.shield(task)

    async def reauthenticate(
        self,
        identity: str,
        sign_in: SignIn,
        rejected_token: Optional[str] = None,
    ) -> str:
        """
        Replace a token the server rejected with a fresh one.

        Callers rejected with the same token share one exchange. An exchange
        that was already in flight for some other reason is never joined, and
        a token cached since the rejection is returned as is.
        """
        self.tokens.invalidate(identity, rejected_token)

        token = self.tokens.get(identity)
        if token:
            return token

        pending = self._in_flight.get(identity)
        if rejected_token is not None and pending is not None and pending.supersedes == rejected_token:
            logger.debug(f"Joining in-flight FileMaker re-authentication for server={identity}")
            task = pending.task
        else:
            logger.info(f"Re-authenticating to FileMaker server={identity} after 401")
            task = self._start_exchange(identity, sign_in, supersedes=rejected_token)
        return await asyncio.shield(task)

    def invalidate(self, identity: str, token: Optional[str] = None) -> None:
        self.tokens.invalidate(identity, token)

    def clear(self) -> int:
        """Forget every cached token (does not end remote sessions)."""
        return self.tokens.clear()

    def in_flight(self, identity: str) -> bool:
        return identity in self._in_flight

    def _start_exchange(
        self,
        identity: str,
        sign_in: SignIn,
        supersedes: Optional[str] = None,
    ) -> asyncio.Future:
        task = asyncio.ensure_future(self._exchange(identity, sign_in))
        self._in_flight[identity] = _Exchange(task, supersedes)
        task.add_done_callback(partial(self._settle, identity))
        return task

    async def _exchange(self, identity: str, sign_in: SignIn) -> str:
        logger.info(f"Authenticating to FileMaker server={identity}")
        token = await sign_in()
        self.tokens.put(identity, token)
        logger.info(f"Authenticated to FileMaker server={identity} (token length: {len(token)})")
        return token

    def _settle(self, identity: str, task: asyncio.Future) -> None:
        # Runs before any waiter resumes, on success, failure and cancellation
        pending = self._in_flight.get(identity)
        if pending is not None and pending.task is task:
            del self._in_flight[identity]
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"FileMaker authentication failed for server={identity}: {task.exception()}")
