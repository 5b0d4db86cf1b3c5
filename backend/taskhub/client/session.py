"""Client-held session: the token, who it belongs to, and where it is in its life.

A ``Session`` is an explicit context object. It is created once, handed to the
API client and to the route guard, and moves through

    unknown -> loading -> authenticated | anonymous

``logout`` and a rejected token both land in ``anonymous`` and discard the
persisted token on the spot. ``close`` disposes the context.
"""

import json
import logging
import time
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from jose import JWTError, jwt

from taskhub.schemas.user import Principal

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNKNOWN = "unknown"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"
    DISPOSED = "disposed"


class SessionDisposed(RuntimeError):
    pass


def token_is_fresh(token: str, now: Optional[float] = None) -> bool:
    """Local expiry check on an unverified token; the server still verifies."""
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return False
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return False
    return exp > (time.time() if now is None else now)


class MemoryTokenStore:
    def __init__(self, token: Optional[str] = None):
        self._token = token

    def load(self) -> Optional[str]:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStore:
    """Persist the token as JSON so a restarted client can restore its session."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Optional[str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            logger.warning("Unreadable session file %s; ignoring it", self.path)
            return None
        token = data.get("token") if isinstance(data, dict) else None
        return token if isinstance(token, str) and token else None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token}), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


Listener = Callable[["Session"], None]


class Session:
    def __init__(self, store=None):
        self.store = store if store is not None else MemoryTokenStore()
        self.state = SessionState.UNKNOWN
        self.token: Optional[str] = None
        self.principal: Optional[Principal] = None
        self._listeners: List[Listener] = []

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.AUTHENTICATED

    @property
    def is_loading(self) -> bool:
        return self.state in (SessionState.UNKNOWN, SessionState.LOADING)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every state change; returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _ensure_live(self) -> None:
        if self.state == SessionState.DISPOSED:
            raise SessionDisposed("session has been closed")

    def _transition(self, state: SessionState) -> None:
        previous = self.state
        self.state = state
        if previous != state:
            logger.debug("Session %s -> %s", previous.value, state.value)
            for listener in list(self._listeners):
                listener(self)

    def begin_restore(self) -> Optional[str]:
        """
        Start the one-time restore attempt.

        Returns the persisted token when it still looks valid locally; the
        caller confirms it with the server and then calls ``authenticate`` or
        ``become_anonymous``. Returns None (and goes anonymous) otherwise.
        """
        self._ensure_live()
        self._transition(SessionState.LOADING)
        token = self.store.load()
        if token and token_is_fresh(token):
            return token
        if token:
            logger.info("Discarding expired or malformed stored token")
        self.become_anonymous()
        return None

    def authenticate(self, token: str, principal: Principal) -> None:
        self._ensure_live()
        self.store.save(token)
        self.token = token
        self.principal = principal
        self._transition(SessionState.AUTHENTICATED)

    def become_anonymous(self) -> None:
        self._ensure_live()
        self.store.clear()
        self.token = None
        self.principal = None
        self._transition(SessionState.ANONYMOUS)

    def logout(self) -> None:
        """Synchronous; no server round-trip is needed to forget a bearer token."""
        self.become_anonymous()

    def expire(self) -> None:
        """The server rejected our token mid-session."""
        if self.is_authenticated:
            logger.info("Session token rejected by server; signing out")
            self.become_anonymous()

    def close(self) -> None:
        self._listeners.clear()
        self.state = SessionState.DISPOSED
