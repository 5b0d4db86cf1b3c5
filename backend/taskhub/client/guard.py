"""Route admission for the client.

``admit`` is the rule; ``RouteGuard`` applies it on exactly two events, an auth
state change and a route change, and issues at most one redirect per event.
Redirect targets never sit in the set that triggers them, so following a
redirect cannot cause another one.
"""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "/login"
REGISTER_ROUTE = "/register"
DASHBOARD_ROUTE = "/dashboard"

AUTH_ROUTES = frozenset({LOGIN_ROUTE, REGISTER_ROUTE})
PUBLIC_ROUTES = frozenset({"/", "/about"}) | AUTH_ROUTES


def _normalize(path: str) -> str:
    path = path.split("?", 1)[0].split("#", 1)[0] or "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def admit(path: str, is_authenticated: bool, is_loading: bool) -> Optional[str]:
    """Return the redirect target for ``path``, or None to stay."""
    if is_loading:
        return None
    path = _normalize(path)
    if is_authenticated and path in AUTH_ROUTES:
        return DASHBOARD_ROUTE
    if not is_authenticated and path not in PUBLIC_ROUTES:
        return LOGIN_ROUTE
    return None


class RouteGuard:
    def __init__(self, session, navigate: Callable[[str], None], path: str = "/"):
        self.session = session
        self.navigate = navigate
        self.path = _normalize(path)
        self._unsubscribe = session.subscribe(self.on_auth_changed)

    def _evaluate(self) -> Optional[str]:
        target = admit(self.path, self.session.is_authenticated, self.session.is_loading)
        if target is not None and target != self.path:
            logger.debug("Redirecting %s -> %s", self.path, target)
            self.path = target
            self.navigate(target)
            return target
        return None

    def on_auth_changed(self, session=None) -> Optional[str]:
        return self._evaluate()

    def on_route_changed(self, path: str) -> Optional[str]:
        self.path = _normalize(path)
        return self._evaluate()

    def detach(self) -> None:
        self._unsubscribe()
