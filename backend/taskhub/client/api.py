import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from taskhub.client.session import Session, SessionState
from taskhub.schemas.user import Principal

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000/api"


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
        super().__init__(f"{status_code}: {message}")


class ApiValidationError(ApiError):
    pass


class SessionExpired(ApiError):
    pass


class ApiForbidden(ApiError):
    pass


class ApiNotFound(ApiError):
    pass


class ApiServerError(ApiError):
    pass


_ERRORS_BY_STATUS = {
    400: ApiValidationError,
    401: SessionExpired,
    403: ApiForbidden,
    404: ApiNotFound,
}


def error_for(response: httpx.Response) -> ApiError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or body.get("detail") or response.reason_phrase
    cls = _ERRORS_BY_STATUS.get(response.status_code)
    if cls is None:
        cls = ApiServerError if response.status_code >= 500 else ApiError
    return cls(response.status_code, str(message), body.get("errors"))


def _query_value(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class TaskhubClient:
    """
    Synchronous client for the Taskhub API bound to one ``Session``.

    While the session holds a token every request carries it as a bearer
    header. A 401 on any call downgrades the session to anonymous, which in
    turn lets a subscribed ``RouteGuard`` redirect to the login route.
    """

    def __init__(
        self,
        session: Session,
        base_url: str = DEFAULT_API_URL,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.session = session
        self._http = httpx.Client(
            base_url=base_url,
            transport=transport,
            timeout=timeout,
            event_hooks={
                "request": [self._attach_token],
                "response": [self._watch_for_rejection],
            },
        )

    def _attach_token(self, request: httpx.Request) -> None:
        if self.session.token and "Authorization" not in request.headers:
            request.headers["Authorization"] = f"Bearer {self.session.token}"

    def _watch_for_rejection(self, response: httpx.Response) -> None:
        if response.status_code == 401:
            self.session.expire()

    def _request(self, method: str, path: str, **kwargs):
        response = self._http.request(method, path, **kwargs)
        if response.is_success:
            return response.json() if response.content else None
        error = error_for(response)
        logger.debug("%s %s failed: %s", method, path, error)
        raise error

    # Session lifecycle

    def restore(self) -> SessionState:
        """Run once at start-up: rehydrate a persisted token if the server still accepts it."""
        token = self.session.begin_restore()
        if token is None:
            return self.session.state
        try:
            user = self._request("GET", "/auth/me", headers={"Authorization": f"Bearer {token}"})
        except (ApiError, httpx.HTTPError) as e:
            logger.info("Stored session could not be restored: %s", e)
            self.session.become_anonymous()
        else:
            self.session.authenticate(token, _principal(user))
        return self.session.state

    def login(self, email: str, password: str) -> Principal:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        principal = _principal(data["user"])
        self.session.authenticate(data["token"], principal)
        return principal

    def register(self, name: str, email: str, password: str) -> Principal:
        data = self._request(
            "POST", "/auth/register", json={"name": name, "email": email, "password": password}
        )
        principal = _principal(data["user"])
        self.session.authenticate(data["token"], principal)
        return principal

    def logout(self) -> None:
        self.session.logout()

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")

    # Tasks

    def list_tasks(self, **filters) -> List[Dict[str, Any]]:
        names = {
            "status": "status",
            "priority": "priority",
            "search": "search",
            "due_date": "dueDate",
            "assigned_to": "assignedTo",
            "created_by": "createdBy",
        }
        params = {
            names[key]: _query_value(value)
            for key, value in filters.items()
            if value is not None
        }
        return self._request("GET", "/tasks", params=params)

    def create_task(
        self,
        title: str,
        description: str,
        due_date: datetime,
        priority: str = "medium",
        status: str = "todo",
        assigned_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {
            "title": title,
            "description": description,
            "dueDate": due_date.isoformat(),
            "priority": priority,
            "status": status,
        }
        if assigned_to:
            payload["assignedTo"] = assigned_to
        return self._request("POST", "/tasks", json=payload)

    def get_task(self, task_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/tasks/{task_id}")

    def update_task(self, task_id: str, **changes) -> Dict[str, Any]:
        names = {"due_date": "dueDate", "assigned_to": "assignedTo"}
        payload = {}
        for key, value in changes.items():
            if value is None:
                continue
            payload[names.get(key, key)] = _query_value(value)
        return self._request("PUT", f"/tasks/{task_id}", json=payload)

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    def complete_task(self, task_id: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/tasks/{task_id}/complete")

    def mark_notification_read(self, task_id: str, notification_id: str) -> None:
        self._request("PATCH", f"/tasks/{task_id}/notifications/{notification_id}/read")

    def notifications(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/notifications")

    def unread_count(self) -> int:
        return self._request("GET", "/notifications/unread-count")["unread"]

    # Users

    def list_users(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/users")

    def get_user(self, user_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/users/{user_id}")

    def update_user(self, user_id: str, name: Optional[str] = None, profile_picture: Optional[str] = None):
        payload = {}
        if name is not None:
            payload["name"] = name
        if profile_picture is not None:
            payload["profilePicture"] = profile_picture
        return self._request("PUT", f"/users/{user_id}", json=payload)

    def close(self) -> None:
        self._http.close()


def _principal(user: Dict[str, Any]) -> Principal:
    return Principal(id=str(user["id"]), name=user.get("name") or "", email=user.get("email") or "")
