"""Microsoft To Do client over the Graph REST API."""

from datetime import date
from typing import Any, Dict, List, Optional
import logging

import requests

from ..core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConnectivityError,
    NotFoundError,
    ValidationError,
)
from ..core.models import RemoteTask


DEFAULT_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_LIST_NAME = "Obsidian Tasks"
TASK_FIELDS = "id,title,body,startDateTime,dueDateTime,status,createdDateTime,completedDateTime"

STATUS_MESSAGES = {
    401: "Authentication failed. Please re-authenticate.",
    403: "Access denied. Check your permissions.",
    404: "Resource not found.",
    429: "Rate limit exceeded. Please try again later.",
}


class TodoClient:
    """Lists, creates and completes tasks in a single To Do list."""

    def __init__(
        self,
        access_token: str,
        list_id: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if not access_token or not access_token.strip():
            raise ConfigurationError("An access token is required for the To Do client")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.list_id = list_id
        self.logger = logger or logging.getLogger(__name__)
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {access_token.strip()}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    @classmethod
    def from_config(cls, config, logger: Optional[logging.Logger] = None) -> "TodoClient":
        return cls(
            access_token=config.access_token or "",
            list_id=config.list_id,
            base_url=config.graph_base_url,
            timeout=config.request_timeout,
            logger=logger,
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _error_for(self, response: requests.Response) -> ConnectivityError:
        status = response.status_code
        if status in STATUS_MESSAGES:
            message = STATUS_MESSAGES[status]
        elif status >= 500:
            message = "Server error. Please try again later."
        else:
            message = f"API error ({status}): {response.reason}"

        try:
            detail = response.json().get("error", {}).get("message")
        except (ValueError, AttributeError):
            detail = None
        if detail:
            message = f"{message} ({detail})"

        if status == 401:
            return AuthenticationError(message, status_code=status)
        return ConnectivityError(message, status_code=status)

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        self.logger.debug("%s %s", method, url)

        try:
            response = self.session.request(
                method, url, params=params, json=json_data, timeout=self.timeout
            )
        except requests.exceptions.Timeout as exc:
            raise ConnectivityError(f"Request timed out after {self.timeout:g}s: {method} {url}") from exc
        except requests.exceptions.RequestException as exc:
            raise ConnectivityError(f"Network error. Please check your internet connection. ({exc})") from exc

        if response.status_code == 404:
            raise NotFoundError(STATUS_MESSAGES[404])
        if not response.ok:
            raise self._error_for(response)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectivityError(f"Invalid JSON in response from {method} {url}") from exc

    def _tasks_path(self) -> str:
        if not self.list_id:
            raise ConfigurationError("Task list not resolved; call get_or_create_task_list() first")
        return f"/me/todo/lists/{self.list_id}/tasks"

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------
    def get_or_create_task_list(self, list_name: str = DEFAULT_LIST_NAME) -> str:
        """Resolve the id of the list named ``list_name``, creating it if needed."""
        response = self._request("GET", "/me/todo/lists") or {}
        match = next(
            (lst for lst in response.get("value", []) if lst.get("displayName") == list_name),
            None,
        )

        if match is None:
            self.logger.info(f"Creating new task list: {list_name}")
            match = self._request("POST", "/me/todo/lists", json_data={"displayName": list_name}) or {}

        self.list_id = match.get("id") or None
        if not self.list_id:
            raise ConnectivityError(f"Task list '{list_name}' has no id in the response")

        self.logger.info(f"Using task list: {list_name} (ID: {self.list_id})")
        return self.list_id

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def list_tasks(self) -> List[RemoteTask]:
        """Fetch every task in the list, following paging links."""
        tasks: List[RemoteTask] = []
        url: Optional[str] = self._tasks_path()
        params: Optional[Dict[str, Any]] = {"$select": TASK_FIELDS}

        while url:
            page = self._request("GET", url, params=params) or {}
            tasks.extend(RemoteTask.from_graph(item) for item in page.get("value", []))
            url = page.get("@odata.nextLink")
            params = None  # nextLink already carries the query

        self.logger.debug(f"Retrieved {len(tasks)} tasks from Microsoft To Do")
        return tasks

    def create_task(self, title: str, start_date: Optional[date] = None) -> RemoteTask:
        """Create a not-started task, optionally scheduled to start on ``start_date``."""
        if not title or not title.strip():
            raise ValidationError("Task title cannot be empty")

        payload: Dict[str, Any] = {"title": title.strip(), "status": "notStarted"}
        if start_date:
            payload["startDateTime"] = {
                "dateTime": f"{start_date.isoformat()}T09:00:00.000Z",
                "timeZone": "UTC",
            }

        created = self._request("POST", self._tasks_path(), json_data=payload) or {}
        self.logger.info(f"Created task: {title.strip()}")
        return RemoteTask.from_graph(created)

    def complete_task(self, task_id: str) -> None:
        if not task_id:
            raise ValidationError("Task ID cannot be empty")

        try:
            self._request("PATCH", f"{self._tasks_path()}/{task_id}", json_data={"status": "completed"})
        except NotFoundError as exc:
            raise NotFoundError(f"Task not found: {task_id}") from exc
        self.logger.info(f"Completed task: {task_id}")

    def delete_task(self, task_id: str) -> None:
        if not task_id:
            raise ValidationError("Task ID cannot be empty")

        try:
            self._request("DELETE", f"{self._tasks_path()}/{task_id}")
        except NotFoundError as exc:
            raise NotFoundError(f"Task not found: {task_id}") from exc
        self.logger.info(f"Deleted task: {task_id}")

    def get_user_info(self) -> Dict[str, str]:
        """Email and display name of the signed-in account."""
        user = self._request("GET", "/me", params={"$select": "mail,userPrincipalName,displayName"}) or {}
        return {
            "email": user.get("mail") or user.get("userPrincipalName") or "",
            "display_name": user.get("displayName") or "Microsoft User",
        }
