"""OpenProject API v3 client used as the remote work tracking system."""

import logging

import requests
from requests.auth import HTTPBasicAuth

from .dates import format_duration, format_time_range
from .errors import RemoteOperationError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v3"


def _elements(data):
    return (data or {}).get("_embedded", {}).get("elements", [])


def _link_id(resource, rel):
    href = (resource.get("_links", {}).get(rel) or {}).get("href") or ""
    return href.rstrip("/").rsplit("/", 1)[-1]


def matching_time_entries(entries, work_item_id, date):
    """Filter time entries down to one work package and 'YYYY-MM-DD' date."""
    return [
        entry
        for entry in entries
        if entry.get("spentOn") == date and _link_id(entry, "workPackage") == str(work_item_id)
    ]


class OpenProjectClient:
    """Handles work package and time entry operations against OpenProject."""

    def __init__(self, settings, session=None):
        self.settings = settings
        self.base_url = settings.base_url.rstrip("/")
        self.timeout = settings.request_timeout
        self.session = session or requests.Session()
        self._setup_authentication()

    def _setup_authentication(self):
        """Setup API token authentication for API requests."""
        self.session.auth = HTTPBasicAuth("apikey", self.settings.api_token)
        self.session.headers.update(
            {"Content-Type": "application/json", "Accept": "application/hal+json"}
        )

    def _request(self, method, endpoint, **kwargs):
        url = f"{self.base_url}{API_PREFIX}{endpoint}"
        kwargs.setdefault("timeout", self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            raise RemoteOperationError(f"{method} {endpoint} failed: {e}") from e

        if response.status_code >= 400:
            raise self._error_from_response(method, endpoint, response)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise RemoteOperationError(
                f"{method} {endpoint} returned invalid JSON", status_code=response.status_code
            ) from e

    def _error_from_response(self, method, endpoint, response):
        details = []
        try:
            error_data = response.json()
        except ValueError:
            error_data = None

        if isinstance(error_data, dict):
            embedded_errors = error_data.get("_embedded", {}).get("errors")
            if embedded_errors:
                details = [error.get("message", "Unknown error") for error in embedded_errors]
            elif error_data.get("message"):
                details = [error_data["message"]]

        if not details:
            details = [response.text[:200]]

        return RemoteOperationError(
            f"{method} {endpoint} failed with HTTP {response.status_code}: {'; '.join(details)}",
            status_code=response.status_code,
            details=details,
        )

    def get_current_user(self):
        """Retrieve current user information."""
        return self._request("GET", "/users/me")

    def get_user(self, user_id):
        return self._request("GET", f"/users/{user_id}")

    def get_project(self, project_id):
        return self._request("GET", f"/projects/{project_id}")

    def list_projects(self):
        return _elements(self._request("GET", "/projects", params={"pageSize": 100}))

    def list_statuses(self):
        return _elements(self._request("GET", "/statuses"))

    def list_work_items(self, project_id, offset, page_size):
        """Fetch one page of a project's work packages; offset is 1-based."""
        data = self._request(
            "GET",
            f"/projects/{project_id}/work_packages",
            params={"pageSize": page_size, "offset": offset},
        )
        return _elements(data)

    def build_work_item_data(self, project_id, subject, type_id, description=None, status_id=None):
        work_package_data = {
            "subject": subject,
            "_links": {
                "project": {"href": f"{API_PREFIX}/projects/{project_id}"},
                "type": {"href": f"{API_PREFIX}/types/{type_id}"},
                "status": {
                    "href": f"{API_PREFIX}/statuses/{status_id or self.settings.default_status_id}"
                },
            },
        }

        if description:
            work_package_data["description"] = {"format": "markdown", "raw": description}

        if self.settings.accountable_user_id:
            work_package_data["_links"]["responsible"] = {
                "href": f"{API_PREFIX}/users/{self.settings.accountable_user_id}"
            }

        if self.settings.assignee_user_id:
            work_package_data["_links"]["assignee"] = {
                "href": f"{API_PREFIX}/users/{self.settings.assignee_user_id}"
            }

        return work_package_data

    def create_work_item(self, project_id, subject, type_hint=None, description=None, status_id=None):
        """Create a work package. type_hint is the activity name of the entry."""
        # Every activity currently maps onto the default "Task" type.
        type_id = self.settings.default_type_id
        data = self.build_work_item_data(project_id, subject, type_id, description, status_id)
        logger.debug("Creating work package %r in project %s (%s)", subject, project_id, type_hint)
        return self._request("POST", "/work_packages", json=data)

    def list_time_entries(self, page_size=100):
        """Fetch all time entries visible to the current user."""
        entries = []
        offset = 1
        while True:
            data = self._request(
                "GET", "/time_entries", params={"pageSize": page_size, "offset": offset}
            )
            page = _elements(data)
            entries.extend(page)

            total = (data or {}).get("total", len(entries))
            if not page or len(page) < page_size or len(entries) >= total:
                break
            offset += 1
        return entries

    def build_time_entry_data(self, work_item_id, date, hours, activity_id, comment):
        time_entry_data = {
            "spentOn": date,
            "hours": format_duration(hours),
            "_links": {
                "workPackage": {"href": f"{API_PREFIX}/work_packages/{work_item_id}"},
                "activity": {"href": f"{API_PREFIX}/time_entries/activities/{activity_id}"},
            },
        }
        if comment:
            time_entry_data["comment"] = {"raw": comment}
        return time_entry_data

    def create_time_entry(self, work_item_id, date, start_time, hours, activity, comment=None):
        """Create a time entry; start_time ('HH:MM') is recorded in the comment."""
        if not hours or float(hours) <= 0:
            raise RemoteOperationError(f"Invalid hours value: {hours}")

        if start_time:
            time_info = format_time_range(start_time, hours)
            comment = f"{time_info} {comment}" if comment else time_info

        data = self.build_time_entry_data(
            work_item_id, date, hours, self.settings.activity_id(activity), comment
        )
        logger.debug("Creating time entry for work package %s on %s", work_item_id, date)
        return self._request("POST", "/time_entries", json=data)

    def update_time_entry(self, time_entry_id, hours, comment=None):
        data = {"hours": format_duration(hours)}
        if comment:
            data["comment"] = {"raw": comment}
        return self._request("PATCH", f"/time_entries/{time_entry_id}", json=data)
