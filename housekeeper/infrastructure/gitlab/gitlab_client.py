import logging
import os
import re
import time
from typing import Any, Callable

import requests
from jsonschema import ValidationError, validate

from housekeeper.domain.errors import configuration_error, hosting_api_error
from housekeeper.domain.models import Change, FieldKind, RemoteChangeState
from housekeeper.infrastructure.observability.logging_utils import log_event, safe_message


logger = logging.getLogger(__name__)

_DEFAULT_API_URL = "https://gitlab.com/api/v4"
_DEFAULT_TIMEOUT_SECONDS = 30.0
_DEFAULT_MAX_RETRIES = 2
_DEFAULT_RETRY_BACKOFF_SECONDS = 1.0
_PAGE_SIZE = 100
_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

_ADDED_COMMITS_PATTERN = re.compile(r"added \d+ commit")

_MERGE_REQUEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["iid", "web_url"],
    "properties": {
        "iid": {"type": "integer"},
        "web_url": {"type": "string", "minLength": 1},
    },
}


def _numeric_env(
    name: str,
    default: Any,
    cast: Callable[[str], Any],
    *,
    allow_zero: bool = True,
) -> Any:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        value = cast(raw_value)
    except ValueError as error:
        raise configuration_error(f"{name} must be a number, got '{raw_value}'") from error
    if value < 0 or (value == 0 and not allow_zero):
        raise configuration_error(f"{name} is out of range: '{raw_value}'")
    return value


def _field_kinds_from_note(body: str) -> set[FieldKind]:
    kinds: set[FieldKind] = set()
    if body.startswith("changed title from"):
        kinds.add(FieldKind.TITLE)
    if body == "changed the description":
        kinds.add(FieldKind.DESCRIPTION)
    if _ADDED_COMMITS_PATTERN.search(body):
        kinds.add(FieldKind.CODE)
    if "requested review from" in body or "removed review request for" in body:
        kinds.add(FieldKind.REVIEWERS)
    return kinds


class GitLabClient:
    def __init__(
        self,
        *,
        token: str,
        api_url: str = _DEFAULT_API_URL,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = _DEFAULT_MAX_RETRIES,
        retry_backoff_seconds: float = _DEFAULT_RETRY_BACKOFF_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.token = token
        self.base = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.retry_backoff_seconds = retry_backoff_seconds
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "PRIVATE-TOKEN": self.token,
                "Content-Type": "application/json",
            }
        )
        self._current_user_id: int | None = None

    @classmethod
    def from_env(cls) -> "GitLabClient":
        token = os.getenv("HOUSEKEEPER_GITLAB_API_TOKEN")
        if not token:
            raise configuration_error("Missing required environment variable: HOUSEKEEPER_GITLAB_API_TOKEN")

        return cls(
            token=token,
            api_url=os.getenv("HOUSEKEEPER_GITLAB_API_URL", _DEFAULT_API_URL),
            timeout_seconds=_numeric_env(
                "HOUSEKEEPER_GITLAB_TIMEOUT_SECONDS",
                _DEFAULT_TIMEOUT_SECONDS,
                float,
                allow_zero=False,
            ),
            max_retries=_numeric_env("HOUSEKEEPER_GITLAB_MAX_RETRIES", _DEFAULT_MAX_RETRIES, int),
            retry_backoff_seconds=_numeric_env(
                "HOUSEKEEPER_GITLAB_RETRY_BACKOFF_SECONDS",
                _DEFAULT_RETRY_BACKOFF_SECONDS,
                float,
            ),
        )

    def non_housekeeper_changes(
        self,
        *,
        source_project_id: str,
        source_branch: str,
        target_branch: str,
        target_project_id: str,
    ) -> RemoteChangeState:
        existing_merge_request = self.get_existing_merge_request(
            source_project_id=source_project_id,
            source_branch=source_branch,
            target_branch=target_branch,
            target_project_id=target_project_id,
        )
        if existing_merge_request is None:
            return frozenset()

        iid = existing_merge_request["iid"]
        current_user_id = self.current_user_id()
        changes: set[FieldKind] = set()

        notes = self._get_all(f"/projects/{target_project_id}/merge_requests/{iid}/notes")
        for note in notes:
            if not note.get("system"):
                continue
            if (note.get("author") or {}).get("id") == current_user_id:
                continue
            changes.update(_field_kinds_from_note(note.get("body") or ""))

        label_events = self._get_all(
            f"/projects/{target_project_id}/merge_requests/{iid}/resource_label_events"
        )
        for label_event in label_events:
            if (label_event.get("user") or {}).get("id") == current_user_id:
                continue
            changes.add(FieldKind.LABELS)

        log_event(
            logger,
            logging.INFO,
            "gitlab.merge_request.non_housekeeper_changes",
            iid=iid,
            source_branch=source_branch,
            changes=",".join(sorted(kind.value for kind in changes)) or "none",
        )
        return frozenset(changes)

    def create_or_update_merge_request(
        self,
        *,
        change: Change,
        source_project_id: str,
        source_branch: str,
        target_branch: str,
        target_project_id: str,
        update_title: bool,
        update_description: bool,
        update_labels: bool,
        update_reviewers: bool,
    ) -> dict[str, Any]:
        existing_merge_request = self.get_existing_merge_request(
            source_project_id=source_project_id,
            source_branch=source_branch,
            target_branch=target_branch,
            target_project_id=target_project_id,
        )
        if existing_merge_request is None:
            return self.create_merge_request(
                change=change,
                source_project_id=source_project_id,
                source_branch=source_branch,
                target_branch=target_branch,
                target_project_id=target_project_id,
            )

        return self.update_existing_merge_request(
            change=change,
            existing_merge_request=existing_merge_request,
            target_project_id=target_project_id,
            update_title=update_title,
            update_description=update_description,
            update_labels=update_labels,
            update_reviewers=update_reviewers,
        )

    def get_existing_merge_request(
        self,
        *,
        source_project_id: str,
        source_branch: str,
        target_branch: str,
        target_project_id: str,
    ) -> dict[str, Any] | None:
        merge_requests = self._get(
            f"/projects/{target_project_id}/merge_requests",
            params={
                "state": "opened",
                "source_branch": source_branch,
                "target_branch": target_branch,
                "source_project_id": source_project_id,
            },
        )
        if not merge_requests:
            return None
        if len(merge_requests) > 1:
            iids = ",".join(str(merge_request.get("iid")) for merge_request in merge_requests)
            raise hosting_api_error(f"More than one matching MR exists: iids: {iids}")
        return self._validated_merge_request(merge_requests[0])

    def create_merge_request(
        self,
        *,
        change: Change,
        source_project_id: str,
        source_branch: str,
        target_branch: str,
        target_project_id: str,
    ) -> dict[str, Any]:
        log_event(
            logger,
            logging.INFO,
            "gitlab.merge_request.create",
            source_branch=source_branch,
            target_branch=target_branch,
            title=change.title,
        )
        payload = {
            "title": change.title,
            "description": change.mr_description,
            "labels": ",".join(change.labels),
            "source_branch": source_branch,
            "target_branch": target_branch,
            "target_project_id": target_project_id,
            "remove_source_branch": True,
            "reviewer_ids": self.usernames_to_ids(change.reviewers),
        }
        response = self._send("POST", f"/projects/{source_project_id}/merge_requests", payload)
        return self._validated_merge_request(response)

    def update_existing_merge_request(
        self,
        *,
        change: Change,
        existing_merge_request: dict[str, Any],
        target_project_id: str,
        update_title: bool,
        update_description: bool,
        update_labels: bool,
        update_reviewers: bool,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if update_title:
            payload["title"] = change.title
        if update_description:
            payload["description"] = change.mr_description
        if update_labels:
            payload["add_labels"] = ",".join(change.labels)
        if update_reviewers:
            payload["reviewer_ids"] = self.usernames_to_ids(change.reviewers)

        iid = existing_merge_request["iid"]
        if not payload:
            log_event(logger, logging.INFO, "gitlab.merge_request.update_skipped", iid=iid)
            return existing_merge_request

        log_event(
            logger,
            logging.INFO,
            "gitlab.merge_request.update",
            iid=iid,
            fields=",".join(sorted(payload)),
        )
        response = self._send("PUT", f"/projects/{target_project_id}/merge_requests/{iid}", payload)
        return self._validated_merge_request(response)

    def current_user_id(self) -> int:
        if self._current_user_id is None:
            self._current_user_id = self._get("/user")["id"]
        return self._current_user_id

    def usernames_to_ids(self, usernames: list[str]) -> list[int]:
        user_ids = []
        for username in usernames:
            users = self._get("/users", params={"username": username})
            if not users:
                raise hosting_api_error(f"GitLab user not found: {username}")
            user_ids.append(users[0]["id"])
        return user_ids

    def _validated_merge_request(self, merge_request: Any) -> dict[str, Any]:
        try:
            validate(instance=merge_request, schema=_MERGE_REQUEST_SCHEMA)
        except ValidationError as error:
            raise hosting_api_error(f"unexpected merge request payload: {error.message}") from error
        return merge_request

    def _get_all(self, path: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page = "1"
        while page:
            page_params = {**(params or {}), "per_page": _PAGE_SIZE, "page": page}
            response = self._request_with_retry(path, page_params)
            items.extend(self._decode(response, "GET", path))
            page = response.headers.get("X-Next-Page", "")
        return items

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = self._request_with_retry(path, params)
        return self._decode(response, "GET", path)

    def _request_with_retry(self, path: str, params: dict[str, Any] | None) -> requests.Response:
        # Somente leituras (GET) sao repetidas; escritas falham na primeira tentativa.
        attempts = self.max_retries + 1
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                response = self.session.get(
                    f"{self.base}{path}",
                    params=params,
                    timeout=self.timeout_seconds,
                )
            except (requests.ConnectionError, requests.Timeout) as error:
                last_error = error
            except requests.RequestException as error:
                raise hosting_api_error(safe_message(f"GET {path} failed: {error}")) from error
            else:
                if response.status_code not in _RETRYABLE_STATUS_CODES or attempt == attempts:
                    return response
                last_error = hosting_api_error(f"GET {path} returned {response.status_code}")

            log_event(
                logger,
                logging.WARNING,
                "gitlab.request.retry",
                path=path,
                attempt=attempt,
                error=str(last_error),
            )
            if attempt < attempts:
                time.sleep(self.retry_backoff_seconds * attempt)

        raise hosting_api_error(
            safe_message(f"GET {path} failed after {attempts} attempts: {last_error}")
        )

    def _send(self, method: str, path: str, payload: dict[str, Any]) -> Any:
        try:
            response = self.session.request(
                method,
                f"{self.base}{path}",
                json=payload,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as error:
            raise hosting_api_error(safe_message(f"{method} {path} failed: {error}")) from error
        return self._decode(response, method, path)

    def _decode(self, response: requests.Response, method: str, path: str) -> Any:
        if not 200 <= response.status_code < 300:
            error_details = response.text
            try:
                error_payload = response.json()
                if isinstance(error_payload, dict):
                    error_details = str(error_payload.get("message") or error_payload.get("error") or error_payload)
            except ValueError:
                pass
            safe_error_details = safe_message(error_details)
            log_event(
                logger,
                logging.ERROR,
                "gitlab.request.failed",
                method=method,
                path=path,
                status_code=response.status_code,
                details=safe_error_details,
            )
            raise hosting_api_error(
                f"{method} {path} failed with response code {response.status_code}: {safe_error_details}"
            )
        try:
            return response.json()
        except ValueError as error:
            raise hosting_api_error(f"{method} {path} returned a non-JSON body") from error
