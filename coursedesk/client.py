"""
HTTP client for the course storage service.

Endpoints used:
    GET    /courses?facultyId=...            -> course list
    GET    /courses/<slug>                    -> one course
    POST   /courses                           -> create course with schedules
    POST   /courses/import-with-schedules     -> batch import
    PATCH  /courses/<slug>/schedules          -> replace schedules
    PATCH  /courses/bulk-archive              -> set status of several courses

Error policy:
- network errors and 5xx responses raise TransportError (retryable)
- 4xx responses come back as plain failure dicts, never raised
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """
    The storage service could not be reached or failed internally.
    """


class CoursesApi:
    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 500:
            raise TransportError(f"{method} {path} failed: HTTP {resp.status_code} {_error_text(resp)}")
        return resp

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def list_courses(self, faculty_id: Optional[str] = None) -> list[dict[str, Any]]:
        params = {"facultyId": faculty_id} if faculty_id else None
        resp = self._request("GET", "/courses", params=params)
        if not resp.ok:
            raise TransportError(f"GET /courses failed: HTTP {resp.status_code} {_error_text(resp)}")

        data = _json(resp)
        # the service answers either a bare list or {"courses": [...]}
        if isinstance(data, dict):
            data = data.get("courses", [])
        return list(data) if isinstance(data, list) else []

    def get_course(self, slug: str) -> Optional[dict[str, Any]]:
        resp = self._request("GET", f"/courses/{slug}")
        if resp.status_code == 404:
            return None
        if not resp.ok:
            raise TransportError(f"GET /courses/{slug} failed: HTTP {resp.status_code} {_error_text(resp)}")
        data = _json(resp)
        return data if isinstance(data, dict) else None

    # -----------------------------------------------------------------------
    # Commits
    # -----------------------------------------------------------------------

    def create_course(self, course: dict[str, Any], schedules: list[dict[str, str]]) -> dict[str, Any]:
        resp = self._request("POST", "/courses", json={**course, "schedules": schedules})
        data = _json(resp)
        if not resp.ok:
            return {"success": False, "error": _error_text(resp)}
        created = data.get("course", data) if isinstance(data, dict) else None
        return {"success": True, "course": created}

    def import_courses(self, courses: list[dict[str, Any]]) -> dict[str, Any]:
        resp = self._request("POST", "/courses/import-with-schedules", json={"courses": courses})
        data = _json(resp)
        if not resp.ok:
            # whole batch refused: report every course as failed
            msg = _error_text(resp)
            return {
                "results": {
                    "success": 0,
                    "failed": len(courses),
                    "errors": [{"row": i, "message": msg} for i in range(1, len(courses) + 1)],
                }
            }
        return data if isinstance(data, dict) else {"results": {"success": 0, "failed": 0, "errors": []}}

    def replace_schedules(self, slug: str, schedules: list[dict[str, str]]) -> dict[str, Any]:
        resp = self._request("PATCH", f"/courses/{slug}/schedules", json={"schedules": schedules})
        if resp.ok:
            return {"success": True}

        data = _json(resp)
        out: dict[str, Any] = {"success": False, "error": _error_text(resp)}
        if isinstance(data, dict) and "conflicts" in data:
            out["conflicts"] = data["conflicts"]
        return out

    def set_status(self, slugs: list[str], status: str) -> dict[str, Any]:
        """
        The service addresses courses by id, so each slug is looked up first.
        """
        ids: list[Any] = []
        missing: list[str] = []
        for slug in slugs:
            course = self.get_course(slug)
            if course is None or not course.get("id"):
                missing.append(slug)
            else:
                ids.append(course["id"])
        if missing:
            return {"success": False, "error": f"Course not found: {', '.join(missing)}"}

        resp = self._request("PATCH", "/courses/bulk-archive", json={"courseIds": ids, "status": status})
        if not resp.ok:
            return {"success": False, "error": _error_text(resp)}
        data = _json(resp)
        count = data.get("updatedCount", len(ids)) if isinstance(data, dict) else len(ids)
        return {"success": True, "updatedCount": count}


def _json(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return {}


def _error_text(resp: requests.Response) -> str:
    data = _json(resp)
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return resp.reason or f"HTTP {resp.status_code}"
