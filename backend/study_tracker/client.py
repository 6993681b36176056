"""HTTP client for the study tracker API.

Thin wrapper over `httpx.Client`: every call raises
`httpx.HTTPStatusError` on a non-2xx answer and returns decoded JSON
otherwise. Pass `http=` to reuse an existing client (for example a
FastAPI `TestClient`).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import settings
from .timer import FinalizedSession
from .utils.optimistic import OptimisticCache

logger = logging.getLogger("study_tracker.client")


class StudyTrackerClient:

    def __init__(self, base_url: Optional[str] = None, http: Optional[httpx.Client] = None, timeout: float = 10.0) -> None:
        self._owns_http = http is None
        self._http = http or httpx.Client(base_url=(base_url or settings.API_BASE_URL).rstrip("/"), timeout=timeout)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "StudyTrackerClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        resp = self._http.request(method, path, **kwargs)
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning("%s %s failed with HTTP %s: %s", method, path, e.response.status_code, e.response.text)
            raise
        return resp.json()

    # ── Topics ────────────────────────────────────────────────────────────

    def list_topics(self, subject: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"subject": subject} if subject else None
        return self._request("GET", "/api/topics", params=params)

    def get_topic(self, topic_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/topics/{topic_id}")

    def update_topic(self, topic_id: str, **changes) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/topics/{topic_id}", json=changes)

    def topics_cache(self) -> OptimisticCache:
        """A local topic list whose confidence/completion edits roll back on failure."""
        return OptimisticCache(self.list_topics)

    # ── Sessions ──────────────────────────────────────────────────────────

    def list_sessions(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/sessions")

    def create_session(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/sessions", json=payload)

    def save_finished_session(self, record: FinalizedSession) -> Dict[str, Any]:
        """Store a stopped timer's record as a study session."""
        return self.create_session(record.to_payload())

    def delete_session(self, session_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/api/sessions/{session_id}")

    def daily_report(self, day: Optional[str] = None) -> Dict[str, Any]:
        params = {"day": day} if day else None
        return self._request("GET", "/api/dashboard/daily", params=params)

    # ── Schedule ──────────────────────────────────────────────────────────

    def list_schedule(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/schedule")

    def update_schedule_item(self, item_id: str, **changes) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/schedule/{item_id}", json=changes)

    def schedule_cache(self) -> OptimisticCache:
        return OptimisticCache(self.list_schedule)

    # ── References ────────────────────────────────────────────────────────

    def list_references(
        self,
        search: Optional[str] = None,
        section: Optional[str] = None,
        resource_type: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params = {k: v for k, v in (("search", search), ("section", section), ("type", resource_type)) if v}
        return self._request("GET", "/api/references", params=params or None)
