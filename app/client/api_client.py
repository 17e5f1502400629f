"""
Async client for the request workflow API.

Unwraps the `{status, message, data}` envelope in one place, keeps an
explicit query cache, and gates actions with the same `can()` the server
enforces.
"""
import logging
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import httpx

from app.auth.permissions import Actor, can
from app.client.cache import QueryCache, make_key

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error envelope returned by the server"""

    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(f"{status_code} {code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message


@dataclass
class Page:
    data: List[Dict[str, Any]]
    meta: Dict[str, Any]


@dataclass
class RequestSnapshot:
    """Enough of a request for capability checks on the client"""

    id: str
    module: str
    status: str
    initiator_id: int
    next_approval_level: Optional[int]
    approval_steps: List[SimpleNamespace] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RequestSnapshot":
        return cls(
            id=data["id"],
            module=data["module"],
            status=data["status"],
            initiator_id=data["initiator_id"],
            next_approval_level=data.get("next_approval_level"),
            approval_steps=[SimpleNamespace(**step) for step in data.get("approval_steps", [])],
        )

    def current_step(self):
        for step in self.approval_steps:
            if step.level == self.next_approval_level:
                return step
        return None


class RequestApiClient:
    def __init__(self, base_url: str, token: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 cache: Optional[QueryCache] = None, timeout: float = 20.0):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/api/v1",
            headers=headers,
            transport=transport,
            timeout=timeout,
        )
        self.cache = cache if cache is not None else QueryCache()
        self._actor: Optional[Actor] = None

    async def __aenter__(self) -> "RequestApiClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    # region ========== Envelope ==========

    @staticmethod
    def _unwrap(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            raise ApiError(response.status_code, "INVALID_RESPONSE", response.text[:200])

        if response.is_error or body.get("status") != "success":
            raise ApiError(
                response.status_code,
                body.get("code", "HTTP_ERROR"),
                body.get("message") or body.get("detail") or "Request failed",
            )
        return body

    async def _call(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        response = await self._http.request(method, path, **kwargs)
        return self._unwrap(response)

    async def _cached(self, entity: str, entity_id, params: Optional[Dict[str, Any]],
                      path: str, paged: bool = False):
        key = make_key(entity, entity_id, params)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        body = await self._call("GET", path, params={k: v for k, v in (params or {}).items() if v is not None})
        value = Page(body["data"], body["meta"]) if paged else body["data"]
        self.cache.set(key, value)
        return value

    # endregion

    # region ========== Auth ==========

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        body = await self._call("POST", "/auth/login", json={"username": username, "password": password})
        self._http.headers["Authorization"] = f"Bearer {body['data']['access_token']}"
        self._actor = None
        self.cache.clear()
        return body["data"]

    async def me(self) -> Actor:
        if self._actor is None:
            body = await self._call("GET", "/auth/me")
            self._actor = Actor.from_dict(body["data"])
        return self._actor

    async def can(self, action: str, request: Optional[Dict[str, Any]] = None) -> bool:
        """Whether the logged in user may perform `action`, for UI gating"""
        resource = RequestSnapshot.from_dict(request) if request is not None else None
        return can(await self.me(), action, resource)

    # endregion

    # region ========== Queries ==========

    async def get_request(self, request_id: str) -> Dict[str, Any]:
        return await self._cached("request", request_id, None, f"/requests/{request_id}")

    async def list_requests(self, **filters) -> Page:
        return await self._cached("requests", None, filters, "/requests", paged=True)

    async def list_user_requests(self, **filters) -> Page:
        return await self._cached("user_requests", None, filters, "/requests/user", paged=True)

    async def pending_approvals(self, page: int = 1, limit: int = 10) -> Page:
        params = {"page": page, "limit": limit}
        return await self._cached("pending", None, params, "/requests/pending", paged=True)

    async def pending_count(self) -> int:
        data = await self._cached("pending_count", None, None, "/requests/pending-count")
        return data["count"]

    async def statistics(self, **filters) -> Dict[str, Any]:
        return await self._cached("statistics", None, filters, "/requests/statistics")

    async def approval_settings(self) -> List[Dict[str, Any]]:
        return await self._cached("approval_settings", None, None, "/approvals/settings")

    # endregion

    # region ========== Mutations ==========

    async def create_request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = await self._call("POST", "/requests", json=payload)
        self.cache.invalidate_request()
        return body["data"]

    async def update_status(self, request_id: str, status: str, notes: Optional[str] = None,
                            level: Optional[int] = None) -> Dict[str, Any]:
        payload = {"status": status, "notes": notes, "level": level}
        try:
            body = await self._call(
                "PUT", f"/requests/{request_id}",
                json={k: v for k, v in payload.items() if v is not None},
            )
        except ApiError as e:
            # Someone else moved the request; what we hold is stale
            if e.code == "STALE_STATE":
                self.cache.invalidate_request(request_id)
            raise
        self.cache.invalidate_request(request_id)
        self.cache.set(make_key("request", request_id), body["data"])
        return body["data"]

    async def review(self, request_id: str, notes: Optional[str] = None, level: Optional[int] = None):
        return await self.update_status(request_id, "IN_REVIEW", notes, level)

    async def approve(self, request_id: str, notes: Optional[str] = None, level: Optional[int] = None):
        return await self.update_status(request_id, "APPROVED", notes, level)

    async def reject(self, request_id: str, reason: str, level: Optional[int] = None):
        return await self.update_status(request_id, "REJECTED", reason, level)

    async def complete(self, request_id: str, notes: Optional[str] = None):
        return await self.update_status(request_id, "COMPLETED", notes)

    async def cancel(self, request_id: str, reason: Optional[str] = None):
        return await self.update_status(request_id, "CANCELLED", reason)

    async def delete_request(self, request_id: str) -> None:
        await self._call("DELETE", f"/requests/{request_id}")
        self.cache.invalidate_request(request_id)

    async def set_approval_enabled(self, request_type: str, is_enabled: bool) -> Dict[str, Any]:
        body = await self._call(
            "PUT", "/approvals/settings",
            json={"request_type": request_type, "is_enabled": is_enabled},
        )
        self.cache.invalidate("approval_settings")
        return body["data"]

    # endregion
