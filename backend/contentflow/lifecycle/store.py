"""Content API accessor: one remote call per operation, uniform results."""
import logging
import uuid
from datetime import datetime
from typing import Any, Sequence

import httpx

from contentflow.config import settings
from contentflow.lifecycle.context import SessionContext
from contentflow.lifecycle.results import ErrorKind, Result

logger = logging.getLogger(__name__)

FETCH_CAP = settings.CONTENT_FETCH_LIMIT

_STATUS_KINDS = {
    400: ErrorKind.VALIDATION,
    422: ErrorKind.VALIDATION,
    401: ErrorKind.PERMISSION,
    403: ErrorKind.PERMISSION,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
}


def kind_for_status(status_code: int) -> ErrorKind:
    return _STATUS_KINDS.get(status_code, ErrorKind.REMOTE_FAILURE)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if not isinstance(body, dict):
        return str(body)
    detail = body.get("detail") or body.get("message") or body.get("title")
    if isinstance(detail, list):
        # FastAPI request validation errors
        return "; ".join(str(d.get("msg", d)) if isinstance(d, dict) else str(d) for d in detail)
    return str(detail or resp.reason_phrase)


def paginate(items: Sequence[Any], page: int, per_page: int) -> list[Any]:
    """Slice an already-fetched bounded set. ``page`` is zero-based."""
    if page < 0 or per_page < 1:
        return []
    start = page * per_page
    return list(items[start:start + per_page])


class ContentStore:
    """Thin CRUD surface over the Content API.

    No caching and no retries: every method is exactly one request and
    returns a ``Result``; transport errors and non-2xx answers become
    failed results instead of exceptions.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, base_url: str | None = None):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.CONTENT_API_BASE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    async def close(self):
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def _call(
        self,
        ctx: SessionContext,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Result:
        try:
            resp = await self._client.request(method, path, params=params, json=json, headers=ctx.auth_headers())
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            return Result.fail(ErrorKind.REMOTE_FAILURE, f"Network error: {exc}")

        if resp.is_error:
            message = _error_message(resp)
            logger.info("%s %s -> %d %s", method, path, resp.status_code, message)
            return Result.fail(kind_for_status(resp.status_code), message, resp.status_code)

        try:
            body = resp.json()
        except ValueError:
            return Result.fail(ErrorKind.REMOTE_FAILURE, "Malformed response body", resp.status_code)
        data = body.get("data") if isinstance(body, dict) else body
        return Result(success=True, data=data, status=resp.status_code)

    # ── Content ──

    async def list_content(
        self,
        ctx: SessionContext,
        limit: int = FETCH_CAP,
        page: int = 0,
        content_type: str | None = None,
    ) -> Result:
        params: dict[str, Any] = {"limit": max(1, min(limit, FETCH_CAP)), "page": page}
        if content_type:
            params["type"] = content_type
        return await self._call(ctx, "GET", "/content/generated", params=params)

    async def get_content(self, ctx: SessionContext, content_id: uuid.UUID | str) -> Result:
        return await self._call(ctx, "GET", f"/content/generated/{content_id}")

    async def update_status(
        self,
        ctx: SessionContext,
        content_id: uuid.UUID | str,
        status: str,
        metadata: dict[str, Any] | None = None,
        scheduled_at: datetime | None = None,
    ) -> Result:
        body: dict[str, Any] = {"status": status}
        if metadata is not None:
            body["metadata"] = metadata
        if scheduled_at is not None:
            body["scheduled_at"] = scheduled_at.isoformat()
        return await self._call(ctx, "PUT", f"/content/generated/{content_id}", json=body)

    async def update_favorite(self, ctx: SessionContext, content_id: uuid.UUID | str, is_favorite: bool) -> Result:
        return await self._call(
            ctx, "PATCH", f"/content/generated/{content_id}/favorite", json={"is_favorite": is_favorite},
        )

    async def delete_content(self, ctx: SessionContext, content_id: uuid.UUID | str) -> Result:
        return await self._call(ctx, "DELETE", f"/content/generated/{content_id}")

    # ── Approval ──

    async def update_approval(
        self,
        ctx: SessionContext,
        content_id: uuid.UUID | str,
        status: str,
        feedback: str = "",
        reviewed_at: datetime | None = None,
    ) -> Result:
        body: dict[str, Any] = {"status": status, "feedback": feedback}
        if reviewed_at is not None:
            body["reviewed_at"] = reviewed_at.isoformat()
        return await self._call(ctx, "PUT", f"/content/generated/{content_id}/approval-history", json=body)

    async def get_approval_history(self, ctx: SessionContext, content_id: uuid.UUID | str) -> Result:
        return await self._call(ctx, "GET", f"/content/generated/{content_id}/approval-history")

    async def submit_for_approval(self, ctx: SessionContext, content_id: uuid.UUID | str) -> Result:
        return await self._call(ctx, "POST", f"/content/generated/{content_id}/submit-for-approval")

    # ── Stats / search / profile ──

    async def get_stats(self, ctx: SessionContext, period: str = "month") -> Result:
        return await self._call(ctx, "GET", "/content/stats", params={"period": period})

    async def search(self, ctx: SessionContext, query: str, filters: dict[str, Any] | None = None) -> Result:
        return await self._call(ctx, "POST", "/content/search", json={"query": query, "filters": filters or {}})

    async def get_calendar(self, ctx: SessionContext, start: str, end: str) -> Result:
        return await self._call(ctx, "GET", "/content/calendar", params={"start": start, "end": end})

    async def get_permissions(self, ctx: SessionContext) -> Result:
        return await self._call(ctx, "GET", "/profile/permissions")
