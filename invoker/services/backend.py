"""Thin async client for the dashboard backend's CRUD endpoints."""

from __future__ import annotations

from typing import Any

import httpx

from invoker.config import BackendSettings
from invoker.logging import logger
from invoker.services.exceptions import BackendError


class BackendClient:
    """Forward JSON requests to the backend and normalise failures into ``BackendError``.

    The client performs a single attempt per call; wrap its methods in an
    ``OperationExecutor`` to get retries.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: BackendSettings | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or BackendSettings()

    @staticmethod
    def _read_secret(secret: Any) -> str | None:
        if not secret:
            return None
        try:
            return secret.get_secret_value()
        except AttributeError:
            return str(secret)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self._read_secret(self._settings.auth_token)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _url(self, path: str) -> str:
        return f"{str(self._settings.base_url).rstrip('/')}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method,
                self._url(path),
                params={k: v for k, v in (params or {}).items() if v is not None} or None,
                json=payload,
                headers=self._headers(),
                timeout=self._settings.timeout_seconds,
            )
        except httpx.RequestError as exc:
            logger.warning("backend_request_error", method=method, path=path, error=str(exc))
            raise BackendError(f"Backend request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.is_error:
            detail = None
            if isinstance(data, dict):
                detail = data.get("detail") or data.get("message")
            message = str(detail) if detail else f"Request failed with status {response.status_code}"
            logger.warning(
                "backend_request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                error=message,
            )
            raise BackendError(message, status_code=response.status_code)
        return data

    async def list_students(self, **filters: Any) -> Any:
        return await self._request("GET", "/api/users", params=filters)

    async def create_student(self, payload: dict[str, Any]) -> Any:
        return await self._request("POST", "/api/users", payload=payload)

    async def list_coaches(self, **filters: Any) -> Any:
        return await self._request("GET", "/api/coaches", params=filters)

    async def list_branches(self, **filters: Any) -> Any:
        return await self._request("GET", "/api/branches", params=filters)

    async def get_branch(self, branch_id: str) -> Any:
        return await self._request("GET", f"/api/branches/{branch_id}")

    async def list_courses(self, **filters: Any) -> Any:
        return await self._request("GET", "/api/courses", params=filters)

    async def create_payment_order(self, payload: dict[str, Any]) -> Any:
        return await self._request("POST", "/api/payments/create-order", payload=payload)

    async def verify_payment(self, payload: dict[str, Any]) -> Any:
        return await self._request("POST", "/api/payments/verify", payload=payload)

    async def get_report_filters(self) -> Any:
        return await self._request("GET", "/api/reports/filters")


__all__ = ["BackendClient"]
