from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from ..settings import Settings

log = logging.getLogger(__name__)


def _segment(value: str) -> str:
    """Percent-encode one URL path segment, including any slash."""
    return quote(value, safe="")


class ApiError(RuntimeError):
    """A REST call was rejected by the backend or never reached it."""

    def __init__(self, operation: str, detail: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation
        self.detail = detail
        self.status_code = status_code


class LotusApi:
    """Async client for the Lotusim backend REST API.

    The base URL is taken from ``settings`` on every request, so a saved
    address applies without rebuilding the client. Listing calls degrade to
    an empty list; mutating calls raise :class:`ApiError`. Nothing is retried.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self.settings = settings
        self._client = httpx.AsyncClient(
            transport=transport,
            timeout=timeout_s if timeout_s is not None else settings.api_timeout_s,
        )

    async def __aenter__(self) -> "LotusApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------
    async def list_scenarios(self) -> list[str]:
        return await self._list("/scenarios", "list scenarios")

    async def create_scenario(self, body: dict[str, Any]) -> None:
        await self._request("create scenario", "POST", "/scenarios", json=body)

    async def delete_scenario(self, name: str) -> None:
        await self._request("delete scenario", "DELETE", f"/scenarios/{_segment(name)}")

    # ------------------------------------------------------------------
    # Instances
    # ------------------------------------------------------------------
    async def list_instances(self) -> list[str]:
        return await self._list("/instances", "list instances")

    async def create_instance(self, body: dict[str, Any]) -> None:
        await self._request("create instance", "POST", "/instances", json=body)

    async def delete_instance(self, name: str) -> None:
        await self._request("delete instance", "DELETE", f"/instances/{_segment(name)}")

    async def spawn_vessel(self, instance: str, command: dict[str, Any]) -> Any:
        response = await self._request("spawn vessel", "POST", f"/instance/{_segment(instance)}/vessel", json=command)
        log.info("Vessel spawned on %s: %s", instance, response.text)
        return response

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------
    async def list_models(self) -> list[str]:
        return await self._list("/models", "list models")

    async def create_model(self, body: dict[str, Any], stl_path: str, image_path: str) -> None:
        """Register a model, then upload its mesh and preview image."""
        await self._request("create model", "POST", "/model", json=body)
        with open(stl_path, "rb") as stl, open(image_path, "rb") as image:
            await self._request(
                "upload model files",
                "POST",
                "/upload",
                files={"stlFile": stl, "image": image},
                data={"modelName": str(body.get("modelName", ""))},
            )

    async def delete_model(self, name: str) -> None:
        await self._request("delete model", "DELETE", "/model", params={"name": name})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = self.settings.api_base_url + path
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            log.error("Error during %s: %s", operation, exc)
            raise ApiError(operation, str(exc)) from exc
        if response.status_code != 200:
            log.error("%s rejected (%d): %s", operation, response.status_code, response.text)
            raise ApiError(operation, response.text or response.reason_phrase, response.status_code)
        return response

    async def _list(self, path: str, operation: str) -> list[str]:
        try:
            response = await self._request(operation, "GET", path)
            data = response.json()
        except (ApiError, ValueError) as exc:
            log.error("Error during %s: %s", operation, exc)
            return []
        if not isinstance(data, list):
            log.warning("Unexpected %s payload: %r", operation, data)
            return []
        return [str(item) for item in data]


__all__ = ["ApiError", "LotusApi"]
