"""Minimal HTTP client for services that publish typing events."""
from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

INGEST_PATH = "/api/chat/typing"


def _presence_base_url() -> str:
    return os.getenv("PRESENCE_BASE_URL", "http://127.0.0.1:8000")


class PresenceClient:
    """Helper for posting typing notifications to the presence companion."""

    def __init__(
        self,
        base_url: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=5.0,
            transport=transport,
        )

    @retry(
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def post_json(self, path: str, payload: Any) -> httpx.Response:
        return await self._client.post(path, json=payload)

    async def publish_typing(
        self,
        channel_key: Optional[str] = None,
        user: Optional[str] = None,
        typing: bool = False,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"typing": typing}
        if channel_key is not None:
            payload["channelKey"] = channel_key
        if user is not None:
            payload["user"] = user
        response = await self.post_json(INGEST_PATH, payload)
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        await self._client.aclose()


@asynccontextmanager
async def create_presence_client(
    *,
    base_url: Optional[str] = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[PresenceClient]:
    client = PresenceClient(
        base_url or _presence_base_url(),
        transport=transport,
    )
    try:
        yield client
    finally:
        await client.close()
