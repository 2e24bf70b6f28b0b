"""Hand-off of loaded RFC content to the downstream schema store."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from ..errors import SchemaStoreError

logger = logging.getLogger(__name__)


class SchemaStore(ABC):
    """Receives the serialized content of an approved RFC."""

    @abstractmethod
    async def load(self, identifier: str, content: str) -> None:
        """
        Load RFC content into the store.

        Raises SchemaStoreError if the store rejects the content.
        """
        ...


class LoggingSchemaStore(SchemaStore):
    """Store that only records the hand-off in the log."""

    async def load(self, identifier: str, content: str) -> None:
        logger.info(f"Handing off RFC {identifier} to schema store ({len(content)} bytes)")


class HttpSchemaStore(SchemaStore):
    """Store reached over HTTP: POSTs the RFC JSON to a fixed URL."""

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def load(self, identifier: str, content: str) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.url,
                    content=content,
                    headers={"Content-Type": "application/json", "X-RFC-Identifier": identifier},
                )
        except httpx.HTTPError as e:
            raise SchemaStoreError(f"Schema store request failed for RFC {identifier}: {e}") from e

        if response.status_code >= 400:
            raise SchemaStoreError(
                f"Schema store rejected RFC {identifier}: {response.status_code} - {response.text[:200]}"
            )
