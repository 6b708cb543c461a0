from __future__ import annotations

from typing import Any, Mapping, Optional
from urllib.parse import quote

from .config import FigoConfig
from .executor import RequestExecutor
from .mapper import EntityFactory, map_response


def path_segment(value: Any) -> str:
    """Quote one URL path segment; ids may contain ``/``, ``?`` or ``#``."""
    return quote(str(value), safe="")


class ApiContext:
    """Credential context shared by ``Connection`` and ``Session``.

    Subclasses only decide the ``Authorization`` header; everything else goes
    through the same executor.
    """

    def __init__(self, authorization: str, config: Optional[FigoConfig] = None):
        self.config = config or FigoConfig()
        self._executor = RequestExecutor(self.config, authorization)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._executor.close()

    async def query_api(
        self,
        path: str,
        data: Optional[Mapping[str, Any]] = None,
        method: str = "GET",
        encoding: str = "json",
    ) -> Any:
        """Raw call: returns decoded JSON, or ``None`` for an empty body or 404."""
        return await self._executor.query(path, data, method, encoding)

    async def query_api_object(
        self,
        factory: EntityFactory[Any],
        path: str,
        data: Optional[Mapping[str, Any]] = None,
        method: str = "GET",
        collection: Optional[str] = None,
    ) -> Any:
        payload = await self.query_api(path, data, method)
        return map_response(self, factory, payload, collection)

    def task_start_url(self, task_token: str) -> str:
        return f"{self.config.api_base_url}/task/start?id={path_segment(task_token)}"
