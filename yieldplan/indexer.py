from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

import aiohttp

from .config import Settings, settings as default_settings
from .errors import MaxRetryExceeded, NotSupported
from .utils import get_logger

logger = get_logger("indexer")

QUERY_ROW = 100


@dataclass
class _Request:
    id: int
    run: Callable[[], Awaitable[Any]]
    future: "asyncio.Future[Any]"
    retry: int = 0


class IndexerClient:
    """
    Subscan-style indexer client behind a bounded request queue.

    At most `limit_rate` requests are in flight; a failed request goes back
    on the queue after `retry_delay` seconds until it has been retried
    `max_retry` times, then its caller gets MaxRetryExceeded.
    """

    def __init__(
        self,
        chain_map: Mapping[str, str],
        cfg: Settings = default_settings,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.chain_map: Dict[str, str] = dict(chain_map)
        self.limit_rate = max(1, cfg.indexer_limit_rate)
        self.max_retry = cfg.indexer_max_retry
        self.retry_delay = cfg.indexer_retry_delay
        self.timeout = cfg.indexer_timeout
        self.api_key = cfg.subscan_api_key
        self._session = session
        self._owns_session = session is None
        self._queue: Optional[asyncio.Queue] = None
        self._workers: List[asyncio.Task] = []
        self._pending: Dict[int, _Request] = {}
        self._retry_handles: Dict[int, asyncio.TimerHandle] = {}
        self._next_id = 0

    async def __aenter__(self) -> "IndexerClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop the workers; callers still waiting on a request get CancelledError."""
        for handle in self._retry_handles.values():
            handle.cancel()
        self._retry_handles = {}
        for request in list(self._pending.values()):
            if not request.future.done():
                request.future.cancel()
        self._pending = {}
        for worker in self._workers:
            worker.cancel()
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._queue = None
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def check_supported_chain(self, chain: str) -> bool:
        return chain in self.chain_map

    def set_chain_map(self, chain_map: Mapping[str, str]) -> None:
        self.chain_map = dict(chain_map)

    # Request queue

    async def submit(self, run: Callable[[], Awaitable[Any]]) -> Any:
        queue = self._ensure_workers()
        request = _Request(
            id=self._next_id,
            run=run,
            future=asyncio.get_running_loop().create_future(),
        )
        self._next_id += 1
        self._pending[request.id] = request
        queue.put_nowait(request)
        try:
            return await request.future
        finally:
            self._pending.pop(request.id, None)

    def _ensure_workers(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue()
        if not self._workers:
            loop = asyncio.get_running_loop()
            self._workers = [
                loop.create_task(self._worker(self._queue), name=f"indexer-worker-{i}")
                for i in range(self.limit_rate)
            ]
        return self._queue

    async def _worker(self, queue: asyncio.Queue) -> None:
        while True:
            request: _Request = await queue.get()
            try:
                if request.future.done():
                    continue
                try:
                    result = await request.run()
                except Exception as exc:  # noqa: BLE001
                    self._on_failure(queue, request, exc)
                else:
                    if not request.future.done():
                        request.future.set_result(result)
            finally:
                queue.task_done()

    def _on_failure(self, queue: asyncio.Queue, request: _Request, exc: Exception) -> None:
        if request.retry < self.max_retry:
            request.retry += 1
            logger.debug("request %d failed (%s), retry %d/%d", request.id, exc, request.retry, self.max_retry)
            if self.retry_delay > 0:
                self._retry_handles[request.id] = asyncio.get_running_loop().call_later(
                    self.retry_delay, self._requeue, queue, request
                )
            else:
                queue.put_nowait(request)
            return
        logger.warning("request %d failed after %d retries: %s", request.id, request.retry, exc)
        if not request.future.done():
            error = MaxRetryExceeded(str(exc))
            error.__cause__ = exc
            request.future.set_exception(error)

    def _requeue(self, queue: asyncio.Queue, request: _Request) -> None:
        self._retry_handles.pop(request.id, None)
        if not request.future.done():
            queue.put_nowait(request)

    # HTTP

    def _get_api_url(self, chain: str, path: str) -> str:
        indexer_chain = self.chain_map.get(chain)
        if not indexer_chain:
            raise NotSupported(f"Chain {chain} is not supported by the indexer")
        return f"https://{indexer_chain}.api.subscan.io/{path}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
            self._owns_session = True
        return self._session

    async def _post(self, url: str, body: Mapping[str, Any]) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        async with self._get_session().post(url, json=dict(body), headers=headers) as resp:
            if resp.status != 200:
                raise RuntimeError(f"{url} returned {resp.status}: {await resp.text()}")
            payload = await resp.json()
        return (payload or {}).get("data")

    def _query(self, chain: str, path: str, body: Mapping[str, Any]) -> Awaitable[Any]:
        url = self._get_api_url(chain, path)
        return self.submit(lambda: self._post(url, body))

    # Indexer API

    async def get_multi_chain_balance(self, address: str) -> List[Dict[str, Any]]:
        return await self._query("polkadot", "api/scan/multiChain/account", {"address": address}) or []

    async def get_crowdloan_contributions(self, relay_chain: str, address: str, page: int = 0) -> Dict[str, Any]:
        body = {"include_total": True, "page": page, "row": QUERY_ROW, "who": address}
        return await self._query(relay_chain, "api/scan/account/contributions", body) or {}

    async def get_extrinsics_list(self, chain: str, address: str, page: int = 0) -> Dict[str, Any]:
        body = {"page": page, "row": QUERY_ROW, "address": address}
        return await self._query(chain, "api/scan/extrinsics", body) or {}

    async def get_transfers_list(self, chain: str, address: str, page: int = 0) -> Dict[str, Any]:
        body = {"page": page, "row": QUERY_ROW, "address": address}
        return await self._query(chain, "api/v2/scan/transfers", body) or {}

    async def get_all_extrinsic_items(self, chain: str, address: str) -> List[Dict[str, Any]]:
        return await self._collect_pages(self.get_extrinsics_list, "extrinsics", chain, address)

    async def get_all_transfer_items(self, chain: str, address: str) -> List[Dict[str, Any]]:
        return await self._collect_pages(self.get_transfers_list, "transfers", chain, address)

    async def _collect_pages(self, fetch_page, key: str, chain: str, address: str) -> List[Dict[str, Any]]:
        result: List[Dict[str, Any]] = []
        page = 0
        while True:
            try:
                data = await fetch_page(chain, address, page)
            except MaxRetryExceeded as exc:
                logger.warning("%s %s page %d for %s failed: %s", chain, key, page, address, exc)
                break
            items = data.get(key)
            if not items:
                break
            result.extend(items)
            page += 1
            if len(result) >= int(data.get("count") or 0):
                break
        return result
