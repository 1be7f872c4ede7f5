"""Shape payloads per vendor and fan them out as fire-and-forget HTTP posts."""

from __future__ import annotations

import asyncio
import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol, Sequence

import httpx

from auction_signal.config import AdapterConfig, VendorConfig
from auction_signal.config_loader import send_timeout, send_workers
from auction_signal.constants import LOG_PREFIX
from auction_signal.payload import PayloadBundle


logger = logging.getLogger("uvicorn.error")
logger.setLevel(logging.INFO)

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one vendor delivery."""

    vendor: str
    endpoint: str
    ok: bool
    status_code: int | None = None
    error: str | None = None


SuccessCallback = Callable[[int], None]
ErrorCallback = Callable[[Exception], None]


class Sender(Protocol):
    def send(
        self,
        endpoint: str,
        body: bytes,
        *,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> None: ...


def effective_exclusions(vendor: VendorConfig, global_exclude: Sequence[str]) -> tuple[str, ...]:
    """Vendor exclusions replace the global set when non-empty; never merged."""

    if vendor.exclude_fields:
        return tuple(vendor.exclude_fields)
    return tuple(global_exclude)


def filter_payload(payload: Mapping[str, Any], exclude: Iterable[str]) -> dict[str, Any]:
    filtered = dict(payload)
    for field in exclude:
        filtered.pop(field, None)
    return filtered


def shape_payload(
    vendor: VendorConfig,
    full: Mapping[str, Any],
    index: Mapping[str, Any],
    signal: float,
    global_exclude: Sequence[str] = (),
) -> dict[str, Any]:
    """Return the body ``vendor`` receives for its data mode."""

    if vendor.data_mode == "index":
        return dict(index)
    shaped = filter_payload(full, effective_exclusions(vendor, global_exclude))
    if vendor.data_mode == "both":
        shaped["auctionSignal"] = signal
    return shaped


class HttpSender:
    """One-shot JSON POSTs over httpx.

    Inside a running event loop each post is an ``asyncio`` task on a shared
    ``httpx.AsyncClient``; without one it runs on a small thread pool with a
    blocking ``httpx.Client``. Callers never wait on either.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        max_workers: int | None = None,
        transport: Any = None,
    ):
        self._timeout = send_timeout() if timeout is None else timeout
        self._max_workers = send_workers() if max_workers is None else max_workers
        self._transport = transport
        self._async_client: httpx.AsyncClient | None = None
        self._async_loop: asyncio.AbstractEventLoop | None = None
        self._client: httpx.Client | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._tasks: set[asyncio.Task] = set()
        self._futures: set[Future] = set()

    def send(
        self,
        endpoint: str,
        body: bytes,
        *,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            if self._async_client is None or self._async_loop is not loop:
                # an AsyncClient's connections belong to the loop that opened them
                self._async_client = httpx.AsyncClient(transport=self._transport, timeout=self._timeout)
                self._async_loop = loop
            task = loop.create_task(
                self._post_async(self._async_client, endpoint, body, on_success, on_error)
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            return

        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="auction-signal-send"
            )
        if self._client is None:
            self._client = httpx.Client(transport=self._transport, timeout=self._timeout)
        future = self._executor.submit(
            self._post_sync, self._client, endpoint, body, on_success, on_error
        )
        self._futures.add(future)
        future.add_done_callback(self._futures.discard)

    async def _post_async(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        body: bytes,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> None:
        try:
            response = await client.post(endpoint, content=body, headers=JSON_HEADERS)
            response.raise_for_status()
        except Exception as exc:
            # HTTPError, and also InvalidURL which is not an HTTPError subclass
            _notify(on_error, exc)
            return
        _notify(on_success, response.status_code)

    def _post_sync(
        self,
        client: httpx.Client,
        endpoint: str,
        body: bytes,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
    ) -> None:
        try:
            response = client.post(endpoint, content=body, headers=JSON_HEADERS)
            response.raise_for_status()
        except Exception as exc:
            _notify(on_error, exc)
            return
        _notify(on_success, response.status_code)

    @property
    def pending(self) -> int:
        return len(self._tasks) + len(self._futures)

    async def drain(self) -> None:
        """Wait for in-flight async posts; used at shutdown and in tests."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        if self._async_client is not None:
            await self._async_client.aclose()
            self._async_client = None
            self._async_loop = None
        self.close()

    def close(self) -> None:
        """Wait for thread-pool posts and release the blocking client."""

        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        if self._client is not None:
            self._client.close()
            self._client = None


def _notify(callback: Callable[[Any], None], value: Any) -> None:
    try:
        callback(value)
    except Exception:
        logger.exception("%s Delivery callback failed", LOG_PREFIX)


class VendorDispatcher:
    """Fan one auction's payloads out to every configured vendor."""

    def __init__(
        self,
        sender: Optional[Sender] = None,
        on_result: Optional[Callable[[DispatchResult], None]] = None,
    ):
        self.sender: Sender = sender if sender is not None else HttpSender()
        self._on_result = on_result

    def dispatch(self, config: AdapterConfig, bundle: PayloadBundle) -> int:
        """Schedule one send per vendor and return how many were scheduled."""

        full = bundle.full.to_wire()
        index = bundle.index.to_wire()
        scheduled = 0
        for vendor in config.vendors:
            try:
                payload = shape_payload(vendor, full, index, bundle.signal, config.exclude_fields)
                body = json.dumps(payload).encode("utf-8")
                logger.info(
                    "%s Sending %s payload to vendor: %s",
                    LOG_PREFIX,
                    vendor.data_mode.upper(),
                    vendor.name,
                )
                self.sender.send(
                    vendor.endpoint,
                    body,
                    on_success=partial(self._succeeded, vendor),
                    on_error=partial(self._failed, vendor),
                )
            except Exception as exc:
                logger.exception("%s Could not schedule telemetry for vendor %s", LOG_PREFIX, vendor.name)
                self._report(
                    DispatchResult(vendor=vendor.name, endpoint=vendor.endpoint, ok=False, error=str(exc))
                )
                continue
            scheduled += 1
        return scheduled

    def _succeeded(self, vendor: VendorConfig, status_code: int) -> None:
        logger.info("%s Telemetry sent successfully to vendor: %s", LOG_PREFIX, vendor.name)
        self._report(
            DispatchResult(vendor=vendor.name, endpoint=vendor.endpoint, ok=True, status_code=status_code)
        )

    def _failed(self, vendor: VendorConfig, exc: Exception) -> None:
        logger.error("%s Failed to send telemetry to vendor %s: %s", LOG_PREFIX, vendor.name, exc)
        status_code = None
        if isinstance(exc, httpx.HTTPStatusError):
            status_code = exc.response.status_code
        self._report(
            DispatchResult(
                vendor=vendor.name,
                endpoint=vendor.endpoint,
                ok=False,
                status_code=status_code,
                error=str(exc),
            )
        )

    def _report(self, result: DispatchResult) -> None:
        if self._on_result is not None:
            _notify(self._on_result, result)
