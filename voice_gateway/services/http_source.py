"""HTTP command source: the ingestion boundary.

Runs a FastAPI app under uvicorn on the pipeline's event loop. The
submission endpoints (/audio, /text, /alexa) push payloads into a
bounded CommandQueue without ever blocking; the pipeline pulls them with
``next_command()``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterator

import uvicorn
from fastapi import FastAPI

from voice_gateway.core.interfaces import QueueFullError, SourceClosedError
from voice_gateway.services.command_queue import CommandQueue
from voice_gateway.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

MAX_AUDIO_BYTES = 10 * 1024 * 1024
MAX_TEXT_BYTES = 1024
MAX_ALEXA_BYTES = 8192


class GatewayServer(uvicorn.Server):
    """uvicorn server that leaves SIGINT/SIGTERM to the gateway process."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class HTTPSource:
    """Command source fed by HTTP submissions.

    Lifecycle:
        1. start() launches uvicorn as a task
        2. next_command() hands queued payloads to the pipeline
        3. stop() shuts the server down (graceful, then forced) and
           closes the queue; safe to call repeatedly
    """

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = 8080,
        auth_token: str = "",
        queue_size: int = 10,
        rate_limit: int = 30,
        rate_window: float = 60.0,
        shutdown_grace: float = 10.0,
    ) -> None:
        """Initialize HTTP source.

        Args:
            host: Bind address
            port: Bind port
            auth_token: Shared secret for the Alexa webhook ('' disables)
            queue_size: Command queue capacity
            rate_limit: Requests per window per client
            rate_window: Rate limit window in seconds
            shutdown_grace: Seconds in-flight requests get during shutdown
        """
        from voice_gateway.main import create_app

        self.host = host
        self.port = port
        self.auth_token = auth_token
        self.shutdown_grace = shutdown_grace
        self.queue = CommandQueue(maxsize=queue_size)
        self.rate_limiter = RateLimiter(rate=rate_limit, window=rate_window)
        self.running = False
        self.app: FastAPI = create_app(self)

        self._server: GatewayServer | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "http"

    async def start(self) -> None:
        """Start serving. No-op if already running."""
        async with self._lock:
            if self.running:
                return

            config = uvicorn.Config(
                self.app,
                host=self.host,
                port=self.port,
                log_config=None,
                lifespan="off",
                timeout_graceful_shutdown=self.shutdown_grace,  # type: ignore[arg-type]
            )
            self._server = GatewayServer(config)
            logger.info(f"HTTP command server starting on {self.host}:{self.port}")
            self._serve_task = asyncio.create_task(self._server.serve(), name="http-source")
            self.running = True

    async def stop(self) -> None:
        """Stop serving and close the queue. Idempotent."""
        async with self._lock:
            if self.running and self._server is not None and self._serve_task is not None:
                self._server.should_exit = True
                done, _ = await asyncio.wait({self._serve_task}, timeout=self.shutdown_grace + 1.0)
                if not done:
                    logger.warning("Graceful shutdown timed out, forcing close")
                    self._server.force_exit = True
                    self._serve_task.cancel()
                    await asyncio.wait({self._serve_task})
                elif not self._serve_task.cancelled() and self._serve_task.exception():
                    logger.error(f"HTTP server error: {self._serve_task.exception()}")

            self.queue.close()
            self.running = False

    async def next_command(self) -> bytes:
        """Wait for the next queued payload.

        Raises:
            SourceClosedError: After stop() once the queue is drained
        """
        return await self.queue.get()

    def submit(self, payload: bytes) -> None:
        """Queue a payload without blocking.

        Raises:
            QueueFullError: If the queue is at capacity
            SourceClosedError: If the source has been stopped
        """
        self.queue.put_nowait(payload)

    def try_submit(self, payload: bytes) -> bool:
        """Queue a payload, returning False instead of raising when full."""
        try:
            self.submit(payload)
        except (QueueFullError, SourceClosedError):
            return False
        return True
