"""WebSocket server streaming audio frames into transcription sessions."""
from __future__ import annotations

import asyncio
import signal
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from websockets.exceptions import ConnectionClosed

from .audio import decode_frame
from .backends import ModelPool
from .backends.base import RecognizerModel, RecognizerParams
from .batch import OutputSettings
from .config import parse_listen_address
from .emitter import SegmentEmitter
from .errors import EmptyAudioError, TranscriptionError
from .formatter import render_output
from .session import TranscriptionSession

CLOSE_OK = 1000
CLOSE_ERROR = 4400
# RFC 6455 caps the close reason at 123 bytes.
MAX_CLOSE_REASON = 123


@dataclass(frozen=True)
class TransportOptions:
    """Listening address and websocket limits, built once at startup."""

    host: Optional[str]
    port: int
    max_size: int = 10 * 1024 * 1024
    ping_interval: Optional[float] = 20.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "TransportOptions":
        section = config.get("server", {})
        host, port = parse_listen_address(section.get("listen", ""))
        ping = section.get("ping_interval", 20.0)
        return cls(
            host=host,
            port=port,
            max_size=int(section.get("max_message_mb", 10)) * 1024 * 1024,
            ping_interval=float(ping) if ping else None,
        )

    def serve_kwargs(self) -> Dict[str, Any]:
        return {"max_size": self.max_size, "ping_interval": self.ping_interval}


@dataclass(frozen=True)
class StreamResult:
    """Terminal status of one streaming connection."""

    status: int
    message: str

    @property
    def ok(self) -> bool:
        return self.status < 400


def _close_reason(message: str) -> str:
    encoded = message.encode("utf-8")[:MAX_CLOSE_REASON]
    return encoded.decode("utf-8", errors="ignore")


class StreamingServer:
    """WebSocket server giving every connection its own transcription session."""

    def __init__(
        self,
        config: Dict[str, Any],
        pool: ModelPool,
        transport: TransportOptions,
        settings: Optional[OutputSettings] = None,
    ):
        self.config = config
        self.transport = transport
        self.params = RecognizerParams.from_config(config)
        self.settings = settings or OutputSettings.from_config(config)
        self._pool = pool
        self._clients: set = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._server = None

    def _token_sink(self, websocket, loop: asyncio.AbstractEventLoop) -> Callable[[str], None]:
        """Build a sender usable from the recognizer's worker thread.

        Each send is scheduled on the event loop and waited for, so outbound
        tokens keep recognition order.
        """

        def send(text: str) -> None:
            future = asyncio.run_coroutine_threadsafe(websocket.send(text), loop)
            try:
                future.result()
            except ConnectionClosed as e:
                print(f"[WARN] Token not delivered, connection closed: {e}")

        return send

    async def _process_stream(self, model: RecognizerModel, websocket) -> StreamResult:
        """Read frames until the peer goes away, then render the transcript."""
        loop = asyncio.get_running_loop()
        try:
            session = TranscriptionSession.open(model, self.params, out=self.settings.out)
        except TranscriptionError as e:
            return StreamResult(400, str(e))

        with session:
            emitter = SegmentEmitter(
                self.settings.out,
                show_tokens=self.settings.tokens,
                colorize_tokens=self.settings.colorize,
                is_text=session.is_text,
                transport=self._token_sink(websocket, loop),
            )

            session.reset_timings()
            while True:
                try:
                    message = await websocket.recv()
                except ConnectionClosed as e:
                    print(f"[INFO] read: {e}")
                    break

                if isinstance(message, str):
                    message = message.encode("utf-8")
                try:
                    samples = decode_frame(message)
                except EmptyAudioError as e:
                    print(f"[WARN] Error converting frame to float32: {e}")
                    continue

                try:
                    await loop.run_in_executor(None, session.process, samples, emitter)
                except TranscriptionError as e:
                    print(f"[ERR] Processing failed: {e}")
                    return StreamResult(400, str(e))

            session.print_timings()
            try:
                render_output(
                    self.settings.format,
                    self.settings.results,
                    session.drain_segments(),
                    colorize_tokens=self.settings.colorize,
                    is_text=session.is_text,
                )
            except TranscriptionError as e:
                return StreamResult(400, str(e))

        return StreamResult(200, "OK")

    async def _write_response(self, websocket, result: StreamResult) -> None:
        # The read loop only ends once the peer has closed, so this close
        # frame normally reaches nobody.
        code = CLOSE_OK if result.ok else CLOSE_ERROR
        print(f"[INFO] Stream finished: {result.status} {result.message}")
        await websocket.close(code, _close_reason(result.message))

    async def _handler(self, websocket) -> None:
        """Handle a single WebSocket connection."""
        self._clients.add(websocket)
        print(f"[INFO] Client connected from {websocket.remote_address}")
        try:
            loop = asyncio.get_running_loop()
            try:
                model = await loop.run_in_executor(None, self._pool.get, self.config)
            except Exception as e:
                print(f"[ERR] Model unavailable: {e}")
                result = StreamResult(400, str(e))
            else:
                result = await self._process_stream(model, websocket)
            await self._write_response(websocket, result)
        finally:
            self._clients.discard(websocket)
            print("[INFO] Client disconnected")

    # --- Server lifecycle ---

    async def _start_ws(self) -> None:
        """Start the WebSocket server on the configured address."""
        import websockets

        self._server = await websockets.serve(
            self._handler,
            self.transport.host,
            self.transport.port,
            **self.transport.serve_kwargs(),
        )

    def _request_shutdown(self) -> None:
        """Schedule graceful shutdown."""
        if self._loop:
            self._loop.call_soon_threadsafe(self._loop.stop)

    def run(self) -> None:
        """Load the model and serve until interrupted (blocking)."""
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        # Load before accepting connections; a failure here is fatal.
        self._pool.get(self.config)
        self._loop.run_until_complete(self._start_ws())
        host = self.transport.host or "0.0.0.0"
        print(f"[OK] WebSocket server listening on ws://{host}:{self.transport.port}")

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._loop.add_signal_handler(sig, self._request_shutdown)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler.
                signal.signal(sig, lambda *_: self._request_shutdown())

        try:
            self._loop.run_forever()
        finally:
            self._cleanup()

    def _cleanup(self) -> None:
        """Graceful shutdown of all components."""
        print("\n[INFO] Shutting down server...")

        if self._server and self._loop and not self._loop.is_closed():
            self._server.close()
            self._loop.run_until_complete(self._server.wait_closed())
        self._pool.close_all()
        if self._loop and not self._loop.is_closed():
            self._loop.close()

        print("[OK] Server stopped")
