"""FastAPI server exposing receipt amount scanning to phone clients."""

import os
import re
import threading
import time
import uuid
from collections import OrderedDict
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from tipscan.receipt.amount_parser import ScannerConfig, parse_amount_with_label
from tipscan.receipt.bill_resolver import resolve_document
from tipscan.receipt.formatter import format_scanned_amounts
from tipscan.receipt.ocr_helpers import observations_from_payload, resize_image_bytes, transform_paddleocr_result
from tipscan.receipt.scan_session import ScanSession
from tipscan.runtime.logging import get_logger
from tipscan.runtime.receipt_pipeline import DEFAULT_OCR_URL, OCR_TIMEOUT_SECONDS
from tipscan.runtime.scanner_config import load_scanner_config

logger = get_logger(__name__)

OCR_SERVICE_URL = os.environ.get("OCR_SERVICE_URL", DEFAULT_OCR_URL)
VALID_ORIGINS = ("top", "bottom")
SESSION_MAX_IDLE_SECONDS = 15 * 60
MAX_SESSIONS = 256


def normalize_multipart_body(body: bytes, boundary: str) -> bytes:
    """Rewrite LF-only part headers to CRLF (iOS Shortcuts sends bare LF)."""
    boundary_bytes = b"--" + boundary.encode()
    parts = body.split(boundary_bytes)
    fixed_parts: list[bytes] = [parts[0]]

    for part in parts[1:]:
        if not part or part.startswith(b"--"):
            fixed_parts.append(part)
            continue

        leading = b""
        for newline in (b"\r\n", b"\n"):
            if part.startswith(newline):
                leading, part = b"\r\n", part[len(newline) :]
                break

        for separator in (b"\r\n\r\n", b"\n\n"):
            if separator in part:
                header, rest = part.split(separator, 1)
                header = header.replace(b"\r\n", b"\n").replace(b"\n", b"\r\n")
                fixed_parts.append(leading + header + b"\r\n\r\n" + rest)
                break
        else:
            fixed_parts.append(leading + part)

    return boundary_bytes.join(fixed_parts)


class FixiOSMultipartMiddleware(BaseHTTPMiddleware):
    """Fix iOS Shortcuts multipart boundary issue (LF vs CRLF)."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("multipart/form-data"):
            boundary_match = re.search(r"boundary=([^;]+)", content_type)
            if boundary_match:
                body = await request.body()
                fixed_body = normalize_multipart_body(body, boundary_match.group(1).strip().strip('"'))
                logger.debug("Multipart body normalized: %d -> %d bytes", len(body), len(fixed_body))

                async def receive() -> dict[str, Any]:
                    return {"type": "http.request", "body": fixed_body}

                request._receive = receive
            else:
                logger.info("Multipart request missing boundary; skipping normalization.")

        return await call_next(request)


class SessionRegistry:
    """Live scan sessions keyed by id, shared across request handlers.

    Clients that disconnect without ``DELETE`` leave their session behind, so
    sessions idle longer than ``max_idle_seconds`` are dropped, and the least
    recently used one is evicted once ``max_sessions`` is reached.
    """

    def __init__(
        self,
        max_idle_seconds: float = SESSION_MAX_IDLE_SECONDS,
        max_sessions: int = MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_idle_seconds = max_idle_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._lock = threading.Lock()
        # Insertion order doubles as least-recently-used order
        self._sessions: OrderedDict[str, tuple[ScanSession, float]] = OrderedDict()

    def _prune(self, now: float) -> None:
        stale = [sid for sid, (_, last_used) in self._sessions.items() if now - last_used > self.max_idle_seconds]
        for sid in stale:
            del self._sessions[sid]
        if stale:
            logger.info("Evicted %d idle scan session(s)", len(stale))

    def create(self, config: ScannerConfig, origin: str = "top") -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            now = self._clock()
            self._prune(now)
            while self._sessions and len(self._sessions) >= self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Session limit reached; evicted %s", evicted)
            self._sessions[session_id] = (ScanSession(config, origin=origin), now)  # type: ignore[arg-type]
        return session_id

    def get(self, session_id: str) -> ScanSession | None:
        with self._lock:
            now = self._clock()
            self._prune(now)
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            self._sessions[session_id] = (entry[0], now)
            self._sessions.move_to_end(session_id)
            return entry[0]

    def pop(self, session_id: str) -> ScanSession | None:
        with self._lock:
            self._prune(self._clock())
            entry = self._sessions.pop(session_id, None)
            return entry[0] if entry is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"status": "error", "message": message}, status_code=status_code)


async def _read_json(request: Request) -> dict[str, Any] | None:
    try:
        data = await request.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def create_app(config: ScannerConfig | None = None, sessions: SessionRegistry | None = None) -> FastAPI:
    """Build the scanning API; ``config`` defaults to the loaded TOML thresholds."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Scan server ready (OCR service: %s)", OCR_SERVICE_URL)
        yield

    app = FastAPI(title="Receipt Amount Scanner", lifespan=lifespan)
    app.add_middleware(FixiOSMultipartMiddleware)
    app.state.scanner_config = config
    app.state.sessions = sessions if sessions is not None else SessionRegistry()

    def scanner_config() -> ScannerConfig:
        return app.state.scanner_config or load_scanner_config()

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    @app.post("/parse")
    async def parse_text(request: Request) -> JSONResponse:
        """Single-tap mode: classify and parse one tapped line of text."""
        data = await _read_json(request)
        if data is None or not isinstance(data.get("text"), str):
            return _error("Expected JSON body with a 'text' field", 400)

        parsed = parse_amount_with_label(data["text"], scanner_config())
        if parsed is None:
            return _error("No amount found", 422)
        return JSONResponse({"status": "success", "value": parsed.value, "type": parsed.type.value})

    @app.post("/scan")
    async def scan_receipt(request: Request) -> JSONResponse:
        """OCR a receipt photo and resolve its amounts in one shot."""
        form = await request.form()
        upload = next((value for value in form.values() if hasattr(value, "read")), None)
        if upload is None:
            return _error("No file found in request", 400)

        contents = await upload.read()
        try:
            resized = resize_image_bytes(contents)
        except OSError as e:
            logger.warning("Unreadable image upload: %s", e)
            return _error("Uploaded file is not a readable image", 400)

        try:
            async with httpx.AsyncClient(timeout=OCR_TIMEOUT_SECONDS) as client:
                response = await client.post(
                    f"{OCR_SERVICE_URL.rstrip('/')}/ocr",
                    files={"file": (getattr(upload, "filename", None) or "receipt.jpg", resized, "image/jpeg")},
                )
        except httpx.RequestError as e:
            logger.error("OCR service unavailable: %s", e)
            return _error("OCR service unavailable", 502)

        if response.status_code != 200:
            logger.error("OCR service error: %s", response.status_code)
            return _error(f"OCR service error: {response.status_code}", 502)

        observations = transform_paddleocr_result(response.json())
        amounts = resolve_document(observations, scanner_config())
        return JSONResponse(
            {
                "status": "success" if not amounts.is_empty else "no_amounts",
                "amounts": amounts.to_dict(),
                "message": format_scanned_amounts(amounts),
                "observation_count": len(observations),
            }
        )

    @app.post("/sessions")
    async def create_session(request: Request) -> JSONResponse:
        """Start a live scanning session; body may set ``{"origin": "bottom"}``."""
        data = await _read_json(request) or {}
        origin = data.get("origin", "top")
        if origin not in VALID_ORIGINS:
            return _error(f"origin must be one of {', '.join(VALID_ORIGINS)}", 400)
        session_id = app.state.sessions.create(scanner_config(), origin)
        return JSONResponse({"session_id": session_id}, status_code=201)

    @app.post("/sessions/{session_id}/frames")
    async def post_frame(session_id: str, request: Request) -> JSONResponse:
        """Feed one OCR frame; an empty frame means the receipt left view."""
        session = app.state.sessions.get(session_id)
        if session is None:
            return _error("Unknown session", 404)
        data = await _read_json(request)
        if data is None:
            return _error("Expected JSON frame payload", 400)

        observations = observations_from_payload(data)
        if not observations:
            session.frames_removed_all()
            return JSONResponse({"state": session.state.value, "changed": False, "amounts": session.amounts.to_dict()})

        result = session.process_frame(observations)
        return JSONResponse({"state": result.state.value, "changed": result.changed, "amounts": result.amounts.to_dict()})

    @app.delete("/sessions/{session_id}")
    async def dismiss_session(session_id: str) -> JSONResponse:
        session = app.state.sessions.pop(session_id)
        if session is None:
            return _error("Unknown session", 404)
        final = session.dismiss()
        return JSONResponse({"state": session.state.value, "amounts": final.to_dict()})

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
