"""
FastAPI Certificate Verification Service
Main application with all API endpoints
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from app.certificate_store import CertificateStore
from app.config import TEMPLATES_DIR, Settings, get_settings
from app.errors import LoadError
from app.presenter import SessionView
from app.session import VerificationSession

logger = logging.getLogger(__name__)


class OpenSessionRequest(BaseModel):
    url: str


class InputRequest(BaseModel):
    value: str = ""


class VerifyRequest(BaseModel):
    certificate_id: Optional[str] = None


class SessionEntry:
    """A live session and the view it renders into"""

    def __init__(self, session: VerificationSession, view: SessionView, last_seen: float):
        self.session = session
        self.view = view
        self.last_seen = last_seen


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CertificateStore] = None,
    templates_dir: Path = TEMPLATES_DIR,
    clock: Callable[[], float] = time.monotonic,
) -> FastAPI:
    """Build the FastAPI application"""
    settings = settings or get_settings()
    store = store or CertificateStore(settings.dataset_path)

    logging.basicConfig(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await store.load()
        except LoadError as e:
            # Each new session retries the load, like a page reload would.
            logger.warning("Starting without certificate data: %s", e)
        yield
        for entry in app.state.sessions.values():
            entry.session.close()
        app.state.sessions.clear()

    app = FastAPI(
        title="Certificate Verification System",
        description="Look up issued certificates by their Certificate ID",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.sessions = {}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Serve templates directory as static (optional assets)
    if templates_dir.exists():
        app.mount("/static", StaticFiles(directory=str(templates_dir)), name="static")

    def _evict_idle(sessions: Dict[str, SessionEntry]) -> None:
        """Drop sessions whose page stopped talking to us"""
        cutoff = clock() - settings.session_ttl_seconds
        for session_id in [sid for sid, entry in sessions.items() if entry.last_seen < cutoff]:
            sessions.pop(session_id).session.close()
            logger.info("Evicted idle session %s", session_id)

    def _get_entry(request: Request, session_id: str) -> SessionEntry:
        sessions = request.app.state.sessions
        _evict_idle(sessions)
        entry = sessions.get(session_id)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
        entry.last_seen = clock()
        return entry

    def _session_response(session_id: str, entry: SessionEntry, status_code: int = 200) -> JSONResponse:
        body = {"session_id": session_id, **entry.view.snapshot()}
        return JSONResponse(content=body, status_code=status_code)

    @app.get("/", response_class=HTMLResponse)
    async def home():
        """
        Serve the verification page

        Returns:
            HTML page with the certificate ID form
        """
        html_path = templates_dir / "index.html"

        if not html_path.exists():
            raise HTTPException(status_code=500, detail="Template file not found")

        with open(html_path, "r", encoding="utf-8") as file:
            html_content = file.read()

        return HTMLResponse(content=html_content)

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        """
        Health check endpoint for monitoring

        Returns:
            Status message and dataset information
        """
        return {
            "status": "running",
            "dataset": {
                "source": store.source,
                "loaded": store.loaded,
                "records": len(store.records) if store.loaded else 0,
                "error": store.load_error,
            },
            "sessions": len(app.state.sessions),
        }

    @app.get("/certificates.json")
    async def certificates_document() -> Dict[str, Any]:
        """
        The static dataset resource

        Raises:
            HTTPException: If the dataset is not available
        """
        try:
            return store.document
        except LoadError as e:
            raise HTTPException(status_code=503, detail=f"Certificate data not available: {str(e)}")

    @app.post("/sessions", status_code=201)
    async def open_session(body: OpenSessionRequest, request: Request):
        """
        Open a verification session for a page load

        Args:
            body: The URL the page was loaded with (deep-link parameters included)

        Returns:
            Session ID and the initial view
        """
        view = SessionView(event_info=settings.event_info, toast_seconds=settings.toast_seconds)
        session = VerificationSession(store, view, settings)
        session_id = uuid.uuid4().hex
        entry = SessionEntry(session, view, last_seen=clock())
        _evict_idle(request.app.state.sessions)
        request.app.state.sessions[session_id] = entry

        await session.start(body.url)
        logger.info("Opened session %s", session_id)
        return _session_response(session_id, entry, status_code=201)

    @app.get("/sessions/{session_id}")
    async def get_session(session_id: str, request: Request):
        """Current view of a session"""
        return _session_response(session_id, _get_entry(request, session_id))

    @app.put("/sessions/{session_id}/input")
    async def update_input(session_id: str, body: InputRequest, request: Request):
        """Update the certificate ID field as the user types"""
        entry = _get_entry(request, session_id)
        entry.session.set_input(body.value)
        return _session_response(session_id, entry)

    @app.post("/sessions/{session_id}/verify")
    async def verify_certificate(session_id: str, request: Request, body: Optional[VerifyRequest] = None):
        """
        Submit the form of a session

        Args:
            session_id: The session to submit
            body: Optional new value for the certificate ID field

        Returns:
            The view after the attempt; 429 while cooling down, 503 without data
        """
        entry = _get_entry(request, session_id)
        session = entry.session
        await session.submit(body.certificate_id if body else None)

        if not session.ready:
            return _session_response(session_id, entry, status_code=503)
        if session.limiter.state.cooldown_active:
            return _session_response(session_id, entry, status_code=429)
        return _session_response(session_id, entry)

    @app.post("/sessions/{session_id}/reset")
    async def reset_session(session_id: str, request: Request):
        """Clear the form to verify another certificate"""
        entry = _get_entry(request, session_id)
        entry.session.reset()
        return _session_response(session_id, entry)

    @app.delete("/sessions/{session_id}", status_code=204)
    async def close_session(session_id: str, request: Request):
        """Close a session when its page goes away"""
        entry = _get_entry(request, session_id)
        entry.session.close()
        del request.app.state.sessions[session_id]
        logger.info("Closed session %s", session_id)
        return Response(status_code=204)

    return app


app = create_app()


# Run with: uvicorn app.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
