"""
Main API module for tinylink.

Responsibilities:
    - Expose REST endpoints to create, list, inspect and delete short links
    - Redirect visitors from a short code to its target URL (302), counting the click
    - Expose the expiry sweep for external schedulers, guarded by an optional bearer secret
    - Map the link error taxonomy onto HTTP status codes

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - In-memory Storage by default; PostgreSQL via TINYLINK_STORAGE_BACKEND=postgres.
    - LinkManager owns validation, collision handling and expiry; routes only marshal.

LLM Prompt Example:
    "Explain how to structure a FastAPI service with an application factory,
    injected dependencies, and a clean separation between API and business logic."
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth.dependencies import require_cron_secret
from tinylink.config import get_settings
from tinylink.errors import LinkError
from tinylink.manager.link_manager import LinkManager
from tinylink.storage.base import BaseStorage, Link, utcnow
from tinylink.storage.storage_factory import get_storage


class CreateLinkRequest(BaseModel):
    """Request payload for creating a new short link."""
    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str] = None
    code: Optional[str] = None
    # Omitted -> DEFAULT_EXPIRY_DAYS; 0 or null -> never expires
    expiry_days: Optional[int] = Field(default=None, alias="expiryDays")


class LinkOut(BaseModel):
    """Serialized link record."""
    id: int
    code: str
    target_url: str
    clicks: int
    last_clicked_at: Optional[datetime] = None
    created_at: datetime
    expires_at: Optional[datetime] = None

    @classmethod
    def from_link(cls, link: Link) -> "LinkOut":
        return cls(**link.to_dict())


def create_app(
    storage: Optional[BaseStorage] = None,
    code_generator: Optional[Callable[[], str]] = None,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        storage: Optional storage backend; defaults to the one selected by config.
        code_generator: Optional random code source for the manager (tests).
        clock: Source of "now" for expiry windows and sweep timestamps.

    Returns:
        FastAPI: A fully configured application instance with its own
                 settings snapshot, storage and manager.

    LLM Prompt Example:
        "Show how an application factory enables test isolation and easy
        dependency swapping (e.g., in-memory vs DB storage) without code changes."
    """
    cfg = get_settings()
    app = FastAPI(
        title="tinylink",
        description="URL shortener with click counting and expiring links",
        docs_url="/docs",
    )
    log = logging.getLogger("tinylink")

    # basic console logging (optional)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=cfg.LOG_LEVEL,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    if storage is None:
        storage = get_storage()
    link_manager = LinkManager(
        storage=storage,
        code_generator=code_generator,
        clock=clock,
        max_attempts=cfg.MAX_CODE_ATTEMPTS,
    )
    app.state.settings = cfg
    app.state.storage = storage
    app.state.link_manager = link_manager
    log.info("tinylink storage backend: %s", type(storage).__name__)

    # ----------------------------------------------------------------
    # Error mapping
    # ----------------------------------------------------------------
    @app.exception_handler(LinkError)
    async def link_error_handler(request: Request, exc: LinkError):
        if exc.status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
            for err in exc.errors()
        )
        return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # Health check
    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {
            "status": "ok",
            "backend": type(storage).__name__,
            "time": storage.ping().isoformat(),
        }

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.post("/api/links", status_code=201, response_model=LinkOut)
    def create_link(req: CreateLinkRequest) -> LinkOut:
        """
        Create a short link.

        Returns:
            LinkOut: The created record (201).

        Raises:
            InvalidInput / InvalidCode (400), CodeTaken (409), GenerationExhausted (500).
        """
        if "expiry_days" in req.model_fields_set:
            expiry_days = req.expiry_days
        else:
            expiry_days = cfg.DEFAULT_EXPIRY_DAYS
        link = link_manager.create_link(req.url, code=req.code, expiry_days=expiry_days)
        return LinkOut.from_link(link)

    @app.get("/api/links", response_model=List[LinkOut])
    def list_links() -> List[LinkOut]:
        """All links, newest first."""
        return [LinkOut.from_link(link) for link in link_manager.list_links()]

    @app.get("/api/links/{code}", response_model=LinkOut)
    def link_stats(code: str) -> LinkOut:
        return LinkOut.from_link(link_manager.get_stats(code))

    @app.delete("/api/links/{code}")
    def delete_link(code: str) -> Dict[str, str]:
        link_manager.delete_link(code)
        return {"message": "Link deleted successfully"}

    @app.get("/api/cron/cleanup", dependencies=[Depends(require_cron_secret)])
    def sweep_expired() -> Dict[str, Any]:
        """
        Delete every expired link. Intended for an external scheduler.

        Returns:
            dict: success flag, number of deleted links and the sweep time.
        """
        result = link_manager.sweep_expired()
        return {
            "success": True,
            "deletedCount": result.deleted_count,
            "timestamp": result.timestamp.isoformat(),
        }

    # Catch-all short-code route; must stay last so it does not shadow the API.
    @app.get("/{code}")
    def redirect_link(code: str) -> RedirectResponse:
        """
        Redirect to the target URL of `code` and count the click.

        Notes:
            - Links past `expires_at` still redirect until the next sweep removes them.
        """
        target_url = link_manager.redirect(code)
        return RedirectResponse(url=target_url, status_code=302)

    return app


# `uvicorn main:app --reload` and `from main import app` continue to work.
app = create_app()
