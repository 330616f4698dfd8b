"""
FastAPI dependency functions for authentication.

These can be used in routes with Depends() to protect endpoints.
"""

from typing import Optional

from fastapi import Header, Request

from .service import authorize_bearer


def require_cron_secret(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> None:
    """
    Dependency that enforces the cron bearer token when one is configured.

    The secret is read from the settings snapshot stored on `app.state.settings`
    by the app factory, so each app instance honours its own configuration.
    """
    secret = getattr(request.app.state.settings, "CRON_SECRET", "")
    authorize_bearer(authorization, secret)
