"""
Core authentication logic.

Compares the Authorization header sent by a scheduler against the
configured cron secret.
"""

import logging
import secrets
from typing import Optional

from fastapi import HTTPException, status

log = logging.getLogger(__name__)


def authorize_bearer(authorization: Optional[str], secret: str) -> None:
    """
    Validate an Authorization header against a shared secret.

    Args:
        authorization (Optional[str]): Raw header value, e.g. "Bearer s3cret".
        secret (str): Configured secret. Empty means the check is disabled.

    Raises:
        HTTPException: If a secret is configured and the header does not match (401 Unauthorized).
    """
    if not secret:
        return

    expected = f"Bearer {secret}"
    if authorization is not None and secrets.compare_digest(authorization.encode(), expected.encode()):
        return

    log.warning("Rejected sweep request with missing or invalid bearer token")
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
