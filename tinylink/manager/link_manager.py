"""
LinkManager module for tinylink.

Responsibilities:
    - Create links from a target URL, a random code or a user-chosen custom code
    - Validate URLs, custom codes and expiry windows
    - Resolve code collisions with a bounded retry loop
    - Redirect (with click accounting), stats, listing, deletion and expiry sweeps

Design notes:
    - Uniqueness is owned by the store. The lookup before insert is only an
      optimization; a CodeConflict raised by the insert itself is reported as
      CodeTaken even when the lookup said the code was free.
    - Click counts are only ever changed through the store's atomic increment.
    - Redirect does not look at `expires_at`: a link past its expiry keeps
      redirecting until the sweeper removes it.
    - Storage, code generator and clock are injected dependencies.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from ..errors import (
    CodeConflict,
    CodeTaken,
    GenerationExhausted,
    InvalidCode,
    InvalidInput,
    NotFound,
)
from ..storage.base import BaseStorage, Link, utcnow
from .codes import generate_code, validate_code
from .sweeper import ExpirySweeper, SweepResult

log = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10

# Rejects empty hosts and characters not allowed in a host name
_HTTP_URL = TypeAdapter(AnyHttpUrl)


class LinkManager:
    """Coordinates creation and lookup rules for links."""

    def __init__(
        self,
        storage: BaseStorage,
        code_generator: Optional[Callable[[], str]] = None,
        clock: Callable[[], datetime] = utcnow,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        """
        Initialize LinkManager with a storage backend.

        Args:
            storage (BaseStorage): Backend storage instance.
            code_generator (Optional[Callable[[], str]]): Random code source (defaults to generate_code).
            clock (Callable[[], datetime]): Source of "now" used for expiry computation.
            max_attempts (int): Random-code attempt budget per create.
        """
        self.storage = storage
        self.code_generator = code_generator or generate_code
        self._clock = clock
        self.max_attempts = max(1, max_attempts)
        self.sweeper = ExpirySweeper(storage, clock=clock)

    # ---------------------------------------------------------------------
    # Validation Helpers
    # ---------------------------------------------------------------------
    def _validate_url(self, url: Optional[str]) -> None:
        """
        Validate that a URL is an absolute http/https URL with a host.

        Raises:
            InvalidInput: If the URL is missing or malformed.
        """
        if not url or not isinstance(url, str):
            raise InvalidInput("URL is required")
        try:
            _HTTP_URL.validate_python(url)
        except ValidationError:
            raise InvalidInput("Invalid URL format")

    def _expiry_for(self, expiry_days: Optional[int]) -> Optional[datetime]:
        """Translate an expiry window into an absolute timestamp; None/0 mean never."""
        if expiry_days is None:
            return None
        if isinstance(expiry_days, bool) or not isinstance(expiry_days, int):
            raise InvalidInput("expiryDays must be an integer")
        if expiry_days < 0:
            raise InvalidInput("expiryDays must not be negative")
        if expiry_days == 0:
            return None
        try:
            return self._clock() + timedelta(days=expiry_days)
        except OverflowError:
            raise InvalidInput("expiryDays is too large")

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def create_link(
        self,
        url: Optional[str],
        code: Optional[str] = None,
        expiry_days: Optional[int] = None,
    ) -> Link:
        """
        Create a link for a given URL, optionally using a custom code.

        Rules:
            - A custom code must pass validate_code, else InvalidCode.
            - Validate URL format (absolute http/https with a well-formed host) and the expiry window.
            - If a custom code is provided:
                * an existing record with that code means CodeTaken.
                * a conflict reported by the store on insert also means CodeTaken.
            - Otherwise draw random codes until a free one is stored or the
              attempt budget runs out (GenerationExhausted).

        Args:
            url: Target URL.
            code: Custom code requested by the user.
            expiry_days: Retention in days; None or 0 keeps the link forever.

        Returns:
            Link: The stored record.
        """
        # Code format is checked first so a bad code is reported as InvalidCode whatever the URL
        if code and not validate_code(code):
            raise InvalidCode()
        self._validate_url(url)
        expires_at = self._expiry_for(expiry_days)

        if code:
            link = self._create_with_custom_code(url, code, expires_at)
        else:
            link = self._create_with_random_code(url, expires_at)

        log.info("Created link %s (expires_at=%s)", link.code, link.expires_at)
        log.debug("Link %s -> %s", link.code, link.target_url)
        return link

    def _create_with_custom_code(self, url: str, code: str, expires_at: Optional[datetime]) -> Link:
        if self.storage.get_link(code) is not None:
            raise CodeTaken()
        try:
            return self.storage.insert_link(code, url, expires_at)
        except CodeConflict:
            # Lost the race against a concurrent create between lookup and insert
            raise CodeTaken()

    def _create_with_random_code(self, url: str, expires_at: Optional[datetime]) -> Link:
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.code_generator()
            if self.storage.get_link(candidate) is not None:
                log.debug("Generated code %s collided (attempt %d)", candidate, attempt)
                continue
            try:
                return self.storage.insert_link(candidate, url, expires_at)
            except CodeConflict:
                log.debug("Generated code %s taken on insert (attempt %d)", candidate, attempt)
        log.warning("No free code found after %d attempts", self.max_attempts)
        raise GenerationExhausted()

    def redirect(self, code: str) -> str:
        """
        Resolve a code to its target URL and count the click.

        Raises:
            NotFound: If the code is unknown, or vanished before the click was counted.
        """
        link = self.storage.get_link(code)
        if link is None:
            raise NotFound()
        if not self.storage.increment_clicks(code):
            raise NotFound()
        return link.target_url

    def get_stats(self, code: str) -> Link:
        link = self.storage.get_link(code)
        if link is None:
            raise NotFound()
        return link

    def list_links(self) -> List[Link]:
        return self.storage.list_links()

    def delete_link(self, code: str) -> None:
        if not self.storage.delete_link(code):
            raise NotFound()
        log.info("Deleted link %s", code)

    def sweep_expired(self) -> SweepResult:
        """Remove every expired link; returns the count and the sweeper's timestamp."""
        return self.sweeper.run()
