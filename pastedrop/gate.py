"""
Expiry/view gate for the read path.

Every fetch of a paste, JSON or HTML, goes through open_paste(). "Now" is an
explicit argument so the decision never reads the wall clock itself.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from pastedrop.database import PasteStore
from pastedrop.models import Paste

logger = logging.getLogger(__name__)


class PasteUnavailable(Exception):
    """Base for every reason a paste cannot be served; all map to 404."""

    detail = "Paste not found"

    def __init__(self, paste_id: str):
        super().__init__(f"{self.detail}: {paste_id}")
        self.paste_id = paste_id


class PasteNotFound(PasteUnavailable):
    detail = "Paste not found"


class PasteExpired(PasteUnavailable):
    detail = "Paste expired"


class ViewLimitExceeded(PasteUnavailable):
    detail = "View limit exceeded"


@dataclass
class GateResult:
    """A successfully opened paste and the views it has left."""
    paste: Paste
    remaining_views: Optional[int]

    @property
    def content(self) -> str:
        return self.paste.content


def is_expired(paste: Paste, now_ms: int) -> bool:
    return paste.expires_at is not None and now_ms > paste.expires_at


def is_exhausted(paste: Paste) -> bool:
    return paste.max_views is not None and paste.views >= paste.max_views


def is_live(paste: Paste, now_ms: int) -> bool:
    """True if the paste may still be served at now_ms."""
    return not is_expired(paste, now_ms) and not is_exhausted(paste)


def open_paste(store: PasteStore, paste_id: str, now_ms: int) -> GateResult:
    """
    Fetch a paste and count this fetch as one view.

    Args:
        store: Backend holding the paste
        paste_id: Unique paste identifier
        now_ms: Current time in epoch milliseconds

    Returns:
        GateResult with the paste as read (pre-increment views) and the
        number of views left after this one, or None if unlimited

    Raises:
        PasteNotFound: If the id is unknown
        PasteExpired: If now_ms is past expires_at
        ViewLimitExceeded: If the view budget was already used up
    """
    paste = store.get_paste(paste_id)
    if paste is None:
        raise PasteNotFound(paste_id)

    if is_expired(paste, now_ms):
        logger.info(f"Paste {paste_id} expired at {paste.expires_at}, now {now_ms}")
        raise PasteExpired(paste_id)

    # Compared against the pre-increment count: max_views=1 allows one fetch
    if is_exhausted(paste):
        logger.info(f"Paste {paste_id} view limit {paste.max_views} reached")
        raise ViewLimitExceeded(paste_id)

    store.increment_view(paste_id)

    remaining_views = None
    if paste.max_views is not None:
        remaining_views = max(0, paste.max_views - (paste.views + 1))

    return GateResult(paste=paste, remaining_views=remaining_views)
