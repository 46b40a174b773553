"""
Unit tests for the expiry/view gate, using an in-memory store so every
timestamp is under the test's control.
"""
from typing import Dict, Optional

import pytest

from pastedrop.database import PasteStore
from pastedrop.gate import (
    PasteExpired,
    PasteNotFound,
    PasteUnavailable,
    ViewLimitExceeded,
    is_live,
    open_paste,
)
from pastedrop.models import Paste

CREATED_AT = 1_700_000_000_000


class DictStore(PasteStore):
    """Minimal PasteStore keeping records in a dict."""

    def __init__(self):
        self.pastes: Dict[str, Paste] = {}
        self.increments = 0

    def create_paste(self, content, ttl_seconds=None, max_views=None):
        paste_id = f"p{len(self.pastes) + 1}"
        self.pastes[paste_id] = Paste(
            id=paste_id,
            content=content,
            max_views=max_views,
            created_at=CREATED_AT,
            expires_at=CREATED_AT + ttl_seconds * 1000 if ttl_seconds else None,
        )
        return paste_id

    def get_paste(self, paste_id) -> Optional[Paste]:
        paste = self.pastes.get(paste_id)
        return paste.model_copy() if paste else None

    def increment_view(self, paste_id):
        if paste_id in self.pastes:
            self.pastes[paste_id].views += 1
            self.increments += 1

    def health_check(self):
        return True


@pytest.fixture
def store():
    return DictStore()


def test_unknown_id_is_not_found(store):
    with pytest.raises(PasteNotFound) as exc_info:
        open_paste(store, "missing", CREATED_AT)
    assert exc_info.value.detail == "Paste not found"


def test_unlimited_paste_readable_far_in_future(store):
    paste_id = store.create_paste("forever")
    far_future = CREATED_AT + 100 * 365 * 24 * 3600 * 1000

    result = open_paste(store, paste_id, far_future)

    assert result.content == "forever"
    assert result.remaining_views is None


def test_ttl_boundary_is_inclusive(store):
    paste_id = store.create_paste("ttl", ttl_seconds=60)
    expires_at = CREATED_AT + 60_000

    assert open_paste(store, paste_id, expires_at).content == "ttl"

    with pytest.raises(PasteExpired) as exc_info:
        open_paste(store, paste_id, expires_at + 1)
    assert exc_info.value.detail == "Paste expired"


def test_expired_fetch_does_not_count_a_view(store):
    paste_id = store.create_paste("ttl", ttl_seconds=1, max_views=5)

    with pytest.raises(PasteExpired):
        open_paste(store, paste_id, CREATED_AT + 1001)

    assert store.pastes[paste_id].views == 0


def test_single_view_paste_allows_exactly_one_fetch(store):
    paste_id = store.create_paste("once", max_views=1)

    result = open_paste(store, paste_id, CREATED_AT)
    assert result.remaining_views == 0
    assert store.pastes[paste_id].views == 1

    with pytest.raises(ViewLimitExceeded) as exc_info:
        open_paste(store, paste_id, CREATED_AT)
    assert exc_info.value.detail == "View limit exceeded"
    assert store.pastes[paste_id].views == 1


def test_remaining_views_count_down(store):
    paste_id = store.create_paste("thrice", max_views=3)

    remaining = [open_paste(store, paste_id, CREATED_AT).remaining_views for _ in range(3)]
    assert remaining == [2, 1, 0]

    with pytest.raises(ViewLimitExceeded):
        open_paste(store, paste_id, CREATED_AT)
    assert store.increments == 3


def test_result_carries_pre_increment_record(store):
    paste_id = store.create_paste("snapshot", max_views=2)

    result = open_paste(store, paste_id, CREATED_AT)

    assert result.paste.views == 0
    assert store.pastes[paste_id].views == 1


def test_expiry_checked_before_view_limit(store):
    paste_id = store.create_paste("both", ttl_seconds=1, max_views=1)
    store.increment_view(paste_id)

    with pytest.raises(PasteExpired):
        open_paste(store, paste_id, CREATED_AT + 5000)


def test_all_rejections_share_a_base(store):
    for exc_class in (PasteNotFound, PasteExpired, ViewLimitExceeded):
        assert issubclass(exc_class, PasteUnavailable)


@pytest.mark.parametrize(
    "views,max_views,expires_at,now,expected",
    [
        (0, None, None, CREATED_AT, True),
        (5, None, None, CREATED_AT, True),
        (0, 1, None, CREATED_AT, True),
        (1, 1, None, CREATED_AT, False),
        (0, None, CREATED_AT, CREATED_AT, True),
        (0, None, CREATED_AT, CREATED_AT + 1, False),
    ],
)
def test_is_live(views, max_views, expires_at, now, expected):
    paste = Paste(
        id="x",
        content="c",
        views=views,
        max_views=max_views,
        created_at=CREATED_AT,
        expires_at=expires_at,
    )
    assert is_live(paste, now) is expected
