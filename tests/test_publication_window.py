from datetime import datetime, timedelta, timezone

from pagecms.models.content import ContentItem
from pagecms.services.publish_service import in_publication_window, to_utc, visible_now

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _item(**kw) -> ContentItem:
    base = dict(page="home", section="hero", section_key="hero", is_active=True, is_visible=True)
    base.update(kw)
    return ContentItem(**base)


def test_open_window_is_visible():
    assert visible_now(_item(), NOW)


def test_flags_gate_visibility():
    assert not visible_now(_item(is_active=False), NOW)
    assert not visible_now(_item(is_visible=False), NOW)


def test_window_is_half_open():
    start = NOW - timedelta(hours=1)
    assert in_publication_window(start, NOW + timedelta(seconds=1), NOW)
    # publish == now → incluido; expiration == now → excluido
    assert in_publication_window(NOW, None, NOW)
    assert not in_publication_window(start, NOW, NOW)


def test_future_publish_and_past_expiration_hide_item():
    assert not visible_now(_item(publish_date=NOW + timedelta(minutes=5)), NOW)
    assert not visible_now(_item(expiration_date=NOW - timedelta(minutes=5)), NOW)


def test_naive_datetimes_are_treated_as_utc():
    naive = datetime(2026, 3, 1, 11, 0)
    assert to_utc(naive) == datetime(2026, 3, 1, 11, 0, tzinfo=timezone.utc)
    assert in_publication_window(naive, None, NOW)
