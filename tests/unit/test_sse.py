from __future__ import annotations

import pytest

from usage_monitor.core.utils.sse import format_sse_event

pytestmark = pytest.mark.unit


def test_format_sse_event_names_event_after_payload_type():
    payload = {"type": "snapshot", "reason": "initial"}
    result = format_sse_event(payload)
    assert result == 'event: snapshot\ndata: {"type":"snapshot","reason":"initial"}\n\n'


def test_format_sse_event_without_type_emits_data_only():
    assert format_sse_event({"ok": True}) == 'data: {"ok":true}\n\n'
