"""
Unit tests for the event channel in dweb.dns.events
"""

from unittest.mock import Mock, patch

import pytest

from dweb.dns.events import CACHE_FLUSHED, FAILED, RESOLVED, EventChannel
from dweb.dns.model import CacheFlushedEvent, FailedEvent, ResolvedEvent
from tests.test_helpers import KEY


class TestEventChannel:
    """Test suite for EventChannel."""

    def test_emit_without_listeners(self):
        """Emitting with nobody listening is a no-op."""
        EventChannel().emit(CACHE_FLUSHED, CacheFlushedEvent())

    def test_listeners_called_in_order(self):
        channel = EventChannel()
        calls = []
        channel.on(RESOLVED, lambda payload: calls.append(("first", payload.key)))
        channel.on(RESOLVED, lambda payload: calls.append(("second", payload.key)))

        channel.emit(RESOLVED, ResolvedEvent(method="well-known", name="a.example", key=KEY))

        assert calls == [("first", KEY), ("second", KEY)]

    def test_listener_only_receives_its_event(self):
        channel = EventChannel()
        listener = Mock()
        channel.on(FAILED, listener)

        channel.emit(RESOLVED, ResolvedEvent(method="well-known", name="a.example", key=KEY))
        listener.assert_not_called()

        payload = FailedEvent(method="well-known", name="a.example", err="HTTP code 500")
        channel.emit(FAILED, payload)
        listener.assert_called_once_with(payload)

    def test_off(self):
        channel = EventChannel()
        listener = Mock()
        channel.on(CACHE_FLUSHED, listener)
        channel.off(CACHE_FLUSHED, listener)
        channel.off(CACHE_FLUSHED, listener)

        channel.emit(CACHE_FLUSHED, CacheFlushedEvent())

        listener.assert_not_called()
        assert channel.listener_count(CACHE_FLUSHED) == 0

    def test_unknown_event_rejected(self):
        with pytest.raises(ValueError):
            EventChannel().on("resolving", Mock())

    @patch("dweb.dns.events.sentry_sdk")
    def test_failing_listener_is_reported(self, mock_sentry):
        """A listener raising does not stop other listeners or the emitter."""
        channel = EventChannel()
        after = Mock()
        channel.on(CACHE_FLUSHED, Mock(side_effect=RuntimeError("boom")))
        channel.on(CACHE_FLUSHED, after)

        channel.emit(CACHE_FLUSHED, CacheFlushedEvent())

        after.assert_called_once()
        mock_sentry.capture_exception.assert_called_once()
