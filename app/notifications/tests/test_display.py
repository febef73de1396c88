"""Tests for the bundled display backends."""

from notifications.display import LocMemDisplay, LoggingDisplay, NotificationDisplay


class TestLoggingDisplay:
    def test_satisfies_protocol(self):
        assert isinstance(LoggingDisplay(), NotificationDisplay)

    def test_show_logs(self, caplog):
        caplog.set_level("INFO", logger="notifications")

        LoggingDisplay().show(7, "Title", "Body", "{}")

        assert "Display #7: Title - Body" in caplog.text

    def test_no_categories(self):
        assert LoggingDisplay().configure_categories() is False


class TestLocMemDisplay:
    def test_show_appends_to_outbox(self, display_outbox):
        LocMemDisplay().show(1, "T", "B", '{"type": "x"}')

        assert len(display_outbox) == 1
        assert display_outbox[0].platform == "locmem"

    def test_tap_before_initialize_is_ignored(self, caplog):
        LocMemDisplay().tap("{}")

        assert "before display was initialized" in caplog.text

    def test_tap_calls_handler(self):
        display = LocMemDisplay()
        taps = []
        display.initialize(taps.append)

        display.tap('{"type": "x"}')

        assert taps == ['{"type": "x"}']
