"""Tests for simple_repl.hud."""

from __future__ import annotations

import pytest
from conftest import FakeSession, ManualScheduler

from simple_repl.config import ShowMode
from simple_repl.events import EventBus, EventKind
from simple_repl.hud import HUD_VAR, Hud, HudAction, decide, default_hud_config
from simple_repl.layout import Layout
from simple_repl.pty.session import SessionStatus


def _session(name: str = "simple_repl:db") -> FakeSession:
    return FakeSession(name=name, status=SessionStatus.RUNNING)


class TestDecide:
    @pytest.mark.parametrize(
        "show, regular, overlay, expected",
        [
            (ShowMode.ALWAYS, 0, 0, HudAction.OPEN),
            (ShowMode.ALWAYS, 1, 0, HudAction.OPEN),
            (ShowMode.ALWAYS, 0, 1, HudAction.KEEP),
            (ShowMode.ALWAYS, 2, 1, HudAction.KEEP),
            (ShowMode.IF_NOT_VISIBLE, 0, 0, HudAction.OPEN),
            (ShowMode.IF_NOT_VISIBLE, 1, 0, HudAction.SKIP),
            (ShowMode.IF_NOT_VISIBLE, 0, 1, HudAction.KEEP),
            (ShowMode.IF_NOT_VISIBLE, 1, 1, HudAction.CLOSE),
            (ShowMode.NEVER, 0, 0, HudAction.SKIP),
            (ShowMode.NEVER, 1, 0, HudAction.SKIP),
            (ShowMode.NEVER, 0, 1, HudAction.CLOSE),
        ],
    )
    def test_transitions(
        self, show: ShowMode, regular: int, overlay: int, expected: HudAction
    ) -> None:
        assert decide(show, regular, overlay) == expected


class TestDefaultHudConfig:
    def test_top_right(self) -> None:
        config = default_hud_config("db", columns=200, lines=60)
        assert config["title"] == " REPL Output: db "
        assert config["anchor"] == "NE"
        assert config["col"] == 200
        assert config["width"] == 66
        assert config["height"] == 15

    def test_minimum_size(self) -> None:
        config = default_hud_config("db", columns=80, lines=24)
        assert config["width"] == 50
        assert config["height"] == 10


class TestHudOpen:
    def test_opens_at_last_non_blank_row(self) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus())
        session = _session()
        session.buffer.feed("$ echo hi\nhi\n\n\n")

        assert hud.update(session, ShowMode.IF_NOT_VISIBLE) == HudAction.OPEN
        [win_id] = hud.windows(session)
        win = layout.get(win_id)
        assert win.floating
        assert win.vars[HUD_VAR] is True
        assert win.cursor == (2, 0)

    def test_deferred_open(self, scheduler: ManualScheduler) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus(), scheduler)
        session = _session()
        hud.update(session, ShowMode.ALWAYS, delay=0.1)
        assert hud.windows(session) == []
        assert scheduler.calls[0][0] == 0.1
        scheduler.run_all()
        assert len(hud.windows(session)) == 1

    def test_pending_open_not_scheduled_twice(
        self, scheduler: ManualScheduler
    ) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus(), scheduler)
        session = _session()
        assert hud.update(session, ShowMode.ALWAYS, delay=0.1) == HudAction.OPEN
        assert hud.update(session, ShowMode.ALWAYS, delay=0.1) == HudAction.KEEP
        assert len(scheduler.calls) == 1
        scheduler.run_all()
        assert len(hud.windows(session)) == 1

    def test_never_during_delay_cancels_pending_open(
        self, scheduler: ManualScheduler
    ) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus(), scheduler)
        session = _session()
        hud.update(session, ShowMode.ALWAYS, delay=0.1)
        assert hud.update(session, ShowMode.NEVER, delay=0.1) == HudAction.SKIP
        scheduler.run_all()
        assert hud.windows(session) == []

    def test_regular_window_during_delay_suppresses_open(
        self, scheduler: ManualScheduler
    ) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus(), scheduler)
        session = _session()
        hud.update(session, ShowMode.IF_NOT_VISIBLE, delay=0.1)
        layout.open_window(session.name, "split")
        scheduler.run_all()
        assert hud.windows(session) == []

    def test_always_still_opens_after_regular_window_appears(
        self, scheduler: ManualScheduler
    ) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus(), scheduler)
        session = _session()
        hud.update(session, ShowMode.ALWAYS, delay=0.1)
        layout.open_window(session.name, "split")
        scheduler.run_all()
        assert len(hud.windows(session)) == 1

    def test_reopen_after_cancelled_open(self, scheduler: ManualScheduler) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus(), scheduler)
        session = _session()
        hud.update(session, ShowMode.ALWAYS, delay=0.1)
        hud.update(session, ShowMode.NEVER, delay=0.1)
        hud.update(session, ShowMode.ALWAYS, delay=0.1)
        scheduler.run_all()
        assert len(hud.windows(session)) == 1

    def test_deferred_open_skipped_if_session_gone(
        self, scheduler: ManualScheduler
    ) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus(), scheduler)
        session = _session()
        hud.update(session, ShowMode.ALWAYS, delay=0.1)
        session.close()
        scheduler.run_all()
        assert layout.windows_for(session.name) == []

    def test_always_never_stacks(self) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus())
        session = _session()
        hud.update(session, ShowMode.ALWAYS)
        hud.update(session, ShowMode.ALWAYS)
        assert len(hud.windows(session)) == 1

    def test_always_opens_next_to_regular_window(self) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus())
        session = _session()
        layout.open_window(session.name, "split")
        assert hud.update(session, ShowMode.ALWAYS) == HudAction.OPEN
        assert len(hud.windows(session)) == 1
        assert len(layout.windows_for(session.name)) == 2

    def test_suppressed_by_regular_window(self) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus())
        session = _session()
        layout.open_window(session.name, "split")
        assert hud.update(session, ShowMode.IF_NOT_VISIBLE) == HudAction.SKIP
        assert hud.windows(session) == []

    def test_regular_window_on_other_tabpage_does_not_count(self) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus())
        session = _session()
        layout.open_window(session.name, "split")
        layout.new_tabpage()
        assert hud.update(session, ShowMode.IF_NOT_VISIBLE) == HudAction.OPEN
        assert len(hud.windows(session)) == 1

    def test_config_passed_through(self) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus())
        session = _session()
        hud.update(session, ShowMode.ALWAYS, {"width": 10, "border": "none"})
        [win_id] = hud.windows(session)
        assert layout.get(win_id).geometry == {"width": 10, "border": "none"}


class TestHudClose:
    def test_never_closes_existing(self) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus())
        session = _session()
        hud.update(session, ShowMode.ALWAYS)
        assert hud.update(session, ShowMode.NEVER) == HudAction.CLOSE
        assert hud.windows(session) == []

    def test_if_not_visible_closes_when_regular_exists(self) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus())
        session = _session()
        hud.update(session, ShowMode.ALWAYS)
        regular = layout.open_window(session.name, "split")
        assert hud.update(session, ShowMode.IF_NOT_VISIBLE) == HudAction.CLOSE
        assert hud.windows(session) == []
        assert layout.is_valid(regular)


class TestHudDismissal:
    @pytest.mark.parametrize("kind", list(EventKind))
    def test_dismissed_by_user_action(self, kind: EventKind) -> None:
        layout = Layout()
        events = EventBus()
        hud = Hud(layout, events)
        session = _session()
        regular = layout.open_window(session.name, "split")
        hud.update(session, ShowMode.ALWAYS)
        [win_id] = hud.windows(session)

        events.emit(kind)

        assert not layout.is_valid(win_id)
        assert layout.is_valid(regular)
        assert layout.is_valid(layout.current_window)

    def test_only_own_hud_closed(self) -> None:
        layout = Layout()
        events = EventBus()
        hud = Hud(layout, events)
        first = _session("simple_repl:a")
        hud.update(first, ShowMode.ALWAYS)
        [first_win] = hud.windows(first)
        events.emit(EventKind.CURSOR_MOVED)

        second = _session("simple_repl:b")
        hud.update(second, ShowMode.ALWAYS)
        [second_win] = hud.windows(second)
        assert not layout.is_valid(first_win)
        assert layout.is_valid(second_win)

    def test_closed_elsewhere_then_event_is_harmless(self) -> None:
        layout = Layout()
        events = EventBus()
        hud = Hud(layout, events)
        session = _session()
        hud.update(session, ShowMode.ALWAYS)
        [win_id] = hud.windows(session)
        layout.close_window(win_id)
        events.emit(EventKind.CURSOR_MOVED)  # Should not raise
        assert not layout.is_valid(win_id)

    def test_policy_close_cancels_trigger(self) -> None:
        layout = Layout()
        events = EventBus()
        hud = Hud(layout, events)
        session = _session()
        hud.update(session, ShowMode.ALWAYS)
        hud.update(session, ShowMode.NEVER)
        assert events.pending == 0


class TestHudFollow:
    def test_follows_new_output(self) -> None:
        layout = Layout()
        hud = Hud(layout, EventBus())
        session = _session()
        session.buffer.feed("a\n")
        hud.update(session, ShowMode.ALWAYS)
        [win_id] = hud.windows(session)
        session.buffer.feed("b\nc\nd\n")
        assert layout.get(win_id).cursor == (4, 0)

    def test_stops_following_after_close(self) -> None:
        layout = Layout()
        events = EventBus()
        hud = Hud(layout, events)
        session = _session()
        hud.update(session, ShowMode.ALWAYS)
        assert session.buffer.listener_count == 1
        events.emit(EventKind.CURSOR_MOVED)
        session.buffer.feed("more\n")  # Should not raise
        assert session.buffer.listener_count == 0
