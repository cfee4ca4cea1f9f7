from __future__ import annotations

import collections.abc

import pytest
import trio
import trio.testing

from escapist.commontypes import Mode
from escapist.detector import SequenceDetector
from escapist.editor import Buffer
from escapist.host import Host
from escapist.keys import SpecialKey, parse_keys
from escapist.settings import Settings

DEFAULT_ESCAPE = parse_keys("<BS><BS><ESC>")


class FakeHost(Host):
    def __init__(self):
        self.document = Buffer("hello")
        self.fed = []
        self.scheduled = []
        self._mode = Mode.INSERT

    @property
    def mode(self):
        return self._mode

    def feed_keys(self, keys: collections.abc.Sequence):
        self.fed.append(tuple(keys))

    def schedule(self, continuation):
        self.scheduled.append(continuation)

    def add_key_observer(self, observer):
        raise NotImplementedError()

    def add_mode_entry_observer(self, observer):
        raise NotImplementedError()


def make_detector(**options) -> tuple[FakeHost, SequenceDetector]:
    host = FakeHost()
    settings, diagnostics = Settings.from_options(options)
    assert diagnostics == []
    return host, SequenceDetector(host, settings)


def type_chars(detector: SequenceDetector, chars: str, mode: Mode = Mode.INSERT):
    for char in chars:
        detector.on_key(char, mode)


@pytest.mark.parametrize("mapping", ("jk", "fd", "df", "AA"))
async def test_pair_within_timeout_matches_once(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock, mapping: str):
    host, detector = make_detector(mappings=["jk", "fd", "df", "AA"], timeout=200)
    await nursery.start(detector.run)
    detector.on_key(mapping[0], Mode.INSERT)
    await trio.sleep(0.15)
    detector.on_key(mapping[1], Mode.INSERT)
    assert host.fed == [DEFAULT_ESCAPE]
    assert detector.matches == 1
    assert detector.pending is None
    assert not detector.timer.armed


async def test_pair_after_timeout_does_not_match(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector(timeout=200)
    await nursery.start(detector.run)
    detector.on_key("j", Mode.INSERT)
    assert detector.pending is not None and detector.pending.char == "j"
    await trio.sleep(0.25)
    assert detector.pending is None
    detector.on_key("k", Mode.INSERT)
    assert host.fed == []
    assert detector.pending is None


async def test_pending_records_arming_time(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector(timeout=200)
    await nursery.start(detector.run)
    await trio.sleep(3)
    detector.on_key("j", Mode.INSERT)
    assert detector.pending.since == pytest.approx(trio.current_time())


async def test_other_character_clears_pending(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector(mappings=["jk"])
    await nursery.start(detector.run)
    type_chars(detector, "jxk")
    assert host.fed == []
    assert detector.pending is None


async def test_other_first_character_becomes_pending(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector(mappings=["jk", "fd"])
    await nursery.start(detector.run)
    type_chars(detector, "jf")
    assert detector.pending.char == "f"
    detector.on_key("k", Mode.INSERT)
    assert host.fed == []
    type_chars(detector, "fd")
    assert host.fed == [DEFAULT_ESCAPE]


async def test_rearm_replaces_rather_than_stacks(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector(mappings=["ab", "cd"], escape_sequences={"i": lambda first, second: f"<BS><BS>{first}{second}"})
    await nursery.start(detector.run)
    type_chars(detector, "acb")
    assert host.fed == []
    type_chars(detector, "acd")
    assert host.fed == [(SpecialKey.BS, SpecialKey.BS, "c", "d")]


async def test_rearm_restarts_the_timer(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector(mappings=["jk"], timeout=200)
    await nursery.start(detector.run)
    detector.on_key("j", Mode.INSERT)
    await trio.sleep(0.15)
    detector.on_key("j", Mode.INSERT)
    await trio.sleep(0.15)
    # 0.3s since the first j, but only 0.15s since the second
    assert detector.pending.char == "j"
    detector.on_key("k", Mode.INSERT)
    assert host.fed == [DEFAULT_ESCAPE]


async def test_match_takes_priority_over_arming(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector(mappings=["jk", "kj"])
    await nursery.start(detector.run)
    type_chars(detector, "jk")
    assert host.fed == [DEFAULT_ESCAPE]
    assert detector.pending is None
    detector.on_key("j", Mode.INSERT)
    assert host.fed == [DEFAULT_ESCAPE]


async def test_special_keys_clear_pending(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector()
    await nursery.start(detector.run)
    detector.on_key("j", Mode.INSERT)
    detector.on_key(SpecialKey.BS, Mode.INSERT)
    detector.on_key("k", Mode.INSERT)
    assert host.fed == []


async def test_normal_mode_is_ignored(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector()
    await nursery.start(detector.run)
    type_chars(detector, "jk", Mode.NORMAL)
    assert host.fed == []
    assert detector.pending is None
    # a key in a disabled mode leaves pending state alone
    detector.on_key("j", Mode.INSERT)
    detector.on_key("x", Mode.NORMAL)
    assert detector.pending.char == "j"


async def test_disabled_mode_is_ignored(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector(escape_sequences={"i": False})
    await nursery.start(detector.run)
    type_chars(detector, "jk", Mode.INSERT)
    assert host.fed == []
    type_chars(detector, "jk", Mode.REPLACE)
    assert host.fed == [DEFAULT_ESCAPE]


@pytest.mark.parametrize(
    "mode,expected",
    (
        (Mode.INSERT, "<BS><BS><ESC>"),
        (Mode.REPLACE, "<BS><BS><ESC>"),
        (Mode.TERMINAL, "<BS><BS><C-\\><C-n>"),
        (Mode.COMMAND_LINE, "<BS><BS><C-c>"),
    ),
)
async def test_default_action_per_mode(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock, mode: Mode, expected: str):
    host, detector = make_detector()
    await nursery.start(detector.run)
    type_chars(detector, "jk", mode)
    assert host.fed == [parse_keys(expected)]


async def test_empty_callback_result_dispatches_nothing(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    calls = []

    def escape(first, second):
        calls.append(first + second)
        return ""

    host, detector = make_detector(mappings=["AA"], escape_sequences={"i": escape})
    await nursery.start(detector.run)
    type_chars(detector, "AA")
    assert calls == ["AA"]
    assert host.fed == []
    assert detector.matches == 1


async def test_setup_replaces_previous_configuration(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector(mappings=["jk"])
    await nursery.start(detector.run)
    detector.on_key("j", Mode.INSERT)
    diagnostics = detector.setup({"mappings": ["fd"]})
    assert diagnostics == []
    assert detector.pending is None
    assert not detector.timer.armed
    type_chars(detector, "jk")
    assert host.fed == []
    type_chars(detector, "fd")
    assert host.fed == [DEFAULT_ESCAPE]


async def test_setup_reports_diagnostics(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector()
    await nursery.start(detector.run)
    diagnostics = detector.setup({"mappings": ["abc"]})
    assert len(diagnostics) == 2
    assert list(detector.combinations) == ["jk"]
    type_chars(detector, "jk")
    assert host.fed == [DEFAULT_ESCAPE]


async def test_detectors_are_independent(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host_a, detector_a = make_detector(mappings=["jk"])
    host_b, detector_b = make_detector(mappings=["fd"])
    await nursery.start(detector_a.run)
    await nursery.start(detector_b.run)
    detector_a.on_key("j", Mode.INSERT)
    detector_b.on_key("f", Mode.INSERT)
    detector_a.on_key("k", Mode.INSERT)
    assert host_a.fed == [DEFAULT_ESCAPE]
    assert host_b.fed == []
    assert detector_b.pending.char == "f"


async def test_reconciliation_scheduled_for_editing_modes(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector()
    await nursery.start(detector.run)
    detector.on_mode_entry(Mode.INSERT, host.document)
    type_chars(detector, "jk")
    assert len(host.scheduled) == 1
    # the snapshot was consumed by the first match
    type_chars(detector, "jk")
    assert len(host.scheduled) == 1


async def test_no_reconciliation_outside_editing_modes(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector()
    await nursery.start(detector.run)
    detector.on_mode_entry(Mode.TERMINAL, host.document)
    type_chars(detector, "jk", Mode.TERMINAL)
    assert host.scheduled == []


async def test_no_reconciliation_when_check_modified_disabled(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector(check_modified=False)
    await nursery.start(detector.run)
    detector.on_mode_entry(Mode.INSERT, host.document)
    type_chars(detector, "jk")
    assert host.fed == [DEFAULT_ESCAPE]
    assert host.scheduled == []


async def test_scheduled_reconciliation_owns_its_document(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock):
    host, detector = make_detector()
    await nursery.start(detector.run)
    original = host.document
    detector.on_mode_entry(Mode.INSERT, original)
    original.keystroke("j")
    original.keystroke("k")
    type_chars(detector, "jk")
    original.backspace()
    original.backspace()
    # a different document becomes current before the continuation runs
    host.document = Buffer("other")
    detector.on_mode_entry(Mode.INSERT, host.document)
    (continuation,) = host.scheduled
    continuation()
    assert not original.modified


@pytest.mark.parametrize("timer_running", (True, False))
async def test_late_second_key_never_matches(nursery: trio.Nursery, autojump_clock: trio.testing.MockClock, timer_running: bool):
    host, detector = make_detector(timeout=200)
    if timer_running:
        await nursery.start(detector.run)
    detector.on_key("j", Mode.INSERT)
    # time passes without giving the timer task a chance to run
    autojump_clock.jump(0.5)
    detector.on_key("k", Mode.INSERT)
    assert host.fed == []
    assert detector.pending is None
    assert not detector.timer.armed


async def test_late_first_key_starts_over(autojump_clock: trio.testing.MockClock):
    host, detector = make_detector(timeout=200)
    detector.on_key("j", Mode.INSERT)
    autojump_clock.jump(0.5)
    detector.on_key("j", Mode.INSERT)
    assert detector.pending.char == "j"
    assert detector.pending.since == pytest.approx(trio.current_time())
    autojump_clock.jump(0.1)
    detector.on_key("k", Mode.INSERT)
    assert host.fed == [DEFAULT_ESCAPE]
