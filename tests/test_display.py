import logging

import pytest

import echophrase.display
import echophrase.notes
import echophrase.period
import echophrase.reactor
import echophrase.settings


def _tick (index: int) -> echophrase.period.PeriodTick:

	return echophrase.period.PeriodTick(index=index, subdivision=2, duration=2, position=0, boundary=True)


@pytest.fixture
def reactor () -> echophrase.reactor.SettingsReactor:

	return echophrase.reactor.SettingsReactor(echophrase.settings.Settings(tempo=90))


def test_status_when_stopped (reactor: echophrase.reactor.SettingsReactor) -> None:

	display = echophrase.display.Display(reactor)

	assert display.format_status() == "90.00 BPM  eighth  stopped"


def test_status_shows_phrase_state_and_notes (reactor: echophrase.reactor.SettingsReactor, monkeypatch: pytest.MonkeyPatch) -> None:

	display = echophrase.display.Display(reactor)

	monkeypatch.setattr(reactor.__class__, "running", property(lambda self: True))
	reactor.last_note = echophrase.notes.NoteEvent(current=63, previous=60)

	assert display.format_status(_tick(3)) == "90.00 BPM  eighth  Tick: 3  Phrase: 0 play  Note: D#4 (prev C4)"
	assert "Phrase: 1 rest" in display.format_status(_tick(9))


def test_status_shows_transpose (reactor: echophrase.reactor.SettingsReactor) -> None:

	reactor.set("transpose", -2)

	assert echophrase.display.Display(reactor).format_status().endswith("Transpose: -2")


def test_update_writes_status_to_stderr (reactor: echophrase.reactor.SettingsReactor, capsys: pytest.CaptureFixture) -> None:

	display = echophrase.display.Display(reactor)

	display.update(_tick(0))
	assert capsys.readouterr().err == ""

	display.start()
	display.update(_tick(0))
	display.stop()

	err = capsys.readouterr().err

	assert "90.00 BPM" in err
	assert err.endswith("\r\033[K")


def test_start_and_stop_swap_log_handlers (reactor: echophrase.reactor.SettingsReactor) -> None:

	root = logging.getLogger()
	before = list(root.handlers)

	display = echophrase.display.Display(reactor)
	display.start()

	assert len(root.handlers) == 1
	assert isinstance(root.handlers[0], echophrase.display.DisplayLogHandler)

	display.stop()

	assert root.handlers == before
