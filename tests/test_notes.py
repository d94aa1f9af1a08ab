import random

import pytest

import echophrase.click
import echophrase.notes
import echophrase.period
import echophrase.settings


def _period_tick (index: int, boundary: bool = True, subdivision: int = 2) -> echophrase.period.PeriodTick:

	return echophrase.period.PeriodTick(index=index, subdivision=subdivision, duration=1, position=0, boundary=boundary)


def test_midi_to_frequency_reference_points () -> None:

	assert echophrase.notes.midi_to_frequency(69) == pytest.approx(440.0)
	assert echophrase.notes.midi_to_frequency(81) == pytest.approx(880.0)
	assert echophrase.notes.midi_to_frequency(60) == pytest.approx(261.6256, rel=1e-6)


def test_frequency_to_midi_returns_nearest_note_and_cents () -> None:

	assert echophrase.notes.frequency_to_midi(440.0) == (69, pytest.approx(0.0, abs=1e-9))

	note, cents = echophrase.notes.frequency_to_midi(445.0)

	assert note == 69
	assert cents == pytest.approx(19.56, abs=0.01)

	with pytest.raises(ValueError):
		echophrase.notes.frequency_to_midi(0)


def test_note_names () -> None:

	assert echophrase.notes.note_name(60) == "C4"
	assert echophrase.notes.note_name(63) == "D#4"
	assert echophrase.notes.note_name(57) == "A3"


def test_note_event_frequency () -> None:

	assert echophrase.notes.NoteEvent().frequency is None
	assert echophrase.notes.NoteEvent(current=69).frequency == pytest.approx(440.0)


def test_select_draws_from_set_with_transpose () -> None:

	selector = echophrase.notes.NoteSelector(rng=random.Random(0))
	settings = echophrase.settings.Settings(note_set=(60, 62, 63), transpose=12)

	pitches = {selector.select(settings).current for _ in range(200)}

	assert pitches == {72, 74, 75}


def test_previous_chains_from_last_current () -> None:

	selector = echophrase.notes.NoteSelector(rng=random.Random(4))
	settings = echophrase.settings.Settings()

	events = [selector.select(settings) for _ in range(20)]

	assert events[0].previous is None

	for earlier, later in zip(events, events[1:]):
		assert later.previous == earlier.current


def test_only_audible_boundaries_produce_notes () -> None:

	selector = echophrase.notes.NoteSelector(rng=random.Random(1))
	settings = echophrase.settings.Settings()

	assert selector.on_tick(_period_tick(3, boundary=False), settings) is None
	assert selector.on_tick(_period_tick(9), settings) is None
	assert selector.current is None

	event = selector.on_tick(_period_tick(3), settings)

	assert event is not None
	assert event.current in settings.note_set


def test_empty_note_set_is_a_configuration_error () -> None:

	"""No event and no history change when there is nothing to draw."""

	selector = echophrase.notes.NoteSelector()
	settings = echophrase.settings.Settings()

	selector.select(settings)
	before = selector.current

	# Bypass validation to simulate a settings object with no notes.
	empty = echophrase.settings.Settings()
	object.__setattr__(empty, "note_set", ())

	with pytest.raises(echophrase.settings.EmptyNoteSetError):
		selector.select(empty)

	assert selector.current == before


def test_reset_forgets_history () -> None:

	selector = echophrase.notes.NoteSelector()
	selector.select(echophrase.settings.Settings())
	selector.reset()

	assert selector.current is None
	assert selector.previous is None


def test_click_derivation_counts_beats () -> None:

	derivation = echophrase.click.ClickDerivation()
	events = [derivation.on_tick(_period_tick(i, boundary=False, subdivision=4)) for i in range(16)]
	clicks = [event for event in events if event is not None]

	assert [event.tick.index for event in clicks] == [0, 4, 8, 12]
	assert [event.beat for event in clicks] == [0, 1, 2, 3]
	assert derivation.clicks == 4
