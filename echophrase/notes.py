"""Pitch helpers and the note selector.

A note is chosen at each audible period boundary from the current note set,
with transpose applied.  Each ``NoteEvent`` also carries the note chosen
before it, so a listener can compare the call with its echo.
"""

import dataclasses
import logging
import math
import random
import typing

import echophrase.constants
import echophrase.period
import echophrase.phrase
import echophrase.settings


logger = logging.getLogger(__name__)


_NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]


def midi_to_frequency (pitch: float) -> float:

	"""Equal-tempered frequency in Hz, A4 (69) = 440 Hz."""

	return echophrase.constants.A4_FREQUENCY * 2 ** ((pitch - echophrase.constants.A4_MIDI_NOTE) / 12)


def frequency_to_midi (frequency: float) -> typing.Tuple[int, float]:

	"""
	Nearest MIDI note to a frequency and the remainder in cents (-50..+50).

	Raises ``ValueError`` for non-positive frequencies.
	"""

	if frequency <= 0:
		raise ValueError("Frequency must be positive")

	exact = echophrase.constants.A4_MIDI_NOTE + 12 * math.log2(frequency / echophrase.constants.A4_FREQUENCY)
	nearest = int(round(exact))

	return nearest, (exact - nearest) * 100.0


def note_name (pitch: int) -> str:

	"""Examples: 60 -> ``"C4"``, 63 -> ``"D#4"``, 57 -> ``"A3"``."""

	octave = (pitch // 12) - 1
	return f"{_NOTE_NAMES[pitch % 12]}{octave}"


@dataclasses.dataclass(frozen=True)
class NoteEvent:

	"""The note just chosen and the one chosen before it."""

	current: typing.Optional[int] = None
	previous: typing.Optional[int] = None

	@property
	def frequency (self) -> typing.Optional[float]:

		if self.current is None:
			return None

		return midi_to_frequency(self.current)


class NoteSelector:

	"""
	Chooses a note at every audible period boundary.

	Settings are passed in with each tick rather than held, so a note set or
	transpose change is picked up at the next boundary without the selector
	being rebuilt.  The reactor calls ``reset()`` whenever it builds a new
	timing pipeline, so the first note after a start or restart has no
	previous note.
	"""

	def __init__ (self, rng: typing.Optional[random.Random] = None) -> None:

		self.rng = rng or random.Random()
		self.current: typing.Optional[int] = None
		self.previous: typing.Optional[int] = None


	def on_tick (self, period_tick: echophrase.period.PeriodTick, settings: echophrase.settings.Settings) -> typing.Optional[NoteEvent]:

		"""Return a ``NoteEvent`` for qualifying ticks, otherwise ``None``."""

		if not period_tick.boundary:
			return None

		# Silent phrases produce nothing, not even a rest marker.
		if not echophrase.phrase.is_audible(period_tick.index, period_tick.subdivision):
			return None

		return self.select(settings)


	def select (self, settings: echophrase.settings.Settings) -> NoteEvent:

		"""
		Draw one note from the set, apply transpose and advance the history.

		Raises:
			EmptyNoteSetError: When there is nothing to choose from.  No event
				is produced and the history is left untouched.
		"""

		if not settings.note_set:
			raise echophrase.settings.EmptyNoteSetError("Cannot choose a note from an empty note set")

		pitch = settings.note_set[self.rng.randrange(len(settings.note_set))] + settings.transpose

		event = NoteEvent(current=pitch, previous=self.current)

		self.previous = self.current
		self.current = pitch

		return event


	def reset (self) -> None:

		self.current = None
		self.previous = None
