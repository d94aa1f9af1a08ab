"""Random-length period state machine.

A *period* is a run of ticks during which no new note is chosen.  Its length
is drawn uniformly from ``[min_duration, max_duration]`` each time the
previous period completes.  The tick on which that happens is a *boundary*.

The sequencer starts with an empty period (duration 0), so the very first
tick it sees is always a boundary.
"""

import dataclasses
import logging
import random
import typing

import echophrase.clock
import echophrase.settings


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class Period:

	"""Live sequencer state: length in ticks and 0-based position within it."""

	duration: int = 0
	position: int = 0

	@property
	def complete (self) -> bool:

		return self.position + 1 >= self.duration


@dataclasses.dataclass(frozen=True)
class PeriodTick:

	"""
	Sequencer output for one tick, shared by every downstream consumer.
	"""

	index: int
	subdivision: int
	duration: int
	position: int
	boundary: bool
	time: float = 0.0


class PeriodSequencer:

	"""
	Consumes ticks and marks period boundaries.

	One instance lives exactly as long as one pulse clock.
	"""

	def __init__ (self, min_duration: int, max_duration: int, rng: typing.Optional[random.Random] = None) -> None:

		if min_duration < 1:
			raise echophrase.settings.SettingsError(f"min_duration must be at least 1, got {min_duration}")

		if min_duration > max_duration:
			raise echophrase.settings.SettingsError(f"min_duration ({min_duration}) cannot exceed max_duration ({max_duration})")

		self.min_duration = min_duration
		self.max_duration = max_duration
		self.rng = rng or random.Random()
		self.period = Period()
		self.periods_drawn = 0


	def advance (self, tick: echophrase.clock.Tick) -> PeriodTick:

		"""Apply one tick and report the resulting state."""

		boundary = self.period.complete

		if boundary:
			self.period = Period(duration=self.rng.randint(self.min_duration, self.max_duration), position=0)
			self.periods_drawn += 1
			logger.debug(f"Tick {tick.index}: new period of {self.period.duration} ticks")
		else:
			self.period.position += 1

		return PeriodTick(
			index = tick.index,
			subdivision = tick.subdivision,
			duration = self.period.duration,
			position = self.period.position,
			boundary = boundary,
			time = tick.time
		)
