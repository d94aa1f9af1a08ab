"""Metronome clicks derived from the shared tick stream.

A click falls on every beat: ticks whose index is a multiple of the
subdivision.  Clicks ignore phrase gating and period state, so the metronome
keeps time through the silent phrases too.
"""

import dataclasses
import typing

import echophrase.period


def is_click (tick_index: int, subdivision: int) -> bool:

	return tick_index % subdivision == 0


@dataclasses.dataclass(frozen=True)
class ClickEvent:

	"""A metronome click and the tick that caused it."""

	tick: echophrase.period.PeriodTick

	@property
	def beat (self) -> int:

		"""Beat number since the clock started, counting from 0."""

		return self.tick.index // self.tick.subdivision


class ClickDerivation:

	"""Turns ticks into clicks and counts them."""

	def __init__ (self) -> None:

		self.clicks = 0


	def on_tick (self, period_tick: echophrase.period.PeriodTick) -> typing.Optional[ClickEvent]:

		if not is_click(period_tick.index, period_tick.subdivision):
			return None

		self.clicks += 1

		return ClickEvent(tick=period_tick)
