"""One clock and one period sequencer, shared by every tick consumer."""

import logging
import random
import typing

import echophrase.clock
import echophrase.event_emitter
import echophrase.period
import echophrase.settings


logger = logging.getLogger(__name__)


class TimingPipeline:

	"""
	One pulse clock feeding one period sequencer, multicast to many consumers.

	For every tick the sequencer transition runs first; the resulting
	``PeriodTick`` is then delivered to each subscriber in subscription order.
	All subscribers receive the same object, so nothing downstream draws its
	own randomness for a tick that another consumer has already seen.

	The timing settings are fixed for the pipeline's lifetime.  To change
	tempo, subdivision or period bounds, close it and build a new one.
	"""

	def __init__ (
		self,
		settings: echophrase.settings.Settings,
		period_rng: typing.Optional[random.Random] = None,
		realtime: bool = True,
		spin_wait: bool = True,
		max_ticks: typing.Optional[int] = None
	) -> None:

		min_duration, max_duration = settings.period_bounds

		self.settings = settings
		self.sequencer = echophrase.period.PeriodSequencer(min_duration, max_duration, rng=period_rng)
		self.clock = echophrase.clock.PulseClock(
			tempo = settings.tempo,
			subdivision = settings.subdivision,
			on_tick = self._on_tick,
			realtime = realtime,
			spin_wait = spin_wait,
			max_ticks = max_ticks
		)

		self._ticks = echophrase.event_emitter.EventEmitter()
		self.closed = False
		self.last_tick: typing.Optional[echophrase.period.PeriodTick] = None


	@property
	def running (self) -> bool:

		return self.clock.running


	def subscribe (self, callback: typing.Callable[[echophrase.period.PeriodTick], None]) -> echophrase.event_emitter.Subscription:

		"""Register a consumer for every subsequent tick."""

		if self.closed:
			raise RuntimeError("Cannot subscribe to a closed pipeline")

		return self._ticks.on("tick", callback)


	@property
	def subscriber_count (self) -> int:

		return self._ticks.listener_count("tick")


	def start (self) -> None:

		if self.closed:
			raise RuntimeError("Cannot start a closed pipeline")

		self.clock.start()


	def step (self) -> echophrase.period.PeriodTick:

		"""Advance one tick without the clock's timer (tests, offline use)."""

		if self.closed:
			raise RuntimeError("Cannot step a closed pipeline")

		self.clock.step()

		assert self.last_tick is not None
		return self.last_tick


	def close (self) -> None:

		"""Cancel the clock and release every subscriber.  Idempotent."""

		if self.closed:
			return

		self.closed = True
		self.clock.stop()
		self._ticks.clear()

		logger.debug(f"Timing pipeline closed after {self.clock.tick_count} ticks")


	async def join (self) -> None:

		await self.clock.join()


	def _on_tick (self, tick: echophrase.clock.Tick) -> None:

		if self.closed:
			return

		period_tick = self.sequencer.advance(tick)
		self.last_tick = period_tick

		self._ticks.emit_sync("tick", period_tick)
