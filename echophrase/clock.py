"""Asyncio pulse clock.

Ticks fire at ``60 / tempo / subdivision`` seconds.  Each target time is
computed from the start (``start + n * interval``), and the clock sleeps to
within a millisecond of it and then spins, so timing stays tight without
drift.  With ``realtime=False`` the clock simulates time for offline renders
and tests.
"""

import asyncio
import dataclasses
import logging
import math
import time
import typing


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Tick:

	"""
	One pulse of the clock.

	``time`` is the scheduled offset in seconds from the moment the clock
	started, not the wall-clock time at which the tick was delivered.
	"""

	index: int
	subdivision: int
	time: float = 0.0


def pulse_interval_seconds (tempo: float, subdivision: int) -> float:

	"""
	Seconds between ticks: ``60 / tempo / subdivision``.

	At 80 BPM in eighths this is 0.375 s.
	"""

	if not math.isfinite(tempo) or tempo <= 0:
		raise ValueError("Tempo must be positive and finite")

	if subdivision <= 0:
		raise ValueError("Subdivision must be positive")

	return 60.0 / tempo / subdivision


class PulseClock:

	"""
	Emits ticks at a fixed interval derived from tempo and subdivision.

	A clock is single-use: tick indices start at 0 and only ever increase.
	Changing tempo or subdivision means building a new clock.
	"""

	def __init__ (
		self,
		tempo: float,
		subdivision: int,
		on_tick: typing.Callable[[Tick], None],
		realtime: bool = True,
		spin_wait: bool = True,
		max_ticks: typing.Optional[int] = None,
		jitter_log: typing.Optional[typing.List[float]] = None
	) -> None:

		"""Create a stopped clock.

		Parameters:
			tempo: Beats per minute.
			subdivision: Ticks per beat.
			on_tick: Called synchronously with each ``Tick``.
			realtime: When False, time is simulated: ticks fire back to back
				with a yield to the event loop in between.  Used for offline
				rendering and tests.
			spin_wait: When True (default), sleep to within
				``_spin_threshold`` of each tick and busy-wait the rest.
				Tighter timing for ~1-5% extra CPU.
			max_ticks: Stop by itself after this many ticks.
			jitter_log: Optional list that receives each realtime tick's
				lateness in seconds (used by the clock benchmark).
		"""

		self.tempo = tempo
		self.subdivision = subdivision
		self.interval_seconds = pulse_interval_seconds(tempo, subdivision)

		self._on_tick = on_tick
		self.realtime = realtime
		self.max_ticks = max_ticks

		self._spin_wait = spin_wait
		self._spin_threshold: float = 0.001
		self._jitter_log = jitter_log

		self.tick_count = 0
		self.running = False
		self.task: typing.Optional[asyncio.Task] = None
		self.start_time = 0.0


	@property
	def interval_ms (self) -> float:

		return self.interval_seconds * 1000.0


	def start (self) -> None:

		"""Start ticking in a new asyncio task.  Requires a running event loop."""

		if self.running:
			return

		if self.tick_count > 0:
			raise RuntimeError("PulseClock cannot be restarted - create a new clock")

		self.running = True
		self.task = asyncio.get_running_loop().create_task(self._run_loop())

		logger.debug(f"Clock started: {self.tempo:.2f} BPM x {self.subdivision} ({self.interval_ms:.1f} ms per tick)")


	def stop (self) -> None:

		"""
		Stop the clock immediately.

		No tick is delivered after this returns, even if the loop task has not
		yet processed its cancellation.
		"""

		if not self.running and self.task is None:
			return

		self.running = False

		if self.task is not None and not self.task.done():
			self.task.cancel()

		logger.debug(f"Clock stopped after {self.tick_count} ticks")


	async def join (self) -> None:

		"""Wait for the loop task to finish (after ``stop()`` or ``max_ticks``)."""

		if self.task is None:
			return

		# asyncio.wait() does not propagate the clock task's own cancellation.
		await asyncio.wait([self.task])

		if not self.task.cancelled():
			error = self.task.exception()
			if error is not None:
				raise error


	def step (self) -> Tick:

		"""Deliver the next tick synchronously."""

		tick = Tick(
			index = self.tick_count,
			subdivision = self.subdivision,
			time = self.tick_count * self.interval_seconds
		)

		self.tick_count += 1
		self._on_tick(tick)

		return tick


	def _reached_limit (self) -> bool:

		return self.max_ticks is not None and self.tick_count >= self.max_ticks


	async def _run_loop (self) -> None:

		"""Playback loop.

		Tick targets are computed from the start time (``start + n * interval``)
		rather than accumulated, so rounding error and late wake-ups never turn
		into drift.
		"""

		self.start_time = time.perf_counter()

		try:
			while self.running:

				if self._reached_limit():
					break

				self.step()

				# on_tick may have stopped us.
				if not self.running:
					break

				if not self.realtime:
					await asyncio.sleep(0)
					continue

				next_tick_time = self.start_time + self.tick_count * self.interval_seconds
				sleep_time = next_tick_time - time.perf_counter()

				if sleep_time > 0:
					if self._spin_wait and sleep_time > self._spin_threshold:
						await asyncio.sleep(sleep_time - self._spin_threshold)
						while time.perf_counter() < next_tick_time:
							pass
					else:
						await asyncio.sleep(sleep_time)
				else:
					# Running late: yield without waiting.
					await asyncio.sleep(0)

				if self._jitter_log is not None:
					self._jitter_log.append(time.perf_counter() - next_tick_time)

		finally:
			self.running = False
