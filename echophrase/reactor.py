"""Owner of the current settings and of the live timing pipeline.

Each change notification is classified by the field it touches:

- ``TIMING_FIELDS`` (tempo, subdivision) change tick spacing and phrase
  arithmetic, so the whole pipeline is discarded and rebuilt from tick 0.
- ``BOUNDS_FIELDS`` (min/max duration) need a fresh period sequencer.  The
  pipeline is rebuilt as well, so a bounds change lands on a boundary (the
  new tick 0) and never mid-period.
- ``LIVE_FIELDS`` (note set, transpose) leave the clock and sequencer alone;
  the next audible boundary simply draws with the new values.

Rebuilding always closes the old pipeline before the new one starts, so at
most one pulse clock is ever alive per reactor.

Events emitted (register with ``on_event``):

- ``"tick"`` ``(PeriodTick)`` - every tick, after the sequencer transition
- ``"note"`` ``(NoteEvent, PeriodTick)`` - audible period boundaries
- ``"click"`` ``(ClickEvent)`` - every beat
- ``"settings"`` ``(field, Settings)`` - after an accepted change
- ``"rebuild"`` ``(Settings)`` - after the timing pipeline restarts
- ``"start"`` / ``"stop"``
"""

import logging
import random
import typing

import echophrase.click
import echophrase.event_emitter
import echophrase.notes
import echophrase.period
import echophrase.pipeline
import echophrase.settings


logger = logging.getLogger(__name__)


TIMING_FIELDS = frozenset({"tempo", "subdivision"})
BOUNDS_FIELDS = frozenset({"min_duration", "max_duration"})
LIVE_FIELDS = frozenset({"note_set", "transpose"})


def requires_rebuild (fields: typing.Iterable[str]) -> bool:

	"""True when any of the fields invalidates the running timing pipeline."""

	return any(name in TIMING_FIELDS or name in BOUNDS_FIELDS for name in fields)


class SettingsReactor:

	"""
	Holds the authoritative settings and rebuilds the timing pipeline on demand.

	Example:
		```python
		reactor = SettingsReactor(Settings(tempo=90), seed=7)
		reactor.on_event("note", lambda event, tick: print(event.current))
		reactor.start()                       # inside a running event loop
		reactor.set("transpose", 2)           # picked up at the next note
		reactor.set("subdivision", "sixteenth")  # restarts from tick 0
		```
	"""

	def __init__ (
		self,
		settings: typing.Optional[echophrase.settings.Settings] = None,
		store: typing.Optional[echophrase.settings.SettingsStore] = None,
		seed: typing.Optional[int] = None,
		realtime: bool = True,
		spin_wait: bool = True,
		max_ticks: typing.Optional[int] = None
	) -> None:

		"""
		Parameters:
			settings: Initial settings (defaults when omitted).
			store: Optional persistence; every accepted change is written back.
			seed: Makes the period lengths and note choices repeatable.
			realtime: Passed to each pulse clock; False simulates time.
			spin_wait: Passed to each pulse clock.
			max_ticks: Stop each pipeline after this many ticks (offline use).
		"""

		self.settings = settings if settings is not None else echophrase.settings.Settings()
		self.store = store
		self.realtime = realtime
		self.spin_wait = spin_wait
		self.max_ticks = max_ticks

		# Independent child streams so that a note-set edit can never shift
		# the sequence of period lengths, and vice versa.
		master = random.Random(seed)
		self._period_rng = random.Random(master.randint(0, 2 ** 63)) if seed is not None else random.Random()
		self._note_rng = random.Random(master.randint(0, 2 ** 63)) if seed is not None else random.Random()

		self.note_selector = echophrase.notes.NoteSelector(rng=self._note_rng)
		self.click_derivation = echophrase.click.ClickDerivation()

		self.events = echophrase.event_emitter.EventEmitter()
		self.pipeline: typing.Optional[echophrase.pipeline.TimingPipeline] = None
		self.rebuilds = 0
		self.last_note: typing.Optional[echophrase.notes.NoteEvent] = None
		self.last_tick: typing.Optional[echophrase.period.PeriodTick] = None


	@property
	def running (self) -> bool:

		return self.pipeline is not None


	def on_event (self, event_name: str, callback: typing.Callable[..., typing.Any]) -> echophrase.event_emitter.Subscription:

		"""Register a callback for a named event."""

		return self.events.on(event_name, callback)


	def start (self) -> None:

		"""
		Start playback.  Requires a running event loop.

		Raises ``SettingsError`` when the settings cannot play; nothing starts.
		"""

		if self.running:
			return

		self.settings.validate()

		if not self.settings.note_set:
			raise echophrase.settings.EmptyNoteSetError("Note set is empty - nothing to play")

		self._build_pipeline()

		logger.info(f"Playback started: {self._describe()}")

		self.events.emit_sync("start")


	def stop (self) -> None:

		"""Stop playback and release every pipeline subscription."""

		if not self.running:
			return

		assert self.pipeline is not None
		self.pipeline.close()
		self.pipeline = None

		logger.info("Playback stopped")

		self.events.emit_sync("stop")


	def toggle (self) -> bool:

		"""Start when stopped, stop when running.  Returns the new state."""

		if self.running:
			self.stop()
		else:
			self.start()

		return self.running


	def set (self, field: str, value: typing.Any) -> echophrase.settings.Settings:

		"""Apply a single-field change notification."""

		return self.update(**{field: value})


	def update (self, **changes: typing.Any) -> echophrase.settings.Settings:

		"""
		Apply one or more field changes atomically.

		Setting ``min_duration`` and ``max_duration`` together avoids a
		transient invalid pair being rejected.

		Raises:
			SettingsError: For unknown fields or invalid values.  The previous
				settings stay in force and the pipeline is untouched.
		"""

		new_settings = self.settings.replace(**changes)

		changed = [name for name in echophrase.settings.FIELDS if name in changes and getattr(new_settings, name) != getattr(self.settings, name)]

		if not changed:
			return self.settings

		self.settings = new_settings

		for name in changed:
			logger.info(f"{name} set to {self._format_field(name)}")

			if self.store is not None:
				self.store.save_field(name, new_settings)

		if self.running and requires_rebuild(changed):
			self._rebuild()

		for name in changed:
			self.events.emit_sync("settings", name, new_settings)

		return new_settings


	def step (self) -> echophrase.period.PeriodTick:

		"""Advance the live pipeline by one tick without waiting for its timer."""

		if self.pipeline is None:
			raise RuntimeError("Reactor is not running")

		return self.pipeline.step()


	async def join (self) -> None:

		"""Wait until the current pipeline's clock finishes (``max_ticks`` or stop)."""

		while self.pipeline is not None:
			pipeline = self.pipeline
			await pipeline.join()

			# A rebuild replaces the pipeline; keep waiting on the new one.
			if self.pipeline is pipeline:
				break


	def _build_pipeline (self) -> None:

		pipeline = echophrase.pipeline.TimingPipeline(
			self.settings,
			period_rng = self._period_rng,
			realtime = self.realtime,
			spin_wait = self.spin_wait,
			max_ticks = self.max_ticks
		)

		def on_tick (period_tick: echophrase.period.PeriodTick) -> None:
			if pipeline is self.pipeline:
				self._handle_tick(period_tick)

		def on_note_stage (period_tick: echophrase.period.PeriodTick) -> None:
			if pipeline is self.pipeline:
				self._handle_note_stage(period_tick)

		def on_click_stage (period_tick: echophrase.period.PeriodTick) -> None:
			if pipeline is self.pipeline:
				self._handle_click_stage(period_tick)

		pipeline.subscribe(on_tick)
		pipeline.subscribe(on_note_stage)
		pipeline.subscribe(on_click_stage)

		self.note_selector.reset()

		self.pipeline = pipeline
		pipeline.start()


	def _rebuild (self) -> None:

		assert self.pipeline is not None

		old = self.pipeline
		self.pipeline = None
		old.close()

		self._build_pipeline()
		self.rebuilds += 1

		logger.info(f"Timing restarted: {self._describe()}")

		self.events.emit_sync("rebuild", self.settings)


	def _handle_tick (self, period_tick: echophrase.period.PeriodTick) -> None:

		self.last_tick = period_tick
		self.events.emit_sync("tick", period_tick)


	def _handle_note_stage (self, period_tick: echophrase.period.PeriodTick) -> None:

		note_event = self.note_selector.on_tick(period_tick, self.settings)

		if note_event is None:
			return

		self.last_note = note_event
		logger.debug(f"Tick {period_tick.index}: note {note_event.current} (previous {note_event.previous})")

		self.events.emit_sync("note", note_event, period_tick)


	def _handle_click_stage (self, period_tick: echophrase.period.PeriodTick) -> None:

		click_event = self.click_derivation.on_tick(period_tick)

		if click_event is not None:
			self.events.emit_sync("click", click_event)


	def _format_field (self, name: str) -> str:

		if name == "subdivision":
			return self.settings.subdivision_name

		if name == "note_set":
			return ", ".join(echophrase.notes.note_name(pitch) for pitch in self.settings.note_set)

		return str(getattr(self.settings, name))


	def _describe (self) -> str:

		min_duration, max_duration = self.settings.period_bounds

		return (
			f"{self.settings.tempo:.2f} BPM, {self.settings.subdivision_name}s, "
			f"periods {min_duration}-{max_duration} ticks"
		)
