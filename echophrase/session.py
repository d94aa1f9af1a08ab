"""Control surface: connects the reactor to sound, keys, OSC and the terminal.

The session is the only place that knows about the outside world.  It routes
the reactor's note and click events to an audio backend, turns hotkeys and
OSC messages into settings changes, and echoes notes played on a MIDI
keyboard through the same backend so you can sing or play the phrase back
on the same sound.

Errors never stop the generator: configuration problems are logged and
rejected, backend failures are logged and reported through the ``"error"``
event while the clock keeps running.
"""

import asyncio
import logging
import signal
import typing

import echophrase.audio
import echophrase.click
import echophrase.display
import echophrase.event_emitter
import echophrase.keystroke
import echophrase.midi_utils
import echophrase.notes
import echophrase.osc
import echophrase.period
import echophrase.reactor
import echophrase.settings


logger = logging.getLogger(__name__)


class Session:

	"""
	A playable echophrase session.

	Example:
		```python
		session = echophrase.Session(store=echophrase.SettingsStore("me.yaml"))
		session.display()
		session.hotkeys()
		session.play()
		```
	"""

	def __init__ (
		self,
		settings: typing.Optional[echophrase.settings.Settings] = None,
		store: typing.Optional[echophrase.settings.SettingsStore] = None,
		backend: typing.Optional[echophrase.audio.AudioBackend] = None,
		output_device: typing.Optional[str] = None,
		clicks: bool = True,
		seed: typing.Optional[int] = None,
		realtime: bool = True,
		spin_wait: bool = True,
		max_ticks: typing.Optional[int] = None,
		audio: bool = True
	) -> None:

		"""
		Parameters:
			settings: Initial settings.  When omitted they are loaded from
				``store``, or defaults are used.
			store: Optional YAML persistence for every settings change.
			backend: Audio backend.  When omitted a ``MidiAudioBackend`` is
				opened on ``output_device`` when playback begins.
			output_device: MIDI output port name for the default backend.
			clicks: Send metronome clicks to the backend.
			seed: Repeatable period lengths and note choices.
			realtime: False simulates time (offline render).
			spin_wait: Hybrid sleep+spin clock timing.
			max_ticks: End the run after this many ticks.
			audio: When False and no ``backend`` is given, run without sound
				(offline renders).
		"""

		if settings is None:
			settings = store.load() if store is not None else echophrase.settings.Settings()

		self.reactor = echophrase.reactor.SettingsReactor(
			settings = settings,
			store = store,
			seed = seed,
			realtime = realtime,
			spin_wait = spin_wait,
			max_ticks = max_ticks
		)

		self.backend = backend
		self.output_device = output_device
		self.clicks = clicks
		self.max_ticks = max_ticks
		self.audio = audio
		self.events = echophrase.event_emitter.EventEmitter()
		self.errors: typing.List[str] = []

		self._playback_subscriptions: typing.List[echophrase.event_emitter.Subscription] = []
		self._stop_event: typing.Optional[asyncio.Event] = None

		self._display: typing.Optional[echophrase.display.Display] = None
		self._hotkeys_enabled = False
		self._keystroke_listener: typing.Optional[echophrase.keystroke.KeystrokeListener] = None
		self._osc_server: typing.Optional[echophrase.osc.OscControlServer] = None
		self._input_device: typing.Optional[str] = None
		self._midi_in: typing.Any = None
		self._loop: typing.Optional[asyncio.AbstractEventLoop] = None


	@property
	def settings (self) -> echophrase.settings.Settings:

		return self.reactor.settings


	@property
	def running (self) -> bool:

		return self.reactor.running


	# ------------------------------------------------------------------
	# Configuration (call before play())
	# ------------------------------------------------------------------

	def display (self, enabled: bool = True) -> None:

		"""Show a live status line on stderr while playing."""

		self._display = echophrase.display.Display(self.reactor) if enabled else None


	def hotkeys (self, enabled: bool = True) -> None:

		"""Enable single-keystroke control (see ``echophrase.keystroke``)."""

		self._hotkeys_enabled = enabled


	def osc (self, receive_port: int = 9000, send_port: int = 9001, send_host: str = "127.0.0.1") -> None:

		"""Enable OSC remote control (see ``echophrase.osc``)."""

		self._osc_server = echophrase.osc.OscControlServer(self, receive_port=receive_port, send_port=send_port, send_host=send_host)


	def midi_input (self, device: str) -> None:

		"""Echo notes played on a MIDI keyboard through the audio backend."""

		self._input_device = device


	def on_event (self, event_name: str, callback: typing.Callable[..., typing.Any]) -> echophrase.event_emitter.Subscription:

		"""Register for session events (currently ``"error"``)."""

		return self.events.on(event_name, callback)


	# ------------------------------------------------------------------
	# Transport and settings
	# ------------------------------------------------------------------

	def start (self) -> bool:

		"""
		Start generating.  Returns False (and reports an error) when the
		current settings cannot play.
		"""

		if self.running:
			return True

		try:
			self.reactor.start()
		except echophrase.settings.SettingsError as e:
			self._report_error(f"Cannot start: {e}")
			return False

		self._playback_subscriptions = [self.reactor.on_event("note", self._play_note)]

		if self.clicks:
			self._playback_subscriptions.append(self.reactor.on_event("click", self._play_click))

		if self._display is not None:
			self._playback_subscriptions.append(self.reactor.on_event("tick", self._display.update))

		return True


	def stop (self) -> None:

		"""Stop generating and release the note and click subscriptions."""

		for subscription in self._playback_subscriptions:
			subscription.cancel()

		self._playback_subscriptions = []
		self.reactor.stop()

		if self._display is not None:
			self._display.update()


	def toggle (self) -> bool:

		if self.running:
			self.stop()
			return False

		return self.start()


	def set (self, field: str, value: typing.Any) -> bool:

		"""
		Change one setting.  Invalid values are reported and ignored; the last
		valid settings stay in force.  Returns True when accepted.
		"""

		try:
			self.reactor.set(field, value)
		except echophrase.settings.SettingsError as e:
			self._report_error(f"Rejected {field}={value!r}: {e}")
			return False

		return True


	def quit (self) -> None:

		"""End ``play()``."""

		if self._stop_event is not None:
			self._stop_event.set()


	def play (self) -> None:

		"""
		Run the session.  Blocks until Ctrl+C, ``q`` or ``quit()`` (or until
		``max_ticks`` ticks in offline mode).
		"""

		try:
			asyncio.run(self._run())

		except KeyboardInterrupt:
			pass


	# ------------------------------------------------------------------
	# Internals
	# ------------------------------------------------------------------

	def _report_error (self, message: str, exc_info: bool = False) -> None:

		if exc_info:
			logger.exception(message)
		else:
			logger.warning(message)

		self.errors.append(message)
		self.events.emit_sync("error", message)


	def _open_backend (self) -> None:

		if self.backend is not None or not self.audio:
			return

		try:
			self.backend = echophrase.audio.MidiAudioBackend(self.output_device)
		except echophrase.audio.AudioBackendError as e:
			self._report_error(f"Audio output unavailable ({e}); generating silently")


	def _play_note (self, note_event: echophrase.notes.NoteEvent, period_tick: echophrase.period.PeriodTick) -> None:

		if self.backend is None or note_event.frequency is None:
			return

		try:
			self.backend.play_note(note_event.frequency)
		except Exception as e:
			self._report_error(f"play_note failed: {e}", exc_info=True)


	def _play_click (self, click_event: echophrase.click.ClickEvent) -> None:

		if self.backend is None:
			return

		try:
			self.backend.click()
		except Exception as e:
			self._report_error(f"click failed: {e}", exc_info=True)


	def _on_midi_input (self, message: typing.Any) -> None:

		"""Runs in mido's callback thread; hand the message to the event loop."""

		if self._loop is None:
			return

		self._loop.call_soon_threadsafe(self._echo_message, message)


	def _echo_message (self, message: typing.Any) -> None:

		if message.type != 'note_on' or message.velocity == 0:
			return

		if self.backend is None:
			return

		try:
			self.backend.play_note(echophrase.notes.midi_to_frequency(message.note))
		except Exception:
			logger.exception("Audio backend failed to echo keyboard note")


	def _handle_key (self, key: str) -> None:

		binding = echophrase.keystroke.DEFAULT_BINDINGS.get(key)

		if binding is None:
			return

		action, argument = binding

		if action == "toggle":
			self.toggle()

		elif action == "quit":
			self.quit()

		elif action == "tempo":
			self.set("tempo", self.settings.tempo + argument)

		elif action == "transpose":
			self.set("transpose", self.settings.transpose + argument)

		elif action == "subdivision":
			self.set("subdivision", argument)


	def _finished (self) -> bool:

		"""True once an offline (``max_ticks``) run has played all its ticks."""

		if self.max_ticks is None:
			return False

		pipeline = self.reactor.pipeline

		return pipeline is None or not pipeline.running


	async def _run (self) -> None:

		self._loop = asyncio.get_running_loop()
		self._stop_event = asyncio.Event()

		for sig in (signal.SIGINT, signal.SIGTERM):
			try:
				self._loop.add_signal_handler(sig, self._stop_event.set)
			except (NotImplementedError, RuntimeError):
				# Not available on this platform or outside the main thread.
				pass

		self._open_backend()

		if self._input_device is not None:
			_, self._midi_in = echophrase.midi_utils.select_input_device(self._input_device, callback=self._on_midi_input)

		if self._osc_server is not None:
			await self._osc_server.start()

		if self._display is not None:
			self._display.start()

		if self._hotkeys_enabled:
			self._keystroke_listener = echophrase.keystroke.KeystrokeListener()
			self._keystroke_listener.start()

		try:
			if self.start():
				logger.info("Playing. Press Ctrl+C to stop.")

			while not self._stop_event.is_set() and not self._finished():

				if self._keystroke_listener is not None:
					for key in self._keystroke_listener.drain():
						self._handle_key(key)

				try:
					await asyncio.wait_for(self._stop_event.wait(), timeout=0.05)
				except asyncio.TimeoutError:
					pass

		finally:
			await self._shutdown()


	async def _shutdown (self) -> None:

		self.stop()

		if self._keystroke_listener is not None:
			self._keystroke_listener.stop()
			self._keystroke_listener = None

		if self._display is not None:
			self._display.stop()

		if self._osc_server is not None:
			await self._osc_server.stop()

		if self._midi_in is not None:
			self._midi_in.close()
			self._midi_in = None

		if self.backend is not None:
			try:
				self.backend.close()
			except Exception:
				logger.exception("Audio backend failed to close")

		self._loop = None
		self._stop_event = None
