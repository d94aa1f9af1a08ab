"""OSC remote control and state broadcasting.

Enable it with ``session.osc()`` before ``session.play()``, or ``--osc`` on
the command line.  The server listens on a UDP port (default 9000) and sends
state updates to a target host/port (default 127.0.0.1:9001).

Receive Handlers
────────────────
- ``/tempo <float>``: Set tempo (restarts timing)
- ``/subdivision <int|name>``: ``1``/``quarter``, ``2``/``eighth``, ``4``/``sixteenth``
- ``/min_duration <int>``, ``/max_duration <int>``: Period bounds in ticks
- ``/transpose <int>``: Semitone offset (takes effect at the next note)
- ``/notes <int> ...``: Replace the note set (takes effect at the next note)
- ``/start``, ``/stop``, ``/toggle``: Transport

Send Events
───────────
- ``/note <int> <float>``: Each chosen note (MIDI pitch, frequency)
- ``/settings/<field> <value>``: After each accepted settings change
- ``/playing <int>``: 1 on start, 0 on stop
"""

import asyncio
import logging
import typing

import pythonosc.dispatcher
import pythonosc.osc_server
import pythonosc.udp_client

import echophrase.notes
import echophrase.period
import echophrase.settings

if typing.TYPE_CHECKING:
	from echophrase.session import Session


logger = logging.getLogger(__name__)


class OscControlServer:

	"""Async OSC server/client bound to a session."""

	def __init__ (
		self,
		session: "Session",
		receive_port: int = 9000,
		send_port: int = 9001,
		send_host: str = "127.0.0.1"
	) -> None:

		self._session = session
		self._receive_port = receive_port
		self._send_port = send_port
		self._send_host = send_host

		self._server: typing.Optional[typing.Any] = None
		self._transport: typing.Optional[asyncio.BaseTransport] = None
		self._client: typing.Optional[pythonosc.udp_client.SimpleUDPClient] = None
		self._subscriptions: typing.List[typing.Any] = []
		self._dispatcher = pythonosc.dispatcher.Dispatcher()

		self._dispatcher.map("/tempo", self._handle_tempo)
		self._dispatcher.map("/subdivision", self._handle_subdivision)
		self._dispatcher.map("/min_duration", self._handle_int_field, "min_duration")
		self._dispatcher.map("/max_duration", self._handle_int_field, "max_duration")
		self._dispatcher.map("/transpose", self._handle_int_field, "transpose")
		self._dispatcher.map("/notes", self._handle_notes)
		self._dispatcher.map("/start", self._handle_start)
		self._dispatcher.map("/stop", self._handle_stop)
		self._dispatcher.map("/toggle", self._handle_toggle)


	@property
	def port (self) -> typing.Optional[int]:

		"""The bound receive port (useful when started with port 0)."""

		if self._transport is None:
			return None

		return self._transport.get_extra_info("sockname")[1]


	async def start (self) -> None:

		"""Start the OSC server and client."""

		self._client = pythonosc.udp_client.SimpleUDPClient(self._send_host, self._send_port)

		self._server = pythonosc.osc_server.AsyncIOOSCUDPServer(
			("0.0.0.0", self._receive_port),
			self._dispatcher,
			asyncio.get_running_loop()  # type: ignore[arg-type]
		)

		transport, _ = await self._server.create_serve_endpoint()
		self._transport = transport

		reactor = self._session.reactor
		self._subscriptions = [
			reactor.on_event("note", self._send_note),
			reactor.on_event("settings", self._send_setting),
			reactor.on_event("start", lambda: self.send("/playing", 1)),
			reactor.on_event("stop", lambda: self.send("/playing", 0)),
		]

		logger.info(f"OSC listening on :{self.port}, sending to {self._send_host}:{self._send_port}")


	async def stop (self) -> None:

		"""Stop the OSC server."""

		for subscription in self._subscriptions:
			subscription.cancel()

		self._subscriptions = []

		if self._transport:
			self._transport.close()
			self._transport = None
			logger.info("OSC server stopped")


	def send (self, address: str, *args: typing.Any) -> None:

		"""Send an OSC message."""

		if self._client:
			try:
				self._client.send_message(address, list(args))
			except Exception as e:
				logger.warning(f"OSC send error: {e}")


	def map (self, address: str, handler: typing.Callable) -> None:

		"""Register a custom OSC handler."""

		self._dispatcher.map(address, handler)


	# Outgoing

	def _send_note (self, note_event: echophrase.notes.NoteEvent, period_tick: echophrase.period.PeriodTick) -> None:

		if note_event.current is not None and note_event.frequency is not None:
			self.send("/note", note_event.current, note_event.frequency)

	def _send_setting (self, field: str, settings: echophrase.settings.Settings) -> None:

		value = settings.to_dict()[field]

		if isinstance(value, list):
			self.send(f"/settings/{field}", *value)
		else:
			self.send(f"/settings/{field}", value)

	# Handlers

	def _handle_tempo (self, address: str, *args: typing.Any) -> None:
		if not args:
			return
		try:
			tempo = float(args[0])
		except (ValueError, TypeError):
			logger.warning(f"Invalid OSC tempo argument: {args[0]}")
			return
		self._session.set("tempo", tempo)

	def _handle_subdivision (self, address: str, *args: typing.Any) -> None:
		if not args:
			return
		self._session.set("subdivision", args[0])

	def _handle_int_field (self, address: str, fixed: typing.List[str], *args: typing.Any) -> None:
		# dispatcher.map() extras arrive as a list before the message arguments
		if not args:
			return
		field = fixed[0]
		try:
			value = int(args[0])
		except (ValueError, TypeError):
			logger.warning(f"Invalid OSC {field} argument: {args[0]}")
			return
		self._session.set(field, value)

	def _handle_notes (self, address: str, *args: typing.Any) -> None:
		try:
			notes = [int(arg) for arg in args]
		except (ValueError, TypeError):
			logger.warning(f"Invalid OSC note list: {args}")
			return
		self._session.set("note_set", notes)

	def _handle_start (self, address: str, *args: typing.Any) -> None:
		self._session.start()

	def _handle_stop (self, address: str, *args: typing.Any) -> None:
		self._session.stop()

	def _handle_toggle (self, address: str, *args: typing.Any) -> None:
		self._session.toggle()
