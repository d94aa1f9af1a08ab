"""Live terminal status line.

Enable it with ``session.display()`` (or ``--display``).  The line is
redrawn on every tick and looks like::

	80.00 BPM  eighth  Tick: 19  Phrase: 3 play  Note: D#4 (prev C4)

Log messages scroll above it without disruption.
"""

import logging
import sys
import typing

import echophrase.notes
import echophrase.period
import echophrase.phrase

if typing.TYPE_CHECKING:
	from echophrase.reactor import SettingsReactor


class DisplayLogHandler (logging.Handler):

	"""Logging handler that clears and redraws the status line around log output."""

	def __init__ (self, display: "Display") -> None:

		super().__init__()
		self._display = display

	def emit (self, record: logging.LogRecord) -> None:

		try:
			self._display.clear_line()

			sys.stderr.write(self.format(record) + "\n")
			sys.stderr.flush()

			self._display.draw()

		except Exception:
			self.handleError(record)


class Display:

	"""
	Single-line dashboard on stderr, fed by the reactor's ``"tick"`` event.

	``start()`` swaps the root logger's handlers for a ``DisplayLogHandler``;
	``stop()`` puts the originals back.
	"""

	def __init__ (self, reactor: "SettingsReactor") -> None:

		self._reactor = reactor
		self._active: bool = False
		self._handler: typing.Optional[DisplayLogHandler] = None
		self._saved_handlers: typing.List[logging.Handler] = []
		self._last_line: str = ""

	@property
	def active (self) -> bool:

		return self._active

	def start (self) -> None:

		if self._active:
			return

		self._active = True

		root_logger = logging.getLogger()
		self._saved_handlers = list(root_logger.handlers)

		self._handler = DisplayLogHandler(self)

		if self._saved_handlers and self._saved_handlers[0].formatter:
			self._handler.setFormatter(self._saved_handlers[0].formatter)
		else:
			self._handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))

		root_logger.handlers.clear()
		root_logger.addHandler(self._handler)

	def stop (self) -> None:

		"""Clear the status line and restore original log handlers."""

		if not self._active:
			return

		self.clear_line()
		self._active = False

		root_logger = logging.getLogger()
		root_logger.handlers.clear()

		for handler in self._saved_handlers:
			root_logger.addHandler(handler)

		self._saved_handlers = []
		self._handler = None

	def update (self, period_tick: typing.Optional[echophrase.period.PeriodTick] = None) -> None:

		if not self._active:
			return

		self._last_line = self.format_status(period_tick)
		self.draw()

	def draw (self) -> None:

		if not self._active or not self._last_line:
			return

		sys.stderr.write(f"\r\033[K{self._last_line}")
		sys.stderr.flush()

	def clear_line (self) -> None:

		if not self._active:
			return

		sys.stderr.write("\r\033[K")
		sys.stderr.flush()

	def format_status (self, period_tick: typing.Optional[echophrase.period.PeriodTick] = None) -> str:

		"""Build the status string from reactor state."""

		settings = self._reactor.settings
		parts: typing.List[str] = [f"{settings.tempo:.2f} BPM", settings.subdivision_name]

		if period_tick is None:
			period_tick = self._reactor.last_tick

		if not self._reactor.running:
			parts.append("stopped")

		elif period_tick is not None:
			phrase = echophrase.phrase.phrase_index(period_tick.index, period_tick.subdivision)
			state = "play" if echophrase.phrase.is_audible(period_tick.index, period_tick.subdivision) else "rest"
			parts.append(f"Tick: {period_tick.index}")
			parts.append(f"Phrase: {phrase} {state}")

		note_event = self._reactor.last_note

		if note_event is not None and note_event.current is not None:
			note = f"Note: {echophrase.notes.note_name(note_event.current)}"
			if note_event.previous is not None:
				note += f" (prev {echophrase.notes.note_name(note_event.previous)})"
			parts.append(note)

		if settings.transpose:
			parts.append(f"Transpose: {settings.transpose:+d}")

		return "  ".join(parts)
