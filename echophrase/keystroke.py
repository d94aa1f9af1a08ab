"""Single-keystroke transport and settings control.

A background thread reads keys from stdin in cbreak mode (no Enter needed)
and queues them for the session, which drains the queue from the event loop.
The display writes to **stderr**, this module reads **stdin**, so the two do
not interfere.

Default bindings (``DEFAULT_BINDINGS``):

- ``space`` start / stop
- ``+`` / ``-`` tempo up / down by 1 BPM
- ``]`` / ``[`` transpose up / down by a semitone
- ``1`` / ``2`` / ``4`` quarter / eighth / sixteenth
- ``q`` quit

POSIX only (needs :mod:`termios` and :mod:`tty` and a real TTY).  Elsewhere
the listener logs a warning and stays inactive.
"""

import logging
import queue
import select
import sys
import threading
import typing


logger = logging.getLogger(__name__)


HOTKEYS_SUPPORTED: bool = False
HOTKEYS_UNAVAILABLE_REASON: typing.Optional[str] = None

try:
	import termios
	import tty

	if not sys.stdin.isatty():
		raise OSError("stdin is not a TTY (running in a pipe or non-interactive context)")

	HOTKEYS_SUPPORTED = True

except ImportError:
	HOTKEYS_UNAVAILABLE_REASON = "The 'tty' and 'termios' modules are not available on this platform."
except OSError as _e:
	HOTKEYS_UNAVAILABLE_REASON = f"Hotkeys require an interactive terminal on stdin ({_e})."


# key -> (action name, argument)
DEFAULT_BINDINGS: typing.Dict[str, typing.Tuple[str, typing.Any]] = {
	" ": ("toggle", None),
	"+": ("tempo", 1),
	"=": ("tempo", 1),
	"-": ("tempo", -1),
	"]": ("transpose", 1),
	"[": ("transpose", -1),
	"1": ("subdivision", 1),
	"2": ("subdivision", 2),
	"4": ("subdivision", 4),
	"q": ("quit", None),
}


class KeystrokeListener:

	"""Daemon thread that queues single keystrokes from stdin.

	Terminal settings are restored when the thread exits, even after an
	error.  On unsupported platforms ``start()`` only logs a warning and
	``active`` stays False; every method remains safe to call.
	"""

	def __init__ (self) -> None:

		self._queue: queue.Queue[str] = queue.Queue()
		self._thread: typing.Optional[threading.Thread] = None
		self._running: bool = False
		self.active: bool = False


	def start (self) -> None:

		if self._running:
			return

		if not HOTKEYS_SUPPORTED:
			logger.warning(f"Hotkeys are disabled. {HOTKEYS_UNAVAILABLE_REASON}")
			return

		self._running = True
		self.active = True
		self._thread = threading.Thread(target=self._listen, name="echophrase-keystroke-listener", daemon=True)
		self._thread.start()


	def stop (self) -> None:

		"""Ask the thread to exit; it restores the terminal within ~0.1 s."""

		self._running = False
		self.active = False


	def push (self, key: str) -> None:

		"""Queue a key as if it had been typed."""

		self._queue.put(key)


	def drain (self) -> typing.List[str]:

		"""All keys received since the last call, oldest first.  Non-blocking."""

		keys: typing.List[str] = []

		while True:
			try:
				keys.append(self._queue.get_nowait())
			except queue.Empty:
				break

		return keys


	def _listen (self) -> None:

		fd = sys.stdin.fileno()
		old_settings = termios.tcgetattr(fd)

		try:
			# cbreak rather than raw so Ctrl+C still raises SIGINT.
			tty.setcbreak(fd)

			while self._running:
				ready, _, _ = select.select([sys.stdin], [], [], 0.1)
				if ready:
					char = sys.stdin.read(1)
					if char:
						self._queue.put(char)

		except Exception:
			logger.exception("Keystroke listener failed; hotkeys disabled")

		finally:
			termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
			self.active = False
