"""Sound output for generated notes and metronome clicks.

echophrase does not synthesise audio itself.  A backend turns each note
frequency and each click into a message for something that does:

- ``MidiAudioBackend`` drives a hardware or software synth over MIDI.
- ``OscAudioBackend`` sends ``/note <hz>`` and ``/click`` to any OSC-capable
  synth (SuperCollider, Pure Data, Max, a browser bridge...).

Both implement the ``AudioBackend`` protocol, so the session does not care
which one it is talking to.
"""

import asyncio
import logging
import typing

import mido
import pythonosc.udp_client

import echophrase.midi_utils
import echophrase.notes


logger = logging.getLogger(__name__)


# GM percussion lives on channel 10 (index 9); 37 is side stick.
CLICK_CHANNEL = 9
CLICK_NOTE = 37
CLICK_LENGTH_SECONDS = 0.05

# Fixed envelope: full level on attack, released this long after.
NOTE_RELEASE_SECONDS = 2.0

PITCH_BEND_RANGE_SEMITONES = 2.0
PITCH_BEND_MAX = 8191


@typing.runtime_checkable
class AudioBackend (typing.Protocol):

	"""
	The two side effects the generator needs, plus cleanup.
	"""

	def play_note (self, frequency_hz: float) -> None:

		"""Sound a tone at the given frequency with the fixed envelope."""

		...

	def click (self) -> None:

		"""Sound one short percussive metronome click."""

		...

	def close (self) -> None:

		"""Silence everything and release the device."""

		...


class AudioBackendError (RuntimeError):

	"""Raised when a backend cannot be opened."""


def cents_to_pitchwheel (cents: float, bend_range: float = PITCH_BEND_RANGE_SEMITONES) -> int:

	"""Map a detune in cents to a mido pitchwheel value (-8192..8191)."""

	value = int(round(cents / (bend_range * 100.0) * PITCH_BEND_MAX))

	return max(-PITCH_BEND_MAX - 1, min(PITCH_BEND_MAX, value))


class MidiAudioBackend:

	"""
	Monophonic MIDI voice plus a drum-channel click.

	Like a single oscillator being retriggered, a new note cuts the one that
	is still sounding.  Frequencies are mapped to the nearest MIDI note and
	the remainder is sent as pitch bend, so transposed or detuned frequencies
	stay in tune on any synth set to a +/-2 semitone bend range.
	"""

	def __init__ (
		self,
		output_device_name: typing.Optional[str] = None,
		channel: int = 0,
		velocity: int = 100,
		release_seconds: float = NOTE_RELEASE_SECONDS,
		click_channel: int = CLICK_CHANNEL,
		click_note: int = CLICK_NOTE,
		click_velocity: int = 90,
		midi_out: typing.Optional[typing.Any] = None
	) -> None:

		"""
		Parameters:
			output_device_name: MIDI output port.  When omitted, auto-discovers
				(see ``echophrase.midi_utils.select_output_device``).
			channel: 0-based channel for the melody voice.
			velocity: Note-on velocity.
			release_seconds: Time from note-on to note-off.
			click_channel: 0-based channel for clicks (default GM drums).
			click_note: Drum note used for the click.
			click_velocity: Click velocity.
			midi_out: An already-open mido output port (skips discovery).

		Raises:
			AudioBackendError: If no output port could be opened.
		"""

		self.channel = channel
		self.velocity = velocity
		self.release_seconds = release_seconds
		self.click_channel = click_channel
		self.click_note = click_note
		self.click_velocity = click_velocity

		if midi_out is None:
			device_name, midi_out = echophrase.midi_utils.select_output_device(output_device_name)

			if midi_out is None:
				raise AudioBackendError("No MIDI output available")

			self.output_device_name = device_name
		else:
			self.output_device_name = output_device_name

		self.midi_out = midi_out
		self.sounding_note: typing.Optional[int] = None
		self._release_handle: typing.Optional[asyncio.TimerHandle] = None


	def play_note (self, frequency_hz: float) -> None:

		note, cents = echophrase.notes.frequency_to_midi(frequency_hz)

		if not 0 <= note <= 127:
			logger.warning(f"Frequency {frequency_hz:.2f} Hz is outside the MIDI note range - skipped")
			return

		self._release()

		self._send(mido.Message('pitchwheel', channel=self.channel, pitch=cents_to_pitchwheel(cents)))
		self._send(mido.Message('note_on', channel=self.channel, note=note, velocity=self.velocity))
		self.sounding_note = note

		self._release_handle = self._call_later(self.release_seconds, self._release)


	def click (self) -> None:

		self._send(mido.Message('note_on', channel=self.click_channel, note=self.click_note, velocity=self.click_velocity))

		handle = self._call_later(CLICK_LENGTH_SECONDS, self._click_off)

		if handle is None:
			self._click_off()


	def close (self) -> None:

		"""Release the sounding note, reset pitch bend and close the port."""

		if self.midi_out is None:
			return

		self._release()

		try:
			self.midi_out.send(mido.Message('pitchwheel', channel=self.channel, pitch=0))
			self.midi_out.send(mido.Message('control_change', channel=self.channel, control=123, value=0))
			self.midi_out.close()
		except Exception:
			logger.exception("MIDI close failed (device may be disconnected)")

		self.midi_out = None


	def _release (self) -> None:

		if self._release_handle is not None:
			self._release_handle.cancel()
			self._release_handle = None

		if self.sounding_note is not None:
			self._send(mido.Message('note_off', channel=self.channel, note=self.sounding_note, velocity=0))
			self.sounding_note = None


	def _click_off (self) -> None:

		self._send(mido.Message('note_off', channel=self.click_channel, note=self.click_note, velocity=0))


	def _send (self, message: mido.Message) -> None:

		if self.midi_out is None:
			return

		self.midi_out.send(message)


	@staticmethod
	def _call_later (delay: float, callback: typing.Callable[[], None]) -> typing.Optional[asyncio.TimerHandle]:

		"""Schedule on the running loop; without one the note is simply held."""

		try:
			loop = asyncio.get_running_loop()
		except RuntimeError:
			return None

		return loop.call_later(delay, callback)


class OscAudioBackend:

	"""
	Forwards notes and clicks to an external OSC synth.

	Messages: ``/note <frequency_hz> <midi_pitch>`` and ``/click``.
	"""

	def __init__ (self, host: str = "127.0.0.1", port: int = 57120) -> None:

		self.host = host
		self.port = port
		self._client: typing.Optional[pythonosc.udp_client.SimpleUDPClient] = pythonosc.udp_client.SimpleUDPClient(host, port)

		logger.info(f"OSC audio output to {host}:{port}")


	def play_note (self, frequency_hz: float) -> None:

		note, _ = echophrase.notes.frequency_to_midi(frequency_hz)

		self._send("/note", float(frequency_hz), note)


	def click (self) -> None:

		self._send("/click")


	def close (self) -> None:

		self._client = None


	def _send (self, address: str, *args: typing.Any) -> None:

		if self._client is None:
			return

		self._client.send_message(address, list(args))
