import typing

import mido
import pytest

import echophrase.settings


class FakeMidiOut:

	"""MIDI output stub that records what was sent."""

	def __init__ (self) -> None:

		self.sent: typing.List[mido.Message] = []
		self.closed = False

	def send (self, message: mido.Message) -> None:

		self.sent.append(message)

	def close (self) -> None:

		self.closed = True

	def of_type (self, message_type: str) -> typing.List[mido.Message]:

		"""Sent messages of one type, in order."""

		return [message for message in self.sent if message.type == message_type]


class FakeMidiIn:

	"""Minimal MIDI input stub for tests."""

	def __init__ (self, callback: typing.Optional[typing.Callable] = None) -> None:

		self.callback = callback
		self.closed = False

	def close (self) -> None:

		self.closed = True

	def inject (self, message: mido.Message) -> None:

		"""Simulate receiving a MIDI message by calling the stored callback."""

		if self.callback is not None:
			self.callback(message)


class FakeBackend:

	"""Audio backend that records calls instead of making sound."""

	def __init__ (self, fail: bool = False) -> None:

		self.notes: typing.List[float] = []
		self.clicks = 0
		self.closed = False
		self.fail = fail

	def play_note (self, frequency_hz: float) -> None:

		if self.fail:
			raise RuntimeError("synth unplugged")

		self.notes.append(frequency_hz)

	def click (self) -> None:

		if self.fail:
			raise RuntimeError("synth unplugged")

		self.clicks += 1

	def close (self) -> None:

		self.closed = True


# Module-level references so tests can reach the most recently opened fakes.
_current_fake_output: typing.Optional[FakeMidiOut] = None
_current_fake_input: typing.Optional[FakeMidiIn] = None


def _fake_get_output_names () -> typing.List[str]:

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	global _current_fake_output
	_current_fake_output = FakeMidiOut()
	return _current_fake_output


def _fake_get_input_names () -> typing.List[str]:

	return ["Roland Digital Piano MIDI 1"]


def _fake_open_input (name: str, callback: typing.Optional[typing.Callable] = None) -> FakeMidiIn:

	global _current_fake_input
	_current_fake_input = FakeMidiIn(callback=callback)
	return _current_fake_input


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use fake MIDI output and input for all tests that need it."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)
	monkeypatch.setattr(mido, "get_input_names", _fake_get_input_names)
	monkeypatch.setattr(mido, "open_input", _fake_open_input)


@pytest.fixture
def fake_output (patch_midi: None) -> typing.Callable[[], typing.Optional[FakeMidiOut]]:

	"""Accessor for the most recently opened fake output port."""

	return lambda: _current_fake_output


@pytest.fixture
def fake_input (patch_midi: None) -> typing.Callable[[], typing.Optional[FakeMidiIn]]:

	"""Accessor for the most recently opened fake input port."""

	return lambda: _current_fake_input


@pytest.fixture
def backend () -> FakeBackend:

	return FakeBackend()


@pytest.fixture
def scenario_settings () -> echophrase.settings.Settings:

	"""80 BPM in eighths with single-tick periods: every tick is a boundary."""

	return echophrase.settings.Settings(
		tempo = 80,
		subdivision = 2,
		min_duration = 1,
		max_duration = 1,
		transpose = 0,
		note_set = (60, 62, 63)
	)


@pytest.fixture
def failing_backend () -> FakeBackend:

	return FakeBackend(fail=True)
