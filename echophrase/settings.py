"""Current configuration and its YAML persistence.

``Settings`` is an immutable snapshot.  The reactor owns the current one and
replaces it whole on every accepted change, so downstream components never
see a half-applied edit.

``SettingsStore`` keeps the snapshot in a small YAML file::

	tempo: 80
	subdivision: eighth
	min_duration: 1
	max_duration: 3
	transpose: 0
	note_set: [60, 62, 63]

Missing or corrupt fields fall back to their defaults with a warning.
"""

import dataclasses
import logging
import math
import os
import typing

import yaml

import echophrase.constants


logger = logging.getLogger(__name__)


FIELDS = ("tempo", "subdivision", "min_duration", "max_duration", "transpose", "note_set")


class SettingsError (ValueError):

	"""Raised for any configuration that cannot drive playback."""


class EmptyNoteSetError (SettingsError):

	"""Raised when there are no notes to choose from."""


def parse_subdivision (value: typing.Any) -> int:

	"""
	Accept a subdivision as pulses per beat (``2``) or by name (``"eighth"``).
	"""

	if isinstance(value, str):
		key = value.strip().lower()

		if key in echophrase.constants.SUBDIVISIONS:
			return echophrase.constants.SUBDIVISIONS[key]

		try:
			value = int(key)
		except ValueError:
			raise SettingsError(f"Unknown subdivision {value!r}") from None

	if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value:
		raise SettingsError(f"Subdivision must be an integer, got {value!r}")

	if int(value) not in echophrase.constants.SUBDIVISION_NAMES:
		allowed = ", ".join(f"{name}={pulses}" for name, pulses in echophrase.constants.SUBDIVISIONS.items())
		raise SettingsError(f"Subdivision {value!r} is not one of {allowed}")

	return int(value)


def normalize_note_set (notes: typing.Iterable[typing.Any]) -> typing.Tuple[int, ...]:

	"""
	Return the notes as a sorted tuple of unique MIDI pitch numbers.

	Raises ``EmptyNoteSetError`` for an empty collection.
	"""

	if isinstance(notes, (str, bytes)):
		raise SettingsError(f"Note set must be a collection of integers, got {notes!r}")

	pitches: typing.Set[int] = set()

	for note in notes:

		if isinstance(note, bool) or not isinstance(note, int):
			raise SettingsError(f"Note {note!r} is not an integer pitch")

		if not echophrase.constants.MIDI_NOTE_MIN <= note <= echophrase.constants.MIDI_NOTE_MAX:
			raise SettingsError(f"Note {note} is outside the MIDI range 0-127")

		pitches.add(note)

	if not pitches:
		raise EmptyNoteSetError("Note set is empty - choose at least one note")

	return tuple(sorted(pitches))


@dataclasses.dataclass(frozen=True)
class Settings:

	"""
	One complete configuration snapshot.

	Parameters:
		tempo: Beats per minute (finite, > 0).
		subdivision: Pulses per beat - 1 (quarter), 2 (eighth) or 4 (sixteenth).
		min_duration: Shortest period, in ticks (>= 1).
		max_duration: Longest period, in ticks (>= min_duration).  Defaults to
			``2 * subdivision - 1``.
		transpose: Semitones added to every chosen note.
		note_set: The pitches to choose from (MIDI note numbers).
	"""

	tempo: float = echophrase.constants.DEFAULT_TEMPO
	subdivision: int = echophrase.constants.DEFAULT_SUBDIVISION
	min_duration: int = echophrase.constants.DEFAULT_MIN_DURATION
	max_duration: typing.Optional[int] = None
	transpose: int = echophrase.constants.DEFAULT_TRANSPOSE
	note_set: typing.Tuple[int, ...] = echophrase.constants.DEFAULT_NOTE_SET

	def __post_init__ (self) -> None:

		# Frozen dataclass: normalise through object.__setattr__.
		object.__setattr__(self, "subdivision", parse_subdivision(self.subdivision))

		if self.max_duration is None:
			object.__setattr__(self, "max_duration", echophrase.constants.default_max_duration(self.subdivision))

		object.__setattr__(self, "note_set", normalize_note_set(self.note_set))

		self.validate()


	def validate (self) -> None:

		"""Raise ``SettingsError`` if the snapshot cannot drive playback."""

		if isinstance(self.tempo, bool) or not isinstance(self.tempo, (int, float)) or not math.isfinite(self.tempo) or self.tempo <= 0:
			raise SettingsError(f"Tempo must be a positive finite number, got {self.tempo!r}")

		for name in ("min_duration", "max_duration", "transpose"):
			value = getattr(self, name)
			if isinstance(value, bool) or not isinstance(value, int):
				raise SettingsError(f"{name} must be an integer, got {value!r}")

		if self.min_duration < 1:
			raise SettingsError(f"min_duration must be at least 1, got {self.min_duration}")

		assert self.max_duration is not None

		if self.min_duration > self.max_duration:
			raise SettingsError(f"min_duration ({self.min_duration}) cannot exceed max_duration ({self.max_duration})")


	@property
	def subdivision_name (self) -> str:

		return echophrase.constants.SUBDIVISION_NAMES[self.subdivision]


	@property
	def period_bounds (self) -> typing.Tuple[int, int]:

		assert self.max_duration is not None
		return self.min_duration, self.max_duration


	def replace (self, **changes: typing.Any) -> "Settings":

		"""
		Return a validated copy with the given fields changed.

		Raises ``SettingsError`` for unknown fields or invalid values; the
		original snapshot is never modified.
		"""

		unknown = set(changes) - set(FIELDS)

		if unknown:
			raise SettingsError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

		return dataclasses.replace(self, **changes)


	def to_dict (self) -> typing.Dict[str, typing.Any]:

		"""Plain representation used for persistence."""

		return {
			"tempo": self.tempo,
			"subdivision": self.subdivision_name,
			"min_duration": self.min_duration,
			"max_duration": self.max_duration,
			"transpose": self.transpose,
			"note_set": list(self.note_set),
		}


def _coerce_field (name: str, value: typing.Any) -> typing.Any:

	"""Convert one persisted value to the type ``Settings`` expects."""

	if name == "tempo":
		if isinstance(value, bool):
			raise SettingsError("tempo must be numeric")
		tempo = float(value)
		if not math.isfinite(tempo) or tempo <= 0:
			raise SettingsError("tempo must be positive and finite")
		return tempo

	if name == "subdivision":
		return parse_subdivision(value)

	if name in ("min_duration", "max_duration", "transpose"):
		if isinstance(value, bool) or isinstance(value, float) and not value.is_integer():
			raise SettingsError(f"{name} must be an integer")
		return int(value)

	if name == "note_set":
		return normalize_note_set(value)

	raise SettingsError(f"Unknown setting {name!r}")


def settings_from_mapping (data: typing.Optional[typing.Mapping[str, typing.Any]]) -> Settings:

	"""
	Build settings from persisted data, substituting defaults field by field.

	A missing key or a value that cannot be used is replaced by its default
	and logged.  Bounds that contradict each other fall back together.  This
	never raises.
	"""

	if not isinstance(data, typing.Mapping):
		if data is not None:
			logger.warning(f"Ignoring persisted settings of type {type(data).__name__}, using defaults")
		data = {}

	values: typing.Dict[str, typing.Any] = {}

	for name in FIELDS:

		if name not in data or data[name] is None:
			continue

		try:
			values[name] = _coerce_field(name, data[name])
		except (SettingsError, TypeError, ValueError) as e:
			logger.warning(f"Invalid persisted {name} {data[name]!r} ({e}), using default")

	try:
		return Settings(**values)

	except SettingsError as e:
		logger.warning(f"Persisted period bounds rejected ({e}), using defaults")
		values.pop("min_duration", None)
		values.pop("max_duration", None)
		return Settings(**values)


class SettingsStore:

	"""
	YAML-backed key-value persistence for ``Settings``.

	Read once with ``load()``; every accepted change is written back with
	``save_field()``.  I/O problems are logged, never raised.
	"""

	def __init__ (self, path: str = "echophrase.yaml") -> None:

		self.path = path
		self._data: typing.Dict[str, typing.Any] = {}


	def load (self) -> Settings:

		"""Read the file and return settings with defaults filled in."""

		if not os.path.exists(self.path):
			logger.warning(f"Settings file {self.path} not found. Using defaults.")
			self._data = {}
			return settings_from_mapping({})

		try:
			with open(self.path, "r") as f:
				data = yaml.safe_load(f)
		except (OSError, yaml.YAMLError) as e:
			logger.warning(f"Could not read settings file {self.path}: {e}. Using defaults.")
			data = None

		self._data = dict(data) if isinstance(data, dict) else {}

		return settings_from_mapping(data)


	def save_field (self, name: str, settings: Settings) -> None:

		"""Persist one changed field, taking its value from ``settings``."""

		if name not in FIELDS:
			raise SettingsError(f"Unknown setting {name!r}")

		self._data[name] = settings.to_dict()[name]
		self._write()


	def save (self, settings: Settings) -> None:

		"""Persist every field."""

		self._data.update(settings.to_dict())
		self._write()


	def _write (self) -> None:

		try:
			with open(self.path, "w") as f:
				yaml.safe_dump(self._data, f, sort_keys=False)
		except OSError as e:
			logger.error(f"Failed to save settings to {self.path}: {e}")
