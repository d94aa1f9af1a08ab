"""Timing, pitch and default-settings constants.

Subdivisions are expressed as **pulses per beat**.  One tick of the pulse
clock is one pulse, so at ``EIGHTH`` the clock ticks twice per beat:

- `QUARTER = 1`: one tick per beat
- `EIGHTH = 2`: two ticks per beat
- `SIXTEENTH = 4`: four ticks per beat

A phrase spans ``PHRASE_UNITS`` beats (one 4/4 bar).  Phrases alternate
audible and silent, starting audible.
"""

QUARTER = 1
EIGHTH = 2
SIXTEENTH = 4

SUBDIVISIONS = {
	"quarter": QUARTER,
	"eighth": EIGHTH,
	"sixteenth": SIXTEENTH,
}

SUBDIVISION_NAMES = {value: name for name, value in SUBDIVISIONS.items()}

# Beats per phrase (one bar of 4/4)
PHRASE_UNITS = 4

# Concert pitch reference
A4_MIDI_NOTE = 69
A4_FREQUENCY = 440.0

MIDI_NOTE_MIN = 0
MIDI_NOTE_MAX = 127

# Default settings
DEFAULT_TEMPO = 80.0
DEFAULT_SUBDIVISION = EIGHTH
DEFAULT_MIN_DURATION = 1
DEFAULT_TRANSPOSE = 0
DEFAULT_NOTE_SET = (60, 62, 63)


def default_max_duration (subdivision: int) -> int:

	"""Longest default period: just under two beats at the given subdivision."""

	return 2 * subdivision - 1
