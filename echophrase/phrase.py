"""Phrase gate: one bar of music, one bar of rest.

A phrase spans ``subdivision * PHRASE_UNITS`` ticks.  Even-numbered phrases
(starting with phrase 0) are audible, odd-numbered phrases are silent.
"""

import echophrase.constants


def phrase_length (subdivision: int) -> int:

	"""Number of ticks in one phrase."""

	return subdivision * echophrase.constants.PHRASE_UNITS


def phrase_index (tick_index: int, subdivision: int) -> int:

	"""Which phrase a tick belongs to, counting from 0."""

	return tick_index // phrase_length(subdivision)


def is_audible (tick_index: int, subdivision: int) -> bool:

	"""True when the tick falls inside a playing phrase."""

	return phrase_index(tick_index, subdivision) % 2 == 0


def position_in_phrase (tick_index: int, subdivision: int) -> int:

	return tick_index % phrase_length(subdivision)
