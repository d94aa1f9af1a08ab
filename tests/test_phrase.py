import pytest

import echophrase.click
import echophrase.phrase


def test_phrase_length_is_four_beats () -> None:

	assert echophrase.phrase.phrase_length(1) == 4
	assert echophrase.phrase.phrase_length(2) == 8
	assert echophrase.phrase.phrase_length(4) == 16


def test_tick_zero_is_audible () -> None:

	for subdivision in (1, 2, 4):
		assert echophrase.phrase.is_audible(0, subdivision)


def test_eighths_play_eight_ticks_then_rest_eight () -> None:

	audible = [i for i in range(32) if echophrase.phrase.is_audible(i, 2)]

	assert audible == list(range(0, 8)) + list(range(16, 24))


@pytest.mark.parametrize("subdivision", [1, 2, 4])
def test_audibility_is_periodic (subdivision: int) -> None:

	"""Period 2 * subdivision * 4: audible first half, silent second half."""

	cycle = 2 * subdivision * 4

	for i in range(cycle * 5):
		assert echophrase.phrase.is_audible(i, subdivision) == echophrase.phrase.is_audible(i + cycle, subdivision)
		assert echophrase.phrase.is_audible(i, subdivision) == (i % cycle < cycle // 2)


def test_phrase_index_and_position () -> None:

	assert echophrase.phrase.phrase_index(17, 2) == 2
	assert echophrase.phrase.position_in_phrase(17, 2) == 1


def test_clicks_ignore_phrase_gating () -> None:

	"""Subdivision 2: clicks at 0, 2, 4 ... through silent phrases too."""

	clicks = [i for i in range(32) if echophrase.click.is_click(i, 2)]

	assert clicks == list(range(0, 32, 2))
	assert any(not echophrase.phrase.is_audible(i, 2) for i in clicks)


def test_quarter_subdivision_clicks_every_tick () -> None:

	assert all(echophrase.click.is_click(i, 1) for i in range(10))
