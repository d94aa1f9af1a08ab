import random

import pytest

import echophrase.clock
import echophrase.period
import echophrase.settings


def _run (sequencer: echophrase.period.PeriodSequencer, count: int, subdivision: int = 2) -> list[echophrase.period.PeriodTick]:

	"""Feed ``count`` consecutive ticks to the sequencer."""

	return [sequencer.advance(echophrase.clock.Tick(index=i, subdivision=subdivision)) for i in range(count)]


def test_first_tick_is_always_a_boundary () -> None:

	sequencer = echophrase.period.PeriodSequencer(3, 5, rng=random.Random(1))
	first = sequencer.advance(echophrase.clock.Tick(index=0, subdivision=2))

	assert first.boundary
	assert first.position == 0
	assert 3 <= first.duration <= 5


def test_position_and_duration_invariants_hold_on_every_tick () -> None:

	"""position < duration after each transition, duration within bounds."""

	sequencer = echophrase.period.PeriodSequencer(2, 6, rng=random.Random(42))

	for period_tick in _run(sequencer, 500):
		assert 0 <= period_tick.position < period_tick.duration
		assert 2 <= period_tick.duration <= 6


def test_boundary_iff_previous_tick_completed_its_period () -> None:

	sequencer = echophrase.period.PeriodSequencer(1, 4, rng=random.Random(7))
	ticks = _run(sequencer, 300)

	for previous, current in zip(ticks, ticks[1:]):
		assert current.boundary == (previous.position + 1 == previous.duration)


def test_periods_run_their_full_length () -> None:

	"""Between two boundaries exactly ``duration`` ticks elapse."""

	sequencer = echophrase.period.PeriodSequencer(1, 5, rng=random.Random(3))
	ticks = _run(sequencer, 200)
	boundaries = [t for t in ticks if t.boundary]

	for start, following in zip(boundaries, boundaries[1:]):
		assert following.index - start.index == start.duration


def test_degenerate_bounds_give_fixed_period_length () -> None:

	sequencer = echophrase.period.PeriodSequencer(3, 3)
	ticks = _run(sequencer, 12)

	assert [t.index for t in ticks if t.boundary] == [0, 3, 6, 9]
	assert [t.position for t in ticks[:4]] == [0, 1, 2, 0]


def test_single_tick_periods_make_every_tick_a_boundary () -> None:

	sequencer = echophrase.period.PeriodSequencer(1, 1)

	assert all(t.boundary for t in _run(sequencer, 16))


def test_one_draw_per_completed_period () -> None:

	sequencer = echophrase.period.PeriodSequencer(1, 3, rng=random.Random(11))
	ticks = _run(sequencer, 100)

	assert sequencer.periods_drawn == sum(1 for t in ticks if t.boundary)


def test_durations_cover_whole_closed_interval () -> None:

	sequencer = echophrase.period.PeriodSequencer(2, 4, rng=random.Random(5))
	durations = {t.duration for t in _run(sequencer, 400) if t.boundary}

	assert durations == {2, 3, 4}


def test_seeded_sequencers_repeat () -> None:

	a = _run(echophrase.period.PeriodSequencer(1, 8, rng=random.Random(99)), 50)
	b = _run(echophrase.period.PeriodSequencer(1, 8, rng=random.Random(99)), 50)

	assert a == b


@pytest.mark.parametrize("bounds", [(0, 2), (3, 2)])
def test_invalid_bounds_rejected_before_any_tick (bounds: tuple[int, int]) -> None:

	with pytest.raises(echophrase.settings.SettingsError):
		echophrase.period.PeriodSequencer(*bounds)


def test_period_tick_carries_tick_identity () -> None:

	sequencer = echophrase.period.PeriodSequencer(1, 2)
	period_tick = sequencer.advance(echophrase.clock.Tick(index=0, subdivision=4, time=0.0))

	assert period_tick.index == 0
	assert period_tick.subdivision == 4
