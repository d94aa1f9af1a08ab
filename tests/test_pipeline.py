import random

import pytest

import echophrase.clock
import echophrase.period
import echophrase.pipeline
import echophrase.settings


def test_sequencer_runs_before_consumers_and_all_see_same_tick () -> None:

	settings = echophrase.settings.Settings(min_duration=2, max_duration=4)
	pipeline = echophrase.pipeline.TimingPipeline(settings, period_rng=random.Random(1), realtime=False)

	first: list[echophrase.period.PeriodTick] = []
	second: list[echophrase.period.PeriodTick] = []

	def check_state (period_tick: echophrase.period.PeriodTick) -> None:
		# The sequencer already holds the state this tick reports.
		assert pipeline.sequencer.period.duration == period_tick.duration
		assert pipeline.sequencer.period.position == period_tick.position
		first.append(period_tick)

	pipeline.subscribe(check_state)
	pipeline.subscribe(second.append)

	for _ in range(30):
		pipeline.step()

	assert len(first) == 30
	assert all(a is b for a, b in zip(first, second))


def test_close_releases_subscribers_and_ignores_ticks () -> None:

	pipeline = echophrase.pipeline.TimingPipeline(echophrase.settings.Settings(), realtime=False)
	received: list[int] = []

	pipeline.subscribe(lambda t: received.append(t.index))
	pipeline.step()
	pipeline.close()
	pipeline.close()

	assert pipeline.closed
	assert pipeline.subscriber_count == 0

	# A tick that was already in flight when the pipeline closed is dropped.
	pipeline._on_tick(echophrase.clock.Tick(index=1, subdivision=2))

	assert received == [0]

	with pytest.raises(RuntimeError):
		pipeline.subscribe(lambda t: None)

	with pytest.raises(RuntimeError):
		pipeline.step()


@pytest.mark.asyncio
async def test_started_pipeline_ticks_until_limit () -> None:

	pipeline = echophrase.pipeline.TimingPipeline(echophrase.settings.Settings(), realtime=False, max_ticks=40)
	received: list[int] = []

	pipeline.subscribe(lambda t: received.append(t.index))
	pipeline.start()
	await pipeline.join()

	assert received == list(range(40))
	assert not pipeline.running


def test_invalid_bounds_prevent_pipeline () -> None:

	settings = echophrase.settings.Settings()
	object.__setattr__(settings, "min_duration", 9)

	with pytest.raises(echophrase.settings.SettingsError):
		echophrase.pipeline.TimingPipeline(settings, realtime=False)
