import asyncio

import pytest

import echophrase.event_emitter


def test_on_and_emit_sync () -> None:

	"""Registered sync callbacks are called on emit_sync."""

	emitter = echophrase.event_emitter.EventEmitter()
	received: list[int] = []

	emitter.on("tick", lambda v: received.append(v))
	emitter.emit_sync("tick", 42)

	assert received == [42]


def test_listeners_receive_same_object_in_registration_order () -> None:

	"""Every listener gets the identical payload, first registered first."""

	emitter = echophrase.event_emitter.EventEmitter()
	seen: list[tuple[str, object]] = []
	payload = object()

	emitter.on("tick", lambda v: seen.append(("a", v)))
	emitter.on("tick", lambda v: seen.append(("b", v)))
	emitter.emit_sync("tick", payload)

	assert [name for name, _ in seen] == ["a", "b"]
	assert all(v is payload for _, v in seen)


def test_subscription_cancel_stops_delivery () -> None:

	"""Cancelling a subscription unregisters its callback, and is idempotent."""

	emitter = echophrase.event_emitter.EventEmitter()
	received: list[int] = []

	subscription = emitter.on("tick", received.append)
	emitter.emit_sync("tick", 1)
	subscription.cancel()
	subscription.cancel()
	emitter.emit_sync("tick", 2)

	assert received == [1]
	assert not subscription.active
	assert emitter.listener_count("tick") == 0


def test_off_raises_for_unregistered_callback () -> None:

	"""off() raises ValueError when the callback was never registered."""

	emitter = echophrase.event_emitter.EventEmitter()

	with pytest.raises(ValueError, match="tick"):
		emitter.off("tick", lambda: None)


def test_clear_drops_listeners () -> None:

	emitter = echophrase.event_emitter.EventEmitter()
	received: list[int] = []

	emitter.on("tick", received.append)
	emitter.on("note", received.append)
	emitter.clear("tick")
	emitter.emit_sync("tick", 1)
	emitter.emit_sync("note", 2)
	emitter.clear()
	emitter.emit_sync("note", 3)

	assert received == [2]


def test_listener_removed_during_emit_still_gets_current_event () -> None:

	"""Changes to the listener list during an emission apply from the next one."""

	emitter = echophrase.event_emitter.EventEmitter()
	received: list[str] = []

	def first (v: int) -> None:
		received.append("first")
		second_subscription.cancel()

	def second (v: int) -> None:
		received.append("second")

	emitter.on("tick", first)
	second_subscription = emitter.on("tick", second)

	emitter.emit_sync("tick", 1)
	emitter.emit_sync("tick", 2)

	assert received == ["first", "second", "first"]


def test_emit_sync_rejects_async_callbacks () -> None:

	emitter = echophrase.event_emitter.EventEmitter()

	async def cb (v: int) -> None:
		pass

	emitter.on("tick", cb)

	with pytest.raises(ValueError):
		emitter.emit_sync("tick", 1)


@pytest.mark.asyncio
async def test_emit_async_awaits_coroutines () -> None:

	emitter = echophrase.event_emitter.EventEmitter()
	received: list[str] = []

	async def slow (v: int) -> None:
		await asyncio.sleep(0)
		received.append(f"async {v}")

	emitter.on("tick", slow)
	emitter.on("tick", lambda v: received.append(f"sync {v}"))

	await emitter.emit_async("tick", 5)

	assert sorted(received) == ["async 5", "sync 5"]
