"""Fan-out of one event source to many listeners.

The timing pipeline publishes each tick through an ``EventEmitter`` so the
note selector and the click derivation observe the very same tick object,
and the reactor republishes note and click events the same way.
"""

import asyncio
import typing


CallbackType = typing.Callable[..., typing.Any]


class Subscription:

	"""
	Handle returned by ``EventEmitter.on``; cancel it to stop receiving events.
	"""

	def __init__ (self, emitter: "EventEmitter", event_name: str, callback: CallbackType) -> None:

		self._emitter = emitter
		self.event_name = event_name
		self.callback = callback
		self.active = True


	def cancel (self) -> None:

		"""
		Unregister the callback.  Safe to call more than once.
		"""

		if not self.active:
			return

		self.active = False

		if self._emitter.has_listener(self.event_name, self.callback):
			self._emitter.off(self.event_name, self.callback)


class EventEmitter:

	"""
	A simple event emitter supporting sync and async callbacks.

	Listeners are called in registration order.  A listener added or removed
	while an event is being emitted takes effect from the next emission.
	"""

	def __init__ (self) -> None:

		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {}


	def on (self, event_name: str, callback: CallbackType) -> Subscription:

		"""
		Register a callback for an event name and return its subscription.
		"""

		self._listeners.setdefault(event_name, []).append(callback)

		return Subscription(self, event_name, callback)


	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		if not self.has_listener(event_name, callback):
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)


	def has_listener (self, event_name: str, callback: CallbackType) -> bool:

		return callback in self._listeners.get(event_name, [])


	def listener_count (self, event_name: str) -> int:

		return len(self._listeners.get(event_name, []))


	def clear (self, event_name: typing.Optional[str] = None) -> None:

		"""
		Drop every listener, or only those of one event.
		"""

		if event_name is None:
			self._listeners = {}
		else:
			self._listeners.pop(event_name, None)


	def emit_sync (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Emit an event and call listeners immediately.
		"""

		for callback in list(self._listeners.get(event_name, [])):

			if asyncio.iscoroutinefunction(callback):
				raise ValueError("Async callback encountered in emit_sync")

			callback(*args, **kwargs)


	async def emit_async (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Emit an event and await async listeners.
		"""

		tasks: typing.List[typing.Awaitable[typing.Any]] = []

		for callback in list(self._listeners.get(event_name, [])):

			if asyncio.iscoroutinefunction(callback):
				tasks.append(callback(*args, **kwargs))

			else:
				callback(*args, **kwargs)

		if tasks:
			await asyncio.gather(*tasks)
