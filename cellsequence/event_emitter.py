import typing


CallbackType = typing.Callable[..., typing.Any]


class EventEmitter:

	"""
	Named synchronous callbacks, called in registration order.
	"""

	def __init__ (self) -> None:

		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {}


	def on (self, event_name: str, callback: CallbackType) -> None:

		"""
		Register a callback for an event name.
		"""

		self._listeners.setdefault(event_name, []).append(callback)


	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		listeners = self._listeners.get(event_name, [])

		if callback not in listeners:
			raise ValueError(f"Callback not registered for event {event_name!r}")

		listeners.remove(callback)


	def emit (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Call every listener for ``event_name`` before returning.

		Listeners run in the caller's thread, so an event's side effects are
		complete by the time the next event is emitted.
		"""

		for callback in list(self._listeners.get(event_name, [])):
			callback(*args, **kwargs)
