import logging
import typing

import cellsequence.event_emitter


logger = logging.getLogger(__name__)


def frames_per_beat (bpm: float, seconds_per_tick: float) -> float:

	"""
	Convert a tempo into the number of ticks between beats.
	"""

	if bpm <= 0:
		raise ValueError("BPM must be positive")

	if seconds_per_tick <= 0:
		raise ValueError("Seconds per tick must be positive")

	return (60.0 / bpm) / seconds_per_tick


class BeatClock:

	"""
	Tick-driven beat counter for a measure of ``columns`` beats.

	Each call to ``tick()`` advances the clock by one frame.  Once
	``cooldown_frames`` frames have elapsed a beat fires:

	1. ``"beat"`` is emitted with the column that is firing.
	2. The active column advances, wrapping at the end of the measure.
	3. On wraparound to column 0, ``"measure"`` is emitted with the number of
	   completed measures.

	Listeners run synchronously, so everything attached to ``"beat"`` has
	finished before any ``"measure"`` listener starts.
	"""

	def __init__ (self, columns: int, cooldown_frames: float) -> None:

		"""Create a clock at column 0 with no elapsed frames.

		Parameters:
			columns: Beats per measure.
			cooldown_frames: Ticks per beat, at least 1 since a tick fires at
				most one beat.  Fractional values are allowed; the remainder
				carries over so the long-run beat rate is exact.
		"""

		if columns <= 0:
			raise ValueError("Columns must be positive")

		if cooldown_frames < 1:
			raise ValueError(f"Cooldown must be at least one tick, got {cooldown_frames}")

		self.columns = columns
		self.cooldown_frames = cooldown_frames
		self.active_column = 0
		self.elapsed_frames = 0.0
		self.measure = 0
		self.events = cellsequence.event_emitter.EventEmitter()


	@classmethod
	def from_tempo (cls, columns: int, bpm: float, seconds_per_tick: float) -> "BeatClock":

		"""Build a clock whose cooldown matches ``bpm`` at the given tick length."""

		return cls(columns, frames_per_beat(bpm, seconds_per_tick))


	def on (self, event_name: str, callback: typing.Callable[..., typing.Any]) -> None:

		"""Register a callback for ``"beat"`` or ``"measure"``."""

		self.events.on(event_name, callback)


	def tick (self) -> bool:

		"""Advance one frame.  Returns True when a beat fired on this tick."""

		self.elapsed_frames += 1

		if self.elapsed_frames < self.cooldown_frames:
			return False

		self.elapsed_frames -= self.cooldown_frames
		self._fire_beat()

		return True


	def _fire_beat (self) -> None:

		firing_column = self.active_column

		self.events.emit("beat", firing_column)

		self.active_column = (firing_column + 1) % self.columns

		if self.active_column == 0:
			self.measure += 1
			logger.debug(f"Measure {self.measure} complete")
			self.events.emit("measure", self.measure)
