import typing


# Twelve chromatic steps up from A4, rounded to whole hertz.
CHROMATIC: typing.Tuple[float, ...] = (440, 466, 494, 523, 554, 587, 622, 659, 698, 740, 783, 831)

A4_FREQUENCY = 440.0
SEMITONES_PER_OCTAVE = 12


class PitchMap:

	"""
	Immutable mapping from grid row to note frequency in hertz.
	"""

	def __init__ (self, frequencies: typing.Iterable[float] = CHROMATIC) -> None:

		self._frequencies = tuple(float(f) for f in frequencies)

		if not self._frequencies:
			raise ValueError("Pitch map needs at least one frequency")

		if any(f <= 0 for f in self._frequencies):
			raise ValueError("Frequencies must be positive")


	@classmethod
	def equal_tempered (cls, root_frequency: float = A4_FREQUENCY, count: int = SEMITONES_PER_OCTAVE) -> "PitchMap":

		"""Build ``count`` equal-tempered semitones starting at ``root_frequency``."""

		if root_frequency <= 0:
			raise ValueError("Root frequency must be positive")

		if count <= 0:
			raise ValueError("Count must be positive")

		return cls(root_frequency * 2 ** (step / SEMITONES_PER_OCTAVE) for step in range(count))


	def frequency (self, row: int) -> float:

		"""Return the frequency for ``row``."""

		return self._frequencies[row]


	@property
	def frequencies (self) -> typing.Tuple[float, ...]:

		return self._frequencies


	def __len__ (self) -> int:

		return len(self._frequencies)


	def __iter__ (self) -> typing.Iterator[float]:

		return iter(self._frequencies)
