import math
import typing


BiasFn = typing.Callable[[int], float]

DEFAULT_STRONG_BEAT_PERIOD = 4


def rhythmic_bias (column: float, strong_beat_period: int = DEFAULT_STRONG_BEAT_PERIOD) -> float:

	"""Activation bias for a beat column, in [0, 1].

	Sums two raised cosines: one peaking every ``strong_beat_period`` columns
	and one at twice that rate.  With the default period of 4 the result is
	1.0 on each strong beat, 0.5 on the remaining even columns and 0.25 on
	odd columns.  A period of 2 gives 1.0 on even and 0.5 on odd columns.
	"""

	x = 2.0 * column / strong_beat_period

	return (math.cos(math.pi * x) + 1.0) / 4.0 + (math.cos(2.0 * math.pi * x) + 1.0) / 4.0


class RhythmicBiasField:

	"""
	Periodic bias over the columns of one measure.

	Calling the field (or ``bias()``) with a column index returns the value
	used to weight the activation probability of cells in that column.
	"""

	def __init__ (self, columns: int, strong_beat_period: int = DEFAULT_STRONG_BEAT_PERIOD) -> None:

		"""
		Precompute the bias for each column of a measure.

		The strong-beat period must divide the column count so the field
		repeats exactly once per measure.
		"""

		if columns <= 0:
			raise ValueError("Columns must be positive")

		if strong_beat_period <= 0:
			raise ValueError("Strong beat period must be positive")

		if columns % strong_beat_period != 0:
			raise ValueError(f"Strong beat period {strong_beat_period} does not divide {columns} columns")

		self.columns = columns
		self.strong_beat_period = strong_beat_period

		# Clamp away float noise so strong beats are exactly 1.0.
		self._values = tuple(
			min(1.0, max(0.0, round(rhythmic_bias(column, strong_beat_period), 12)))
			for column in range(columns)
		)


	def bias (self, column: int) -> float:

		"""Return the bias for ``column`` (wrapped onto the measure)."""

		return self._values[column % self.columns]


	def __call__ (self, column: int) -> float:

		return self.bias(column)


	def values (self) -> typing.Tuple[float, ...]:

		"""Return the bias of every column in one measure."""

		return self._values
