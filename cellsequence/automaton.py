"""Probabilistic note automaton.

Each measure the whole grid is replaced by a new generation.  For every
cell, computed from a read-only snapshot of the current generation:

1. ``n`` is the Moore neighbour count (0-8).
2. ``p_base = max(0, (4 - (n - 2)**2) / 4)``: 1.0 at two neighbours, 0.75 at
   one or three, 0 when isolated or crowded.
3. ``p = p_base * damping * bias(column)`` weights the cell towards strong
   beats and caps overall density.
4. The cell is forced off when it has a semitone neighbour or too many
   neighbours within a third, so the automaton avoids chromatic clusters.
5. Otherwise it is active when a uniform draw ``u`` in [0, 1) satisfies
   ``u < p``.

Only step 5 is stochastic and its random source is injected, so the rule is
repeatable under a seeded ``random.Random``.
"""

import dataclasses
import logging
import random
import typing

import cellsequence.grid
import cellsequence.neighborhood
import cellsequence.rhythm


logger = logging.getLogger(__name__)


class RandomLike (typing.Protocol):

	"""Anything with a ``random()`` method returning floats in [0, 1)."""

	def random (self) -> float:
		...


@dataclasses.dataclass (frozen=True)
class AutomatonParams:

	"""
	Tunable constants of the automaton rule.

	Attributes:
		damping: Scales every activation probability; in (0, 1].
		semitone_limit: Cells with at least this many semitone neighbours
			are forced off.
		third_limit: Cells with at least this many neighbours within a third
			are forced off.
	"""

	damping: float = 0.9
	semitone_limit: int = 1
	third_limit: int = 3

	def __post_init__ (self) -> None:

		if not 0.0 < self.damping <= 1.0:
			raise ValueError(f"Damping must be in (0, 1], got {self.damping}")

		if self.semitone_limit < 1 or self.third_limit < 1:
			raise ValueError("Harmonic exclusion limits must be at least 1")


def base_probability (neighbors: int) -> float:

	"""Density preference: a parabola peaking at 1.0 for two neighbours."""

	return max(0.0, (4.0 - (neighbors - 2) ** 2) / 4.0)


class AutomatonStepper:

	"""
	Computes successive generations of a note grid.
	"""

	def __init__ (
		self,
		params: typing.Optional[AutomatonParams] = None,
		bias: typing.Optional[cellsequence.rhythm.BiasFn] = None,
		rng: typing.Optional[RandomLike] = None
	) -> None:

		"""
		Parameters:
			params: Rule constants (defaults to ``AutomatonParams()``).
			bias: Column bias function.  When omitted a
				``RhythmicBiasField`` is built for the grid on first use.
			rng: Random source for activation draws.  Pass a seeded
				``random.Random`` for repeatable output.
		"""

		self.params = params or AutomatonParams()
		self.bias = bias
		self.rng: RandomLike = rng or random.Random()


	def _bias_for (self, grid: cellsequence.grid.Grid) -> cellsequence.rhythm.BiasFn:

		if self.bias is None:
			self.bias = cellsequence.rhythm.RhythmicBiasField(grid.columns)

		return self.bias


	def is_suppressed (self, grid: cellsequence.grid.Grid, row: int, column: int) -> bool:

		"""True when harmonic exclusion forces the cell off in the next generation."""

		if cellsequence.neighborhood.semitone_neighbor_count(grid, row, column) >= self.params.semitone_limit:
			return True

		return cellsequence.neighborhood.third_neighbor_count(grid, row, column) >= self.params.third_limit


	def activation_probability (self, grid: cellsequence.grid.Grid, row: int, column: int) -> float:

		"""Probability that the cell is active next generation, ignoring exclusion."""

		neighbors = cellsequence.neighborhood.moore_neighbor_count(grid, row, column)
		bias = self._bias_for(grid)

		return base_probability(neighbors) * self.params.damping * bias(column)


	def next_cell (self, grid: cellsequence.grid.Grid, row: int, column: int) -> bool:

		"""Decide the next value of one cell.  Draws from the RNG only when not suppressed."""

		if self.is_suppressed(grid, row, column):
			return False

		probability = self.activation_probability(grid, row, column)

		return self.rng.random() < probability


	def step (self, grid: cellsequence.grid.Grid) -> cellsequence.grid.Grid:

		"""Return the next generation of ``grid`` without modifying it."""

		cells = [
			[self.next_cell(grid, row, column) for column in range(grid.columns)]
			for row in range(grid.rows)
		]

		return cellsequence.grid.Grid.from_cells(cells)


	def advance (self, grid: cellsequence.grid.Grid) -> cellsequence.grid.Grid:

		"""Compute the next generation and swap it into ``grid``."""

		next_grid = self.step(grid)
		grid.set_generation(next_grid)

		logger.debug(f"Generation {grid.generation}: {grid.active_count()} active cells")

		return grid
