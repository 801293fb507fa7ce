"""Neighbour counting on the toroidal note grid.

Two kinds of neighbourhood are used by the automaton:

- The **Moore neighbourhood**: the eight cells surrounding a cell
  (orthogonal and diagonal), each offset wrapped on both axes.
- **Harmonic neighbours**: cells in the same beat column a small number of
  rows (semitones) away.  Distance 1 are the semitone neighbours; distance
  1-3 are the third-interval neighbours.

All wrap-around arithmetic goes through ``wrapped_positions()``.
"""

import typing

import cellsequence.grid


Offset = typing.Tuple[int, int]


MOORE_OFFSETS: typing.Tuple[Offset, ...] = (
	(-1, -1), (-1, 0), (-1, 1),
	( 0, -1),          ( 0, 1),
	( 1, -1), ( 1, 0), ( 1, 1),
)

SEMITONE_DISTANCE = 1
THIRD_DISTANCE = 3


def vertical_offsets (distance: int) -> typing.Tuple[Offset, ...]:

	"""Return the same-column offsets up to ``distance`` rows above and below."""

	if distance < 1:
		raise ValueError("Distance must be at least 1")

	return tuple(
		(sign * step, 0)
		for step in range(1, distance + 1)
		for sign in (-1, 1)
	)


def wrapped_positions (
	grid: cellsequence.grid.Grid,
	row: int,
	column: int,
	offsets: typing.Iterable[Offset]
) -> typing.FrozenSet[cellsequence.grid.Position]:

	"""Return the distinct grid positions reached from a cell by ``offsets``.

	Every offset is wrapped independently on each axis.  On very small grids
	two offsets can land on the same cell, or back on the cell itself; each
	distinct neighbour appears once and the origin is never included.
	"""

	origin = grid.wrap(row, column)

	positions = {grid.wrap(row + d_row, column + d_column) for d_row, d_column in offsets}
	positions.discard(origin)

	return frozenset(positions)


def count_active (
	grid: cellsequence.grid.Grid,
	row: int,
	column: int,
	offsets: typing.Iterable[Offset]
) -> int:

	"""Count the active cells reached from ``(row, column)`` by ``offsets``."""

	cells = grid.snapshot()

	return sum(1 for r, c in wrapped_positions(grid, row, column, offsets) if cells[r][c])


def moore_neighbor_count (grid: cellsequence.grid.Grid, row: int, column: int) -> int:

	"""Number of active cells in the wrapped Moore neighbourhood (0-8)."""

	return count_active(grid, row, column, MOORE_OFFSETS)


def semitone_neighbor_count (grid: cellsequence.grid.Grid, row: int, column: int) -> int:

	"""Number of active cells one row above or below, in the same column."""

	return count_active(grid, row, column, vertical_offsets(SEMITONE_DISTANCE))


def third_neighbor_count (grid: cellsequence.grid.Grid, row: int, column: int) -> int:

	"""Number of active cells one to three rows above or below, in the same column."""

	return count_active(grid, row, column, vertical_offsets(THIRD_DISTANCE))
