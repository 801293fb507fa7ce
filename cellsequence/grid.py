"""Toroidal note grid.

Rows are pitch classes and columns are beats in a measure.  Both axes wrap,
so row ``rows - 1`` sits next to row 0 and the last beat of a measure sits
next to the first.

A grid never changes size.  Its cells are held as an immutable snapshot
(a tuple of row tuples) that is only ever replaced as a whole by
``set_generation()``, so a reader on another thread always sees one
complete generation.
"""

import typing


Cells = typing.Tuple[typing.Tuple[bool, ...], ...]
Position = typing.Tuple[int, int]


class Grid:

	"""
	Fixed-size boolean matrix with wrap-around indexing.
	"""

	def __init__ (self, rows: int, columns: int, active: typing.Iterable[Position] = ()) -> None:

		"""Create a grid, optionally switching on some cells.

		Parameters:
			rows: Number of pitch rows (must be positive).
			columns: Number of beat columns (must be positive).
			active: ``(row, column)`` positions to start active.  Positions
				outside the grid are wrapped onto it.
		"""

		if rows <= 0 or columns <= 0:
			raise ValueError(f"Grid dimensions must be positive, got {rows}x{columns}")

		self.rows = rows
		self.columns = columns
		self.generation = 0

		on = {self.wrap(row, column) for row, column in active}

		self._cells: Cells = tuple(
			tuple((row, column) in on for column in range(columns))
			for row in range(rows)
		)


	@classmethod
	def from_cells (cls, cells: typing.Sequence[typing.Sequence[bool]]) -> "Grid":

		"""Build a grid from a rectangular nested sequence of booleans."""

		if not cells or not cells[0]:
			raise ValueError("Cells cannot be empty")

		columns = len(cells[0])

		if any(len(row) != columns for row in cells):
			raise ValueError("All rows must have the same number of columns")

		grid = cls(len(cells), columns)
		grid._cells = tuple(tuple(bool(value) for value in row) for row in cells)

		return grid


	def wrap (self, row: int, column: int) -> Position:

		"""Map any integer position onto the torus."""

		return row % self.rows, column % self.columns


	def get (self, row: int, column: int) -> bool:

		"""Return whether the cell at ``(row, column)`` is active."""

		row, column = self.wrap(row, column)
		return self._cells[row][column]


	def column (self, column: int) -> typing.Tuple[bool, ...]:

		"""Return the cells of one beat column, ordered by row."""

		column = column % self.columns
		cells = self._cells
		return tuple(cells[row][column] for row in range(self.rows))


	def snapshot (self) -> Cells:

		"""Return the current generation as an immutable tuple of rows."""

		return self._cells


	def active_cells (self) -> typing.List[Position]:

		"""Return every active ``(row, column)`` position in row-major order."""

		return [
			(row, column)
			for row, values in enumerate(self._cells)
			for column, value in enumerate(values)
			if value
		]


	def active_count (self) -> int:

		"""Return the number of active cells."""

		return sum(sum(values) for values in self._cells)


	def set_generation (self, next_grid: "Grid") -> None:

		"""Replace every cell with the cells of ``next_grid`` in one swap.

		Raises ``ValueError`` if the dimensions differ.
		"""

		if (next_grid.rows, next_grid.columns) != (self.rows, self.columns):
			raise ValueError(
				f"Generation is {next_grid.rows}x{next_grid.columns}, "
				f"grid is {self.rows}x{self.columns}"
			)

		self._cells = next_grid._cells
		self.generation += 1


	def __eq__ (self, other: object) -> bool:

		if not isinstance(other, Grid):
			return NotImplemented

		return self._cells == other._cells


	def __repr__ (self) -> str:

		return f"Grid(rows={self.rows}, columns={self.columns}, active={self.active_count()})"
