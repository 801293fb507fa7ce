"""Live terminal dashboard for a running sequencer.

Draws the note grid with the active beat column highlighted, and a status
line below it, to stderr.  Log messages scroll above the dashboard without
disruption.

```python
seq.display()            # grid + status line
seq.display(grid=False)  # status line only
asyncio.run(seq.run())
```

The dashboard redraws on every beat and looks like::

	G#5  |. . : . . . . . . . . . . . . .|
	...
	A4   |X . # . . . . X . . . . . . . .|
	          ^
	185.00 BPM  Measure: 3  Beat: 3/16  Generation: 2  Notes: 26

``X`` is an active cell, ``#`` an active cell in the beat column that is
sounding, ``:`` an empty cell in that column and ``.`` an empty cell.
"""

import logging
import sys
import typing

import cellsequence.synth

if typing.TYPE_CHECKING:
	from cellsequence.sequencer import Sequencer


_NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

_LABEL_WIDTH = 5

_CELL_CHARS = {
	(False, False): ".",
	(False, True): ":",
	(True, False): "X",
	(True, True): "#",
}


def note_name (frequency: float) -> str:

	"""Name of the nearest equal-tempered note, e.g. ``"A#4"``."""

	note, _ = cellsequence.synth.frequency_to_midi(frequency)

	return f"{_NOTE_NAMES[note % 12]}{note // 12 - 1}"


class GridDisplay:

	"""ASCII rendering of the note grid, highest pitch at the top.

	Not used directly; instantiated by ``Display`` when ``grid=True``.
	"""

	def __init__ (self, sequencer: "Sequencer") -> None:

		self._sequencer = sequencer
		self._lines: typing.List[str] = []


	@property
	def line_count (self) -> int:

		return len(self._lines)


	def build (self, column: typing.Optional[int] = None) -> None:

		"""Render the grid with ``column`` highlighted (defaults to the active column)."""

		seq = self._sequencer
		grid = seq.grid

		if column is None:
			column = seq.active_column

		lines: typing.List[str] = []

		for row in reversed(range(grid.rows)):
			label = note_name(seq.pitch_map.frequency(row)).ljust(_LABEL_WIDTH)
			cells = " ".join(
				_CELL_CHARS[(grid.get(row, c), c == column)]
				for c in range(grid.columns)
			)
			lines.append(f"{label}|{cells}|")

		lines.append(" " * (_LABEL_WIDTH + 1 + 2 * column) + "^")

		self._lines = lines


class DisplayLogHandler (logging.Handler):

	"""Logging handler that clears and redraws the dashboard around log output.

	Installed by ``Display.start()`` and removed by ``Display.stop()``.
	"""

	def __init__ (self, display: "Display") -> None:

		super().__init__()
		self._display = display

	def emit (self, record: logging.LogRecord) -> None:

		"""Clear the dashboard, write the log message, then redraw."""

		try:
			self._display.clear_line()

			msg = self.format(record)
			sys.stderr.write(msg + "\n")
			sys.stderr.flush()

			self._display.draw()

		except Exception:
			self.handleError(record)


class Display:

	"""Live-updating terminal dashboard showing the grid and clock state.

	Subscribes to the sequencer's ``"beat"`` event while active.
	"""

	def __init__ (self, sequencer: "Sequencer", grid: bool = True) -> None:

		"""
		Parameters:
			sequencer: The ``Sequencer`` to read state from.
			grid: When True, render the note grid above the status line.
		"""

		self._sequencer = sequencer
		self._active: bool = False
		self._handler: typing.Optional[DisplayLogHandler] = None
		self._saved_handlers: typing.List[logging.Handler] = []
		self._last_line: str = ""
		self._grid: typing.Optional[GridDisplay] = GridDisplay(sequencer) if grid else None
		self._drawn_line_count: int = 0


	def start (self) -> None:

		"""Install the log handler, subscribe to beats and activate the display."""

		if self._active:
			return

		self._active = True

		root_logger = logging.getLogger()
		# Restored by stop().
		self._saved_handlers = list(root_logger.handlers)

		self._handler = DisplayLogHandler(self)

		# Keep the formatting of whatever handler was installed first.
		if self._saved_handlers and self._saved_handlers[0].formatter:
			self._handler.setFormatter(self._saved_handlers[0].formatter)
		else:
			self._handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))

		root_logger.handlers.clear()
		root_logger.addHandler(self._handler)

		self._sequencer.on_event("beat", self.update)


	def stop (self) -> None:

		"""Clear the dashboard, unsubscribe and restore original log handlers."""

		if not self._active:
			return

		self.clear_line()
		self._active = False

		self._sequencer.events.off("beat", self.update)

		root_logger = logging.getLogger()
		root_logger.handlers.clear()

		for handler in self._saved_handlers:
			root_logger.addHandler(handler)

		self._saved_handlers = []
		self._handler = None


	def update (self, column: int = 0) -> None:

		"""Rebuild and redraw for the beat that just played in ``column``."""

		if not self._active:
			return

		self._last_line = self._format_status(column)

		if self._grid is not None:
			self._grid.build(column)

		self.draw()


	def draw (self) -> None:

		"""Write the current dashboard to the terminal."""

		if not self._active or not self._last_line:
			return

		grid_lines = self._grid._lines if self._grid is not None else []
		total = len(grid_lines) + 1  # grid rows, marker, status

		# The cursor rests at the end of the status line, so the top of the
		# previous drawing is (drawn - 1) lines up.
		if self._drawn_line_count > 1:
			sys.stderr.write(f"\033[{self._drawn_line_count - 1}A")

		for line in grid_lines:
			sys.stderr.write(f"\r\033[K{line}\n")

		# No newline after the status line.
		sys.stderr.write(f"\r\033[K{self._last_line}")
		sys.stderr.flush()

		self._drawn_line_count = total


	def clear_line (self) -> None:

		"""Erase the entire dashboard region from the terminal."""

		if not self._active:
			return

		if self._drawn_line_count > 1:
			sys.stderr.write(f"\033[{self._drawn_line_count - 1}A")

			# Blank every line, then return to the top.
			for _ in range(self._drawn_line_count):
				sys.stderr.write("\r\033[K\n")

			sys.stderr.write(f"\033[{self._drawn_line_count}A")
		else:
			sys.stderr.write("\r\033[K")

		sys.stderr.flush()
		self._drawn_line_count = 0


	def _format_status (self, column: typing.Optional[int] = None) -> str:

		"""Build the status string from current sequencer state."""

		seq = self._sequencer

		if column is None:
			column = seq.active_column

		parts = [
			f"{seq.config.bpm:.2f} BPM",
			f"Measure: {seq.clock.measure + 1}",
			f"Beat: {column + 1}/{seq.grid.columns}",
			f"Generation: {seq.grid.generation}",
			f"Notes: {seq.grid.active_count()}",
		]

		return "  ".join(parts)
