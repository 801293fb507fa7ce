import logging
import typing

import cellsequence.grid
import cellsequence.pitch_map
import cellsequence.synth


logger = logging.getLogger(__name__)


class NoteTrigger:

	"""
	Plays the active cells of a beat column.

	Reads the grid at the moment ``trigger()`` is called, so the notes of a
	beat always come from the generation that was current when it fired.
	Synth errors are logged and never reach the clock or the automaton.
	"""

	def __init__ (
		self,
		grid: cellsequence.grid.Grid,
		pitch_map: cellsequence.pitch_map.PitchMap,
		synth: typing.Optional[cellsequence.synth.SynthLike],
		envelope: typing.Optional[cellsequence.synth.Envelope] = None
	) -> None:

		if len(pitch_map) != grid.rows:
			raise ValueError(f"Pitch map has {len(pitch_map)} frequencies for {grid.rows} rows")

		self.grid = grid
		self.pitch_map = pitch_map
		self.synth = synth
		self.envelope = envelope or cellsequence.synth.Envelope()


	def notes_for (self, column: int) -> typing.List[float]:

		"""Frequencies of the active cells in ``column``, lowest row first."""

		return [
			self.pitch_map.frequency(row)
			for row, active in enumerate(self.grid.column(column))
			if active
		]


	def trigger (self, column: int) -> int:

		"""Send every active note in ``column`` to the synth.  Returns the count sent."""

		frequencies = self.notes_for(column)

		if self.synth is None:
			return 0

		sent = 0

		for frequency in frequencies:
			try:
				self.synth.play(frequency, self.envelope)
				sent += 1
			except Exception:
				logger.exception(f"Synth failed to play {frequency:.1f} Hz")

		return sent
