"""Play the automaton live to an OSC synth (e.g. SuperCollider on port 57120).

The grid and beat marker are drawn in the terminal.  Stop with Ctrl+C.
"""

import asyncio
import logging

import cellsequence

logging.basicConfig(level=logging.INFO)

config = cellsequence.SequencerConfig(
	bpm = 140,
	random_seed = 11,
	damping = 0.95,
	output = "osc",
)

seq = cellsequence.Sequencer(config, synth=cellsequence.OscSynth(port=57120))
seq.display(grid=True)

try:
	asyncio.run(seq.run())
except KeyboardInterrupt:
	pass
