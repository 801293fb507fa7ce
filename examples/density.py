"""Run 32 measures without waiting and print how busy each generation is.

Useful for tuning ``damping`` and ``strong_beat_period`` before playing live.
"""

import logging

import cellsequence

logging.basicConfig(level=logging.WARNING)

MEASURES = 32

for damping in (0.6, 0.9, 1.0):

	config = cellsequence.SequencerConfig(
		damping = damping,
		random_seed = 3,
		output = "none",
		display = False,
	)

	seq = cellsequence.Sequencer(config)
	counts = []

	seq.on_event("generation", lambda generation: counts.append(seq.grid.active_count()))

	while len(counts) < MEASURES:
		seq.tick()

	print(f"damping {damping:.1f}: " + " ".join(f"{c:2d}" for c in counts))
