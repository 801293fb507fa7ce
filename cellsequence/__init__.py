"""
cellsequence - a generative step sequencer driven by a cellular automaton.

A grid of note cells (pitch rows by beat columns, wrapped into a torus)
is scanned one column per beat.  Every active cell in the column plays its
row's pitch.  At the end of each measure the grid is replaced by its next
generation under a probabilistic rule:

- **Density preference.** Cells with about two active neighbours are most
  likely to sound next measure; isolated and crowded cells fall silent.
- **Rhythmic bias.** Activation is weighted towards strong beats.
- **Harmonic exclusion.** Cells next to an active semitone, or stacked
  under too many notes within a third, are switched off.

Notes leave as MIDI (mido) or OSC (python-osc); there is no audio engine.

Minimal example:

    ```python
    import asyncio
    import cellsequence

    config = cellsequence.SequencerConfig(bpm=120, random_seed=7)
    seq = cellsequence.Sequencer(config, synth=cellsequence.OscSynth())
    seq.display()
    asyncio.run(seq.run())
    ```

Or from the command line, reading ``config.yaml``:

    python -m cellsequence config.yaml

Package-level exports: ``Grid``, ``AutomatonStepper``, ``AutomatonParams``,
``BeatClock``, ``RhythmicBiasField``, ``PitchMap``, ``Envelope``,
``MidiSynth``, ``OscSynth``, ``Sequencer``, ``SequencerConfig``,
``ConfigError``.
"""

import cellsequence.automaton
import cellsequence.beat_clock
import cellsequence.config
import cellsequence.grid
import cellsequence.pitch_map
import cellsequence.rhythm
import cellsequence.sequencer
import cellsequence.synth


Grid = cellsequence.grid.Grid
AutomatonStepper = cellsequence.automaton.AutomatonStepper
AutomatonParams = cellsequence.automaton.AutomatonParams
BeatClock = cellsequence.beat_clock.BeatClock
RhythmicBiasField = cellsequence.rhythm.RhythmicBiasField
PitchMap = cellsequence.pitch_map.PitchMap
Envelope = cellsequence.synth.Envelope
MidiSynth = cellsequence.synth.MidiSynth
OscSynth = cellsequence.synth.OscSynth
Sequencer = cellsequence.sequencer.Sequencer
SequencerConfig = cellsequence.config.SequencerConfig
ConfigError = cellsequence.config.ConfigError
