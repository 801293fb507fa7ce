import logging
import math
import typing

import pytest

import conftest

import cellsequence.config
import cellsequence.grid
import cellsequence.sequencer
import cellsequence.synth


def _config (**overrides: typing.Any) -> cellsequence.config.SequencerConfig:

	"""Small, fast config: 4 ticks per beat, 4 beats per measure."""

	settings: typing.Dict[str, typing.Any] = dict(
		columns = 4,
		bpm = 60,
		tick_rate = 4,
		seed_cells = [(0, 3)],
		damping = 1.0,
		output = "none",
		display = False,
	)
	settings.update(overrides)

	return cellsequence.config.SequencerConfig(**settings)


class GenerationSynth (conftest.RecordingSynth):

	"""Records which grid generation was current when each note played."""

	def __init__ (self, sequencer_ref: typing.List[cellsequence.sequencer.Sequencer]) -> None:

		super().__init__()
		self._ref = sequencer_ref
		self.generations: typing.List[int] = []

	def play (self, frequency: float, envelope: cellsequence.synth.Envelope) -> None:

		super().play(frequency, envelope)
		self.generations.append(self._ref[0].grid.generation)


def test_invalid_config_is_fatal () -> None:

	"""A bad config raises before the sequencer exists."""

	with pytest.raises(cellsequence.config.ConfigError):
		cellsequence.sequencer.Sequencer(_config(bpm=0))

	with pytest.raises(cellsequence.config.ConfigError):
		cellsequence.sequencer.Sequencer(_config(rows=0))


def test_grid_seeded_from_config () -> None:

	"""Seed cells from the config are active at start."""

	seq = cellsequence.sequencer.Sequencer(_config(seed_cells=[(1, 2), (5, 0)]))

	assert seq.grid.active_cells() == [(1, 2), (5, 0)]
	assert seq.clock.cooldown_frames == pytest.approx(4.0)


def test_render_fires_beats_and_steps_once_per_measure (synth: conftest.RecordingSynth) -> None:

	"""Four beats per measure, one generation per measure."""

	seq = cellsequence.sequencer.Sequencer(_config(), synth=synth, rng=conftest.FixedRandom(0.5))

	beats = seq.render(4 * 4 * 3)

	assert beats == 12
	assert seq.grid.generation == 3
	assert seq.active_column == 0
	assert seq.tick_count == 48


def test_wraparound_beat_plays_previous_generation () -> None:

	"""The last beat of a measure plays its notes before the grid evolves."""

	ref: typing.List[cellsequence.sequencer.Sequencer] = []
	synth = GenerationSynth(ref)

	seq = cellsequence.sequencer.Sequencer(
		_config(),
		synth = synth,
		rng = conftest.FixedRandom(0.0),
		bias = lambda column: 1.0,
	)
	ref.append(seq)

	order: typing.List[str] = []
	seq.on_event("beat", lambda column: order.append(f"beat {column}"))
	seq.on_event("generation", lambda generation: order.append(f"generation {generation}"))

	seq.render(16)

	# Only column 3 was active: its single note played from generation 0.
	assert [f for f, _ in synth.played] == [440.0]
	assert synth.generations == [0]
	assert order == ["beat 0", "beat 1", "beat 2", "beat 3", "generation 1"]


def test_generation_follows_automaton_rule () -> None:

	"""After one measure the grid equals a direct step of the seed grid."""

	seq = cellsequence.sequencer.Sequencer(
		_config(columns=16, seed_cells=[(0, 0), (2, 0), (3, 4), (7, 6), (6, 8)]),
		rng = conftest.FixedRandom(0.0),
		bias = lambda column: 1.0,
	)

	seq.render(4 * 16)

	assert seq.grid.generation == 1
	assert seq.grid.active_count() == 26
	assert seq.grid.get(11, 15) and seq.grid.get(6, 9)
	assert not seq.grid.get(0, 0)


def test_synth_failure_does_not_stop_clock_or_automaton () -> None:

	"""Audio errors are non-fatal: beats and generations carry on."""

	class BrokenSynth (conftest.RecordingSynth):

		def play (self, frequency: float, envelope: cellsequence.synth.Envelope) -> None:
			raise RuntimeError("no audio")

	seq = cellsequence.sequencer.Sequencer(_config(), synth=BrokenSynth(), rng=conftest.FixedRandom(0.0))

	assert seq.render(16) == 4
	assert seq.grid.generation == 1


def test_envelope_from_config (synth: conftest.RecordingSynth) -> None:

	"""Notes carry the envelope described in the config."""

	seq = cellsequence.sequencer.Sequencer(_config(seed_cells=[(0, 0)], decay=0.25, waveform="square"), synth=synth)

	seq.render(4)

	assert synth.played[0][1] == cellsequence.synth.Envelope(waveform="square", decay=0.25)


def test_seeded_runs_repeat () -> None:

	"""Two sequencers with the same random seed evolve identically."""

	first = cellsequence.sequencer.Sequencer(_config(columns=16, random_seed=5, seed_cells=[(0, 0), (3, 4), (7, 6)]))
	second = cellsequence.sequencer.Sequencer(_config(columns=16, random_seed=5, seed_cells=[(0, 0), (3, 4), (7, 6)]))

	first.render(4 * 16 * 4)
	second.render(4 * 16 * 4)

	assert first.grid == second.grid


@pytest.mark.asyncio
async def test_run_stops_after_max_ticks (synth: conftest.RecordingSynth) -> None:

	"""run() ticks in real time, then stops the synth."""

	seq = cellsequence.sequencer.Sequencer(_config(bpm=6000, tick_rate=1000, seed_cells=[(0, 0)]), synth=synth)

	await seq.run(max_ticks=40)

	assert seq.tick_count == 40
	assert seq.running is False
	assert synth.started and synth.stopped
	assert [f for f, _ in synth.played] == [440.0]


@pytest.mark.asyncio
async def test_stop_from_listener_ends_run (synth: conftest.RecordingSynth) -> None:

	"""Calling stop() during a beat finishes the loop."""

	seq = cellsequence.sequencer.Sequencer(_config(bpm=6000, tick_rate=1000), synth=synth)
	seq.on_event("beat", lambda column: seq.stop())

	await seq.run()

	assert seq.clock.active_column == 1
	assert seq.tick_count == math.ceil(seq.clock.cooldown_frames)
	assert synth.stopped


def test_build_synth_none () -> None:

	"""output: none plays silently."""

	assert cellsequence.sequencer.build_synth(_config(output="none")) is None


def test_build_synth_osc () -> None:

	"""output: osc builds an OscSynth aimed at the configured host."""

	synth = cellsequence.sequencer.build_synth(_config(output="osc", osc_host="10.0.0.2", osc_port=9000))

	assert isinstance(synth, cellsequence.synth.OscSynth)
	assert (synth.host, synth.port) == ("10.0.0.2", 9000)


def test_build_synth_midi (patch_midi: None) -> None:

	"""output: midi opens the configured device."""

	synth = cellsequence.sequencer.build_synth(_config(output="midi", midi_device="Dummy MIDI", midi_channel=3))

	assert isinstance(synth, cellsequence.synth.MidiSynth)
	assert synth.channel == 3
	assert synth.device_name == "Dummy MIDI"


def test_build_synth_midi_missing_device (patch_midi: None) -> None:

	"""A missing MIDI device falls back to silent playback."""

	assert cellsequence.sequencer.build_synth(_config(output="midi", midi_device="Missing")) is None


class UnreachableSynth (conftest.RecordingSynth):

	"""A synth whose backend cannot be reached."""

	def start (self) -> None:

		raise OSError("host not found")


@pytest.mark.asyncio
async def test_synth_start_failure_plays_silently (caplog: pytest.LogCaptureFixture) -> None:

	"""A synth that fails to start is logged and the run goes on without it."""

	seq = cellsequence.sequencer.Sequencer(_config(bpm=6000, tick_rate=1000), synth=UnreachableSynth())

	with caplog.at_level(logging.ERROR):
		await seq.run(max_ticks=20)

	assert seq.tick_count == 20
	assert seq.running is False
	assert seq.synth is None
	assert "Failed to start synth" in caplog.text

	await seq.run(max_ticks=5)

	assert seq.tick_count == 25


@pytest.mark.asyncio
async def test_running_flag_reset_when_display_fails_to_start () -> None:

	"""An exception while starting outputs still leaves the sequencer stopped."""

	class BrokenDisplay:

		def start (self) -> None:
			raise RuntimeError("no terminal")

		def stop (self) -> None:
			pass

	seq = cellsequence.sequencer.Sequencer(_config())
	seq._display = BrokenDisplay()

	with pytest.raises(RuntimeError):
		await seq.run(max_ticks=5)

	assert seq.running is False


def test_render_starts_and_stops_synth (synth: conftest.RecordingSynth) -> None:

	"""render() owns the synth for its duration."""

	seq = cellsequence.sequencer.Sequencer(_config(), synth=synth)

	seq.render(16)

	assert synth.started and synth.stopped


def test_render_drains_midi_queue (fake_midi_out: conftest.FakeMidiOut) -> None:

	"""Rendered notes reach the MIDI port and are released when render returns."""

	midi_synth = cellsequence.synth.MidiSynth(fake_midi_out)
	seq = cellsequence.sequencer.Sequencer(_config(seed_cells=[(0, 0), (4, 2)]), synth=midi_synth)

	seq.render(16)

	assert [m.note for m in fake_midi_out.of_type("note_on")] == [69, 73]
	assert sorted(m.note for m in fake_midi_out.of_type("note_off")) == [69, 73]
	assert midi_synth._queue.empty()
	assert fake_midi_out.closed
