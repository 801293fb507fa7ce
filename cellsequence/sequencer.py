import asyncio
import logging
import random
import time
import typing

import cellsequence.automaton
import cellsequence.beat_clock
import cellsequence.config
import cellsequence.display
import cellsequence.event_emitter
import cellsequence.grid
import cellsequence.midi_utils
import cellsequence.note_trigger
import cellsequence.pitch_map
import cellsequence.rhythm
import cellsequence.synth


logger = logging.getLogger(__name__)


def build_synth (config: cellsequence.config.SequencerConfig) -> typing.Optional[cellsequence.synth.SynthLike]:

	"""Create the note output described by ``config``, or None for silent playback."""

	if config.output == "osc":
		return cellsequence.synth.OscSynth(host=config.osc_host, port=config.osc_port)

	if config.output == "midi":
		device_name, port = cellsequence.midi_utils.open_output_device(config.midi_device)

		if port is None:
			logger.error("No MIDI output available - playing silently")
			return None

		return cellsequence.synth.MidiSynth(
			port,
			channel = config.midi_channel,
			pitch_bend = config.pitch_bend,
			device_name = device_name
		)

	return None


class Sequencer:

	"""
	Owns the note grid and drives it from a tick loop.

	Every tick advances the ``BeatClock``.  On each beat the active column is
	played through the ``NoteTrigger``; at the end of every measure the
	``AutomatonStepper`` replaces the grid with its next generation.  The
	beat's notes are always sent before the step runs.

	Events (via ``on_event``):
		``"beat"``: ``(column)`` after the column's notes were sent.
		``"generation"``: ``(generation)`` after the grid was replaced.

	Example:
		```python
		seq = Sequencer(SequencerConfig(bpm=120), synth=my_synth)
		asyncio.run(seq.run())
		```
	"""

	def __init__ (
		self,
		config: typing.Optional[cellsequence.config.SequencerConfig] = None,
		synth: typing.Optional[cellsequence.synth.SynthLike] = None,
		rng: typing.Optional[cellsequence.automaton.RandomLike] = None,
		bias: typing.Optional[cellsequence.rhythm.BiasFn] = None
	) -> None:

		"""Build the grid, clock, automaton and note trigger.

		Parameters:
			config: Settings; defaults to ``SequencerConfig()``.  Validated here,
				so an invalid config raises ``ConfigError`` before anything runs.
			synth: Note output.  None plays silently.
			rng: Random source for the automaton.  Defaults to a
				``random.Random`` seeded from ``config.random_seed``.
			bias: Column bias override; defaults to a ``RhythmicBiasField``.
		"""

		self.config = config or cellsequence.config.SequencerConfig()
		self.config.validate()

		cfg = self.config

		self.grid = cellsequence.grid.Grid(cfg.rows, cfg.columns, cfg.seed_cells)
		self.pitch_map = cellsequence.pitch_map.PitchMap(cfg.pitches)

		self.envelope = cellsequence.synth.Envelope(
			waveform = cfg.waveform,
			attack = cfg.attack,
			decay = cfg.decay,
			sustain = cfg.sustain,
			release = cfg.release,
			crunch = cfg.crunch
		)

		params = cellsequence.automaton.AutomatonParams(
			damping = cfg.damping,
			semitone_limit = cfg.semitone_limit,
			third_limit = cfg.third_limit
		)

		if bias is None:
			bias = cellsequence.rhythm.RhythmicBiasField(cfg.columns, cfg.strong_beat_period)

		self.stepper = cellsequence.automaton.AutomatonStepper(
			params = params,
			bias = bias,
			rng = rng or random.Random(cfg.random_seed)
		)

		self.synth = synth
		self.trigger = cellsequence.note_trigger.NoteTrigger(self.grid, self.pitch_map, synth, self.envelope)

		self.clock = cellsequence.beat_clock.BeatClock.from_tempo(cfg.columns, cfg.bpm, cfg.seconds_per_tick)
		self.clock.on("beat", self._on_beat)
		self.clock.on("measure", self._on_measure)

		self.events = cellsequence.event_emitter.EventEmitter()
		self.running = False
		self.tick_count = 0
		self._display: typing.Optional[cellsequence.display.Display] = None

		logger.info(
			f"{cfg.rows}x{cfg.columns} grid at {cfg.bpm:.2f} BPM, "
			f"{self.clock.cooldown_frames:.2f} ticks per beat"
		)


	@property
	def active_column (self) -> int:

		return self.clock.active_column


	def on_event (self, event_name: str, callback: typing.Callable[..., typing.Any]) -> None:

		"""
		Register a callback for a named event.
		"""

		self.events.on(event_name, callback)


	def display (self, grid: bool = True) -> None:

		"""Show a live terminal dashboard while ``run()`` is active."""

		self._display = cellsequence.display.Display(self, grid=grid)


	def _on_beat (self, column: int) -> None:

		self.trigger.trigger(column)
		self.events.emit("beat", column)


	def _on_measure (self, measure: int) -> None:

		self.stepper.advance(self.grid)
		logger.debug(f"Measure {measure}: generation {self.grid.generation} has {self.grid.active_count()} notes")
		self.events.emit("generation", self.grid.generation)


	def tick (self) -> bool:

		"""Advance one frame.  Returns True when a beat fired."""

		self.tick_count += 1
		return self.clock.tick()


	def render (self, ticks: int) -> int:

		"""Run ``ticks`` ticks immediately, without waiting.  Returns the beats fired.

		The synth is started for the render and stopped afterwards, so a
		``MidiSynth`` worker drains its queue and every note-off is sent.
		When called while ``run()`` is active the running synth is used as is.
		"""

		if ticks < 0:
			raise ValueError("Ticks cannot be negative")

		owns_synth = not self.running

		if owns_synth:
			self._start_synth()

		try:
			return sum(1 for _ in range(ticks) if self.tick())
		finally:
			if owns_synth:
				self._stop_synth()


	def _start_synth (self) -> None:

		if self.synth is None:
			return

		try:
			self.synth.start()
		except Exception:
			logger.exception("Failed to start synth - playing silently")
			self.synth = None
			self.trigger.synth = None


	def _stop_synth (self) -> None:

		if self.synth is None:
			return

		try:
			self.synth.stop()
		except Exception:
			logger.exception("Failed to stop synth")


	def _start_outputs (self) -> None:

		self._start_synth()

		if self._display is not None:
			self._display.start()


	def _stop_outputs (self) -> None:

		if self._display is not None:
			self._display.stop()

		self._stop_synth()


	async def run (self, max_ticks: typing.Optional[int] = None) -> None:

		"""Tick at the configured rate until ``stop()`` is called.

		Tick times are scheduled from the start time rather than from the
		previous tick, so a slow tick does not shift the ones after it.

		Parameters:
			max_ticks: Stop by itself after this many ticks.
		"""

		if self.running:
			return

		self.running = True

		seconds_per_tick = self.config.seconds_per_tick
		ticks = 0

		try:
			self._start_outputs()

			next_tick_time = time.perf_counter()
			logger.info("Sequencer started")

			while self.running:

				while self.running and time.perf_counter() >= next_tick_time:
					self.tick()
					ticks += 1
					next_tick_time += seconds_per_tick

					if max_ticks is not None and ticks >= max_ticks:
						self.running = False

				if not self.running:
					break

				sleep_time = next_tick_time - time.perf_counter()
				await asyncio.sleep(max(0.0, sleep_time))

		finally:
			self.running = False
			self._stop_outputs()
			logger.info("Sequencer stopped")


	def stop (self) -> None:

		"""Ask a running ``run()`` loop to finish after the current tick."""

		self.running = False
