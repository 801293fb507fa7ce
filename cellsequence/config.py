"""Configuration loading and validation.

Settings come from a YAML file (``config.yaml`` by default) with these
sections, all optional:

```yaml
grid:
  rows: 12
  columns: 16
  seed: [[0, 0], [2, 0], [3, 4], [7, 6], [6, 8]]
tempo:
  bpm: 185
  tick_rate: 60        # ticks per second
pitches: [440, 466, 494, 523, 554, 587, 622, 659, 698, 740, 783, 831]
# or: root_frequency: 220
automaton:
  damping: 0.9
  semitone_limit: 1
  third_limit: 3
  strong_beat_period: 4
  seed: 42             # random seed, omit for a fresh run every time
envelope:
  waveform: sine
  attack: 0.01
  decay: 0.8
  sustain: 0.5
  release: 0.5
  crunch: 0.2
output:
  kind: midi           # midi, osc or none
  device: null
  channel: 0
  pitch_bend: false
  host: 127.0.0.1
  port: 57120
display:
  enabled: true
  grid: true
```

Every problem is reported as a ``ConfigError`` before playback starts.
"""

import dataclasses
import logging
import os
import typing

import yaml

import cellsequence.beat_clock
import cellsequence.pitch_map
import cellsequence.rhythm


logger = logging.getLogger(__name__)


OUTPUT_KINDS = ("midi", "osc", "none")

DEFAULT_SEED_CELLS: typing.Tuple[typing.Tuple[int, int], ...] = ((0, 0), (2, 0), (3, 4), (7, 6), (6, 8))


class ConfigError (ValueError):

	"""Raised when the configuration cannot be used."""


@dataclasses.dataclass
class SequencerConfig:

	"""
	Everything needed to build a ``Sequencer``.
	"""

	rows: int = 12
	columns: int = 16
	seed_cells: typing.List[typing.Tuple[int, int]] = dataclasses.field(default_factory=lambda: list(DEFAULT_SEED_CELLS))

	bpm: float = 185.0
	tick_rate: float = 60.0

	pitches: typing.List[float] = dataclasses.field(default_factory=lambda: list(cellsequence.pitch_map.CHROMATIC))

	damping: float = 0.9
	semitone_limit: int = 1
	third_limit: int = 3
	strong_beat_period: int = cellsequence.rhythm.DEFAULT_STRONG_BEAT_PERIOD
	random_seed: typing.Optional[int] = None

	waveform: str = "sine"
	attack: float = 0.01
	decay: float = 0.8
	sustain: float = 0.5
	release: float = 0.5
	crunch: float = 0.2

	output: str = "midi"
	midi_device: typing.Optional[str] = None
	midi_channel: int = 0
	pitch_bend: bool = False
	osc_host: str = "127.0.0.1"
	osc_port: int = 57120

	display: bool = True
	display_grid: bool = True


	@property
	def seconds_per_tick (self) -> float:

		return 1.0 / self.tick_rate


	def validate (self) -> None:

		"""Raise ``ConfigError`` describing the first invalid setting."""

		if self.rows <= 0 or self.columns <= 0:
			raise ConfigError(f"Grid dimensions must be positive, got {self.rows}x{self.columns}")

		if self.bpm <= 0:
			raise ConfigError("BPM must be positive")

		if self.tick_rate <= 0:
			raise ConfigError("Tick rate must be positive")

		if cellsequence.beat_clock.frames_per_beat(self.bpm, self.seconds_per_tick) < 1:
			raise ConfigError(f"{self.bpm} BPM is more than one beat per tick at {self.tick_rate} ticks per second")

		if len(self.pitches) != self.rows:
			raise ConfigError(f"Expected {self.rows} pitches (one per row), got {len(self.pitches)}")

		if any(p <= 0 for p in self.pitches):
			raise ConfigError("Pitches must be positive frequencies")

		if not 0.0 < self.damping <= 1.0:
			raise ConfigError(f"Damping must be in (0, 1], got {self.damping}")

		if self.semitone_limit < 1 or self.third_limit < 1:
			raise ConfigError("Harmonic exclusion limits must be at least 1")

		if self.strong_beat_period <= 0 or self.columns % self.strong_beat_period != 0:
			raise ConfigError(f"Strong beat period {self.strong_beat_period} must divide {self.columns} columns")

		for row, column in self.seed_cells:
			if not (0 <= row < self.rows and 0 <= column < self.columns):
				raise ConfigError(f"Seed cell ({row}, {column}) is outside the {self.rows}x{self.columns} grid")

		if min(self.attack, self.decay, self.release) < 0:
			raise ConfigError("Envelope times cannot be negative")

		if not 0.0 <= self.sustain <= 1.0 or not 0.0 <= self.crunch <= 1.0:
			raise ConfigError("Envelope sustain and crunch must be between 0 and 1")

		if self.output not in OUTPUT_KINDS:
			raise ConfigError(f"Unknown output {self.output!r}, expected one of {OUTPUT_KINDS}")

		if not 0 <= self.midi_channel <= 15:
			raise ConfigError("MIDI channel must be 0-15")


def load_config (config_path: str = 'config.yaml') -> dict:

	"""
	Load raw settings from a YAML file.  A missing file gives an empty dict.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		try:
			data = yaml.safe_load(f)
		except yaml.YAMLError as e:
			raise ConfigError(f"Could not parse {config_path}: {e}") from e

	if data is None:
		return {}

	if not isinstance(data, dict):
		raise ConfigError(f"{config_path} must contain a mapping at the top level")

	return data


def _section (data: dict, name: str) -> dict:

	section = data.get(name) or {}

	if not isinstance(section, dict):
		raise ConfigError(f"Section {name!r} must be a mapping")

	return section


def _parse_seed_cells (raw: typing.Any) -> typing.List[typing.Tuple[int, int]]:

	cells: typing.List[typing.Tuple[int, int]] = []

	try:
		for item in raw:
			row, column = item
			cells.append((int(row), int(column)))
	except (TypeError, ValueError) as e:
		raise ConfigError(f"Seed cells must be a list of [row, column] pairs: {e}") from e

	return cells


def config_from_dict (data: dict) -> SequencerConfig:

	"""Build and validate a ``SequencerConfig`` from parsed YAML."""

	config = SequencerConfig()

	grid = _section(data, "grid")
	tempo = _section(data, "tempo")
	automaton = _section(data, "automaton")
	envelope = _section(data, "envelope")
	output = _section(data, "output")
	display = _section(data, "display")

	try:
		config.rows = int(grid.get("rows", config.rows))
		config.columns = int(grid.get("columns", config.columns))

		if "seed" in grid:
			config.seed_cells = _parse_seed_cells(grid["seed"])

		config.bpm = float(tempo.get("bpm", config.bpm))
		config.tick_rate = float(tempo.get("tick_rate", config.tick_rate))

		if "pitches" in data:
			config.pitches = [float(p) for p in data["pitches"]]
		elif "root_frequency" in data:
			pitch_map = cellsequence.pitch_map.PitchMap.equal_tempered(float(data["root_frequency"]), config.rows)
			config.pitches = list(pitch_map.frequencies)
		elif config.rows != len(cellsequence.pitch_map.CHROMATIC):
			pitch_map = cellsequence.pitch_map.PitchMap.equal_tempered(cellsequence.pitch_map.A4_FREQUENCY, config.rows)
			config.pitches = list(pitch_map.frequencies)

		config.damping = float(automaton.get("damping", config.damping))
		config.semitone_limit = int(automaton.get("semitone_limit", config.semitone_limit))
		config.third_limit = int(automaton.get("third_limit", config.third_limit))
		config.strong_beat_period = int(automaton.get("strong_beat_period", config.strong_beat_period))

		if automaton.get("seed") is not None:
			config.random_seed = int(automaton["seed"])

		config.waveform = str(envelope.get("waveform", config.waveform))
		config.attack = float(envelope.get("attack", config.attack))
		config.decay = float(envelope.get("decay", config.decay))
		config.sustain = float(envelope.get("sustain", config.sustain))
		config.release = float(envelope.get("release", config.release))
		config.crunch = float(envelope.get("crunch", config.crunch))

		config.output = str(output.get("kind", config.output))
		config.midi_device = output.get("device", config.midi_device)
		config.midi_channel = int(output.get("channel", config.midi_channel))
		config.pitch_bend = bool(output.get("pitch_bend", config.pitch_bend))
		config.osc_host = str(output.get("host", config.osc_host))
		config.osc_port = int(output.get("port", config.osc_port))

		config.display = bool(display.get("enabled", config.display))
		config.display_grid = bool(display.get("grid", config.display_grid))

	except (TypeError, ValueError) as e:
		if isinstance(e, ConfigError):
			raise
		raise ConfigError(f"Invalid setting: {e}") from e

	config.validate()

	return config
