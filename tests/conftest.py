import typing

import mido
import pytest

import cellsequence.synth


class FakeMidiOut:

	"""MIDI output stub that keeps every message sent to it."""

	def __init__ (self) -> None:

		self.messages: typing.List[mido.Message] = []
		self.closed = False

	def send (self, message: mido.Message) -> None:

		"""Record an outgoing MIDI message."""

		self.messages.append(message)

	def close (self) -> None:

		"""Mark the fake device closed."""

		self.closed = True

	def of_type (self, message_type: str) -> typing.List[mido.Message]:

		"""Return the recorded messages of one type."""

		return [m for m in self.messages if m.type == message_type]


class RecordingSynth:

	"""Synth stub that records every note it is asked to play."""

	def __init__ (self) -> None:

		self.played: typing.List[typing.Tuple[float, cellsequence.synth.Envelope]] = []
		self.started = False
		self.stopped = False

	def start (self) -> None:

		self.started = True

	def play (self, frequency: float, envelope: cellsequence.synth.Envelope) -> None:

		self.played.append((frequency, envelope))

	def stop (self) -> None:

		self.stopped = True


class FixedRandom:

	"""Random source that always returns the same draw."""

	def __init__ (self, value: float = 0.0) -> None:

		self.value = value
		self.calls = 0

	def random (self) -> float:

		self.calls += 1
		return self.value


_last_fake_output: typing.Optional[FakeMidiOut] = None


def _fake_get_output_names () -> typing.List[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI", "Other MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	global _last_fake_output
	_last_fake_output = FakeMidiOut()
	return _last_fake_output


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido so no real MIDI ports are touched."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def fake_midi_out () -> FakeMidiOut:

	return FakeMidiOut()


@pytest.fixture
def synth () -> RecordingSynth:

	return RecordingSynth()
