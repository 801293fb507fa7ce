import conftest

import cellsequence.midi_utils


def test_open_named_device (patch_midi: None) -> None:

	"""A named device that exists is opened."""

	name, port = cellsequence.midi_utils.open_output_device("Other MIDI")

	assert name == "Other MIDI"
	assert isinstance(port, conftest.FakeMidiOut)


def test_open_first_device_when_unnamed (patch_midi: None) -> None:

	"""Without a name the first available port is used."""

	name, port = cellsequence.midi_utils.open_output_device()

	assert name == "Dummy MIDI"
	assert port is not None


def test_unknown_device_returns_none (patch_midi: None) -> None:

	"""A name that is not available gives (None, None)."""

	assert cellsequence.midi_utils.open_output_device("Nope") == (None, None)


def test_no_devices_returns_none (monkeypatch) -> None:

	"""With no MIDI outputs at all nothing is opened."""

	import mido

	monkeypatch.setattr(mido, "get_output_names", lambda: [])

	assert cellsequence.midi_utils.open_output_device() == (None, None)
