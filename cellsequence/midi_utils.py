import logging
import typing

import mido


logger = logging.getLogger(__name__)


def open_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Open a MIDI output port for note playback.

	With ``device_name`` set, only that port is opened.  Without it the first
	available port is used, and a warning lists the others when there is more
	than one.

	Returns:
		``(device_name, port)``, or ``(None, None)`` when no port could be opened.
	"""

	try:
		outputs = mido.get_output_names()
	except Exception as e:
		logger.error(f"Failed to list MIDI outputs: {e}")
		return None, None

	logger.info(f"Available MIDI outputs: {outputs}")

	if not outputs:
		logger.error("No MIDI output devices found.")
		return None, None

	if device_name is None:
		device_name = outputs[0]

		if len(outputs) > 1:
			logger.warning(f"Several MIDI outputs found - using '{device_name}'. Set output.device to choose another.")

	elif device_name not in outputs:
		logger.error(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
		return None, None

	try:
		port = mido.open_output(device_name)
	except Exception as e:
		logger.error(f"Failed to open MIDI output '{device_name}': {e}")
		return None, None

	logger.info(f"Opened MIDI output: {device_name}")

	return device_name, port
