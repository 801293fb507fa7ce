"""Note output backends.

cellsequence has no sound engine of its own.  A synth backend is anything
with ``play(frequency, envelope)`` plus ``start()`` / ``stop()``; two are
provided:

- ``MidiSynth`` sends notes to a MIDI output port via mido.  ``play()`` only
  queues the request, and a background thread owns the port: it sends
  note-on, schedules the matching note-off after ``attack + decay`` seconds
  and forwards envelope changes as sound-controller CCs.
- ``OscSynth`` sends one ``/note`` message per note over UDP, for synths
  that take frequency and envelope directly (SuperCollider, Pure Data).
"""

import dataclasses
import heapq
import itertools
import logging
import math
import queue
import threading
import time
import typing

import mido
import pythonosc.udp_client


logger = logging.getLogger(__name__)


MIDI_A4 = 69
MIDI_NOTE_MIN = 0
MIDI_NOTE_MAX = 127
PITCHWHEEL_MIN = -8192
PITCHWHEEL_MAX = 8191

# Sound controller numbers (GM2 / MMA RP-021)
CC_SUSTAIN_LEVEL = 70
CC_RESONANCE = 71
CC_RELEASE_TIME = 72
CC_ATTACK_TIME = 73
CC_DECAY_TIME = 75

# Envelope times at or above this many seconds map to CC value 127.
ENVELOPE_MAX_SECONDS = 4.0

_POLL_INTERVAL = 0.05


@dataclasses.dataclass (frozen=True)
class Envelope:

	"""
	Timbre and amplitude envelope for a triggered note.

	Times are in seconds; ``sustain`` and ``crunch`` are levels in [0, 1].
	"""

	waveform: str = "sine"
	attack: float = 0.01
	decay: float = 0.8
	sustain: float = 0.5
	release: float = 0.5
	crunch: float = 0.2

	def __post_init__ (self) -> None:

		if min(self.attack, self.decay, self.release) < 0:
			raise ValueError("Envelope times cannot be negative")

		if not 0.0 <= self.sustain <= 1.0:
			raise ValueError("Sustain must be between 0 and 1")

		if not 0.0 <= self.crunch <= 1.0:
			raise ValueError("Crunch must be between 0 and 1")


	@property
	def gate_seconds (self) -> float:

		"""How long the note is held before release begins."""

		return self.attack + self.decay


class SynthLike (typing.Protocol):

	"""
	Fire-and-forget note sink used by ``NoteTrigger``.
	"""

	def start (self) -> None:
		...

	def play (self, frequency: float, envelope: Envelope) -> None:
		...

	def stop (self) -> None:
		...


def frequency_to_midi (frequency: float) -> typing.Tuple[int, float]:

	"""Return the nearest MIDI note for ``frequency`` and the residual in cents.

	Notes outside the MIDI range are clamped to 0 or 127.
	"""

	if frequency <= 0:
		raise ValueError("Frequency must be positive")

	exact = MIDI_A4 + 12 * math.log2(frequency / 440.0)
	note = int(round(exact))
	cents = (exact - note) * 100.0

	return max(MIDI_NOTE_MIN, min(MIDI_NOTE_MAX, note)), cents


def cents_to_pitchwheel (cents: float, bend_range: float = 2.0) -> int:

	"""Pitch-wheel value that bends by ``cents`` for a ``bend_range`` semitone wheel."""

	value = int(round(cents / (bend_range * 100.0) * PITCHWHEEL_MAX))

	return max(PITCHWHEEL_MIN, min(PITCHWHEEL_MAX, value))


def _level_to_cc (level: float) -> int:

	return max(0, min(127, int(round(level * 127))))


def _seconds_to_cc (seconds: float) -> int:

	return _level_to_cc(seconds / ENVELOPE_MAX_SECONDS)


def envelope_to_cc (envelope: Envelope) -> typing.List[typing.Tuple[int, int]]:

	"""Return ``(control, value)`` pairs describing ``envelope``."""

	return [
		(CC_ATTACK_TIME, _seconds_to_cc(envelope.attack)),
		(CC_DECAY_TIME, _seconds_to_cc(envelope.decay)),
		(CC_SUSTAIN_LEVEL, _level_to_cc(envelope.sustain)),
		(CC_RELEASE_TIME, _seconds_to_cc(envelope.release)),
		(CC_RESONANCE, _level_to_cc(envelope.crunch)),
	]


@dataclasses.dataclass
class NoteRequest:

	"""A note waiting to be sent by the MIDI worker."""

	frequency: float
	envelope: Envelope


class MidiSynth:

	"""
	Threaded MIDI note output.

	``play()`` never touches the port: it puts a ``NoteRequest`` on a queue and
	returns.  The worker thread started by ``start()`` takes requests off the
	queue, sends them and releases notes when their gate time is up.  Each
	port write happens under a lock that is held for that write only.
	"""

	def __init__ (
		self,
		midi_out: typing.Any,
		channel: int = 0,
		pitch_bend: bool = False,
		bend_range: float = 2.0,
		clock: typing.Callable[[], float] = time.monotonic,
		device_name: typing.Optional[str] = None
	) -> None:

		"""
		Parameters:
			midi_out: An open mido output port (or anything with ``send()``
				and ``close()``).
			channel: MIDI channel, 0-15.
			pitch_bend: When True, send a pitch-wheel message before each note
				so frequencies between equal-tempered notes are reproduced.
				The bend applies to the whole channel.
			bend_range: Pitch-wheel range of the receiving synth, in semitones.
			clock: Time source for note-off scheduling.
			device_name: Name of the opened output, for logging and display.
		"""

		if not 0 <= channel <= 15:
			raise ValueError("MIDI channel must be 0-15")

		self._midi_out = midi_out
		self.device_name = device_name
		self.channel = channel
		self.pitch_bend = pitch_bend
		self.bend_range = bend_range
		self._clock = clock

		self._queue: "queue.Queue[typing.Optional[NoteRequest]]" = queue.Queue()
		self._port_lock = threading.Lock()
		self._thread: typing.Optional[threading.Thread] = None
		self._running = False

		self._note_offs: typing.List[typing.Tuple[float, int, int]] = []
		self._note_off_counter = itertools.count()
		self._last_envelope: typing.Optional[Envelope] = None


	@property
	def running (self) -> bool:

		return self._running


	def start (self) -> None:

		"""Start the worker thread.  A second call while running is a no-op."""

		if self._running:
			return

		self._running = True
		self._thread = threading.Thread(
			target = self._run,
			name   = "cellsequence-midi-worker",
			daemon = True,
		)
		self._thread.start()


	def stop (self) -> None:

		"""Stop the worker, release every sounding note and close the port."""

		if self._running:
			self._running = False
			self._queue.put(None)

			if self._thread is not None:
				self._thread.join(timeout=1.0)

			self._thread = None

		self.process_pending()
		self._release_due(math.inf)

		if self._midi_out is not None:
			with self._port_lock:
				try:
					self._midi_out.close()
				except Exception:
					logger.exception("Failed to close MIDI output")
			self._midi_out = None


	def play (self, frequency: float, envelope: Envelope) -> None:

		"""Queue a note.  Returns immediately."""

		self._queue.put(NoteRequest(frequency=frequency, envelope=envelope))


	def process_pending (self) -> int:

		"""Send every queued note and any note-offs that are due.

		Called by the worker thread; also usable directly when no worker is
		running.  Returns the number of notes sent.
		"""

		sent = 0

		while True:
			try:
				request = self._queue.get_nowait()
			except queue.Empty:
				break

			if request is not None:
				self._send_note(request)
				sent += 1

		self._release_due(self._clock())

		return sent


	def _run (self) -> None:

		while self._running:

			timeout = _POLL_INTERVAL

			if self._note_offs:
				timeout = max(0.0, min(timeout, self._note_offs[0][0] - self._clock()))

			try:
				request = self._queue.get(timeout=timeout)
			except queue.Empty:
				request = None

			if request is not None:
				self._send_note(request)

			self._release_due(self._clock())


	def _send (self, message: mido.Message) -> None:

		if self._midi_out is None:
			return

		with self._port_lock:
			try:
				self._midi_out.send(message)
			except Exception:
				logger.exception("MIDI send failed (device may be disconnected)")


	def _send_note (self, request: NoteRequest) -> None:

		note, cents = frequency_to_midi(request.frequency)
		envelope = request.envelope

		if envelope != self._last_envelope:
			for control, value in envelope_to_cc(envelope):
				self._send(mido.Message('control_change', channel=self.channel, control=control, value=value))
			self._last_envelope = envelope

		if self.pitch_bend:
			pitch = cents_to_pitchwheel(cents, self.bend_range)
			self._send(mido.Message('pitchwheel', channel=self.channel, pitch=pitch))

		velocity = max(1, _level_to_cc(envelope.sustain))
		self._send(mido.Message('note_on', channel=self.channel, note=note, velocity=velocity))

		deadline = self._clock() + envelope.gate_seconds
		heapq.heappush(self._note_offs, (deadline, next(self._note_off_counter), note))


	def _release_due (self, now: float) -> None:

		while self._note_offs and self._note_offs[0][0] <= now:
			_, _, note = heapq.heappop(self._note_offs)
			self._send(mido.Message('note_off', channel=self.channel, note=note, velocity=0))


class OscSynth:

	"""
	Sends each note as ``/note frequency waveform attack decay sustain release crunch``.
	"""

	def __init__ (self, host: str = "127.0.0.1", port: int = 57120, address: str = "/note") -> None:

		self.host = host
		self.port = port
		self.address = address
		self._client: typing.Optional[pythonosc.udp_client.SimpleUDPClient] = None


	def start (self) -> None:

		"""Open the UDP client."""

		if self._client is None:
			self._client = pythonosc.udp_client.SimpleUDPClient(self.host, self.port)
			logger.info(f"OSC notes to {self.host}:{self.port}{self.address}")


	def stop (self) -> None:

		self._client = None


	def play (self, frequency: float, envelope: Envelope) -> None:

		"""Send one note.  Network errors are logged, not raised."""

		if self._client is None:
			return

		try:
			self._client.send_message(self.address, [
				float(frequency),
				envelope.waveform,
				envelope.attack,
				envelope.decay,
				envelope.sustain,
				envelope.release,
				envelope.crunch,
			])
		except Exception as e:
			logger.warning(f"OSC send error: {e}")
