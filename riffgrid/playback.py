"""Playback - reading the current grids once per 16th-note tick.

The driver never calls a generator. Generation and user toggles happen
elsewhere and publish finished grids into a :class:`GridHandle`; the tick
loop reads whatever the handle holds *at that tick*, so a regenerate during
playback is heard from the next tick on. Last write wins.

Playback triggering is pluggable: :class:`PlaybackDriver` hands each
:class:`Trigger` to an output. :class:`MidiOutput` turns them into MIDI
note on/off messages with mido.
"""

import asyncio
import dataclasses
import logging
import time
import typing

import mido

import riffgrid.activation
import riffgrid.constants.durations
import riffgrid.constants.instruments
import riffgrid.constants.velocity
import riffgrid.durations

if typing.TYPE_CHECKING:
	import riffgrid.assembler


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Snapshot:

	"""The activation and duration grids the player should read right now."""

	activations: riffgrid.activation.ActivationGrid
	durations: riffgrid.durations.DurationGrid


class GridHandle:

	"""A current-value cell for the grids being played.

	Writers replace the whole snapshot; readers take whatever is current.
	Reads and writes are not transactional with each other.
	"""

	def __init__ (
		self,
		activations: typing.Optional[riffgrid.activation.ActivationGrid] = None,
		durations: typing.Optional[riffgrid.durations.DurationGrid] = None
	) -> None:

		self._snapshot = Snapshot(activations or {}, durations or {})

	@property
	def current (self) -> Snapshot:

		"""The latest snapshot."""

		return self._snapshot

	def replace (self, activations: riffgrid.activation.ActivationGrid, durations: riffgrid.durations.DurationGrid) -> None:

		"""Publish new grids."""

		self._snapshot = Snapshot(activations, durations)

	def replace_song (self, song: "riffgrid.assembler.Song") -> None:

		"""Publish an assembled song's grids."""

		self.replace(song.activations, song.durations)

	def toggle (self, song: "riffgrid.assembler.Song", key: str, index: int) -> bool:

		"""Toggle one cell of ``song`` and publish the result as a new snapshot.

		The player sees either the old grids or the new ones, never a half-applied edit.
		"""

		state = song.toggle(key, index)
		self.replace_song(song)

		return state


@dataclasses.dataclass(frozen=True)
class Trigger:

	"""
	One instrument to sound at one step.

	Attributes:
		key: Instrument key.
		step: Song step that fired.
		seconds: How long to sound, or ``None`` for the instrument's natural decay.
	"""

	key: str
	step: int
	seconds: typing.Optional[float]


class Output (typing.Protocol):

	"""Anything that can sound a trigger."""

	def trigger (self, trigger: Trigger) -> None:
		...


class PlaybackDriver:

	"""Tick through the current grids at 16th-note intervals."""

	def __init__ (self, handle: GridHandle, bpm: float = 100.0, output: typing.Optional[Output] = None) -> None:

		"""
		Parameters:
			handle: Where to read grids from on every tick.
			bpm: Tempo. May be changed between ticks with :meth:`set_bpm`.
			output: Receives every trigger during :meth:`play`.
		"""

		self.handle = handle
		self.output = output
		self.bpm = 0.0
		self.set_bpm(bpm)
		self.step = 0
		self._running = False

	def set_bpm (self, bpm: float) -> None:

		"""Change the tempo; takes effect from the next tick."""

		if bpm <= 0:
			raise ValueError("BPM must be positive")

		self.bpm = bpm

	@property
	def step_seconds (self) -> float:

		"""Wall-clock length of one step at the current tempo."""

		return riffgrid.constants.durations.seconds_per_beat(self.bpm) * riffgrid.constants.durations.STEP_BEATS

	def triggers (self, step: int) -> typing.List[Trigger]:

		"""Return the triggers for one step of the current grids.

		Steps past the end of the song wrap around, so the song loops.
		"""

		snapshot = self.handle.current
		length = riffgrid.activation.grid_length(snapshot.activations)

		if length == 0:
			return []

		position = step % length
		seconds_per_beat = riffgrid.constants.durations.seconds_per_beat(self.bpm)
		result: typing.List[Trigger] = []

		for key, track in snapshot.activations.items():

			if not track[position]:
				continue

			durations = snapshot.durations.get(key)
			beats = durations[position] if durations is not None else None
			seconds = beats * seconds_per_beat if beats is not None else None

			result.append(Trigger(key=key, step=position, seconds=seconds))

		return result

	def tick (self) -> typing.List[Trigger]:

		"""Fire the current step into the output and advance one step."""

		fired = self.triggers(self.step)

		if self.output is not None:
			for trigger in fired:
				self.output.trigger(trigger)

		self.step += 1

		return fired

	async def play (self, steps: typing.Optional[int] = None) -> None:

		"""Tick in real time until :meth:`stop` is called or ``steps`` have played.

		Tick times are scheduled from a fixed start time, so a slow tick does
		not push every later tick back.
		"""

		self._running = True
		start = time.perf_counter()
		next_time = start
		played = 0

		logger.info(f"Playback started at {self.bpm} BPM")

		try:

			while self._running and (steps is None or played < steps):

				self.tick()
				played += 1

				next_time += self.step_seconds
				delay = next_time - time.perf_counter()

				if delay > 0:
					await asyncio.sleep(delay)

		finally:
			self._running = False
			logger.info(f"Playback stopped after {played} steps")

	def stop (self) -> None:

		"""Ask :meth:`play` to return after the current tick."""

		self._running = False

	def restart (self) -> None:

		"""Rewind to the first step."""

		self.step = 0


class MidiOutput:

	"""Send triggers to a MIDI port as note on/off pairs."""

	def __init__ (
		self,
		port: typing.Any,
		note_map: typing.Optional[typing.Mapping[str, typing.Tuple[int, int]]] = None,
		velocity: int = riffgrid.constants.velocity.DEFAULT_VELOCITY,
		decay: float = 0.1,
		velocities: typing.Optional[typing.Mapping[str, int]] = None,
		offsets: typing.Optional[typing.Mapping[str, float]] = None
	) -> None:

		"""
		Parameters:
			port: An open mido output port.
			note_map: Key -> ``(channel, note)``. Defaults to ``MIDI_NOTE_MAP``.
			velocity: Note-on velocity for keys missing from ``velocities``.
			decay: Seconds before note-off for triggers with no duration.
			velocities: Key -> velocity. Defaults to ``MIDI_VELOCITIES``.
				A velocity of 0 mutes the key.
			offsets: Key -> seconds to delay the note-on by. Defaults to
				``TRIGGER_OFFSETS``.
		"""

		self.velocities = velocities if velocities is not None else riffgrid.constants.instruments.MIDI_VELOCITIES

		for value in [velocity, *self.velocities.values()]:
			if not riffgrid.constants.velocity.MIN_VELOCITY <= value <= riffgrid.constants.velocity.MAX_VELOCITY:
				raise ValueError(f"Velocity must be between 0 and 127, got {value}")

		self.offsets = offsets if offsets is not None else riffgrid.constants.instruments.TRIGGER_OFFSETS

		if any(offset < 0 for offset in self.offsets.values()):
			raise ValueError("Trigger offsets must not be negative")

		self.port = port
		self.note_map = note_map if note_map is not None else riffgrid.constants.instruments.MIDI_NOTE_MAP
		self.velocity = velocity
		self.decay = decay

	def trigger (self, trigger: Trigger) -> None:

		"""Send note-on (after the key's offset) and schedule the matching note-off.

		Outside a running event loop nothing can be scheduled: the note-on and
		note-off are sent straight away and the offset is ignored.
		"""

		if trigger.key not in self.note_map:
			logger.debug(f"No MIDI note for '{trigger.key}' - skipping")
			return

		velocity = self.velocities.get(trigger.key, self.velocity)

		if velocity == 0:
			logger.debug(f"'{trigger.key}' is muted - skipping")
			return

		channel, note = self.note_map[trigger.key]
		seconds = trigger.seconds if trigger.seconds is not None else self.decay
		offset = self.offsets.get(trigger.key, 0.0)

		try:
			loop = asyncio.get_running_loop()

		except RuntimeError:
			self._note_on(channel, note, velocity)
			self._note_off(channel, note)
			return

		if offset > 0:
			loop.call_later(offset, self._note_on, channel, note, velocity)

		else:
			self._note_on(channel, note, velocity)

		loop.call_later(offset + seconds, self._note_off, channel, note)

	def _note_on (self, channel: int, note: int, velocity: int) -> None:

		self.port.send(mido.Message('note_on', channel=channel, note=note, velocity=velocity))

	def _note_off (self, channel: int, note: int) -> None:

		self.port.send(mido.Message('note_off', channel=channel, note=note, velocity=0))

	def close (self) -> None:

		"""Silence everything and close the port."""

		self.port.reset()
		self.port.close()


def open_output (device_name: typing.Optional[str] = None) -> typing.Optional[typing.Any]:

	"""Open a MIDI output port.

	With no ``device_name`` the first available port is used. Returns
	``None`` (and logs why) when no port can be opened.
	"""

	try:
		outputs = mido.get_output_names()
		logger.info(f"Available MIDI outputs: {outputs}")

		if not outputs:
			logger.error("No MIDI output devices found.")
			return None

		if device_name is None:
			device_name = outputs[0]

		elif device_name not in outputs:
			logger.error(
				f"MIDI output device '{device_name}' not found. "
				f"Available devices: {outputs}"
			)
			return None

		port = mido.open_output(device_name)
		logger.info(f"Opened MIDI output: {device_name}")
		return port

	except Exception as e:
		logger.error(f"Failed to open MIDI output: {e}")
		return None
