"""Duration deriver - sustain lengths from an activation grid.

Given a finished activation grid (one section or a whole song) this assigns
a duration, in beats, to every active step of every sustained track.
Percussion tracks get ``None`` for the whole track: the player uses the
sample's natural decay.

Two sustain modes are available:

- ``"gap"`` - chord steps (two or more tracks of any kind active together) ring
  until the next chord step; single notes are sized by the gap to the next
  step where anything plays, then clipped so they never reach past the
  track's own next hit or the section end.
- ``"boundary"`` - a random eighth-multiple capped at the next quarter-section
  boundary; the last hit of each section rings to the section end.

Flurry notes (flurry-key hits where the anchor is silent, i.e. the notes the
fill pass inserted) are always short, whatever the mode.

Durations never cross a section boundary. The deriver takes the section
layout from its ``context``: a section length, or the template list the song
was assembled from.
"""

import logging
import random
import typing

import riffgrid.activation
import riffgrid.constants.durations
import riffgrid.errors
import riffgrid.sequence_utils
import riffgrid.song_structure


logger = logging.getLogger(__name__)

Track = typing.List[typing.Optional[float]]
DurationGrid = typing.Dict[str, typing.Optional[Track]]

SUSTAIN_MODES = ("gap", "boundary")

_D = riffgrid.constants.durations


def chord_positions (activations: riffgrid.activation.ActivationGrid, keys: typing.Iterable[str]) -> typing.List[bool]:

	"""Flag every step where two or more of ``keys`` are active."""

	tracks = [activations[key] for key in keys]
	length = riffgrid.activation.grid_length(activations)

	return [sum(1 for track in tracks if track[i]) >= 2 for i in range(length)]


def any_active (activations: riffgrid.activation.ActivationGrid) -> typing.List[bool]:

	"""Flag every step where at least one track is active."""

	length = riffgrid.activation.grid_length(activations)

	return [any(track[i] for track in activations.values()) for i in range(length)]


def _section_ends (bounds: typing.List[typing.Tuple[int, int]], length: int) -> typing.List[int]:

	"""Map each step to the end of the section containing it."""

	ends = [length] * length

	for start, end in bounds:
		for i in range(start, end):
			ends[i] = end

	return ends


def gap_durations (
	track: typing.Sequence[bool],
	chords: typing.Sequence[bool],
	busy: typing.Sequence[bool],
	section_ends: typing.Sequence[int]
) -> Track:

	"""Size each hit of a track from the gaps around it.

	Parameters:
		track: The track's activations.
		chords: Chord-step flags for the whole grid.
		busy: Any-track-active flags for the whole grid.
		section_ends: End step of the section containing each step.
	"""

	durations: Track = [None] * len(track)

	for i, active in enumerate(track):

		if not active:
			continue

		end = section_ends[i]

		if chords[i]:
			durations[i] = (riffgrid.sequence_utils.next_index(chords, i, end) - i) * _D.STEP_BEATS
			continue

		gap = riffgrid.sequence_utils.next_index(busy, i, end) - i

		if gap >= _D.VERY_LONG_GAP_STEPS:
			duration = _D.VERY_LONG_NOTE

		elif gap >= _D.LONG_GAP_STEPS:
			duration = _D.LONG_NOTE

		elif (i > 0 and busy[i - 1]) or (i + 1 < len(busy) and busy[i + 1]):
			duration = _D.BUSY_NOTE

		else:
			duration = _D.NORMAL_NOTE

		# Stop before this track plays again.
		own_gap = riffgrid.sequence_utils.next_index(track, i, end) - i
		durations[i] = min(duration, own_gap * _D.STEP_BEATS)

	return durations


def boundary_durations (
	track: typing.Sequence[bool],
	bounds: typing.List[typing.Tuple[int, int]],
	rng: random.Random
) -> Track:

	"""Random durations clipped at quarter-section boundaries.

	Each hit gets ``min(random, beats until the next quarter boundary)``,
	where the random part is a multiple of ``BOUNDARY_RESOLUTION``. The last
	hit in each section instead rings to the section end.
	"""

	durations: Track = [None] * len(track)

	for start, end in bounds:

		hits = [i for i in range(start, end) if track[i]]

		if not hits:
			continue

		last = hits[-1]
		quarters = riffgrid.sequence_utils.quarter_bounds(start, end)

		for i in hits:

			if i == last:
				durations[i] = (end - i) * _D.STEP_BEATS
				continue

			quarter_end = next(q_end for q_start, q_end in quarters if q_start <= i < q_end)
			max_duration = (quarter_end - i) * _D.STEP_BEATS
			slots = int(max_duration / _D.BOUNDARY_RESOLUTION)
			random_duration = (int(rng.random() * slots) + 1) * _D.BOUNDARY_RESOLUTION
			durations[i] = min(random_duration, max_duration)

	return durations


def flurry_duration (index: int, busy: typing.Sequence[bool], end: int) -> float:

	"""Return a short duration for a fill note, bounded by the next hit on any track."""

	gap = riffgrid.sequence_utils.next_index(busy, index, end) - index
	bounded = gap * _D.STEP_BEATS * _D.FLURRY_GATE

	return max(_D.FLURRY_MIN, min(_D.FLURRY_MAX, bounded))


def check_durations (activations: riffgrid.activation.ActivationGrid, durations: DurationGrid) -> None:

	"""Assert that no duration sits on an inactive step.

	Raises:
		InvariantViolation: On the first offending cell.
	"""

	for key, track in durations.items():

		if track is None:
			continue

		activation = activations[key]

		if len(track) != len(activation):
			raise riffgrid.errors.InvariantViolation(f"{key}: {len(track)} durations for {len(activation)} steps")

		for i, duration in enumerate(track):
			if duration is not None and not activation[i]:
				raise riffgrid.errors.InvariantViolation(f"{key}: duration {duration} at inactive step {i}")


class DurationDeriver:

	"""Assign sustain lengths to a grid's active steps."""

	def __init__ (
		self,
		keys: typing.Sequence[str],
		percussion_keys: typing.Iterable[str] = (),
		sustain: str = "gap",
		flurry_keys: typing.Iterable[str] = (),
		anchor: typing.Optional[str] = None
	) -> None:

		"""Configure which tracks sustain and how.

		Parameters:
			keys: The registry, in order.
			percussion_keys: Tracks that get ``None`` (natural decay).
			sustain: ``"gap"`` or ``"boundary"``.
			flurry_keys: Tracks that may carry fill notes.
			anchor: The fill pass's anchor track. Needed to tell fill notes
				apart when ``flurry_keys`` is set.

		Raises:
			ConfigurationError: On an unknown mode or key.
		"""

		if sustain not in SUSTAIN_MODES:
			raise riffgrid.errors.ConfigurationError(
				f"Unknown sustain mode '{sustain}'. Expected one of: {', '.join(SUSTAIN_MODES)}"
			)

		self.keys: typing.Tuple[str, ...] = tuple(keys)
		self.percussion_keys: typing.FrozenSet[str] = frozenset(percussion_keys)
		self.sustain = sustain
		self.flurry_keys: typing.FrozenSet[str] = frozenset(flurry_keys)
		self.anchor = anchor

		unknown = (self.percussion_keys | self.flurry_keys) - set(self.keys)

		if unknown:
			raise riffgrid.errors.ConfigurationError(f"Unknown instruments: {sorted(unknown)}")

		if self.flurry_keys and anchor not in self.keys:
			raise riffgrid.errors.ConfigurationError("Flurry keys need a known anchor")

	def derive (
		self,
		activations: riffgrid.activation.ActivationGrid,
		context: riffgrid.song_structure.Context,
		rng: typing.Optional[random.Random] = None
	) -> DurationGrid:

		"""Return a duration track (or ``None``) for every key.

		Parameters:
			activations: Grid covering every registry key.
			context: Section length, or the template list the grid was built from.
			rng: Random source for the ``"boundary"`` mode.

		Raises:
			InvalidArgument: If ``context`` does not describe the grid.
			InvariantViolation: If the grid's tracks differ in length.
		"""

		if rng is None:
			rng = random.Random()

		length = riffgrid.activation.grid_length(activations)
		bounds = riffgrid.song_structure.section_bounds(context, length)
		section_ends = _section_ends(bounds, length)
		busy = any_active(activations)
		chords = chord_positions(activations, self.keys)

		durations: DurationGrid = {}

		for key in self.keys:

			if key in self.percussion_keys:
				durations[key] = None
				continue

			track = activations[key]

			if self.sustain == "boundary":
				durations[key] = boundary_durations(track, bounds, rng)

			else:
				durations[key] = gap_durations(track, chords, busy, section_ends)

			if key in self.flurry_keys and self.anchor is not None:

				anchor = activations[self.anchor]
				key_durations = durations[key]
				assert key_durations is not None

				for i, active in enumerate(track):
					if active and not anchor[i]:
						key_durations[i] = flurry_duration(i, busy, section_ends[i])

		check_durations(activations, durations)
		logger.debug(f"Derived durations for {length} steps across {len(bounds)} sections")

		return durations
