"""Song assembly - concatenating generated sections into one song.

Sections are generated one by one and appended in template order, so the
first template always supplies steps ``0 .. length - 1``. Durations are
derived once, over the whole song, with the template list as context so
sustains still stop at section edges.

Tracks that share one activation list in every section (``match`` rules)
share one list in the assembled song too, and stay locked together under
:meth:`Song.toggle`.
"""

import dataclasses
import logging
import random
import typing

import riffgrid.activation
import riffgrid.constants.durations
import riffgrid.durations
import riffgrid.errors
import riffgrid.song_structure

if typing.TYPE_CHECKING:
	import riffgrid.generators


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class Song:

	"""
	An assembled song: activation and duration grids plus section layout.

	Attributes:
		keys: The generator's registry, in display order.
		activations: Key -> one boolean per step.
		durations: Key -> one optional duration (beats) per step, or ``None``
			for tracks that use the instrument's natural decay.
		bounds: ``(start, end)`` step range of each section.
	"""

	keys: typing.Tuple[str, ...]
	activations: riffgrid.activation.ActivationGrid
	durations: riffgrid.durations.DurationGrid
	bounds: typing.List[typing.Tuple[int, int]]

	@property
	def length (self) -> int:

		"""Song length in steps."""

		return riffgrid.activation.grid_length(self.activations)

	def toggle (self, key: str, index: int) -> bool:

		"""Flip one cell and return its new state.

		Every track sharing the cell's list flips with it. Switching a cell on
		sets its duration to ``TOGGLE_DURATION`` on tracks that carry
		durations; switching it off clears the duration. Neighbouring cells
		are not re-derived, so toggling twice leaves an originally active
		cell at ``TOGGLE_DURATION`` rather than its derived duration.

		The touched tracks and both grid dicts are replaced, never written
		in place, so a snapshot already published to a player keeps the old
		values. :meth:`riffgrid.playback.GridHandle.toggle` toggles and
		publishes in one call.

		Raises:
			InvalidArgument: For an unknown key or an out-of-range index.
		"""

		if key not in self.activations:
			raise riffgrid.errors.InvalidArgument(f"Unknown instrument '{key}'")

		old = self.activations[key]

		if not 0 <= index < len(old):
			raise riffgrid.errors.InvalidArgument(f"Step {index} is outside the song (0-{len(old) - 1})")

		track = list(old)
		track[index] = not track[index]
		state = track[index]

		activations = dict(self.activations)
		durations = dict(self.durations)

		for other, other_track in self.activations.items():

			if other_track is not old:
				continue

			activations[other] = track
			other_durations = self.durations.get(other)

			if other_durations is not None:
				other_durations = list(other_durations)
				other_durations[index] = riffgrid.constants.durations.TOGGLE_DURATION if state else None
				durations[other] = other_durations

		self.activations = activations
		self.durations = durations

		return state


def concatenate (keys: typing.Sequence[str], sections: typing.Sequence[riffgrid.activation.ActivationGrid]) -> riffgrid.activation.ActivationGrid:

	"""Append sections in order into one grid.

	A key whose list is the same object as an earlier key's list in every
	section gets that earlier key's concatenated list.

	Raises:
		InvariantViolation: If the result's tracks differ in length.
	"""

	song: riffgrid.activation.ActivationGrid = {}

	for key in keys:

		shared = next(
			(previous for previous in song if all(section[key] is section[previous] for section in sections)),
			None
		)

		if shared is not None:
			song[key] = song[shared]
			continue

		track: typing.List[bool] = []

		for section in sections:
			track.extend(section[key])

		song[key] = track

	riffgrid.activation.grid_length(song)

	return song


def assemble (
	generator: "riffgrid.generators.Generator",
	templates: typing.Sequence[riffgrid.song_structure.SectionTemplate],
	rng: typing.Optional[random.Random] = None
) -> Song:

	"""Generate and join one section per template.

	Parameters:
		generator: The instrument set to generate with.
		templates: Ordered section templates; each supplies a length and characteristics.
		rng: Random source shared by every section.

	Raises:
		InvalidArgument: If ``templates`` is empty.
	"""

	if not templates:
		raise riffgrid.errors.InvalidArgument("A song needs at least one section")

	if rng is None:
		rng = random.Random()

	sections = [generator.generate_section(t.length, t.characteristics, rng) for t in templates]
	activations = concatenate(generator.keys, sections)
	durations = generator.generate_durations(activations, list(templates), rng)
	bounds = riffgrid.song_structure.section_bounds(list(templates), len(activations[generator.keys[0]]))

	logger.info(f"Assembled {generator.name}: {len(templates)} sections, {bounds[-1][1]} steps")

	return Song(keys=generator.keys, activations=activations, durations=durations, bounds=bounds)


def assemble_repeated (
	generator: "riffgrid.generators.Generator",
	section_count: int,
	section_length: int,
	rng: typing.Optional[random.Random] = None
) -> Song:

	"""Generate ``section_count`` sections of ``section_length`` steps with no characteristics.

	Raises:
		InvalidArgument: If either count is not positive.
	"""

	if section_count <= 0:
		raise riffgrid.errors.InvalidArgument(f"Section count must be positive, got {section_count}")

	if section_length <= 0:
		raise riffgrid.errors.InvalidArgument(f"Section length must be positive, got {section_length}")

	if rng is None:
		rng = random.Random()

	sections = [generator.generate_section(section_length, None, rng) for _ in range(section_count)]
	activations = concatenate(generator.keys, sections)
	durations = generator.generate_durations(activations, section_length, rng)
	bounds = riffgrid.song_structure.section_bounds(section_length, section_count * section_length)

	logger.info(f"Assembled {generator.name}: {section_count} x {section_length} steps")

	return Song(keys=generator.keys, activations=activations, durations=durations, bounds=bounds)
