"""Song structure - section templates and the djent structure catalog.

Defines :class:`SectionCharacteristics` (the four knobs a section hands to
the generators), :class:`SectionTemplate` (one section of a song) and the
built-in catalog of templates and whole-song structures.

The generators never decide song structure. They receive a section length
and, optionally, its characteristics. :func:`section_bounds` turns either a
plain section length or a template list into step ranges so the duration
deriver can find section edges in an assembled song.
"""

import dataclasses
import logging
import typing

import yaml

import riffgrid.errors


logger = logging.getLogger(__name__)

SECTION_TYPES = ("intro", "verse", "chorus", "breakdown", "bridge", "outro", "ambient", "buildup")
DYNAMICS = ("pp", "p", "mp", "mf", "f", "ff")

Context = typing.Union[int, typing.Sequence["SectionTemplate"]]


@dataclasses.dataclass(frozen=True)
class SectionCharacteristics:

	"""
	Shape parameters for one section.

	Attributes:
		complexity: 0.0-1.0. Raises the chance of overlaying a djent template.
		density: 0.0-1.0. How busy the section should feel.
		syncopation: 0.0-1.0. How much the section leans off the beat.
		polyrhythm: Whether the section uses overlapping meters.
	"""

	complexity: float = 0.0
	density: float = 0.0
	syncopation: float = 0.0
	polyrhythm: bool = False

	def __post_init__ (self) -> None:
		for name in ("complexity", "density", "syncopation"):
			value = getattr(self, name)
			if not 0.0 <= value <= 1.0:
				raise riffgrid.errors.InvalidArgument(f"{name} must be between 0 and 1, got {value}")


@dataclasses.dataclass(frozen=True)
class TimeSignature:

	"""A time signature such as 7/8."""

	numerator: int = 4
	denominator: int = 4

	def __str__ (self) -> str:
		return f"{self.numerator}/{self.denominator}"


@dataclasses.dataclass(frozen=True)
class SectionTemplate:

	"""
	One section of a song, as supplied by the structure catalog.

	Attributes:
		type: Section type name (e.g. ``"verse"``).
		time_signature: The section's meter. Informational only; the step grid
			is always 16th notes.
		dynamics: Dynamic marking from ``"pp"`` to ``"ff"``.
		length: Section length in steps.
		characteristics: Parameters passed to the section generator.
		bpm: Optional tempo change for the section.
	"""

	type: str
	time_signature: TimeSignature
	dynamics: str
	length: int
	characteristics: SectionCharacteristics
	bpm: typing.Optional[float] = None

	def __post_init__ (self) -> None:
		if self.length <= 0:
			raise riffgrid.errors.InvalidArgument(f"Section length must be positive, got {self.length}")
		if self.dynamics not in DYNAMICS:
			raise riffgrid.errors.InvalidArgument(f"Unknown dynamics '{self.dynamics}'")


def _template (type: str, numerator: int, denominator: int, dynamics: str, length: int, complexity: float, density: float, syncopation: float, polyrhythm: bool) -> SectionTemplate:

	return SectionTemplate(
		type = type,
		time_signature = TimeSignature(numerator, denominator),
		dynamics = dynamics,
		length = length,
		characteristics = SectionCharacteristics(complexity, density, syncopation, polyrhythm)
	)


SECTION_TEMPLATES: typing.Dict[str, typing.List[SectionTemplate]] = {
	"intro": [
		_template("intro", 4, 4, "p", 32 * 4, 0.3, 0.2, 0.1, False),
		_template("intro", 7, 8, "mp", 28 * 4, 0.5, 0.4, 0.3, False),		# 4 bars of 7/8
	],
	"verse": [
		_template("verse", 4, 4, "mf", 32 * 4, 0.6, 0.5, 0.7, False),
		_template("verse", 5, 4, "mf", 40 * 4, 0.7, 0.6, 0.8, True),		# 8 bars of 5/4
	],
	"chorus": [
		_template("chorus", 4, 4, "f", 32 * 4, 0.4, 0.8, 0.5, False),
	],
	"breakdown": [
		_template("breakdown", 7, 8, "ff", 28 * 4, 0.9, 0.7, 0.9, True),
		_template("breakdown", 9, 8, "ff", 36 * 4, 0.8, 0.6, 0.8, False),	# 4 bars of 9/8
	],
	"bridge": [
		_template("bridge", 6, 8, "mp", 24 * 4, 0.4, 0.3, 0.2, False),
	],
	"outro": [
		_template("outro", 4, 4, "p", 32 * 4, 0.2, 0.1, 0.1, False),
	],
	"ambient": [
		_template("ambient", 4, 4, "pp", 64 * 4, 0.1, 0.05, 0.0, False),
	],
	"buildup": [
		_template("buildup", 4, 4, "mf", 16 * 4, 0.5, 0.3, 0.4, False),
	],
}

SONG_STRUCTURES: typing.List[typing.List[SectionTemplate]] = [
	[
		SECTION_TEMPLATES["intro"][0],
		SECTION_TEMPLATES["verse"][0],
		SECTION_TEMPLATES["chorus"][0],
		SECTION_TEMPLATES["verse"][1],
		SECTION_TEMPLATES["breakdown"][0],
		SECTION_TEMPLATES["chorus"][0],
		SECTION_TEMPLATES["outro"][0],
	],
	[
		SECTION_TEMPLATES["ambient"][0],
		SECTION_TEMPLATES["buildup"][0],
		SECTION_TEMPLATES["verse"][0],
		SECTION_TEMPLATES["chorus"][0],
		SECTION_TEMPLATES["bridge"][0],
		SECTION_TEMPLATES["breakdown"][1],
		SECTION_TEMPLATES["verse"][1],
		SECTION_TEMPLATES["outro"][0],
	],
]


def section_bounds (context: Context, total_length: int) -> typing.List[typing.Tuple[int, int]]:

	"""Return ``(start, end)`` step ranges for each section of a grid.

	Parameters:
		context: Either a section length (sections are tiled across the grid,
			the last one may be partial) or the ordered template list the grid
			was assembled from.
		total_length: Length of the grid in steps.

	Raises:
		InvalidArgument: If the section length is not positive, or the
			template lengths do not add up to ``total_length``.
	"""

	if isinstance(context, int):

		if context <= 0:
			raise riffgrid.errors.InvalidArgument(f"Section length must be positive, got {context}")

		return [(start, min(start + context, total_length)) for start in range(0, total_length, context)]

	bounds: typing.List[typing.Tuple[int, int]] = []
	start = 0

	for template in context:
		bounds.append((start, start + template.length))
		start += template.length

	if start != total_length:
		raise riffgrid.errors.InvalidArgument(
			f"Section templates cover {start} steps but the grid has {total_length}"
		)

	return bounds


def template_from_dict (data: typing.Dict[str, typing.Any]) -> SectionTemplate:

	"""Build a template from YAML-shaped data.

	Missing fields fall back to 4/4, ``"mf"`` and zeroed characteristics.
	``type`` and ``length`` are required.

	Example::

		- type: verse
		  length: 128
		  time_signature: [7, 8]
		  dynamics: f
		  characteristics: {complexity: 0.7, density: 0.5, syncopation: 0.6, polyrhythm: false}
	"""

	if "type" not in data or "length" not in data:
		raise riffgrid.errors.InvalidArgument(f"Section template needs 'type' and 'length': {data}")

	numerator, denominator = data.get("time_signature", (4, 4))
	characteristics = data.get("characteristics") or {}

	return SectionTemplate(
		type = str(data["type"]),
		time_signature = TimeSignature(int(numerator), int(denominator)),
		dynamics = str(data.get("dynamics", "mf")),
		length = int(data["length"]),
		characteristics = SectionCharacteristics(
			complexity = float(characteristics.get("complexity", 0.0)),
			density = float(characteristics.get("density", 0.0)),
			syncopation = float(characteristics.get("syncopation", 0.0)),
			polyrhythm = bool(characteristics.get("polyrhythm", False))
		),
		bpm = data.get("bpm")
	)


def load_song_structure (path: str) -> typing.List[SectionTemplate]:

	"""Load an ordered list of section templates from a YAML file."""

	with open(path, 'r') as f:
		data = yaml.safe_load(f)

	if not isinstance(data, list) or not data:
		raise riffgrid.errors.InvalidArgument(f"{path} must contain a non-empty list of sections")

	templates = [template_from_dict(item) for item in data]
	logger.info(f"Loaded {len(templates)} sections from {path}")

	return templates
