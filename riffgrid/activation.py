"""Section activation generators.

A section generator fills an activation grid (instrument key -> list of
booleans, one per 16th-note step) for one section of a given length.

:class:`SectionActivationGenerator` is the rule-driven engine. For each key
in registry order it applies the key's :class:`~riffgrid.rules.PatternRule`:

1. deferred keys (no rule) are skipped,
2. ``match`` rules share the target track's list,
3. ``always`` steps are forced on,
4. a djent template may be tiled across every measure,
5. otherwise, with no stride candidates, every step is randomised,
6. otherwise one stride is picked and every multiple of it is hit
   (the off-beat track may keep only every other hit).

Then the deferred-key pass hands the anchor track's rhythm to the chord
notes, and an optional fill pass drops short flurries into gaps between
anchor hits.

:class:`MelodicWalkGenerator` is the simpler one-note-per-step walk used
for the plain guitar generator.

All randomness goes through ``rng.random()``.
"""

import dataclasses
import logging
import random
import typing

import riffgrid.constants.durations
import riffgrid.constants.instruments
import riffgrid.constants.probabilities
import riffgrid.errors
import riffgrid.rules
import riffgrid.sequence_utils
import riffgrid.song_structure


logger = logging.getLogger(__name__)

ActivationGrid = typing.Dict[str, typing.List[bool]]

DEFERRED_MODES = ("none", "single", "quarters", "progression")


class SectionGenerator (typing.Protocol):

	"""Anything that can fill an activation grid for one section."""

	keys: typing.Tuple[str, ...]

	def generate_section (
		self,
		section_length: int,
		characteristics: typing.Optional[riffgrid.song_structure.SectionCharacteristics] = None,
		rng: typing.Optional[random.Random] = None
	) -> ActivationGrid:
		...


def empty_grid (keys: typing.Iterable[str], length: int) -> ActivationGrid:

	"""Return a grid with every step of every key switched off."""

	return {key: [False] * length for key in keys}


def grid_length (activations: typing.Mapping[str, typing.Sequence[bool]]) -> int:

	"""Return the shared length of every track in a grid.

	Raises:
		InvariantViolation: If tracks differ in length.
	"""

	lengths = {len(track) for track in activations.values()}

	if len(lengths) > 1:
		raise riffgrid.errors.InvariantViolation(f"Tracks have mismatched lengths: {sorted(lengths)}")

	return lengths.pop() if lengths else 0


def _check_length (section_length: int) -> None:

	if not isinstance(section_length, int) or section_length <= 0:
		raise riffgrid.errors.InvalidArgument(f"Section length must be a positive integer, got {section_length!r}")


@dataclasses.dataclass(frozen=True)
class GenerationOptions:

	"""
	Post-processing choices for :class:`SectionActivationGenerator`.

	Attributes:
		deferred_mode: How deferred keys get their rhythm.

			- ``"none"``        - leave them silent
			- ``"single"``      - one random deferred key shares the anchor's list
			- ``"quarters"``    - per quarter-section, a random deferred key copies the anchor
			- ``"progression"`` - per quarter-section, the next chord of ``progression``
			  copies the anchor (random key if that chord is not a deferred key)

		anchor: The track deferred keys copy and fills are anchored on.
		off_beat_key: The track whose stride hits may be thinned, or ``None``.
		progression: Chord note keys, one per quarter-section, cycled.
		fills: Whether the fill pass may run.
		flurry_keys: Keys that fill notes are drawn from.
		measure_steps: Measure length used to tile djent templates.
	"""

	deferred_mode: str = "single"
	anchor: str = riffgrid.constants.instruments.ANCHOR_KEY
	off_beat_key: typing.Optional[str] = riffgrid.constants.instruments.OFF_BEAT_KEY
	progression: typing.Tuple[str, ...] = riffgrid.constants.instruments.CHORD_PROGRESSION
	fills: bool = False
	flurry_keys: typing.Tuple[str, ...] = ()
	measure_steps: int = riffgrid.constants.durations.MEASURE_STEPS


class SectionActivationGenerator:

	"""Rule-driven section generator."""

	def __init__ (self, rules: riffgrid.rules.RuleTable, options: typing.Optional[GenerationOptions] = None) -> None:

		"""Bind a rule table and options.

		Raises:
			ConfigurationError: If the options name keys outside the registry
				or an unknown deferred mode.
		"""

		self.rules = rules
		self.keys: typing.Tuple[str, ...] = rules.keys
		self.options = options or GenerationOptions()

		if self.options.deferred_mode not in DEFERRED_MODES:
			raise riffgrid.errors.ConfigurationError(
				f"Unknown deferred mode '{self.options.deferred_mode}'. "
				f"Expected one of: {', '.join(DEFERRED_MODES)}"
			)

		needs_anchor = self.options.deferred_mode != "none" or self.options.fills

		if needs_anchor and self.options.anchor not in self.keys:
			raise riffgrid.errors.ConfigurationError(f"Anchor '{self.options.anchor}' is not a known instrument")

		missing = [key for key in self.options.flurry_keys if key not in self.keys]

		if missing:
			raise riffgrid.errors.ConfigurationError(f"Flurry keys are not known instruments: {missing}")

		if self.options.measure_steps <= 0:
			raise riffgrid.errors.ConfigurationError("Measure length must be positive")

	def generate_section (
		self,
		section_length: int,
		characteristics: typing.Optional[riffgrid.song_structure.SectionCharacteristics] = None,
		rng: typing.Optional[random.Random] = None
	) -> ActivationGrid:

		"""Generate activations for one section.

		Parameters:
			section_length: Number of 16th-note steps.
			characteristics: Optional section shape. Only ``complexity`` is
				read: it raises the chance of using a djent template.
			rng: Random source. Defaults to a fresh ``random.Random()``.

		Returns:
			A grid covering every registry key, each list ``section_length``
			long. Tracks with a ``match`` rule share their target's list.

		Raises:
			InvalidArgument: If ``section_length`` is not positive.
		"""

		_check_length(section_length)

		if rng is None:
			rng = random.Random()

		complexity = characteristics.complexity if characteristics is not None else None
		section = empty_grid(self.keys, section_length)

		for key, rule in self.rules.items():

			if rule is None:
				continue

			if rule.match is not None:
				section[key] = section[rule.match]
				continue

			self._apply_rule(section[key], key, rule, complexity, rng)

		if self.options.deferred_mode == "single":
			self._share_with_deferred(section, rng)

		elif self.options.deferred_mode in ("quarters", "progression"):
			self._copy_by_quarter(section, rng)

		if self.options.fills:
			self._insert_fills(section, rng)

		return section

	def _apply_rule (
		self,
		track: typing.List[bool],
		key: str,
		rule: riffgrid.rules.PatternRule,
		complexity: typing.Optional[float],
		rng: random.Random
	) -> None:

		"""Fill one track in place from its rule."""

		length = len(track)

		for i in rule.always:
			if 0 <= i < length:
				track[i] = True

		if rule.templates:

			probability = riffgrid.constants.probabilities.template_probability(complexity)

			if rng.random() < probability:
				template = riffgrid.sequence_utils.choose(rule.templates, rng)
				logger.debug(f"{key}: djent template {template}")

				for i in riffgrid.sequence_utils.tile_offsets(length, template, self.options.measure_steps):
					track[i] = True

				return

		if not rule.patterns:

			# Never switches off an "always" step.
			for i in range(length):
				if not track[i] and rng.random() > riffgrid.constants.probabilities.RANDOM_ACTIVATION_THRESHOLD:
					track[i] = True

			return

		stride = riffgrid.sequence_utils.choose(rule.patterns, rng)
		hits = riffgrid.sequence_utils.stride_indices(length, stride)

		if key == self.options.off_beat_key and rng.random() < riffgrid.constants.probabilities.OFF_BEAT_THINNING:
			hits = riffgrid.sequence_utils.alternate_hits(hits)
			logger.debug(f"{key}: stride {stride}, thinned")

		else:
			logger.debug(f"{key}: stride {stride}")

		for i in hits:
			track[i] = True

	def _share_with_deferred (self, section: ActivationGrid, rng: random.Random) -> None:

		"""Give one random deferred key the anchor's list itself."""

		deferred = self.rules.deferred_keys()

		if not deferred:
			return

		key = riffgrid.sequence_utils.choose(deferred, rng)
		section[key] = section[self.options.anchor]
		logger.debug(f"{key} follows {self.options.anchor}")

	def _copy_by_quarter (self, section: ActivationGrid, rng: random.Random) -> None:

		"""Copy the anchor's steps into one deferred key per quarter-section."""

		deferred = self.rules.deferred_keys()

		if not deferred:
			return

		anchor = section[self.options.anchor]
		progression = self.options.progression if self.options.deferred_mode == "progression" else ()

		for quarter, (start, end) in enumerate(riffgrid.sequence_utils.quarter_bounds(0, len(anchor))):

			key: typing.Optional[str] = None

			if progression:
				chord = progression[quarter % len(progression)]

				if chord in deferred:
					key = chord

				else:
					logger.debug(f"Chord '{chord}' is not a deferred key - picking at random")

			if key is None:
				key = riffgrid.sequence_utils.choose(deferred, rng)

			track = section[key]

			for i in range(start, end):
				track[i] = anchor[i]

	def _insert_fills (self, section: ActivationGrid, rng: random.Random) -> None:

		"""Fill short gaps between anchor hits with flurry notes.

		Runs only with probability ``FILL_PASS``. A gap qualifies when the
		next anchor hit is ``FILL_GAP_MIN`` to ``FILL_GAP_MAX`` steps away;
		every step inside it gets one random flurry key. Neighbouring gaps share
		only their anchor hit, which is never written, so fills never overlap.
		"""

		anchor = section[self.options.anchor]

		# A flurry key sharing the anchor's list would write into the anchor.
		flurry = [key for key in self.options.flurry_keys if section[key] is not anchor]

		if not flurry:
			return

		if rng.random() >= riffgrid.constants.probabilities.FILL_PASS:
			return

		hits = riffgrid.sequence_utils.sequence_to_indices(anchor)
		filled = 0

		for start, end in zip(hits, hits[1:]):

			gap = end - start

			if not riffgrid.constants.probabilities.FILL_GAP_MIN <= gap <= riffgrid.constants.probabilities.FILL_GAP_MAX:
				continue

			for position in range(start + 1, end):
				key = riffgrid.sequence_utils.choose(flurry, rng)
				section[key][position] = True

			filled += 1

		logger.debug(f"Inserted {filled} fills")


class MelodicWalkGenerator:

	"""Activate exactly one key per step, never the same key twice in a row."""

	def __init__ (self, keys: typing.Sequence[str]) -> None:

		if not keys:
			raise riffgrid.errors.ConfigurationError("A melodic walk needs at least one key")

		if len(set(keys)) != len(keys):
			raise riffgrid.errors.ConfigurationError("Instrument keys must be unique")

		self.keys: typing.Tuple[str, ...] = tuple(keys)

	def generate_section (
		self,
		section_length: int,
		characteristics: typing.Optional[riffgrid.song_structure.SectionCharacteristics] = None,
		rng: typing.Optional[random.Random] = None
	) -> ActivationGrid:

		"""Generate a walk of ``section_length`` steps. ``characteristics`` is ignored."""

		_check_length(section_length)

		if rng is None:
			rng = random.Random()

		section = empty_grid(self.keys, section_length)
		last: typing.Optional[str] = None

		for i in range(section_length):
			key = riffgrid.sequence_utils.choose_excluding(self.keys, last, rng)
			section[key][i] = True
			last = key

		return section
