"""Generator bundles and their factories.

A :class:`Generator` owns everything one instrument set needs to produce a
song: the key registry, a section generator, and a duration deriver. It
holds no playback objects; the playback driver is built separately and only
ever sees the finished grids.

Built-in generators:

- ``"drums"``  - stride rules, one chord note shares the kick track, gap-based sustain
- ``"rhythm"`` - the same rules, chord notes switch every quarter-section, boundary-clipped sustain
- ``"djent"``  - djent templates, chord progression per quarter, kick-anchored fills
- ``"guitar"`` - a three-note walk, one note per step
"""

import logging
import random
import typing

import riffgrid.activation
import riffgrid.constants.instruments
import riffgrid.durations
import riffgrid.errors
import riffgrid.rules
import riffgrid.song_structure


logger = logging.getLogger(__name__)

_I = riffgrid.constants.instruments


class Generator:

	"""A registry, a section generator and a duration deriver, bundled."""

	def __init__ (
		self,
		name: str,
		activation: riffgrid.activation.SectionGenerator,
		durations: riffgrid.durations.DurationDeriver
	) -> None:

		if tuple(activation.keys) != tuple(durations.keys):
			raise riffgrid.errors.ConfigurationError(f"{name}: section generator and duration deriver disagree on keys")

		self.name = name
		self.keys: typing.Tuple[str, ...] = tuple(activation.keys)
		self.activation = activation
		self.durations = durations

	def generate_section (
		self,
		section_length: int,
		characteristics: typing.Optional[riffgrid.song_structure.SectionCharacteristics] = None,
		rng: typing.Optional[random.Random] = None
	) -> riffgrid.activation.ActivationGrid:

		"""Generate activations for one section. See :meth:`SectionActivationGenerator.generate_section`."""

		return self.activation.generate_section(section_length, characteristics, rng)

	def generate_durations (
		self,
		activations: riffgrid.activation.ActivationGrid,
		context: riffgrid.song_structure.Context,
		rng: typing.Optional[random.Random] = None
	) -> riffgrid.durations.DurationGrid:

		"""Derive durations for a grid. See :meth:`DurationDeriver.derive`."""

		return self.durations.derive(activations, context, rng)

	def __repr__ (self) -> str:
		return f"Generator({self.name!r}, {len(self.keys)} keys)"


RulesOverride = typing.Optional[typing.Mapping[str, typing.Optional[riffgrid.rules.PatternRule]]]


def make_drum_generator (rules: RulesOverride = None) -> Generator:

	"""Drum kit plus guitars: one random chord note doubles the kick each section."""

	table = riffgrid.rules.RuleTable(_I.DRUM_KEYS, rules if rules is not None else riffgrid.rules.DRUM_RULES)

	return Generator(
		"drums",
		riffgrid.activation.SectionActivationGenerator(table, riffgrid.activation.GenerationOptions(deferred_mode="single")),
		riffgrid.durations.DurationDeriver(_I.DRUM_KEYS, percussion_keys=_I.PERCUSSION_KEYS, sustain="gap")
	)


def make_rhythm_generator (rules: RulesOverride = None) -> Generator:

	"""Like the drum generator, but the chord note changes every quarter-section."""

	table = riffgrid.rules.RuleTable(_I.DRUM_KEYS, rules if rules is not None else riffgrid.rules.DRUM_RULES)

	return Generator(
		"rhythm",
		riffgrid.activation.SectionActivationGenerator(table, riffgrid.activation.GenerationOptions(deferred_mode="quarters")),
		riffgrid.durations.DurationDeriver(_I.DRUM_KEYS, percussion_keys=_I.PERCUSSION_KEYS, sustain="boundary")
	)


def make_djent_generator (rules: RulesOverride = None) -> Generator:

	"""Djent templates on kick and snare, a chord progression, and flurry fills."""

	table = riffgrid.rules.RuleTable(_I.DRUM_KEYS, rules if rules is not None else riffgrid.rules.DJENT_RULES)

	options = riffgrid.activation.GenerationOptions(
		deferred_mode = "progression",
		progression = _I.CHORD_PROGRESSION,
		fills = True,
		flurry_keys = _I.CHORD_NOTE_KEYS
	)

	return Generator(
		"djent",
		riffgrid.activation.SectionActivationGenerator(table, options),
		riffgrid.durations.DurationDeriver(
			_I.DRUM_KEYS,
			percussion_keys = _I.PERCUSSION_KEYS,
			sustain = "gap",
			flurry_keys = _I.CHORD_NOTE_KEYS,
			anchor = _I.ANCHOR_KEY
		)
	)


def make_guitar_generator (rules: RulesOverride = None) -> Generator:

	"""A walk over three guitar notes, never repeating a note on consecutive steps."""

	if rules is not None:
		logger.warning("The guitar generator has no rule table - ignoring rules")

	return Generator(
		"guitar",
		riffgrid.activation.MelodicWalkGenerator(_I.GUITAR_KEYS),
		riffgrid.durations.DurationDeriver(_I.GUITAR_KEYS, sustain="gap")
	)


GENERATORS: typing.Dict[str, typing.Callable[[RulesOverride], Generator]] = {
	"drums": make_drum_generator,
	"rhythm": make_rhythm_generator,
	"djent": make_djent_generator,
	"guitar": make_guitar_generator,
}


def make_generator (name: str, rules: RulesOverride = None) -> Generator:

	"""Build a generator by name.

	Parameters:
		name: One of ``GENERATORS``.
		rules: Optional replacement rule table for the rule-driven generators.

	Raises:
		ConfigurationError: If the name is unknown or the rules are invalid.
	"""

	if name not in GENERATORS:
		known = ", ".join(sorted(GENERATORS))
		raise riffgrid.errors.ConfigurationError(f"Unknown generator '{name}'. Known generators: {known}")

	return GENERATORS[name](rules)
