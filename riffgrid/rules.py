"""Pattern rule tables - per-instrument generation rules.

A rule table maps each key of a registry to a :class:`PatternRule` or to
``None``. ``None`` marks a *deferred* key: it is skipped by the main
generation loop and filled in later by the deferred-key pass (chord notes
copied from the anchor track).

A rule with ``match`` set is an edge in a small dependency graph: the
dependent track shares the target track's activation list. The table is
validated once, at construction, so generation never sees a dangling edge.
"""

import dataclasses
import typing

import riffgrid.constants.instruments
import riffgrid.errors


@dataclasses.dataclass(frozen=True)
class PatternRule:

	"""
	Generation rule for one instrument.

	Attributes:
		patterns: Stride candidates. One is picked per section and the track
			hits every multiple of it. Empty means "randomise every step".
		always: Step indices forced on regardless of random draws.
		match: Another key whose activation list this track shares. When set,
			every other field is ignored.
		templates: Djent templates. Each template is a list of step offsets
			inside one 16-step measure, repeated across the section.

	Example:
		```python
		PatternRule(patterns=(2, 3, 4), always=(0,))
		PatternRule(match="Kick")
		PatternRule(always=(0,), templates=((0, 3, 6, 10, 12), (0, 2, 7, 8, 14)))
		```
	"""

	patterns: typing.Tuple[int, ...] = ()
	always: typing.Tuple[int, ...] = ()
	match: typing.Optional[str] = None
	templates: typing.Tuple[typing.Tuple[int, ...], ...] = ()


RuleMapping = typing.Mapping[str, typing.Optional[PatternRule]]


class RuleTable:

	"""An immutable, validated mapping of registry keys to pattern rules."""

	def __init__ (self, keys: typing.Sequence[str], rules: RuleMapping) -> None:

		"""Bind rules to a registry and validate them.

		Keys present in the registry but absent from ``rules`` are treated
		as deferred (``None``).

		Raises:
			ConfigurationError: If a rule names a key outside the registry, a
				``match`` points at a missing, deferred or matched key, or a
				stride is not a positive integer.
		"""

		if len(set(keys)) != len(keys):
			raise riffgrid.errors.ConfigurationError("Instrument keys must be unique")

		self._keys: typing.Tuple[str, ...] = tuple(keys)

		unknown = [key for key in rules if key not in self._keys]

		if unknown:
			raise riffgrid.errors.ConfigurationError(f"Rules reference unknown instruments: {unknown}")

		self._rules: typing.Dict[str, typing.Optional[PatternRule]] = {key: rules.get(key) for key in self._keys}

		for key, rule in self._rules.items():

			if rule is None:
				continue

			if rule.match is not None:
				self._check_match(key, rule.match)
				continue

			for stride in rule.patterns:
				if not isinstance(stride, int) or stride <= 0:
					raise riffgrid.errors.ConfigurationError(f"{key}: stride {stride!r} must be a positive integer")

	def _check_match (self, key: str, target: str) -> None:

		"""Reject match edges that cannot be resolved in one hop."""

		if target not in self._rules:
			raise riffgrid.errors.ConfigurationError(f"{key}: match target '{target}' is not a known instrument")

		if target == key:
			raise riffgrid.errors.ConfigurationError(f"{key}: an instrument cannot match itself")

		target_rule = self._rules[target]

		if target_rule is None:
			raise riffgrid.errors.ConfigurationError(f"{key}: match target '{target}' has no rule of its own")

		if target_rule.match is not None:
			raise riffgrid.errors.ConfigurationError(f"{key}: match target '{target}' is itself a match")

	@property
	def keys (self) -> typing.Tuple[str, ...]:

		"""The registry, in order."""

		return self._keys

	def get (self, key: str) -> typing.Optional[PatternRule]:

		"""Return the rule for a key (``None`` for deferred keys)."""

		return self._rules[key]

	def items (self) -> typing.Iterator[typing.Tuple[str, typing.Optional[PatternRule]]]:

		"""Iterate ``(key, rule)`` pairs in registry order."""

		for key in self._keys:
			yield key, self._rules[key]

	def deferred_keys (self) -> typing.List[str]:

		"""Return the keys with no rule, in registry order."""

		return [key for key in self._keys if self._rules[key] is None]

	def match_edges (self) -> typing.Dict[str, str]:

		"""Return the match graph as ``{dependent: target}``."""

		return {
			key: rule.match
			for key, rule in self._rules.items()
			if rule is not None and rule.match is not None
		}


def rules_from_config (data: typing.Mapping[str, typing.Any]) -> typing.Dict[str, typing.Optional[PatternRule]]:

	"""Convert YAML-shaped rule data into ``PatternRule`` objects.

	Example::

		Kick: {always: [0]}
		Snare: {patterns: [2, 4, 8]}
		Guitar1: {match: Kick}
		F1: null
	"""

	rules: typing.Dict[str, typing.Optional[PatternRule]] = {}

	for key, value in data.items():

		if value is None:
			rules[key] = None
			continue

		rules[key] = PatternRule(
			patterns = tuple(value.get("patterns", ())),
			always = tuple(value.get("always", ())),
			match = value.get("match"),
			templates = tuple(tuple(t) for t in value.get("templates", ()))
		)

	return rules


_I = riffgrid.constants.instruments

DRUM_RULES: typing.Dict[str, typing.Optional[PatternRule]] = {
	_I.CRASH: PatternRule(patterns=(8, 32)),
	_I.HI_HAT: PatternRule(patterns=(2, 3, 4)),
	_I.SNARE: PatternRule(patterns=(2, 3, 4, 8)),
	_I.KICK: PatternRule(always=(0,)),
	_I.GUITAR_1: PatternRule(match=_I.KICK),
	_I.GUITAR_2: PatternRule(match=_I.KICK),
	_I.BASS: PatternRule(match=_I.KICK),
	_I.C_SHARP_1: None,
	_I.C_1: None,
	_I.A_SHARP_1: None,
	_I.G_SHARP_1: None,
	_I.G_1: None,
	_I.F_1: None,
}

# Chugging kick figures. Offsets are 16th steps inside one measure.
KICK_TEMPLATES: typing.Tuple[typing.Tuple[int, ...], ...] = (
	(0, 3, 6, 10, 12),
	(0, 2, 3, 7, 8, 11, 14),
	(0, 1, 4, 6, 9, 12, 13),
	(0, 3, 5, 8, 11, 14),
)

# Backbeat variants for the same templates.
SNARE_TEMPLATES: typing.Tuple[typing.Tuple[int, ...], ...] = (
	(4, 12),
	(8,),
	(4, 10, 12),
)

DJENT_RULES: typing.Dict[str, typing.Optional[PatternRule]] = {
	**DRUM_RULES,
	_I.KICK: PatternRule(always=(0,), templates=KICK_TEMPLATES),
	_I.SNARE: PatternRule(patterns=(2, 3, 4, 8), templates=SNARE_TEMPLATES),
}
