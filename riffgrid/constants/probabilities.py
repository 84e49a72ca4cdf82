"""Probability thresholds used by the section generators.

Every value is the chance (0.0-1.0) that ``rng.random()`` falls *below* it,
except ``RANDOM_ACTIVATION_THRESHOLD``, which a draw must exceed.
The numbers are tuned by ear, not for statistical neutrality.
"""

import typing


# Chance of overlaying a djent template when no section characteristics are given.
TEMPLATE_BASELINE = 0.3

# With characteristics: TEMPLATE_COMPLEXITY_FLOOR + TEMPLATE_COMPLEXITY_SCALE * complexity.
# Complexity 0 gives 40%, complexity 1 gives 80%.
TEMPLATE_COMPLEXITY_FLOOR = 0.4
TEMPLATE_COMPLEXITY_SCALE = 0.4

# A step of a stride-less track is activated when a draw exceeds this.
RANDOM_ACTIVATION_THRESHOLD = 0.5

# Chance that the off-beat track keeps only every other stride hit.
OFF_BEAT_THINNING = 0.7

# Chance that a section gets the fill pass at all.
FILL_PASS = 0.3

# Gap between consecutive anchor hits (in steps) that qualifies for a fill.
FILL_GAP_MIN = 2
FILL_GAP_MAX = 6


def template_probability (complexity: typing.Optional[float] = None) -> float:

	"""Return the chance of using a djent template for a section.

	Parameters:
		complexity: Section complexity (0.0-1.0), or ``None`` when the
			section has no characteristics.
	"""

	if complexity is None:
		return TEMPLATE_BASELINE

	return TEMPLATE_COMPLEXITY_FLOOR + TEMPLATE_COMPLEXITY_SCALE * complexity
