"""Exception types raised by riffgrid.

Generation is best-effort: most odd input (an empty stride list, a chord
note missing from the registry) degrades to a default instead of raising.
The three types below cover the genuine contract breaches.
"""


class InvalidArgument (ValueError):

	"""A call argument has no musical meaning (e.g. a non-positive section length)."""


class ConfigurationError (ValueError):

	"""A generator's registry or rule table is inconsistent. Raised at construction time."""


class InvariantViolation (AssertionError):

	"""Generated grids broke an internal invariant. Indicates a bug, not bad input."""
