import random
import typing

T = typing.TypeVar("T")


def sequence_to_indices (sequence: typing.Sequence[bool]) -> typing.List[int]:

	"""Extract step indices where hits occur in a boolean sequence."""

	return [i for i, v in enumerate(sequence) if v]


def choose (options: typing.Sequence[T], rng: random.Random) -> T:

	"""Pick one item uniformly at random.

	Uses ``rng.random()`` only (never ``rng.choice``), so an RNG stub that
	returns a constant selects a predictable index: 0.0 picks the first item,
	0.99 picks the last.

	Parameters:
		options: Items to choose from
		rng: Random number generator instance
	"""

	if not options:
		raise ValueError("Options cannot be empty")

	index = int(rng.random() * len(options))

	return options[min(index, len(options) - 1)]


def choose_excluding (options: typing.Sequence[T], exclude: typing.Optional[T], rng: random.Random) -> T:

	"""Pick one item uniformly at random, never returning ``exclude``.

	When ``exclude`` is the only option it is returned anyway.

	Example:
		```python
		# A walk over three notes with no immediate repeats
		last = None
		for step in range(8):
			last = riffgrid.sequence_utils.choose_excluding(["D", "B", "A"], last, rng)
		```
	"""

	candidates = [o for o in options if o != exclude]

	if not candidates:
		return choose(options, rng)

	return choose(candidates, rng)


def stride_indices (length: int, stride: int) -> typing.List[int]:

	"""Return every index in ``[0, length)`` that is a multiple of ``stride``.

	A stride longer than the sequence yields only index 0.
	"""

	if stride <= 0:
		raise ValueError("Stride must be positive")

	return list(range(0, length, stride))


def alternate_hits (indices: typing.List[int]) -> typing.List[int]:

	"""Keep every other hit, starting by skipping the first.

	``[0, 4, 8, 12]`` becomes ``[4, 12]``: the downbeat is dropped so the
	remaining hits sit on the off-beats.
	"""

	return indices[1::2]


def tile_offsets (length: int, offsets: typing.Sequence[int], measure: int) -> typing.List[int]:

	"""Repeat a one-measure template across a sequence.

	Every offset is placed in every measure that starts inside the sequence.
	Positions that fall beyond ``length`` (in a partial final measure) are
	dropped one by one rather than skipping the whole measure.

	Parameters:
		length: Sequence length in steps
		offsets: Step offsets inside one measure
		measure: Measure length in steps

	Example:
		```python
		# 20 steps, 16-step measures: the second measure is partial
		riffgrid.sequence_utils.tile_offsets(20, [0, 3, 10], 16)
		# -> [0, 3, 10, 16, 19]
		```
	"""

	if measure <= 0:
		raise ValueError("Measure length must be positive")

	positions: typing.List[int] = []

	for measure_start in range(0, length, measure):

		for offset in offsets:

			position = measure_start + offset

			if 0 <= position < length:
				positions.append(position)

	return sorted(set(positions))


def next_index (flags: typing.Sequence[bool], start: int, end: int) -> int:

	"""Return the first index after ``start`` (and before ``end``) whose flag is set, or ``end``."""

	for i in range(start + 1, end):
		if flags[i]:
			return i

	return end


def quarter_bounds (start: int, end: int) -> typing.List[typing.Tuple[int, int]]:

	"""Split ``[start, end)`` into four quarters.

	Quarter length is ``(end - start) // 4`` (at least 1); the last quarter
	absorbs any remainder so the quarters always cover the whole range.
	Ranges shorter than four steps give fewer, one-step quarters.

	Example:
		```python
		riffgrid.sequence_utils.quarter_bounds(0, 18)
		# -> [(0, 4), (4, 8), (8, 12), (12, 18)]
		```
	"""

	length = end - start

	if length <= 0:
		return []

	quarter = max(1, length // 4)
	bounds: typing.List[typing.Tuple[int, int]] = []

	for q in range(4):

		q_start = start + q * quarter

		if q_start >= end:
			break

		q_end = end if q == 3 else min(end, q_start + quarter)
		bounds.append((q_start, q_end))

	# Fewer than four quarters fit: stretch the last one to the end.
	if bounds and bounds[-1][1] < end:
		bounds[-1] = (bounds[-1][0], end)

	return bounds
