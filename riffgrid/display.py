"""ASCII rendering of activation and duration grids.

Used by the command line to print a generated song::

	Crash       |X . . . . . . . X . . . . . . .|
	Snare       |. . . . X . . . . . . . X . . .|
	Guitar1     |X - - X - . X - - - - - X . . .|

``X`` is a hit, ``-`` marks steps a previous hit is still sounding over,
``.`` is silence.
"""

import math
import typing

import riffgrid.activation
import riffgrid.constants.durations
import riffgrid.durations


_LABEL_WIDTH = 12
_MAX_GRID_COLUMNS = 32

_HIT = "X"
_SUSTAIN = "-"
_REST = "."


def render_row (track: typing.Sequence[bool], durations: typing.Optional[typing.Sequence[typing.Optional[float]]], start: int, width: int) -> str:

	"""Render ``width`` steps of one track starting at ``start``."""

	end = min(len(track), start + width)
	cells = [_REST] * (end - start)

	# Sustains from hits before the window still show.
	for i in range(0, end):

		if not track[i]:
			continue

		if i >= start:
			cells[i - start] = _HIT

		if durations is None or durations[i] is None:
			continue

		steps = math.ceil(durations[i] / riffgrid.constants.durations.STEP_BEATS)

		for j in range(i + 1, min(end, i + steps)):
			if j >= start and not track[j]:
				cells[j - start] = _SUSTAIN

	return " ".join(cells)


def render_grid (
	activations: riffgrid.activation.ActivationGrid,
	durations: typing.Optional[riffgrid.durations.DurationGrid] = None,
	keys: typing.Optional[typing.Sequence[str]] = None,
	start: int = 0,
	width: int = _MAX_GRID_COLUMNS
) -> typing.List[str]:

	"""Render a window of a grid, one line per key.

	Parameters:
		activations: The activation grid.
		durations: Optional duration grid; adds sustain markers.
		keys: Row order. Defaults to the grid's own order.
		start: First step shown.
		width: Number of steps shown.
	"""

	if keys is None:
		keys = list(activations)

	lines: typing.List[str] = []

	for key in keys:
		track_durations = durations.get(key) if durations is not None else None
		row = render_row(activations[key], track_durations, start, width)
		lines.append(f"{key[:_LABEL_WIDTH]:<{_LABEL_WIDTH}}|{row}|")

	return lines
