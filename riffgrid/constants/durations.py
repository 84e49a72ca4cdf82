"""Beat-based duration constants and the step grid resolution.

All durations are in **beats**, where 1.0 = one quarter note. The activation
grid runs at 16th-note resolution, so one step is ``STEP_BEATS`` long::

    import riffgrid.constants.durations as dur

    # 6 steps expressed in beats
    length = 6 * dur.STEP_BEATS      # 1.5 beats

Convert beats to wall-clock time with ``seconds_per_beat(bpm)``.
"""

THIRTYSECOND = 0.125
SIXTEENTH = 0.25
EIGHTH = 0.5
QUARTER = 1.0
HALF = 2.0
WHOLE = 4.0

SIXTYFOURTH = 0.0625

# Grid resolution
STEPS_PER_BEAT = 4
STEP_BEATS = 1.0 / STEPS_PER_BEAT
MEASURE_STEPS = 16

# Duration deriver outputs
VERY_LONG_NOTE = WHOLE          # gap of MEASURE_STEPS // 2 steps or more
LONG_NOTE = HALF                # gap of STEPS_PER_BEAT steps or more
BUSY_NOTE = SIXTEENTH           # a neighbouring step is active
NORMAL_NOTE = EIGHTH            # anything else

VERY_LONG_GAP_STEPS = 8
LONG_GAP_STEPS = 4

FLURRY_MAX = SIXTEENTH
FLURRY_MIN = SIXTYFOURTH
FLURRY_GATE = 0.5               # share of the gap to the next hit a flurry note may fill

# Quarter-boundary clipping draws durations in multiples of this
BOUNDARY_RESOLUTION = THIRTYSECOND

# Duration written by a user toggle
TOGGLE_DURATION = SIXTEENTH


def seconds_per_beat (bpm: float) -> float:

	"""Return the length of one beat in seconds at the given tempo."""

	if bpm <= 0:
		raise ValueError("BPM must be positive")

	return 60.0 / bpm
