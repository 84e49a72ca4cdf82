"""MIDI velocity constants.

Velocity is the MIDI attack strength (0-127). The grids carry no dynamics:
each key plays at its mix level from ``MIDI_VELOCITIES``, or at
``DEFAULT_VELOCITY`` when it has none. A velocity of 0 mutes the key.
"""

DEFAULT_VELOCITY = 100

# MIDI standard range
MIN_VELOCITY = 0
MAX_VELOCITY = 127
