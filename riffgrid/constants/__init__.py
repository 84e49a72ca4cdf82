"""Constants for riffgrid.

This package contains four sets of constants:

- ``riffgrid.constants.instruments`` - Instrument key registries, the chord progression and MIDI note maps
- ``riffgrid.constants.durations`` - Beat-based durations and the step grid resolution
- ``riffgrid.constants.probabilities`` - Named probability thresholds used by the generators
- ``riffgrid.constants.velocity`` - MIDI velocity constants
"""
