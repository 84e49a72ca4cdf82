"""
riffgrid - procedural rhythm pattern generation on a 16th-note grid.

Given an ordered set of instruments (drum hits, guitar notes), riffgrid
generates boolean activation grids for song sections, derives how long each
note should ring, and joins sections into whole songs following a song
structure. A small playback driver reads the grids tick by tick and sends
them to MIDI.

What it does:

- **Rule-driven sections.** Each instrument has a rule: stride candidates
  ("hit every 2nd, 3rd or 4th step"), always-on steps, a ``match`` to share
  another track, or djent templates tiled across every measure.
- **Chord notes and fills.** Deferred tracks pick up the kick's rhythm -
  one at random, one per quarter-section, or following a chord progression.
  Short gaps between kick hits can be filled with flurries.
- **Derived durations.** Chord steps ring until the next chord; single notes
  are sized from the gap to the next hit; nothing rings past a section edge.
- **Song structures.** Built-in djent structures (intro, verse, breakdown...)
  with per-section complexity, or a fixed repeat count.
- **Deterministic.** Pass a seeded ``random.Random`` and every decision repeats.

Minimal example:

    ```python
    import random
    import riffgrid

    generator = riffgrid.make_generator("djent")
    song = riffgrid.assemble(generator, riffgrid.SONG_STRUCTURES[0], random.Random(42))

    song.activations["Kick"][:16]
    song.durations["F1"][:16]
    song.toggle("Snare", 4)
    ```

Package-level exports: ``make_generator``, ``assemble``, ``assemble_repeated``,
``Song``, ``SectionCharacteristics``, ``SectionTemplate``, ``SONG_STRUCTURES``.
"""

import riffgrid.assembler
import riffgrid.generators
import riffgrid.song_structure


make_generator = riffgrid.generators.make_generator
assemble = riffgrid.assembler.assemble
assemble_repeated = riffgrid.assembler.assemble_repeated
Song = riffgrid.assembler.Song
SectionCharacteristics = riffgrid.song_structure.SectionCharacteristics
SectionTemplate = riffgrid.song_structure.SectionTemplate
SONG_STRUCTURES = riffgrid.song_structure.SONG_STRUCTURES
