"""Instrument key registries.

A registry is an ordered tuple of string keys. Order matters: generators walk
keys in registry order, and "first found" choices depend on it.

Also defines how each key plays through :class:`~riffgrid.playback.MidiOutput`:
its MIDI routing and mix level, plus a short note-on delay for chord notes.
Percussion is routed to the General MIDI drum channel (0-indexed channel 9).
"""

import typing


# ─── Drum / rhythm generator registry ────────────────────────────────

CRASH = "Crash"
HI_HAT = "Hi-hat"
SNARE = "Snare"
KICK = "Kick"
GUITAR_1 = "Guitar1"
GUITAR_2 = "Guitar2"
BASS = "Bass"
C_SHARP_1 = "CSharp1"
C_1 = "C1"
A_SHARP_1 = "ASharp1"
G_SHARP_1 = "GSharp1"
G_1 = "G1"
F_1 = "F1"

DRUM_KEYS: typing.Tuple[str, ...] = (
	CRASH,
	HI_HAT,
	SNARE,
	KICK,
	GUITAR_1,
	GUITAR_2,
	BASS,
	C_SHARP_1,
	C_1,
	A_SHARP_1,
	G_SHARP_1,
	G_1,
	F_1,
)

PERCUSSION_KEYS: typing.FrozenSet[str] = frozenset({CRASH, HI_HAT, SNARE, KICK})

CHORD_NOTE_KEYS: typing.Tuple[str, ...] = (C_SHARP_1, C_1, A_SHARP_1, G_SHARP_1, G_1, F_1)

# The track whose stride hits get thinned to avoid a mechanical feel.
OFF_BEAT_KEY = SNARE

# The track that deferred keys copy and fills are anchored on.
ANCHOR_KEY = KICK

# One entry per quarter-section, cycled.
CHORD_PROGRESSION: typing.Tuple[str, ...] = (F_1, G_SHARP_1, A_SHARP_1, C_1)


# ─── Melodic walk generator registry ─────────────────────────────────

GUITAR_KEYS: typing.Tuple[str, ...] = ("D", "B", "A")


# ─── MIDI routing ────────────────────────────────────────────────────

DRUM_CHANNEL = 9
GUITAR_CHANNEL = 0
BASS_CHANNEL = 1

# key -> (channel, note)
MIDI_NOTE_MAP: typing.Dict[str, typing.Tuple[int, int]] = {
	CRASH: (DRUM_CHANNEL, 49),
	HI_HAT: (DRUM_CHANNEL, 46),
	SNARE: (DRUM_CHANNEL, 38),
	KICK: (DRUM_CHANNEL, 36),
	GUITAR_1: (GUITAR_CHANNEL, 40),
	GUITAR_2: (GUITAR_CHANNEL, 41),
	BASS: (BASS_CHANNEL, 29),
	C_SHARP_1: (GUITAR_CHANNEL, 49),
	C_1: (GUITAR_CHANNEL, 48),
	A_SHARP_1: (GUITAR_CHANNEL, 46),
	G_SHARP_1: (GUITAR_CHANNEL, 44),
	G_1: (GUITAR_CHANNEL, 43),
	F_1: (GUITAR_CHANNEL, 41),
	"D": (GUITAR_CHANNEL, 50),
	"B": (GUITAR_CHANNEL, 47),
	"A": (GUITAR_CHANNEL, 45),
}


# ─── Per-key balance ─────────────────────────────────────────────────

# Mix levels as MIDI velocities. Keys not listed play at DEFAULT_VELOCITY.
# Guitar1, Guitar2 and Bass only double the kick's rhythm and are muted.
MIDI_VELOCITIES: typing.Dict[str, int] = {
	CRASH: 45,
	HI_HAT: 54,
	SNARE: 64,
	KICK: 54,
	GUITAR_1: 0,
	GUITAR_2: 0,
	BASS: 0,
	**{key: 95 for key in CHORD_NOTE_KEYS},
}

# Seconds to hold a key's note-on back, so chord notes sit just behind the kick.
CHORD_NOTE_OFFSET = 0.05

TRIGGER_OFFSETS: typing.Dict[str, float] = {key: CHORD_NOTE_OFFSET for key in CHORD_NOTE_KEYS}
