import asyncio
import random
import typing

import pytest

import conftest
import riffgrid.assembler
import riffgrid.constants.instruments
import riffgrid.generators
import riffgrid.playback


class RecordingOutput:

	"""Output that keeps every trigger it receives."""

	def __init__ (self) -> None:

		self.triggers: typing.List[riffgrid.playback.Trigger] = []

	def trigger (self, trigger: riffgrid.playback.Trigger) -> None:

		self.triggers.append(trigger)


def _handle () -> riffgrid.playback.GridHandle:

	return riffgrid.playback.GridHandle(
		{"Kick": [True, False, True, False], "F1": [True, False, False, True]},
		{"Kick": None, "F1": [0.5, None, None, 2.0]}
	)


# --- triggers ---


def test_triggers_for_active_keys () -> None:

	"""At 120 BPM a beat is half a second; percussion has no duration."""

	driver = riffgrid.playback.PlaybackDriver(_handle(), bpm=120)

	triggers = driver.triggers(0)

	assert triggers == [
		riffgrid.playback.Trigger(key="Kick", step=0, seconds=None),
		riffgrid.playback.Trigger(key="F1", step=0, seconds=0.25),
	]


def test_triggers_skip_inactive_steps () -> None:

	driver = riffgrid.playback.PlaybackDriver(_handle(), bpm=120)

	assert driver.triggers(1) == []
	assert [t.key for t in driver.triggers(3)] == ["F1"]


def test_triggers_wrap_around () -> None:

	driver = riffgrid.playback.PlaybackDriver(_handle(), bpm=120)

	assert driver.triggers(6) == driver.triggers(2)


def test_empty_grid_has_no_triggers () -> None:

	driver = riffgrid.playback.PlaybackDriver(riffgrid.playback.GridHandle(), bpm=120)

	assert driver.triggers(0) == []


def test_driver_reads_latest_grid () -> None:

	"""Replacing the handle's grids changes the very next read."""

	handle = _handle()
	driver = riffgrid.playback.PlaybackDriver(handle, bpm=120)

	handle.replace({"Snare": [False, True]}, {"Snare": None})

	assert driver.triggers(0) == []
	assert [t.key for t in driver.triggers(1)] == ["Snare"]


def test_replace_song () -> None:

	song = riffgrid.assembler.assemble_repeated(riffgrid.generators.make_generator("guitar"), 1, 8, random.Random(1))
	handle = riffgrid.playback.GridHandle()

	handle.replace_song(song)

	assert handle.current.activations is song.activations
	assert handle.current.durations is song.durations


def test_handle_toggle_publishes_new_snapshot () -> None:

	"""A toggle leaves the snapshot being played untouched and publishes a new one."""

	song = riffgrid.assembler.assemble_repeated(riffgrid.generators.make_generator("guitar"), 1, 8, random.Random(1))
	handle = riffgrid.playback.GridHandle()
	handle.replace_song(song)

	before = handle.current
	was_on = before.activations["D"][3]

	assert handle.toggle(song, "D", 3) is (not was_on)

	assert before.activations["D"][3] is was_on
	assert handle.current is not before
	assert handle.current.activations["D"][3] is (not was_on)
	assert handle.current.activations is song.activations


# --- tempo and ticking ---


def test_step_seconds () -> None:

	driver = riffgrid.playback.PlaybackDriver(_handle(), bpm=60)

	assert driver.step_seconds == 0.25


def test_bpm_must_be_positive () -> None:

	with pytest.raises(ValueError):
		riffgrid.playback.PlaybackDriver(_handle(), bpm=0)


def test_tick_sends_and_advances () -> None:

	output = RecordingOutput()
	driver = riffgrid.playback.PlaybackDriver(_handle(), bpm=120, output=output)

	driver.tick()
	driver.tick()
	driver.tick()

	assert driver.step == 3
	assert [(t.key, t.step) for t in output.triggers] == [("Kick", 0), ("F1", 0), ("Kick", 2)]


def test_restart () -> None:

	driver = riffgrid.playback.PlaybackDriver(_handle(), bpm=120)

	driver.tick()
	driver.restart()

	assert driver.step == 0


@pytest.mark.asyncio
async def test_play_runs_requested_steps () -> None:

	output = RecordingOutput()
	driver = riffgrid.playback.PlaybackDriver(_handle(), bpm=6000, output=output)

	await driver.play(steps=4)

	assert driver.step == 4
	assert [t.step for t in output.triggers] == [0, 0, 2, 3]


@pytest.mark.asyncio
async def test_stop_ends_playback () -> None:

	"""stop() lets the loop finish its current tick and return."""

	driver = riffgrid.playback.PlaybackDriver(_handle(), bpm=6000)

	task = asyncio.create_task(driver.play())
	await asyncio.sleep(0.02)
	driver.stop()
	await asyncio.wait_for(task, timeout=1.0)

	assert driver.step > 0


# --- MIDI ---


def test_midi_output_outside_loop () -> None:

	"""Without a running loop the note-off follows the note-on straight away."""

	port = conftest.FakeMidiOut()
	output = riffgrid.playback.MidiOutput(port)

	output.trigger(riffgrid.playback.Trigger(key="Kick", step=0, seconds=None))

	assert [m.type for m in port.messages] == ["note_on", "note_off"]
	assert port.messages[0].note == 36
	assert port.messages[0].channel == 9


def test_midi_output_skips_unknown_keys () -> None:

	port = conftest.FakeMidiOut()
	output = riffgrid.playback.MidiOutput(port)

	output.trigger(riffgrid.playback.Trigger(key="Cowbell", step=0, seconds=None))

	assert port.messages == []


@pytest.mark.asyncio
async def test_midi_note_off_scheduled () -> None:

	port = conftest.FakeMidiOut()
	output = riffgrid.playback.MidiOutput(port, decay=0.01, offsets={})

	output.trigger(riffgrid.playback.Trigger(key="F1", step=0, seconds=0.01))

	assert [m.type for m in port.messages] == ["note_on"]

	await asyncio.sleep(0.05)

	assert [m.type for m in port.messages] == ["note_on", "note_off"]
	assert port.messages[1].note == 41


@pytest.mark.asyncio
async def test_midi_note_on_delayed_by_offset () -> None:

	"""A key with an offset sends nothing at the tick; the note-off follows offset + duration."""

	port = conftest.FakeMidiOut()
	output = riffgrid.playback.MidiOutput(port, offsets={"F1": 0.02})

	output.trigger(riffgrid.playback.Trigger(key="F1", step=0, seconds=0.01))

	assert port.messages == []

	await asyncio.sleep(0.1)

	assert [m.type for m in port.messages] == ["note_on", "note_off"]
	assert port.messages[0].note == 41


def test_chord_notes_trail_the_kick () -> None:

	offsets = riffgrid.constants.instruments.TRIGGER_OFFSETS

	assert all(offsets[key] == 0.05 for key in riffgrid.constants.instruments.CHORD_NOTE_KEYS)
	assert "Kick" not in offsets


def test_midi_output_per_key_velocity () -> None:

	"""Keys play at their mix level; unlisted keys at the default velocity."""

	port = conftest.FakeMidiOut()
	output = riffgrid.playback.MidiOutput(port)

	output.trigger(riffgrid.playback.Trigger(key="Kick", step=0, seconds=None))
	output.trigger(riffgrid.playback.Trigger(key="D", step=0, seconds=0.5))

	assert [m.velocity for m in port.messages if m.type == "note_on"] == [54, 100]


def test_midi_output_custom_velocities () -> None:

	port = conftest.FakeMidiOut()
	output = riffgrid.playback.MidiOutput(port, velocity=80, velocities={"Snare": 120})

	output.trigger(riffgrid.playback.Trigger(key="Snare", step=0, seconds=None))
	output.trigger(riffgrid.playback.Trigger(key="Kick", step=0, seconds=None))

	assert [m.velocity for m in port.messages if m.type == "note_on"] == [120, 80]


def test_midi_output_muted_key () -> None:

	"""A velocity of 0 sends nothing, not even a note-off."""

	port = conftest.FakeMidiOut()
	output = riffgrid.playback.MidiOutput(port)

	output.trigger(riffgrid.playback.Trigger(key="Bass", step=0, seconds=0.5))

	assert port.messages == []


def test_midi_output_velocity_range () -> None:

	with pytest.raises(ValueError):
		riffgrid.playback.MidiOutput(conftest.FakeMidiOut(), velocity=128)

	with pytest.raises(ValueError):
		riffgrid.playback.MidiOutput(conftest.FakeMidiOut(), velocities={"Kick": -1})


def test_midi_output_negative_offset_rejected () -> None:

	with pytest.raises(ValueError):
		riffgrid.playback.MidiOutput(conftest.FakeMidiOut(), offsets={"F1": -0.01})


def test_midi_output_close () -> None:

	port = conftest.FakeMidiOut()

	riffgrid.playback.MidiOutput(port).close()

	assert port.was_reset
	assert port.closed


def test_open_output_default_device (patch_midi: None) -> None:

	assert isinstance(riffgrid.playback.open_output(), conftest.FakeMidiOut)


def test_open_output_named_device (patch_midi: None) -> None:

	assert isinstance(riffgrid.playback.open_output("Dummy MIDI"), conftest.FakeMidiOut)


def test_open_output_missing_device (patch_midi: None) -> None:

	assert riffgrid.playback.open_output("Nowhere") is None
