import random
import typing

import pytest

import riffgrid.activation
import riffgrid.assembler
import riffgrid.durations
import riffgrid.errors
import riffgrid.generators
import riffgrid.song_structure


class CountingSectionGenerator:

	"""Section generator whose n-th section has key A active at step n only."""

	keys = ("A", "B")

	def __init__ (self) -> None:

		self.calls = 0

	def generate_section (self, section_length: int, characteristics=None, rng=None) -> riffgrid.activation.ActivationGrid:

		section = riffgrid.activation.empty_grid(self.keys, section_length)
		section["A"][self.calls] = True
		section["B"] = section["A"]
		self.calls += 1
		return section


def _counting_generator () -> riffgrid.generators.Generator:

	return riffgrid.generators.Generator(
		"counting",
		CountingSectionGenerator(),
		riffgrid.durations.DurationDeriver(("A", "B"), percussion_keys=("B",))
	)


def _templates (*lengths: int) -> typing.List[riffgrid.song_structure.SectionTemplate]:

	return [riffgrid.song_structure.template_from_dict({"type": "verse", "length": n}) for n in lengths]


# --- concatenation ---


def test_sections_are_appended_in_order () -> None:

	song = riffgrid.assembler.assemble_repeated(_counting_generator(), 4, 32, random.Random(1))

	assert song.length == 128
	assert [i for i, active in enumerate(song.activations["A"]) if active] == [0, 33, 66, 99]


def test_first_section_comes_first () -> None:

	"""Steps 0-31 of a four-section song are the first generated section."""

	generator = riffgrid.generators.make_generator("drums")

	first = generator.generate_section(32, None, random.Random(7))
	song = riffgrid.assembler.assemble_repeated(generator, 4, 32, random.Random(7))

	assert song.length == 128

	for key in generator.keys:
		assert song.activations[key][:32] == first[key]


def test_templates_set_section_lengths () -> None:

	song = riffgrid.assembler.assemble(_counting_generator(), _templates(16, 24, 8), random.Random(1))

	assert song.length == 48
	assert song.bounds == [(0, 16), (16, 40), (40, 48)]


def test_shared_tracks_stay_shared () -> None:

	song = riffgrid.assembler.assemble_repeated(riffgrid.generators.make_generator("drums"), 3, 32, random.Random(2))

	assert song.activations["Guitar1"] is song.activations["Kick"]
	assert song.activations["Bass"] is song.activations["Kick"]


def test_sharing_in_only_some_sections_is_dropped () -> None:

	"""Keys shared in one section but not another get their own list."""

	shared = [True, False]
	sections = [
		{"A": shared, "B": shared},
		{"A": [False, True], "B": [True, True]},
	]

	grid = riffgrid.assembler.concatenate(("A", "B"), sections)

	assert grid["A"] is not grid["B"]
	assert grid["A"] == [True, False, False, True]
	assert grid["B"] == [True, False, True, True]


def test_concatenate_mismatched_lengths () -> None:

	with pytest.raises(riffgrid.errors.InvariantViolation):
		riffgrid.assembler.concatenate(("A", "B"), [{"A": [True], "B": [True, False]}])


def test_empty_templates_rejected () -> None:

	with pytest.raises(riffgrid.errors.InvalidArgument):
		riffgrid.assembler.assemble(_counting_generator(), [], random.Random(1))


@pytest.mark.parametrize("count, length", [(0, 32), (4, 0)])
def test_repeat_counts_must_be_positive (count: int, length: int) -> None:

	with pytest.raises(riffgrid.errors.InvalidArgument):
		riffgrid.assembler.assemble_repeated(_counting_generator(), count, length, random.Random(1))


@pytest.mark.parametrize("name", ["drums", "rhythm", "djent", "guitar"])
def test_built_in_structures_assemble (name: str) -> None:

	"""Every generator assembles every built-in structure with consistent lengths."""

	generator = riffgrid.generators.make_generator(name)

	for structure in riffgrid.song_structure.SONG_STRUCTURES:
		song = riffgrid.assembler.assemble(generator, structure, random.Random(11))
		total = sum(t.length for t in structure)

		assert song.length == total
		assert all(len(track) == total for track in song.activations.values())
		assert all(track is None or len(track) == total for track in song.durations.values())


# --- toggle ---


def test_toggle_twice_restores_activation () -> None:

	"""Toggling an active cell off and on again leaves it active with the default duration."""

	song = riffgrid.assembler.assemble_repeated(_counting_generator(), 2, 16, random.Random(1))

	assert song.activations["A"][0]

	assert song.toggle("A", 0) is False
	assert song.durations["A"][0] is None

	assert song.toggle("A", 0) is True
	assert song.durations["A"][0] == 0.25


def test_toggle_on_sets_default_duration () -> None:

	song = riffgrid.assembler.assemble_repeated(_counting_generator(), 2, 16, random.Random(1))

	assert song.toggle("A", 5) is True
	assert song.durations["A"][5] == 0.25


def test_toggle_moves_shared_tracks_together () -> None:

	"""A and B share one list, so toggling either flips both."""

	song = riffgrid.assembler.assemble_repeated(_counting_generator(), 2, 16, random.Random(1))

	song.toggle("B", 7)

	assert song.activations["A"][7]
	assert song.activations["B"][7]
	assert song.durations["A"][7] == 0.25
	assert song.durations["B"] is None


def test_toggle_leaves_earlier_grids_untouched () -> None:

	"""Grids taken before a toggle keep their values; sharing carries over to the new grids."""

	song = riffgrid.assembler.assemble_repeated(_counting_generator(), 2, 16, random.Random(1))
	activations = song.activations
	durations = song.durations
	track = song.activations["A"]

	song.toggle("A", 7)

	assert not track[7]
	assert not activations["B"][7]
	assert durations["A"][7] is None
	assert song.activations["A"][7]
	assert song.activations["A"] is song.activations["B"]
	assert song.activations is not activations


def test_toggle_keeps_durations_on_active_steps () -> None:

	song = riffgrid.assembler.assemble_repeated(riffgrid.generators.make_generator("djent"), 2, 32, random.Random(4))

	for index in (0, 3, 17, 40):
		song.toggle("F1", index)
		song.toggle("Guitar1", index)

	riffgrid.durations.check_durations(song.activations, song.durations)


def test_toggle_rejects_unknown_key () -> None:

	song = riffgrid.assembler.assemble_repeated(_counting_generator(), 1, 16, random.Random(1))

	with pytest.raises(riffgrid.errors.InvalidArgument):
		song.toggle("Cowbell", 0)


@pytest.mark.parametrize("index", [-1, 16])
def test_toggle_rejects_out_of_range (index: int) -> None:

	song = riffgrid.assembler.assemble_repeated(_counting_generator(), 1, 16, random.Random(1))

	with pytest.raises(riffgrid.errors.InvalidArgument):
		song.toggle("A", index)
