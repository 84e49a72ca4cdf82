import pytest

import riffgrid.errors
import riffgrid.song_structure


def test_characteristics_defaults () -> None:

	characteristics = riffgrid.song_structure.SectionCharacteristics()

	assert characteristics.complexity == 0.0
	assert characteristics.polyrhythm is False


@pytest.mark.parametrize("field", ["complexity", "density", "syncopation"])
def test_characteristics_range_checked (field: str) -> None:

	"""Numeric characteristics must lie in [0, 1]."""

	with pytest.raises(riffgrid.errors.InvalidArgument):
		riffgrid.song_structure.SectionCharacteristics(**{field: 1.5})


def test_time_signature_str () -> None:

	assert str(riffgrid.song_structure.TimeSignature(7, 8)) == "7/8"


def test_template_rejects_bad_length () -> None:

	with pytest.raises(riffgrid.errors.InvalidArgument):
		riffgrid.song_structure.template_from_dict({"type": "verse", "length": 0})


def test_template_rejects_unknown_dynamics () -> None:

	with pytest.raises(riffgrid.errors.InvalidArgument):
		riffgrid.song_structure.template_from_dict({"type": "verse", "length": 32, "dynamics": "loud"})


# --- catalog ---


def test_song_structures_are_well_formed () -> None:

	"""Every built-in structure is a non-empty list of templates from the catalog."""

	catalog = [t for templates in riffgrid.song_structure.SECTION_TEMPLATES.values() for t in templates]

	assert len(riffgrid.song_structure.SONG_STRUCTURES) == 2

	for structure in riffgrid.song_structure.SONG_STRUCTURES:
		assert structure
		assert all(template in catalog for template in structure)
		assert all(template.type in riffgrid.song_structure.SECTION_TYPES for template in structure)


def test_odd_meter_lengths () -> None:

	"""Template lengths are in 16th steps: 28 beats of 7/8 material is 112 steps."""

	breakdown = riffgrid.song_structure.SECTION_TEMPLATES["breakdown"][0]

	assert str(breakdown.time_signature) == "7/8"
	assert breakdown.length == 112


# --- section bounds ---


def test_bounds_from_section_length () -> None:

	assert riffgrid.song_structure.section_bounds(16, 48) == [(0, 16), (16, 32), (32, 48)]


def test_bounds_partial_last_section () -> None:

	assert riffgrid.song_structure.section_bounds(16, 40) == [(0, 16), (16, 32), (32, 40)]


def test_bounds_from_templates () -> None:

	templates = [
		riffgrid.song_structure.template_from_dict({"type": "intro", "length": 16}),
		riffgrid.song_structure.template_from_dict({"type": "verse", "length": 24}),
	]

	assert riffgrid.song_structure.section_bounds(templates, 40) == [(0, 16), (16, 40)]


def test_bounds_templates_must_cover_grid () -> None:

	templates = [riffgrid.song_structure.template_from_dict({"type": "intro", "length": 16})]

	with pytest.raises(riffgrid.errors.InvalidArgument):
		riffgrid.song_structure.section_bounds(templates, 20)


def test_bounds_reject_bad_length () -> None:

	with pytest.raises(riffgrid.errors.InvalidArgument):
		riffgrid.song_structure.section_bounds(0, 16)


# --- YAML ---


def test_template_from_dict_defaults () -> None:

	template = riffgrid.song_structure.template_from_dict({"type": "verse", "length": 64})

	assert str(template.time_signature) == "4/4"
	assert template.dynamics == "mf"
	assert template.characteristics == riffgrid.song_structure.SectionCharacteristics()
	assert template.bpm is None


def test_template_from_dict_requires_type_and_length () -> None:

	with pytest.raises(riffgrid.errors.InvalidArgument):
		riffgrid.song_structure.template_from_dict({"type": "verse"})


def test_load_song_structure (tmp_path) -> None:

	"""A YAML list of sections loads in order."""

	path = tmp_path / "song.yaml"
	path.write_text(
		"- type: intro\n"
		"  length: 32\n"
		"- type: breakdown\n"
		"  length: 28\n"
		"  time_signature: [7, 8]\n"
		"  dynamics: ff\n"
		"  characteristics: {complexity: 0.9}\n"
	)

	templates = riffgrid.song_structure.load_song_structure(str(path))

	assert [t.type for t in templates] == ["intro", "breakdown"]
	assert templates[1].characteristics.complexity == 0.9
	assert str(templates[1].time_signature) == "7/8"


def test_load_song_structure_rejects_non_list (tmp_path) -> None:

	path = tmp_path / "song.yaml"
	path.write_text("type: intro\n")

	with pytest.raises(riffgrid.errors.InvalidArgument):
		riffgrid.song_structure.load_song_structure(str(path))
