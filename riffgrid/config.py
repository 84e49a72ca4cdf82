"""YAML configuration for the command line.

Example ``config.yaml``::

	generator: djent
	bpm: 120
	seed: 42
	structure: 1            # index into SONG_STRUCTURES
	midi:
	  device_name: "IAC Driver Bus 1"

Instead of ``structure`` a config may give its own ``sections`` (a list of
section templates, see :func:`~riffgrid.song_structure.template_from_dict`)
or ``repeat: {count: 4, length: 32}``. A ``rules`` mapping replaces the
generator's built-in rule table.
"""

import logging
import os
import typing

import yaml

import riffgrid.errors
import riffgrid.generators
import riffgrid.rules
import riffgrid.song_structure


logger = logging.getLogger(__name__)

DEFAULT_GENERATOR = "djent"
DEFAULT_BPM = 100.0
DEFAULT_REPEAT_COUNT = 4
DEFAULT_SECTION_LENGTH = 32


def load_config (config_path: str = 'config.yaml') -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		return yaml.safe_load(f) or {}


def generator_from_config (config: typing.Mapping[str, typing.Any]) -> riffgrid.generators.Generator:

	"""Build the configured generator, applying any ``rules`` override."""

	name = config.get('generator', DEFAULT_GENERATOR)
	rules_data = config.get('rules')
	rules = riffgrid.rules.rules_from_config(rules_data) if rules_data else None

	return riffgrid.generators.make_generator(name, rules)


def templates_from_config (config: typing.Mapping[str, typing.Any]) -> typing.Optional[typing.List[riffgrid.song_structure.SectionTemplate]]:

	"""Return the configured section templates, or ``None`` for a fixed-repeat song.

	``sections`` wins over ``structure``. Neither (and no ``repeat``) means
	the first built-in structure.

	Raises:
		InvalidArgument: For an out-of-range ``structure`` index.
	"""

	if config.get('sections'):
		return [riffgrid.song_structure.template_from_dict(item) for item in config['sections']]

	if 'repeat' in config and 'structure' not in config:
		return None

	index = int(config.get('structure', 0))

	if not 0 <= index < len(riffgrid.song_structure.SONG_STRUCTURES):
		raise riffgrid.errors.InvalidArgument(
			f"Structure {index} does not exist (0-{len(riffgrid.song_structure.SONG_STRUCTURES) - 1})"
		)

	return list(riffgrid.song_structure.SONG_STRUCTURES[index])


def repeat_from_config (config: typing.Mapping[str, typing.Any]) -> typing.Tuple[int, int]:

	"""Return ``(section_count, section_length)`` for a fixed-repeat song."""

	repeat = config.get('repeat') or {}

	return int(repeat.get('count', DEFAULT_REPEAT_COUNT)), int(repeat.get('length', DEFAULT_SECTION_LENGTH))
