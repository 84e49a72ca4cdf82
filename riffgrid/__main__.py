import argparse
import asyncio
import logging
import random
import typing

import riffgrid.assembler
import riffgrid.config
import riffgrid.display
import riffgrid.playback


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_args (argv: typing.Optional[typing.List[str]] = None) -> argparse.Namespace:

	"""
	Parse command line options. Options override the config file.
	"""

	parser = argparse.ArgumentParser(prog="riffgrid", description="Generate and play procedural rhythm patterns.")
	parser.add_argument("--config", default="config.yaml", help="YAML config file (default: config.yaml)")
	parser.add_argument("--generator", help="drums, rhythm, djent or guitar")
	parser.add_argument("--seed", type=int, help="Random seed for a repeatable song")
	parser.add_argument("--structure", type=int, help="Index of a built-in song structure")
	parser.add_argument("--bpm", type=float, help="Playback tempo")
	parser.add_argument("--play", action="store_true", help="Play the song through a MIDI output")
	parser.add_argument("--width", type=int, default=32, help="Steps shown per grid row")

	args = parser.parse_args(argv)

	if args.width <= 0:
		parser.error("--width must be positive")

	return args


def build_song (config: typing.Mapping[str, typing.Any]) -> riffgrid.assembler.Song:

	"""
	Generate the song described by a config mapping.
	"""

	generator = riffgrid.config.generator_from_config(config)
	seed = config.get('seed')
	rng = random.Random(seed) if seed is not None else random.Random()
	templates = riffgrid.config.templates_from_config(config)

	if templates is None:
		count, length = riffgrid.config.repeat_from_config(config)
		return riffgrid.assembler.assemble_repeated(generator, count, length, rng)

	return riffgrid.assembler.assemble(generator, templates, rng)


def main (argv: typing.Optional[typing.List[str]] = None) -> None:

	"""
	Main entry point for the riffgrid command line.
	"""

	args = parse_args(argv)
	config = dict(riffgrid.config.load_config(args.config))

	for name in ('generator', 'seed', 'structure', 'bpm'):
		value = getattr(args, name)
		if value is not None:
			config[name] = value

	song = build_song(config)

	for start, end in song.bounds:

		print(f"\n[{start}-{end}]")

		# Long sections wrap onto several blocks of at most --width steps.
		for block in range(start, end, args.width):

			if block > start:
				print()

			for line in riffgrid.display.render_grid(song.activations, song.durations, song.keys, start=block, width=min(args.width, end - block)):
				print(line)

	if not args.play:
		return

	port = riffgrid.playback.open_output((config.get('midi') or {}).get('device_name'))

	if port is None:
		return

	output = riffgrid.playback.MidiOutput(port)
	driver = riffgrid.playback.PlaybackDriver(
		riffgrid.playback.GridHandle(song.activations, song.durations),
		bpm = float(config.get('bpm', riffgrid.config.DEFAULT_BPM)),
		output = output
	)

	try:
		asyncio.run(driver.play())
	except KeyboardInterrupt:
		logger.info("Stopping...")
	finally:
		output.close()


if __name__ == "__main__":
	main()
