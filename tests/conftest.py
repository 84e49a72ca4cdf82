import random
import typing

import mido
import pytest


class ConstantRandom (random.Random):

	"""Random source whose ``random()`` always returns one value.

	Generation only ever calls ``rng.random()``, so 0.0 takes every
	"first option / probability hit" branch and 0.99 takes every
	"last option / probability miss" branch.
	"""

	def __init__ (self, value: float) -> None:

		super().__init__(0)
		self.value = value

	def random (self) -> float:

		return self.value


class SequenceRandom (random.Random):

	"""Random source that cycles through a fixed list of values."""

	def __init__ (self, values: typing.Sequence[float]) -> None:

		super().__init__(0)
		self.values = list(values)
		self.calls = 0

	def random (self) -> float:

		value = self.values[self.calls % len(self.values)]
		self.calls += 1
		return value


class FakeMidiOut:

	"""MIDI output stub that records what is sent to it."""

	def __init__ (self) -> None:

		self.messages: typing.List[mido.Message] = []
		self.closed = False
		self.was_reset = False

	def send (self, message: mido.Message) -> None:

		"""Record outgoing MIDI messages."""

		self.messages.append(message)

	def close (self) -> None:

		self.closed = True

	def reset (self) -> None:

		self.was_reset = True


def _fake_get_output_names () -> list[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	return FakeMidiOut()


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use a fake MIDI output for tests that need it."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def rng_low () -> ConstantRandom:

	"""Every draw is 0.0."""

	return ConstantRandom(0.0)


@pytest.fixture
def rng_high () -> ConstantRandom:

	"""Every draw is 0.99."""

	return ConstantRandom(0.99)
