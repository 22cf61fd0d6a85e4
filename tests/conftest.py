import typing

import pytest

import notevisual.engine
import notevisual.notes
import notevisual.settings


def make_note (id: str = "n1", start_beat: float = 0.0, duration: float = 1.0, velocity: int = 100, pitch: int = 60) -> notevisual.notes.MIDINote:

	"""Build a note with sensible defaults for tests."""

	return notevisual.notes.MIDINote(id=id, start_beat=start_beat, duration=duration, velocity=velocity, pitch=pitch)


def make_blocks (*notes: notevisual.notes.MIDINote, start_beat: float = 0.0) -> typing.List[notevisual.notes.MIDIBlock]:

	"""Wrap notes in a single block at ``start_beat``."""

	return [notevisual.notes.make_block(notes, start_beat=start_beat, id="block")]


def origin (ctx: typing.Any, settings: typing.Any) -> typing.Tuple[float, float, float]:

	"""Position mapper that always returns the origin."""

	return (0.0, 0.0, 0.0)


@pytest.fixture
def settings () -> notevisual.settings.Settings:

	"""A small settings collection shared by engine tests."""

	settings = notevisual.settings.Settings()
	settings.define("size", 2.0, minimum=0.0, maximum=10.0, step=0.1)
	return settings


@pytest.fixture
def engine (settings: notevisual.settings.Settings) -> notevisual.engine.VisualObjectEngine:

	"""An empty engine bound to the shared settings."""

	return notevisual.engine.VisualObjectEngine(settings=settings)
