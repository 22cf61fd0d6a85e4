"""Import Standard MIDI Files as blocks.

Each track that contains at least one complete note becomes one
:class:`~notevisual.notes.MIDIBlock`.  The block starts at its first note and
the notes inside it are positioned relative to that start, so the block can
be moved on a timeline without touching its notes.

Positions are in beats (``tick / ticks_per_beat``), so imported material
follows whatever tempo it is later evaluated at.  Velocities keep their MIDI
0-127 scale.
"""

import collections
import logging
import os
import typing

import mido

import notevisual.notes


logger = logging.getLogger(__name__)


DEFAULT_BPM = 120.0


class MidiFileError (ValueError):

	"""Raised when a file cannot be read as a Standard MIDI File."""


MidiSource = typing.Union[str, os.PathLike, mido.MidiFile]


def open_midi (path: typing.Union[str, os.PathLike]) -> mido.MidiFile:

	"""
	Parse a MIDI file once, for passing to both :func:`load_blocks` and :func:`read_tempo`.

	Raises:
		MidiFileError: The file is missing or not a valid MIDI file.
	"""

	try:
		return mido.MidiFile(path)
	except (OSError, EOFError, ValueError, KeyError, IndexError) as exc:
		raise MidiFileError(f"Could not read MIDI file {path}: {exc}") from exc


def _parsed (source: MidiSource) -> mido.MidiFile:

	if isinstance(source, mido.MidiFile):
		return source

	return open_midi(source)


def _track_notes (track: mido.MidiTrack, ticks_per_beat: int) -> typing.List[typing.Tuple[float, float, int, int]]:

	"""
	Pair note-on and note-off messages in one track.

	Returns ``(start_beat, duration_beats, pitch, velocity)`` tuples in start order.
	Repeated notes on the same channel and pitch pair first-in, first-out.
	A note-on with velocity 0 counts as a note-off.
	"""

	open_notes: typing.Dict[typing.Tuple[int, int], typing.Deque[typing.Tuple[int, int]]] = collections.defaultdict(collections.deque)
	notes: typing.List[typing.Tuple[int, int, int, int]] = []

	tick = 0

	for message in track:

		tick += message.time

		if message.type == "note_on" and message.velocity > 0:
			open_notes[(message.channel, message.note)].append((tick, message.velocity))

		elif message.type in ("note_off", "note_on"):

			pending = open_notes.get((message.channel, message.note))

			if not pending:
				continue

			start_tick, velocity = pending.popleft()

			if tick > start_tick:
				notes.append((start_tick, tick - start_tick, message.note, velocity))

	dangling = sum(len(pending) for pending in open_notes.values())

	if dangling:
		logger.debug("Dropping %d note(s) with no note-off", dangling)

	notes.sort(key=lambda item: (item[0], item[2]))

	return [(start / ticks_per_beat, length / ticks_per_beat, pitch, velocity) for start, length, pitch, velocity in notes]


def load_blocks (source: MidiSource) -> typing.List[notevisual.notes.MIDIBlock]:

	"""
	Read every note-bearing track of a MIDI file into a block.

	Parameters:
		source: Path to a ``.mid`` file, or a file already parsed by
			:func:`open_midi`.

	Returns:
		One block per track with notes, in track order.  Block ids are
		``"track-<n>"`` and note ids ``"track-<n>-note-<i>"``.

	Raises:
		MidiFileError: The file is missing or not a valid MIDI file.
	"""

	midi_file = _parsed(source)
	ticks_per_beat = midi_file.ticks_per_beat or 480

	blocks: typing.List[notevisual.notes.MIDIBlock] = []

	for track_index, track in enumerate(midi_file.tracks):

		track_notes = _track_notes(track, ticks_per_beat)

		if not track_notes:
			continue

		block_start = track_notes[0][0]
		block_id = f"track-{track_index}"

		notes = [
			notevisual.notes.MIDINote(
				id = f"{block_id}-note-{i}",
				start_beat = start - block_start,
				duration = duration,
				velocity = velocity,
				pitch = pitch
			)
			for i, (start, duration, pitch, velocity) in enumerate(track_notes)
		]

		block = notevisual.notes.make_block(notes, start_beat=block_start, id=block_id)
		blocks.append(block)

	logger.info(f"Loaded {sum(len(block.notes) for block in blocks)} notes in {len(blocks)} block(s) from {midi_file.filename or 'memory'}")

	return blocks


def read_tempo (source: MidiSource, default_bpm: float = DEFAULT_BPM) -> float:

	"""Return the file's first tempo in BPM, or ``default_bpm`` if it has none.  Accepts a path or a parsed file."""

	midi_file = _parsed(source)

	for track in midi_file.tracks:
		for message in track:
			if message.type == "set_tempo":
				return float(mido.tempo2bpm(message.tempo))

	return default_bpm
