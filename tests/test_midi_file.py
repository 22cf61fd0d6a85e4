import pathlib

import mido
import pytest

import notevisual.midi_file


def _write_midi (path: pathlib.Path, tracks: list, ticks_per_beat: int = 480) -> str:

	midi_file = mido.MidiFile(ticks_per_beat=ticks_per_beat)

	for messages in tracks:
		track = mido.MidiTrack()
		track.extend(messages)
		midi_file.tracks.append(track)

	midi_file.save(str(path))
	return str(path)


@pytest.fixture
def song (tmp_path: pathlib.Path) -> str:

	"""A two-track file at 100 BPM: a tempo-only track and a three-note track."""

	tempo_track = [
		mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(100), time=0),
	]

	note_track = [
		# One beat of rest, then C4 for a beat.
		mido.Message("note_on", note=60, velocity=100, time=480),
		mido.Message("note_off", note=60, velocity=0, time=480),
		# E4 for half a beat, ended by a velocity-0 note-on.
		mido.Message("note_on", note=64, velocity=80, time=0),
		mido.Message("note_on", note=64, velocity=0, time=240),
		# G4 with no note-off.
		mido.Message("note_on", note=67, velocity=90, time=0),
	]

	return _write_midi(tmp_path / "song.mid", [tempo_track, note_track])


def test_load_blocks_one_block_per_note_track (song: str) -> None:

	"""Tracks without notes are skipped; notes are relative to the block start."""

	blocks = notevisual.midi_file.load_blocks(song)

	assert len(blocks) == 1

	block = blocks[0]

	assert block.id == "track-1"
	assert block.start_beat == pytest.approx(1.0)
	assert [note.pitch for note in block.notes] == [60, 64]

	c4, e4 = block.notes

	assert c4.id == "track-1-note-0"
	assert c4.start_beat == pytest.approx(0.0)
	assert c4.duration == pytest.approx(1.0)
	assert c4.velocity == 100

	assert e4.start_beat == pytest.approx(1.0)
	assert e4.duration == pytest.approx(0.5)
	assert e4.velocity == 80


def test_repeated_notes_pair_in_order (tmp_path: pathlib.Path) -> None:

	"""Overlapping notes on the same pitch are closed first-in, first-out."""

	path = _write_midi(tmp_path / "overlap.mid", [[
		mido.Message("note_on", note=60, velocity=100, time=0),
		mido.Message("note_on", note=60, velocity=50, time=480),
		mido.Message("note_off", note=60, time=480),
		mido.Message("note_off", note=60, time=480),
	]])

	notes = notevisual.midi_file.load_blocks(path)[0].notes

	assert [(note.start_beat, note.duration, note.velocity) for note in notes] == [
		pytest.approx((0.0, 2.0, 100)),
		pytest.approx((1.0, 2.0, 50)),
	]


def test_read_tempo (song: str, tmp_path: pathlib.Path) -> None:

	"""The first set_tempo wins; files without one use the default."""

	assert notevisual.midi_file.read_tempo(song) == pytest.approx(100.0)

	plain = _write_midi(tmp_path / "plain.mid", [[
		mido.Message("note_on", note=60, velocity=100, time=0),
		mido.Message("note_off", note=60, time=480),
	]])

	assert notevisual.midi_file.read_tempo(plain) == notevisual.midi_file.DEFAULT_BPM
	assert notevisual.midi_file.read_tempo(plain, default_bpm=90.0) == 90.0


def test_parsed_file_is_read_once (song: str, monkeypatch: pytest.MonkeyPatch) -> None:

	"""A file opened once with open_midi serves both load_blocks and read_tempo without another parse."""

	midi = notevisual.midi_file.open_midi(song)

	def fail (*args, **kwargs):
		raise AssertionError("MIDI file parsed a second time")

	monkeypatch.setattr(notevisual.midi_file, "open_midi", fail)

	blocks = notevisual.midi_file.load_blocks(midi)

	assert [note.pitch for note in blocks[0].notes] == [60, 64]
	assert notevisual.midi_file.read_tempo(midi) == pytest.approx(100.0)


def test_missing_file_raises (tmp_path: pathlib.Path) -> None:

	"""A missing file raises MidiFileError, which is also a ValueError."""

	with pytest.raises(notevisual.midi_file.MidiFileError):
		notevisual.midi_file.load_blocks(tmp_path / "missing.mid")

	with pytest.raises(ValueError):
		notevisual.midi_file.read_tempo(tmp_path / "missing.mid")


def test_garbage_file_raises (tmp_path: pathlib.Path) -> None:

	"""A file that is not a Standard MIDI File raises MidiFileError."""

	path = tmp_path / "garbage.mid"
	path.write_bytes(b"this is not a midi file at all")

	with pytest.raises(notevisual.midi_file.MidiFileError):
		notevisual.midi_file.load_blocks(path)
