"""Preview a preset against a MIDI file from the command line.

	python -m notevisual song.mid --preset nested_ring --fps 30 --seconds 8

Without a MIDI file a one-bar C major arpeggio is used.  Each frame's object
count is logged; nothing is rendered.
"""

import argparse
import logging
import typing

import notevisual.config
import notevisual.midi_file
import notevisual.notes
import notevisual.presets


logger = logging.getLogger(__name__)


def demo_blocks () -> typing.List[notevisual.notes.MIDIBlock]:

	"""A single block with a C major arpeggio, one note per beat."""

	notes = [
		notevisual.notes.MIDINote(id=f"demo-{i}", start_beat=float(i), duration=0.75, velocity=96, pitch=pitch)
		for i, pitch in enumerate([36, 60, 64, 67])
	]

	return [notevisual.notes.make_block(notes, start_beat=0.0, id="demo")]


def parse_args (argv: typing.Optional[typing.Sequence[str]] = None) -> argparse.Namespace:

	parser = argparse.ArgumentParser(prog="notevisual", description="Evaluate a visual preset over a MIDI file and report per-frame object counts.")
	parser.add_argument("midi", nargs="?", help="Standard MIDI File to load (defaults to a built-in arpeggio)")
	parser.add_argument("--config", default="notevisual.yaml", help="YAML config file (default: notevisual.yaml)")
	parser.add_argument("--preset", help=f"One of: {', '.join(sorted(notevisual.presets.PRESETS))}")
	parser.add_argument("--fps", type=float, help="Frames per second")
	parser.add_argument("--seconds", type=float, help="Length to preview (default: until the last note has released)")
	parser.add_argument("--bpm", type=float, help="Tempo (default: from the MIDI file, else 120)")

	return parser.parse_args(argv)


def main (argv: typing.Optional[typing.Sequence[str]] = None) -> int:

	"""
	Main entry point for the preview command.
	"""

	args = parse_args(argv)
	config = notevisual.config.load_config(args.config)

	logging.basicConfig(level=config.log_level)

	preview = config.preview
	preset_name = args.preset or preview.preset

	try:
		module = notevisual.presets.get_preset(preset_name)(config=config.engine)
	except KeyError as exc:
		logger.error(exc.args[0])
		return 2

	if args.midi:
		try:
			midi = notevisual.midi_file.open_midi(args.midi)
			blocks = notevisual.midi_file.load_blocks(midi)
			file_bpm = notevisual.midi_file.read_tempo(midi)
		except notevisual.midi_file.MidiFileError as exc:
			logger.error(str(exc))
			return 1
	else:
		blocks = demo_blocks()
		file_bpm = notevisual.midi_file.DEFAULT_BPM

	bpm = args.bpm or preview.bpm or file_bpm
	fps = args.fps or preview.fps
	seconds_per_beat = notevisual.notes.seconds_per_beat(bpm)

	seconds = args.seconds or preview.seconds

	if seconds is None:
		last_beat = max((block.end_beat for block in blocks), default=0.0)
		seconds = last_beat * seconds_per_beat + 2.0

	frame_count = max(1, int(seconds * fps))

	logger.info(f"Previewing '{preset_name}' at {bpm:g} BPM: {frame_count} frames at {fps:g} fps")

	peak = 0

	for frame in range(frame_count):

		time_beats = (frame / fps) / seconds_per_beat
		objects = module.evaluate(time_beats, blocks, bpm)
		peak = max(peak, len(objects))

		logger.debug(f"frame {frame:5d}  beat {time_beats:8.3f}  objects {len(objects)}")

	logger.info(f"Done. Peak object count: {peak}")

	return 0


if __name__ == "__main__":
	raise SystemExit(main())
