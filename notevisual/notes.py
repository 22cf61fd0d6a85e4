"""Note and block model - the immutable input to every evaluation.

A :class:`MIDIBlock` groups notes under a shared time offset, the way a clip
sits on a timeline track.  Note positions are relative to the block, so moving
a block moves every note inside it.  All positions and durations are in beats;
conversion to seconds happens in the engine with :func:`seconds_per_beat`.
"""

import dataclasses
import typing


# Used to guard every beat-to-second conversion against a zero or negative tempo.
MIN_BPM = 1e-3


@dataclasses.dataclass(frozen=True)
class MIDINote:

	"""
	A single note inside a block.

	Attributes:
		id: Stable identifier, copied to ``VisualObject.source_note_id``.
		start_beat: Start position in beats, relative to the owning block.
		duration: Length in beats.
		velocity: MIDI velocity (0-127).
		pitch: MIDI note number (0-127).
	"""

	id: str
	start_beat: float
	duration: float
	velocity: int = 100
	pitch: int = 60

	def absolute_start (self, block: "MIDIBlock") -> float:

		"""Return the note's start position on the global timeline, in beats."""

		return block.start_beat + self.start_beat

	def absolute_end (self, block: "MIDIBlock") -> float:

		"""Return the note's end position on the global timeline, in beats."""

		return self.absolute_start(block) + max(0.0, self.duration)


@dataclasses.dataclass(frozen=True)
class MIDIBlock:

	"""
	A group of notes sharing one time offset.

	Attributes:
		id: Block identifier.
		start_beat: Absolute start of the block in beats.
		end_beat: Absolute end of the block in beats.
		notes: The notes, positioned relative to ``start_beat``.
	"""

	id: str
	start_beat: float
	end_beat: float
	notes: typing.Tuple[MIDINote, ...] = ()

	def __post_init__ (self) -> None:

		# Accept any iterable of notes but store a tuple so the block stays hashable.
		if not isinstance(self.notes, tuple):
			object.__setattr__(self, "notes", tuple(self.notes))

	def absolute_notes (self) -> typing.List[typing.Tuple[float, float, MIDINote]]:

		"""Return ``(start_beat, end_beat, note)`` for every note, on the global timeline."""

		return [(note.absolute_start(self), note.absolute_end(self), note) for note in self.notes]


def seconds_per_beat (bpm: float) -> float:

	"""Return the length of one beat in seconds, clamping degenerate tempos."""

	return 60.0 / max(MIN_BPM, bpm)


def make_block (notes: typing.Iterable[MIDINote], start_beat: float = 0.0, id: typing.Optional[str] = None) -> MIDIBlock:

	"""
	Build a block around some notes, computing ``end_beat`` from the last note end.

	Parameters:
		notes: Notes positioned relative to ``start_beat``.
		start_beat: Absolute start of the block.
		id: Optional block id (defaults to ``"block-<start_beat>"``).

	Example::

		block = make_block([MIDINote("n1", 0, 1, velocity=100, pitch=60)], start_beat=4)
	"""

	note_tuple = tuple(notes)

	length = max((note.start_beat + max(0.0, note.duration) for note in note_tuple), default=0.0)

	return MIDIBlock(
		id = id if id is not None else f"block-{start_beat:g}",
		start_beat = start_beat,
		end_beat = start_beat + length,
		notes = note_tuple
	)
