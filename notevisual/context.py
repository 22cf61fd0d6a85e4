"""Evaluation contexts and output objects.

A :class:`MappingContext` is what every generator and mapper receives.  One is
built per note, per level, per instance, on every frame, and thrown away when
the frame is done.  Child contexts point at their parent; parents never point
at their children, so information only flows down the tree.

Mappers read timing and envelope state from the context and, from level 2
downward, whatever the parent level already calculated:

	def satellite_position (ctx, settings):
		x, y, z = ctx.parent.calculated_properties.position
		angle = ctx.instance_data["angle"]
		return (x + math.cos(angle), y + math.sin(angle), z)
"""

import dataclasses
import typing

import notevisual.notes


Vec3 = typing.Tuple[float, float, float]
InstanceData = typing.Mapping[str, typing.Any]

DEFAULT_POSITION: Vec3 = (0.0, 0.0, 0.0)
DEFAULT_SCALE: Vec3 = (1.0, 1.0, 1.0)
DEFAULT_ROTATION: Vec3 = (0.0, 0.0, 0.0)
DEFAULT_COLOR = "#ffffff"
DEFAULT_OPACITY = 1.0


@dataclasses.dataclass(frozen=True)
class NoteContext:

	"""
	What a gate predicate or an envelope-config callable can see: the note and its timing.

	Attributes:
		note: The note being considered.
		block: The block that owns it.
		start_beat: Absolute start in beats.
		end_beat: Absolute end in beats.
	"""

	note: notevisual.notes.MIDINote
	block: notevisual.notes.MIDIBlock
	start_beat: float
	end_beat: float


@dataclasses.dataclass(frozen=True)
class CalculatedProperties:

	"""
	The values this instance's mappers produced.  ``None`` means the mapper was absent
	(or returned something unusable).
	"""

	position: typing.Optional[Vec3] = None
	scale: typing.Optional[typing.Union[Vec3, float]] = None
	rotation: typing.Optional[Vec3] = None
	color: typing.Optional[str] = None
	opacity: typing.Optional[float] = None
	emissive: typing.Optional[str] = None
	emissive_intensity: typing.Optional[float] = None


EMPTY_PROPERTIES = CalculatedProperties()


@dataclasses.dataclass
class MappingContext:

	"""
	Everything a generator or mapper knows about one instance at the current frame.

	Attributes:
		note: The triggering note.
		block: The block that owns the note.
		time: Current time in beats.
		bpm: Tempo used for beat/second conversion.
		time_since_note_start: Seconds since the note started.  Negative while
			the object is approaching (before the note sounds).
		note_progress_percent: Fraction of the note's duration elapsed, in
			[0, 1].  Always 0 while approaching.
		note_duration_seconds: Note length in seconds.
		level: Depth in the definition, starting at 1.
		instance_data: Whatever the generator returned for this instance
			(empty at level 1).
		parent: The parent instance's context, ``None`` at level 1.
		object_type: The object type this instance will be emitted as.
		time_until_note_start: Seconds until the note starts, only while
			inside the approach window; otherwise ``None``.
		adsr_amplitude: Current ADSR amplitude, if the level declares one.
		adsr_phase: Current ADSR phase, if the level declares one.
		physics_value: Summed oscillator displacement, if the level declares
			a physics envelope.
		calculated_properties: This instance's own mapper results.  Filled in
			after the mappers run, so children see the final values.
	"""

	note: notevisual.notes.MIDINote
	block: notevisual.notes.MIDIBlock
	time: float
	bpm: float
	time_since_note_start: float
	note_progress_percent: float
	note_duration_seconds: float
	level: int
	instance_data: InstanceData
	parent: typing.Optional["MappingContext"] = None
	object_type: str = ""
	time_until_note_start: typing.Optional[float] = None
	adsr_amplitude: typing.Optional[float] = None
	adsr_phase: typing.Optional[str] = None
	physics_value: typing.Optional[float] = None
	calculated_properties: CalculatedProperties = EMPTY_PROPERTIES

	@property
	def is_approaching (self) -> bool:

		"""True while the note has not started yet but the object is already visible."""

		return self.time_until_note_start is not None

	@property
	def velocity (self) -> int:

		"""Shorthand for ``ctx.note.velocity``."""

		return self.note.velocity

	@property
	def pitch (self) -> int:

		"""Shorthand for ``ctx.note.pitch``."""

		return self.note.pitch

	def ancestor (self, level: int) -> typing.Optional["MappingContext"]:

		"""Walk up the parent chain to the context at ``level`` (or ``None``)."""

		current: typing.Optional[MappingContext] = self

		while current is not None and current.level > level:
			current = current.parent

		if current is not None and current.level == level:
			return current

		return None


@dataclasses.dataclass(frozen=True)
class VisualObjectProperties:

	"""Fully resolved render properties.  Scale is always a triple here."""

	position: Vec3 = DEFAULT_POSITION
	scale: Vec3 = DEFAULT_SCALE
	rotation: Vec3 = DEFAULT_ROTATION
	color: str = DEFAULT_COLOR
	opacity: float = DEFAULT_OPACITY
	emissive: typing.Optional[str] = None
	emissive_intensity: typing.Optional[float] = None


@dataclasses.dataclass(frozen=True)
class VisualObject:

	"""
	One object for the renderer to draw on this frame.
	"""

	type: str
	properties: VisualObjectProperties
	source_note_id: typing.Optional[str] = None

	def to_dict (self) -> typing.Dict[str, typing.Any]:

		"""Plain-dict form (lists instead of tuples) for renderers and exporters."""

		properties: typing.Dict[str, typing.Any] = {
			"position": list(self.properties.position),
			"scale": list(self.properties.scale),
			"rotation": list(self.properties.rotation),
			"color": self.properties.color,
			"opacity": self.properties.opacity,
		}

		if self.properties.emissive is not None:
			properties["emissive"] = self.properties.emissive

		if self.properties.emissive_intensity is not None:
			properties["emissiveIntensity"] = self.properties.emissive_intensity

		result: typing.Dict[str, typing.Any] = {"type": self.type, "properties": properties}

		if self.source_note_id is not None:
			result["sourceNoteId"] = self.source_note_id

		return result
