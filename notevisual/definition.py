"""Object definitions and the fluent builder content modules use to write them.

A definition describes how one kind of note turns into visual objects.  It is
a stack of *levels*: level 1 is one object per triggering note, and every
further level fans out from the level above it with a generator function.

	engine.define_object("cube") \\
		.when(lambda note_ctx, settings: note_ctx.note.pitch < 48) \\
		.apply_adsr(AdsrConfig(attack=0.05, decay=0.2, sustain=0.6, release=0.5)) \\
		.with_position(lambda ctx, settings: (0.0, 0.0, 0.0)) \\
		.with_scale(lambda ctx, settings: 1.0 + ctx.adsr_amplitude) \\
		.for_each_instance(ring_of(8)) \\
		.with_position(ring_position) \\
		.with_opacity(lambda ctx, settings: ctx.adsr_amplitude)

Attribute setters always configure the *current* level: the one most
recently added by :meth:`ObjectDefinitionBuilder.for_each_instance` (or level
1 before any generator has been added).  ``when()`` and
``apply_approach_envelope()`` apply to the whole definition.

:meth:`ObjectDefinitionBuilder.build` freezes the result into an
:class:`ObjectDefinition`.  Structural problems (gaps in the level numbers,
a level without a generator) do not raise; they are logged and recorded on
the definition so the engine can skip just the affected branch.
"""

import dataclasses
import logging
import typing

import notevisual.context
import notevisual.envelopes
import notevisual.settings


logger = logging.getLogger(__name__)


Settings = notevisual.settings.Settings

GateFn = typing.Callable[[notevisual.context.NoteContext, Settings], bool]
GeneratorFn = typing.Callable[[notevisual.context.MappingContext, Settings], typing.Iterable[notevisual.context.InstanceData]]
MapperFn = typing.Callable[[notevisual.context.MappingContext, Settings], typing.Any]

# An envelope config may be a config object, a mapping of its fields, or a
# callable ``(note_context, settings) -> config`` evaluated per note.
ConfigSource = typing.Union[typing.Any, typing.Callable[[notevisual.context.NoteContext, Settings], typing.Any]]


class DefinitionError (ValueError):

	"""Raised for builder misuse that can only be a programming mistake."""


def _always (note_context: notevisual.context.NoteContext, settings: Settings) -> bool:

	return True


@dataclasses.dataclass(frozen=True)
class DefinitionLevel:

	"""
	Configuration for one level of a definition.

	Attributes:
		level: 1-based level number.
		generator: Produces the instances of this level from the parent
			context.  Never set on level 1; required on every other level.
		type: Overrides the object type for this level and below.
		position_mapper: ``(ctx, settings) -> (x, y, z)``
		scale_mapper: ``(ctx, settings) -> (x, y, z)`` or a uniform number.
		rotation_mapper: ``(ctx, settings) -> (x, y, z)`` in radians.
		color_mapper: ``(ctx, settings) -> str``
		opacity_mapper: ``(ctx, settings) -> float``
		emissive_mapper: ``(ctx, settings) -> str``
		emissive_intensity_mapper: ``(ctx, settings) -> float``
		adsr: ADSR config source for this level.
		physics: Physics envelope config source for this level.
	"""

	level: int
	generator: typing.Optional[GeneratorFn] = None
	type: typing.Optional[str] = None
	position_mapper: typing.Optional[MapperFn] = None
	scale_mapper: typing.Optional[MapperFn] = None
	rotation_mapper: typing.Optional[MapperFn] = None
	color_mapper: typing.Optional[MapperFn] = None
	opacity_mapper: typing.Optional[MapperFn] = None
	emissive_mapper: typing.Optional[MapperFn] = None
	emissive_intensity_mapper: typing.Optional[MapperFn] = None
	adsr: typing.Optional[ConfigSource] = None
	physics: typing.Optional[ConfigSource] = None

	@property
	def has_geometry (self) -> bool:

		"""True if this level can ever emit an object (it maps position or scale)."""

		return self.position_mapper is not None or self.scale_mapper is not None


def validate_levels (levels: typing.Sequence[DefinitionLevel]) -> typing.Tuple[str, ...]:

	"""
	Check a level stack and describe everything wrong with it.

	Levels must be numbered 1, 2, 3 ... with no gaps or repeats, level 1
	must not have a generator, and every deeper level must have one.
	Returns an empty tuple when the stack is sound.
	"""

	problems: typing.List[str] = []

	if not levels:
		return ("definition has no levels",)

	for expected, level in enumerate(levels, start=1):

		if level.level != expected:
			problems.append(f"level {level.level} found where level {expected} was expected")
			break

	for level in levels:

		if level.level == 1 and level.generator is not None:
			problems.append("level 1 has a generator - level 1 is always one instance per note")

		elif level.level > 1 and level.generator is None:
			problems.append(f"level {level.level} has no generator")

	return tuple(problems)


@dataclasses.dataclass(frozen=True)
class ObjectDefinition:

	"""
	An immutable, finished definition.  Built by :class:`ObjectDefinitionBuilder`.

	Attributes:
		initial_type: Object type used unless a level overrides it.
		levels: Level configs, in level order.
		gate: ``(note_context, settings) -> bool`` deciding which notes trigger
			this definition.
		approach: Approach envelope config source, or ``None``.
		problems: Structural problems found by :func:`validate_levels`.
	"""

	initial_type: str
	levels: typing.Tuple[DefinitionLevel, ...]
	gate: GateFn = _always
	approach: typing.Optional[ConfigSource] = None
	problems: typing.Tuple[str, ...] = ()

	@classmethod
	def from_levels (cls, initial_type: str, levels: typing.Iterable[DefinitionLevel], gate: GateFn = _always, approach: typing.Optional[ConfigSource] = None) -> "ObjectDefinition":

		"""Build a definition from explicit levels, validating (and logging) the stack."""

		level_tuple = tuple(levels)
		problems = validate_levels(level_tuple)

		for problem in problems:
			logger.warning(f"Object definition {initial_type!r}: {problem}")

		return cls(initial_type=initial_type, levels=level_tuple, gate=gate, approach=approach, problems=problems)

	@property
	def is_valid (self) -> bool:

		return not self.problems

	@property
	def depth (self) -> int:

		return len(self.levels)

	def level (self, number: int) -> typing.Optional[DefinitionLevel]:

		"""Return the config for level ``number``, or ``None`` if it does not exist."""

		index = number - 1

		if 0 <= index < len(self.levels) and self.levels[index].level == number:
			return self.levels[index]

		for candidate in self.levels:
			if candidate.level == number:
				return candidate

		return None

	@property
	def has_physics (self) -> bool:

		return any(level.physics is not None for level in self.levels)


class ObjectDefinitionBuilder:

	"""
	Fluent builder for an :class:`ObjectDefinition`.

	Holds an append-only list of level drafts and the index of the level that
	attribute setters currently apply to.  Every method returns the builder so
	calls can be chained.
	"""

	def __init__ (self, initial_type: str) -> None:

		self.initial_type = initial_type
		self._gate: GateFn = _always
		self._approach: typing.Optional[ConfigSource] = None
		self._levels: typing.List[typing.Dict[str, typing.Any]] = [{"level": 1}]
		self._current: int = 0
		self._built: typing.Optional[ObjectDefinition] = None

	@property
	def current_level (self) -> int:

		"""The level number that attribute setters currently apply to."""

		return self._levels[self._current]["level"]

	def _set (self, field: str, value: typing.Any) -> "ObjectDefinitionBuilder":

		self._levels[self._current][field] = value
		self._built = None
		return self

	def _set_mapper (self, field: str, mapper: MapperFn) -> "ObjectDefinitionBuilder":

		if not callable(mapper):
			raise DefinitionError(f"{field} for {self.initial_type!r} level {self.current_level} must be callable, got {type(mapper).__name__}")

		return self._set(field, mapper)

	# ─── Whole-definition settings ────────────────────────────────────────────

	def when (self, gate: GateFn) -> "ObjectDefinitionBuilder":

		"""
		Only trigger this definition for notes where ``gate(note_context, settings)`` is true.

		Example::

			.when(lambda note_ctx, settings: note_ctx.note.pitch == settings.get("trigger_pitch"))
		"""

		if not callable(gate):
			raise DefinitionError(f"when() for {self.initial_type!r} must be given a callable")

		self._gate = gate
		self._built = None
		return self

	def apply_approach_envelope (self, config: ConfigSource) -> "ObjectDefinitionBuilder":

		"""
		Make objects appear ``lookahead_time`` seconds before their note starts.

		During the approach ``ctx.time_since_note_start`` is negative and
		``ctx.time_until_note_start`` counts down to zero.

		Parameters:
			config: An :class:`~notevisual.envelopes.ApproachEnvelopeConfig`,
				a mapping such as ``{"lookahead_time": 0.5}``, or a callable
				``(note_context, settings) -> config``.
		"""

		self._approach = config
		self._built = None
		return self

	# ─── Levels ───────────────────────────────────────────────────────────────

	def for_each_instance (self, generator: GeneratorFn) -> "ObjectDefinitionBuilder":

		"""
		Start a new level with one instance per item returned by ``generator``.

		The generator runs once per parent instance, receiving the parent's
		fully resolved context (including its ``calculated_properties``), and
		returns a list of instance data mappings.  Subsequent attribute
		setters configure the new level.

		Example::

			.for_each_instance(lambda parent, settings: [{"index": i} for i in range(settings.get("count", 4))])
		"""

		if not callable(generator):
			raise DefinitionError(f"for_each_instance() for {self.initial_type!r} must be given a callable")

		self._levels.append({"level": len(self._levels) + 1, "generator": generator})
		self._current = len(self._levels) - 1
		self._built = None
		return self

	def at_level (self, number: int) -> "ObjectDefinitionBuilder":

		"""Go back to an existing level so further setters apply to it."""

		for index, draft in enumerate(self._levels):
			if draft["level"] == number:
				self._current = index
				return self

		raise DefinitionError(f"{self.initial_type!r} has no level {number} (levels 1-{len(self._levels)})")

	# ─── Current-level settings ───────────────────────────────────────────────

	def set_type (self, object_type: str) -> "ObjectDefinitionBuilder":

		"""Emit this level (and, unless overridden, deeper levels) as ``object_type``."""

		return self._set("type", object_type)

	def with_position (self, mapper: MapperFn) -> "ObjectDefinitionBuilder":

		return self._set_mapper("position_mapper", mapper)

	def with_scale (self, mapper: MapperFn) -> "ObjectDefinitionBuilder":

		"""Map scale.  The mapper may return an ``(x, y, z)`` triple or a single uniform number."""

		return self._set_mapper("scale_mapper", mapper)

	def with_rotation (self, mapper: MapperFn) -> "ObjectDefinitionBuilder":

		return self._set_mapper("rotation_mapper", mapper)

	def with_color (self, mapper: MapperFn) -> "ObjectDefinitionBuilder":

		return self._set_mapper("color_mapper", mapper)

	def with_opacity (self, mapper: MapperFn) -> "ObjectDefinitionBuilder":

		return self._set_mapper("opacity_mapper", mapper)

	def with_emissive (self, mapper: MapperFn) -> "ObjectDefinitionBuilder":

		return self._set_mapper("emissive_mapper", mapper)

	def with_emissive_intensity (self, mapper: MapperFn) -> "ObjectDefinitionBuilder":

		return self._set_mapper("emissive_intensity_mapper", mapper)

	def apply_adsr (self, config: ConfigSource) -> "ObjectDefinitionBuilder":

		"""
		Attach an ADSR envelope to the current level.

		Mappers on this level read ``ctx.adsr_amplitude`` and ``ctx.adsr_phase``.
		Once the envelope has fully released, the level's instances (and
		everything below them) stop being evaluated.
		"""

		return self._set("adsr", config)

	def apply_physics_envelope (self, config: ConfigSource) -> "ObjectDefinitionBuilder":

		"""
		Attach a damped-oscillator envelope to the current level.

		``ctx.physics_value`` is the summed response to every matching note
		that has started so far, each one an independent decaying kick.
		"""

		return self._set("physics", config)

	# ─── Finish ───────────────────────────────────────────────────────────────

	def build (self) -> ObjectDefinition:

		"""Freeze the builder into an :class:`ObjectDefinition`.  Cached until the builder changes."""

		if self._built is None:
			levels = [DefinitionLevel(**draft) for draft in self._levels]
			self._built = ObjectDefinition.from_levels(self.initial_type, levels, gate=self._gate, approach=self._approach)

		return self._built
