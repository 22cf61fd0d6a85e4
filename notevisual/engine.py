"""The evaluation engine - turns notes into visual objects, one frame at a time.

:meth:`VisualObjectEngine.evaluate` is called once per rendered (or exported)
frame with the current time, every block on the track and the tempo.  It
walks every definition × note × level × instance and returns a flat list of
:class:`~notevisual.context.VisualObject`.

For each definition and note:

1. The note's absolute start and end are converted from beats to seconds.
2. The definition's ``when`` gate decides whether the note takes part.
3. Notes outside their active window - from the start of the approach (if
   any) to the end of the longest release - are skipped without building a
   single context.
4. Levels are evaluated top-down.  Level 1 is one instance per note; each
   deeper level asks its generator for instances, given the parent context
   with the parent's mapper results already filled in.  An instance whose
   ADSR has fully released (and whose physics has settled) is pruned along
   with everything below it.
5. An instance becomes an object when a position or scale mapper produced a
   value and its opacity is above ``opacity_epsilon``.

The engine keeps no state between calls apart from the cache of built
definitions.  It never raises from ``evaluate``: configuration problems skip
the affected branch, and an exception from content code (a gate, generator,
mapper or config callable) silences that one note for the frame.
"""

import dataclasses
import logging
import math
import numbers
import typing

import notevisual.config
import notevisual.context
import notevisual.definition
import notevisual.envelopes
import notevisual.notes
import notevisual.settings


logger = logging.getLogger(__name__)


# Notes shorter than this (in seconds) count as zero-length.
DURATION_EPSILON = 1e-9

_MAPPER_FIELDS = (
	("position", "position_mapper"),
	("scale", "scale_mapper"),
	("rotation", "rotation_mapper"),
	("color", "color_mapper"),
	("opacity", "opacity_mapper"),
	("emissive", "emissive_mapper"),
	("emissive_intensity", "emissive_intensity_mapper"),
)


# ─── Mapper output coercion ───────────────────────────────────────────────────


def _as_number (value: typing.Any) -> typing.Optional[float]:

	if isinstance(value, bool) or not isinstance(value, numbers.Real):
		return None

	if not math.isfinite(value):
		return None

	return float(value)


def _as_vec3 (value: typing.Any) -> typing.Optional[notevisual.context.Vec3]:

	if value is None or isinstance(value, (str, bytes)):
		return None

	try:
		items = tuple(value)
	except TypeError:
		return None

	if len(items) != 3:
		return None

	components = [_as_number(item) for item in items]

	if any(number is None for number in components):
		return None

	return (components[0], components[1], components[2])  # type: ignore[return-value]


def _as_scale (value: typing.Any) -> typing.Optional[typing.Union[notevisual.context.Vec3, float]]:

	number = _as_number(value)

	if number is not None:
		return number

	return _as_vec3(value)


def _as_color (value: typing.Any) -> typing.Optional[str]:

	if isinstance(value, str) and value:
		return value

	return None


_COERCERS: typing.Dict[str, typing.Callable[[typing.Any], typing.Any]] = {
	"position": _as_vec3,
	"scale": _as_scale,
	"rotation": _as_vec3,
	"color": _as_color,
	"opacity": _as_number,
	"emissive": _as_color,
	"emissive_intensity": _as_number,
}


# ─── Per-note and per-frame state ─────────────────────────────────────────────


@dataclasses.dataclass
class _NoteTiming:

	"""Everything about one gated note that does not depend on the instance."""

	note_context: notevisual.context.NoteContext
	start: float
	end: float
	duration: float
	time_until_start: typing.Optional[float]
	adsr: typing.Dict[int, notevisual.envelopes.AdsrConfig]


@dataclasses.dataclass(frozen=True)
class _StaticWindow:

	"""
	The parts of a definition's active window known without calling content code.

	``None`` means the bound depends on a config callable and is only known
	once that callable has run for the note.
	"""

	lookahead: typing.Optional[float]
	max_release: typing.Optional[float]


def _static_window (definition: notevisual.definition.ObjectDefinition) -> _StaticWindow:

	lookahead: typing.Optional[float] = None

	if not callable(definition.approach):
		approach = notevisual.envelopes.coerce_config(definition.approach, notevisual.envelopes.ApproachEnvelopeConfig)
		lookahead = max(0.0, approach.lookahead_time) if approach is not None else 0.0

	max_release: typing.Optional[float] = None

	if not any(callable(level.adsr) for level in definition.levels):
		releases = [
			config.clamped().release
			for config in (notevisual.envelopes.coerce_config(level.adsr, notevisual.envelopes.AdsrConfig) for level in definition.levels)
			if config is not None
		]
		max_release = max(releases, default=0.0)

	return _StaticWindow(lookahead=lookahead, max_release=max_release)


class _FrameEvaluation:

	"""
	One call to :meth:`VisualObjectEngine.evaluate`.  Holds only what the
	current frame needs and is discarded when it returns.
	"""

	def __init__ (self, time_beats: float, bpm: float, settings: notevisual.settings.Settings, config: notevisual.config.EngineConfig) -> None:

		self.time_beats = time_beats
		self.bpm = max(config.min_bpm, bpm)
		self.seconds_per_beat = notevisual.notes.seconds_per_beat(self.bpm)
		self.now = time_beats * self.seconds_per_beat
		self.settings = settings
		self.config = config
		self.objects: typing.List[notevisual.context.VisualObject] = []

	# ── Config resolution ──

	def resolve (self, source: typing.Any, note_context: notevisual.context.NoteContext, config_type: typing.Type[typing.Any], what: str) -> typing.Any:

		"""Turn a config source (value, mapping or callable) into a config object, or ``None``."""

		if source is None:
			return None

		value = source(note_context, self.settings) if callable(source) else source
		config = notevisual.envelopes.coerce_config(value, config_type)

		if config is None:
			logger.debug("Ignoring malformed %s config %r for note %s", what, value, note_context.note.id)

		return config

	# ── Definitions ──

	def evaluate_definition (self, definition: notevisual.definition.ObjectDefinition, blocks: typing.Sequence[notevisual.notes.MIDIBlock]) -> None:

		"""Evaluate one definition against every note and append the objects it emits."""

		gated: typing.List[notevisual.context.NoteContext] = []

		for block in blocks:
			for start_beat, end_beat, note in block.absolute_notes():

				note_context = notevisual.context.NoteContext(note=note, block=block, start_beat=start_beat, end_beat=end_beat)

				try:
					if definition.gate(note_context, self.settings):
						gated.append(note_context)

				except Exception:
					logger.exception("Gate for %r raised on note %s - skipping the note this frame", definition.initial_type, note.id)

		if not gated:
			return

		physics = self._physics_values(definition, gated)
		window = _static_window(definition)

		for note_context in gated:

			branch: typing.List[notevisual.context.VisualObject] = []

			try:
				timing = self._note_timing(definition, note_context, window)

				if timing is not None:
					root = definition.level(1)

					if root is not None:
						self._evaluate_level(definition, root, timing, physics, None, branch)

			except Exception:
				logger.exception("Error evaluating %r for note %s - the note will be silent this frame", definition.initial_type, note_context.note.id)
				continue

			self.objects.extend(branch)

	def _physics_values (self, definition: notevisual.definition.ObjectDefinition, gated: typing.Sequence[notevisual.context.NoteContext]) -> typing.Dict[int, float]:

		"""Summed physics value per level, over every gated note that has started."""

		values: typing.Dict[int, float] = {}

		for level in definition.levels:

			if level.physics is None:
				continue

			triggers = []

			for note_context in gated:

				start = note_context.start_beat * self.seconds_per_beat

				if start > self.now:
					continue

				try:
					config = self.resolve(level.physics, note_context, notevisual.envelopes.PhysicsEnvelopeConfig, "physics")

				except Exception:
					logger.exception("Physics config for %r raised on note %s - leaving it out", definition.initial_type, note_context.note.id)
					continue

				if config is not None:
					triggers.append((start, config))

			values[level.level] = notevisual.envelopes.PhysicsTriggers(triggers).value_at(self.now)

		return values

	def _note_timing (self, definition: notevisual.definition.ObjectDefinition, note_context: notevisual.context.NoteContext, window: _StaticWindow) -> typing.Optional[_NoteTiming]:

		"""Resolve a note's timing and envelopes, or ``None`` if the note is outside its active window."""

		start = note_context.start_beat * self.seconds_per_beat
		end = note_context.end_beat * self.seconds_per_beat

		# Cull on the bounds already known so config callables only run for notes that may be visible.
		if window.lookahead is not None and self.now < start - window.lookahead:
			return None

		if window.max_release is not None and self.now > end + window.max_release:
			return None

		lookahead = 0.0
		approach = self.resolve(definition.approach, note_context, notevisual.envelopes.ApproachEnvelopeConfig, "approach")

		if approach is not None:
			lookahead = max(0.0, approach.lookahead_time)

		adsr: typing.Dict[int, notevisual.envelopes.AdsrConfig] = {}

		for level in definition.levels:

			config = self.resolve(level.adsr, note_context, notevisual.envelopes.AdsrConfig, "ADSR")

			if config is not None:
				adsr[level.level] = config.clamped()

		max_release = max((config.release for config in adsr.values()), default=0.0)

		if self.now < start - lookahead or self.now > end + max_release:
			return None

		return _NoteTiming(
			note_context = note_context,
			start = start,
			end = end,
			duration = max(0.0, end - start),
			time_until_start = notevisual.envelopes.calculate_approach(self.now, start, lookahead),
			adsr = adsr
		)

	# ── Levels ──

	def _instances (self, definition: notevisual.definition.ObjectDefinition, level: notevisual.definition.DefinitionLevel, parent: typing.Optional[notevisual.context.MappingContext]) -> typing.List[notevisual.context.InstanceData]:

		if level.level == 1:
			return [{}]

		if parent is None:
			logger.warning("Level %d of %r has no parent context - skipping", level.level, definition.initial_type)
			return []

		if level.generator is None:
			logger.debug("Level %d of %r has no generator - skipping", level.level, definition.initial_type)
			return []

		generated = level.generator(parent, self.settings)

		if generated is None:
			return []

		instances: typing.List[notevisual.context.InstanceData] = []

		for item in generated:

			if isinstance(item, typing.Mapping):
				instances.append(item)
			else:
				logger.debug("Generator for %r level %d produced %r - not a mapping, skipping", definition.initial_type, level.level, item)

		return instances

	def _evaluate_level (
		self,
		definition: notevisual.definition.ObjectDefinition,
		level: notevisual.definition.DefinitionLevel,
		timing: _NoteTiming,
		physics: typing.Dict[int, float],
		parent: typing.Optional[notevisual.context.MappingContext],
		output: typing.List[notevisual.context.VisualObject]
	) -> None:

		next_level = definition.level(level.level + 1)
		approaching = timing.time_until_start is not None

		time_since_start = self.now - timing.start

		if approaching or time_since_start < 0:
			progress = 0.0
		elif timing.duration <= DURATION_EPSILON:
			progress = 1.0
		else:
			progress = min(1.0, max(0.0, time_since_start / timing.duration))

		adsr_state: typing.Optional[notevisual.envelopes.EnvelopeState] = None
		adsr_config = timing.adsr.get(level.level)

		if adsr_config is not None:
			adsr_state = notevisual.envelopes.calculate_adsr(self.now, timing.start, timing.end, adsr_config)

		physics_value = physics.get(level.level)

		# A released, settled branch produces nothing here or below.
		if not approaching and adsr_state is not None and adsr_state.amplitude <= 0 and adsr_state.phase == notevisual.envelopes.AdsrPhase.IDLE:
			if physics_value is None or abs(physics_value) <= self.config.physics_epsilon:
				return

		if level.type is not None:
			object_type = level.type
		elif parent is not None:
			object_type = parent.object_type
		else:
			object_type = definition.initial_type

		for instance_data in self._instances(definition, level, parent):

			context = notevisual.context.MappingContext(
				note = timing.note_context.note,
				block = timing.note_context.block,
				time = self.time_beats,
				bpm = self.bpm,
				time_since_note_start = time_since_start,
				note_progress_percent = progress,
				note_duration_seconds = timing.duration,
				level = level.level,
				instance_data = instance_data,
				parent = parent,
				object_type = object_type,
				time_until_note_start = timing.time_until_start,
				adsr_amplitude = adsr_state.amplitude if adsr_state is not None else None,
				adsr_phase = adsr_state.phase if adsr_state is not None else None,
				physics_value = physics_value
			)

			context.calculated_properties = self._apply_mappers(definition, level, context)

			visual_object = self._make_object(context)

			if visual_object is not None:
				output.append(visual_object)

			if next_level is not None:
				self._evaluate_level(definition, next_level, timing, physics, context, output)

	def _apply_mappers (self, definition: notevisual.definition.ObjectDefinition, level: notevisual.definition.DefinitionLevel, context: notevisual.context.MappingContext) -> notevisual.context.CalculatedProperties:

		"""Run the level's mappers in fixed order and freeze the results."""

		values: typing.Dict[str, typing.Any] = {}

		for name, field in _MAPPER_FIELDS:

			mapper = getattr(level, field)

			if mapper is None:
				continue

			raw = mapper(context, self.settings)
			value = _COERCERS[name](raw)

			if value is None:
				if raw is not None:
					logger.debug("%s mapper for %r level %d returned %r - using the default", name, definition.initial_type, level.level, raw)
				continue

			values[name] = value

		return notevisual.context.CalculatedProperties(**values)

	def _make_object (self, context: notevisual.context.MappingContext) -> typing.Optional[notevisual.context.VisualObject]:

		"""Build the output object for a context, or ``None`` if it should not be drawn."""

		calculated = context.calculated_properties

		if calculated.position is None and calculated.scale is None:
			return None

		opacity = calculated.opacity if calculated.opacity is not None else notevisual.context.DEFAULT_OPACITY

		if opacity <= self.config.opacity_epsilon:
			return None

		scale = calculated.scale

		if scale is None:
			scale = notevisual.context.DEFAULT_SCALE
		elif isinstance(scale, float):
			scale = (scale, scale, scale)

		properties = notevisual.context.VisualObjectProperties(
			position = calculated.position if calculated.position is not None else notevisual.context.DEFAULT_POSITION,
			scale = scale,
			rotation = calculated.rotation if calculated.rotation is not None else notevisual.context.DEFAULT_ROTATION,
			color = calculated.color if calculated.color is not None else self.config.default_color,
			opacity = opacity,
			emissive = calculated.emissive,
			emissive_intensity = calculated.emissive_intensity
		)

		return notevisual.context.VisualObject(type=context.object_type, properties=properties, source_note_id=context.note.id)


# ─── Engine ───────────────────────────────────────────────────────────────────


class VisualObjectEngine:

	"""
	Holds a module's object definitions and evaluates them against the notes.

	Example::

		engine = VisualObjectEngine()

		engine.define_object("sphere") \\
			.apply_adsr(AdsrConfig(attack=0.1, decay=0.1, sustain=0.5, release=0.2)) \\
			.with_scale(lambda ctx, settings: 0.5 + ctx.note.velocity / 127) \\
			.with_opacity(lambda ctx, settings: ctx.adsr_amplitude)

		objects = engine.evaluate(time_beats=2.0, blocks=blocks, bpm=120)
	"""

	def __init__ (self, settings: typing.Optional[notevisual.settings.Settings] = None, config: typing.Optional[notevisual.config.EngineConfig] = None) -> None:

		"""
		Parameters:
			settings: Passed to every gate, generator, mapper and config
				callable as its second argument.
			config: Numeric tolerances (see :class:`~notevisual.config.EngineConfig`).
		"""

		self.settings = settings if settings is not None else notevisual.settings.Settings()
		self.config = config if config is not None else notevisual.config.EngineConfig()
		self._sources: typing.List[typing.Union[notevisual.definition.ObjectDefinitionBuilder, notevisual.definition.ObjectDefinition]] = []

	def define_object (self, initial_type: str) -> notevisual.definition.ObjectDefinitionBuilder:

		"""
		Start a new definition whose objects are of ``initial_type`` unless a level overrides it.

		The returned builder is registered with the engine; it is frozen into
		an :class:`~notevisual.definition.ObjectDefinition` on first use and
		rebuilt if it is changed afterwards.
		"""

		builder = notevisual.definition.ObjectDefinitionBuilder(initial_type)
		self._sources.append(builder)
		return builder

	def add_definition (self, definition: notevisual.definition.ObjectDefinition) -> None:

		"""Register an already-built definition."""

		self._sources.append(definition)

	def clear (self) -> None:

		"""Remove every definition."""

		self._sources.clear()

	@property
	def definitions (self) -> typing.List[notevisual.definition.ObjectDefinition]:

		"""The registered definitions, built, in registration order."""

		return [source.build() if isinstance(source, notevisual.definition.ObjectDefinitionBuilder) else source for source in self._sources]

	def evaluate (self, time_beats: float, blocks: typing.Sequence[notevisual.notes.MIDIBlock], bpm: float) -> typing.List[notevisual.context.VisualObject]:

		"""
		Return every visual object visible at ``time_beats``.

		Parameters:
			time_beats: Current playhead position in beats.
			blocks: All blocks on the track.
			bpm: Tempo.  Non-positive tempos are clamped to ``config.min_bpm``.

		Returns:
			A new list (possibly empty).  Identical arguments produce identical
			output as long as the content functions are themselves stateless.
		"""

		frame = _FrameEvaluation(time_beats, bpm, self.settings, self.config)

		for definition in self.definitions:
			frame.evaluate_definition(definition, blocks)

		return frame.objects
