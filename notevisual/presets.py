"""Reference content modules.

These exercise every part of the definition DSL and double as starting points
for new modules.  Look them up by name with :func:`get_preset`:

	module = notevisual.presets.get_preset("nested_ring")()
	objects = module.evaluate(time_beats, blocks, bpm=120)

	pulse_sphere         One sphere per note, ADSR-driven size and fade.
	kick_drum            A sphere squashed by a damped spring on every hit.
	converging_spheres   A ring of spheres that flies in *before* the note.
	nested_ring          Three levels: a cube, a ring around it, and moons.
"""

import math
import typing

import notevisual.context
import notevisual.engine
import notevisual.envelopes
import notevisual.mapping
import notevisual.module
import notevisual.notes
import notevisual.settings
import notevisual.vectors


Settings = notevisual.settings.Settings
MappingContext = notevisual.context.MappingContext
NoteContext = notevisual.context.NoteContext


def _adsr_from_settings (note_context: NoteContext, settings: Settings) -> notevisual.envelopes.AdsrConfig:

	return notevisual.envelopes.AdsrConfig(
		attack = settings.get("attack", 0.01),
		decay = settings.get("decay", 0.2),
		sustain = settings.get("sustain", 0.6),
		release = settings.get("release", 0.5)
	)


def _define_adsr_settings (settings: Settings, attack: float = 0.01, decay: float = 0.2, sustain: float = 0.6, release: float = 0.5) -> None:

	settings.define("attack", attack, label="Attack (s)", minimum=0.0, maximum=2.0, step=0.01)
	settings.define("decay", decay, label="Decay (s)", minimum=0.0, maximum=2.0, step=0.01)
	settings.define("sustain", sustain, label="Sustain Level", minimum=0.0, maximum=1.0, step=0.01)
	settings.define("release", release, label="Release (s)", minimum=0.0, maximum=4.0, step=0.01)


class PulseSphere (notevisual.module.ContentModule):

	"""One sphere per note, spread left to right by pitch."""

	name = "pulse_sphere"

	def define_settings (self, settings: Settings) -> None:

		settings.define("base_size", 1.0, minimum=0.1, maximum=5.0, step=0.1)
		settings.define("spread", 10.0, minimum=0.0, maximum=40.0, step=0.5)
		settings.define("saturation", 80.0, minimum=0.0, maximum=100.0, step=1.0)
		settings.define("lightness", 55.0, minimum=0.0, maximum=100.0, step=1.0)
		_define_adsr_settings(settings)

	def define_objects (self, engine: notevisual.engine.VisualObjectEngine) -> None:

		def position (ctx: MappingContext, settings: Settings) -> notevisual.context.Vec3:
			half = settings.get("spread") / 2
			return (notevisual.mapping.map_pitch_to_range(ctx.note.pitch, -half, half), 0.0, 0.0)

		def scale (ctx: MappingContext, settings: Settings) -> float:
			size = settings.get("base_size") * notevisual.mapping.map_value(ctx.note.velocity, 0, 127, 0.5, 1.5)
			return size * (0.5 + 0.5 * (ctx.adsr_amplitude or 0.0))

		def color (ctx: MappingContext, settings: Settings) -> str:
			return notevisual.mapping.map_pitch_to_hsl(ctx.note.pitch, settings.get("saturation"), settings.get("lightness"))

		engine.define_object("sphere") \
			.apply_adsr(_adsr_from_settings) \
			.with_position(position) \
			.with_scale(scale) \
			.with_color(color) \
			.with_opacity(lambda ctx, settings: ctx.adsr_amplitude)


class KickDrum (notevisual.module.ContentModule):

	"""
	A sphere that compresses on each kick and springs back.

	The physics value sums every kick so far, so a fast roll keeps the
	sphere squeezed while a single hit rings out.
	"""

	name = "kick_drum"

	def define_settings (self, settings: Settings) -> None:

		settings.define("base_size", 3.0, minimum=0.1, maximum=5.0, step=0.1)
		settings.define("compression", 0.5, label="Compression Amount", minimum=0.0, maximum=2.0, step=0.05)
		settings.define("min_scale_factor", 0.1, label="Min Size Factor", minimum=0.01, maximum=0.5, step=0.01)
		settings.define("color", "#ff4400", ui_type="color")
		settings.define("tension", 250.0, minimum=10.0, maximum=1000.0, step=5.0)
		settings.define("friction", 15.0, minimum=0.0, maximum=50.0, step=0.5)
		settings.define("impact_velocity", 5.0, label="Impact Velocity", minimum=0.0, maximum=20.0, step=0.2)
		settings.define("kick_pitch", 36, label="Kick Pitch", ui_type="number", minimum=0, maximum=127, step=1)
		settings.define("release", 0.6, label="Release (s)", minimum=0.0, maximum=4.0, step=0.01)

	def define_objects (self, engine: notevisual.engine.VisualObjectEngine) -> None:

		def physics (note_context: NoteContext, settings: Settings) -> notevisual.envelopes.PhysicsEnvelopeConfig:
			return notevisual.envelopes.PhysicsEnvelopeConfig(
				tension = settings.get("tension"),
				friction = settings.get("friction"),
				initial_velocity = settings.get("impact_velocity") * notevisual.mapping.map_value(note_context.note.velocity, 0, 127, 0.5, 1.5)
			)

		def scale (ctx: MappingContext, settings: Settings) -> float:
			base_size = settings.get("base_size")
			target = base_size - (ctx.physics_value or 0.0) * settings.get("compression")
			return max(base_size * settings.get("min_scale_factor"), target)

		engine.define_object("sphere") \
			.when(lambda note_context, settings: note_context.note.pitch == settings.get("kick_pitch")) \
			.apply_physics_envelope(physics) \
			.apply_adsr(lambda note_context, settings: {"sustain": 1.0, "release": settings.get("release")}) \
			.with_position(lambda ctx, settings: (0.0, 0.0, 0.0)) \
			.with_scale(scale) \
			.with_color(lambda ctx, settings: settings.get("color"))


class ConvergingSpheres (notevisual.module.ContentModule):

	"""
	Spheres start on a wide circle and spiral in, arriving exactly as the note starts.

	Level 1 draws nothing; it only anchors the ring.  Level 2 is the ring,
	animated through the approach window and faded out by the ADSR.
	"""

	name = "converging_spheres"

	def define_settings (self, settings: Settings) -> None:

		settings.define("count", 5, label="Number of Spheres", ui_type="number", minimum=1, maximum=32, step=1)
		settings.define("start_distance", 15.0, minimum=1.0, maximum=50.0, step=0.5)
		settings.define("start_z", 20.0, minimum=-50.0, maximum=50.0, step=0.5)
		settings.define("arc_intensity", 5.0, minimum=0.0, maximum=20.0, step=0.1)
		settings.define("lookahead", 0.5, label="Lookahead (s)", minimum=0.0, maximum=4.0, step=0.01)
		settings.define("post_hit_slowdown", 0.1, minimum=0.0, maximum=1.0, step=0.01)
		settings.define("color", "#ffffff", ui_type="color")
		_define_adsr_settings(settings, decay=0.2, sustain=0.5, release=0.5)

	def define_objects (self, engine: notevisual.engine.VisualObjectEngine) -> None:

		def ring (parent: MappingContext, settings: Settings) -> typing.List[typing.Dict[str, typing.Any]]:

			count = int(settings.get("count"))
			distance = settings.get("start_distance")
			instances = []

			for i in range(count):
				start = notevisual.vectors.on_circle(distance, (i / count) * math.pi * 2, settings.get("start_z"))
				tangent = notevisual.vectors.scale(notevisual.vectors.normalize((-start[1], start[0], 0.0)), settings.get("arc_intensity"))
				instances.append({"index": i, "start": start, "tangent": tangent})

			return instances

		def position (ctx: MappingContext, settings: Settings) -> notevisual.context.Vec3:

			start = ctx.instance_data["start"]
			tangent = ctx.instance_data["tangent"]
			lookahead = settings.get("lookahead")

			if lookahead <= 0:
				return start if ctx.is_approaching else (0.0, 0.0, 0.0)

			if ctx.time_since_note_start >= 0:
				# Keep drifting along the impact direction, slowed down.
				impact_velocity = notevisual.vectors.scale(start, -1.0 / lookahead)
				return notevisual.vectors.scale(impact_velocity, ctx.time_since_note_start * settings.get("post_hit_slowdown"))

			progress = max(0.0, min(1.0, 1.0 + ctx.time_since_note_start / lookahead))
			radial = notevisual.vectors.scale(start, 1.0 - progress)
			swirl = notevisual.vectors.scale(tangent, (1.0 - progress) ** 2)

			return notevisual.vectors.add(radial, swirl)

		def opacity (ctx: MappingContext, settings: Settings) -> float:

			if ctx.is_approaching:
				return 1.0

			return ctx.adsr_amplitude or 0.0

		engine.define_object("sphere") \
			.apply_approach_envelope(lambda note_context, settings: {"lookahead_time": settings.get("lookahead")}) \
			.for_each_instance(ring) \
			.apply_adsr(_adsr_from_settings) \
			.with_position(position) \
			.with_scale(lambda ctx, settings: 0.5) \
			.with_color(lambda ctx, settings: settings.get("color")) \
			.with_opacity(opacity)


class NestedRing (notevisual.module.ContentModule):

	"""
	A cube per note, a ring of smaller cubes around it, and a moon around each ring cube.

	Each note takes the lowest free lane when it first appears and keeps it for
	as long as it is visible.  After every frame the lanes of notes that drew
	nothing are released, so the table only ever holds on-screen notes.  It
	lives in ``state`` and is copied, not shared, by :meth:`clone`.
	"""

	name = "nested_ring"

	def define_settings (self, settings: Settings) -> None:

		settings.define("lanes", 8, ui_type="number", minimum=1, maximum=64, step=1)
		settings.define("lane_spacing", 3.0, minimum=0.5, maximum=10.0, step=0.1)
		settings.define("ring_count", 6, ui_type="number", minimum=1, maximum=32, step=1)
		settings.define("ring_radius", 1.5, minimum=0.1, maximum=10.0, step=0.1)
		settings.define("moon_radius", 0.4, minimum=0.05, maximum=5.0, step=0.05)
		settings.define("spin", 1.0, label="Spin (rad/s)", minimum=-10.0, maximum=10.0, step=0.1)
		_define_adsr_settings(settings, attack=0.02, decay=0.3, sustain=0.7, release=0.8)

	def lane_for (self, note_id: str) -> int:

		"""Return (assigning on first sight) the lane for ``note_id``."""

		lanes = self.state.setdefault("lanes", {})

		if note_id not in lanes:
			count = int(self.settings.get("lanes"))
			taken = set(lanes.values())
			lanes[note_id] = next((lane for lane in range(count) if lane not in taken), len(lanes) % count)

		return lanes[note_id]

	def evaluate (self, time_beats: float, blocks: typing.Sequence[notevisual.notes.MIDIBlock], bpm: float) -> typing.List[notevisual.context.VisualObject]:

		"""Evaluate the frame, then release the lanes of notes that are no longer drawn."""

		objects = super().evaluate(time_beats, blocks, bpm)

		visible = {obj.source_note_id for obj in objects}
		lanes = self.state.get("lanes", {})

		for note_id in [note_id for note_id in lanes if note_id not in visible]:
			del lanes[note_id]

		return objects

	def define_objects (self, engine: notevisual.engine.VisualObjectEngine) -> None:

		def centre (ctx: MappingContext, settings: Settings) -> notevisual.context.Vec3:
			lane = self.lane_for(ctx.note.id)
			offset = (lane - (settings.get("lanes") - 1) / 2) * settings.get("lane_spacing")
			return (offset, notevisual.mapping.map_pitch_to_range(ctx.note.pitch, -4.0, 4.0), 0.0)

		def ring (parent: MappingContext, settings: Settings) -> typing.List[typing.Dict[str, float]]:
			count = int(settings.get("ring_count"))
			return [{"angle": (i / count) * math.pi * 2} for i in range(count)]

		def around_parent (radius_setting: str) -> typing.Callable[[MappingContext, Settings], notevisual.context.Vec3]:

			def position (ctx: MappingContext, settings: Settings) -> notevisual.context.Vec3:
				centre_position = ctx.parent.calculated_properties.position or (0.0, 0.0, 0.0)
				angle = ctx.instance_data["angle"] + ctx.time_since_note_start * settings.get("spin")
				return notevisual.vectors.add(centre_position, notevisual.vectors.on_circle(settings.get(radius_setting), angle))

			return position

		def fade (ctx: MappingContext, settings: Settings) -> float:
			return ctx.adsr_amplitude or 0.0

		engine.define_object("cube") \
			.apply_adsr(_adsr_from_settings) \
			.with_position(centre) \
			.with_scale(lambda ctx, settings: 0.8) \
			.with_color(lambda ctx, settings: notevisual.mapping.map_pitch_to_hsl(ctx.note.pitch, 70, 50)) \
			.with_opacity(fade) \
			.for_each_instance(ring) \
			.apply_adsr(_adsr_from_settings) \
			.with_position(around_parent("ring_radius")) \
			.with_scale(lambda ctx, settings: 0.3) \
			.with_rotation(lambda ctx, settings: (0.0, 0.0, ctx.instance_data["angle"])) \
			.with_opacity(fade) \
			.for_each_instance(lambda parent, settings: [{"angle": parent.instance_data["angle"] * 2}]) \
			.set_type("sphere") \
			.apply_adsr(_adsr_from_settings) \
			.with_position(around_parent("moon_radius")) \
			.with_scale(lambda ctx, settings: 0.1) \
			.with_emissive(lambda ctx, settings: "#ffffff") \
			.with_emissive_intensity(fade) \
			.with_opacity(fade)


PRESETS: typing.Dict[str, typing.Type[notevisual.module.ContentModule]] = {
	PulseSphere.name: PulseSphere,
	KickDrum.name: KickDrum,
	ConvergingSpheres.name: ConvergingSpheres,
	NestedRing.name: NestedRing,
}


def get_preset (name: str) -> typing.Type[notevisual.module.ContentModule]:

	"""Return the preset class called ``name``.  Raises ``KeyError`` listing the available names."""

	if name not in PRESETS:
		available = ", ".join(sorted(PRESETS))
		raise KeyError(f"Unknown preset {name!r}. Available presets: {available}")

	return PRESETS[name]
