import json
import logging
import math

import notevisual
import notevisual.mapping
import notevisual.vectors

logging.basicConfig(level=logging.INFO)

BPM = 124
FPS = 30

engine = notevisual.VisualObjectEngine()

engine.settings.define("orbit_radius", 2.5, minimum=0.5, maximum=10.0, step=0.1)
engine.settings.define("satellites", 4, ui_type="number", minimum=1, maximum=16, step=1)

# A kick every beat and a short melody over the top.
kicks = [notevisual.MIDINote(f"kick-{i}", start_beat=float(i), duration=0.25, velocity=110, pitch=36) for i in range(8)]
melody = [
	notevisual.MIDINote(f"lead-{i}", start_beat=i * 1.5 + 0.5, duration=1.0, velocity=70 + i * 8, pitch=pitch)
	for i, pitch in enumerate([64, 67, 71, 72, 76])
]

blocks = [
	notevisual.make_block(kicks, start_beat=0.0, id="drums"),
	notevisual.make_block(melody, start_beat=0.0, id="lead"),
]

# Kick: one central sphere that jolts on every hit.
engine.define_object("sphere") \
	.when(lambda note_ctx, settings: note_ctx.note.pitch == 36) \
	.apply_physics_envelope(notevisual.PhysicsEnvelopeConfig(tension=300, friction=12, initial_velocity=4)) \
	.apply_adsr(notevisual.AdsrConfig(sustain=1.0, release=0.3)) \
	.with_position(lambda ctx, settings: (0.0, 0.0, 0.0)) \
	.with_scale(lambda ctx, settings: max(0.2, 1.5 - (ctx.physics_value or 0.0))) \
	.with_color(lambda ctx, settings: "#ff3300")


def satellites (parent, settings):
	count = int(settings.get("satellites"))
	return [{"angle": (i / count) * math.pi * 2} for i in range(count)]


def orbit (ctx, settings):
	angle = ctx.instance_data["angle"] + ctx.time_since_note_start * 2.0
	return notevisual.vectors.add(ctx.parent.calculated_properties.position, notevisual.vectors.on_circle(settings.get("orbit_radius"), angle))


# Lead: a cube per note, placed by pitch, with satellites orbiting it.
engine.define_object("cube") \
	.when(lambda note_ctx, settings: note_ctx.note.pitch != 36) \
	.apply_adsr(notevisual.AdsrConfig(attack=0.05, decay=0.2, sustain=0.6, release=0.5)) \
	.with_position(lambda ctx, settings: (notevisual.mapping.map_pitch_to_range(ctx.note.pitch, -12, 12, 60, 80), 3.0, 0.0)) \
	.with_color(lambda ctx, settings: notevisual.mapping.map_pitch_to_hsl(ctx.note.pitch, 75, 55, hue_start=180, hue_end=300, pitch_min=60, pitch_max=80)) \
	.with_opacity(lambda ctx, settings: ctx.adsr_amplitude) \
	.for_each_instance(satellites) \
	.set_type("sphere") \
	.apply_adsr(notevisual.AdsrConfig(attack=0.1, decay=0.1, sustain=0.8, release=0.8)) \
	.with_position(orbit) \
	.with_scale(lambda ctx, settings: 0.25) \
	.with_opacity(lambda ctx, settings: ctx.adsr_amplitude)

seconds_per_beat = 60.0 / BPM

for frame in range(0, 8 * FPS, FPS // 2):

	time_beats = (frame / FPS) / seconds_per_beat
	objects = engine.evaluate(time_beats, blocks, BPM)

	logging.info(f"beat {time_beats:6.2f}: {len(objects)} objects")

# The last frame as the renderer would receive it.
print(json.dumps([obj.to_dict() for obj in objects], indent=2))
