"""
notevisual - procedural visuals driven by MIDI notes.

notevisual is the evaluation core of a MIDI-to-3D visualiser.  Content
authors describe, with a small fluent DSL, how notes become objects: what
triggers them, how many instances fan out at each level, and how position,
scale, rotation, colour and opacity follow the note over time.  Once per
frame the engine evaluates those definitions against the notes on the
timeline and returns a flat list of objects for a renderer to draw.

What it provides:

- **Envelopes.** ADSR amplitude, a damped-spring "physics" envelope that
  sums the ring-out of every hit, and an approach window that lets objects
  move into place *before* their note sounds.
- **Hierarchical instancing.** Level 1 is one object per note; each
  ``for_each_instance()`` adds a level that fans out from the one above,
  with every child able to read its parent's final position, scale and
  colour.
- **Culling.** Notes outside their active window are skipped outright, and
  branches whose envelope has released are pruned, so frame cost follows
  the notes actually on screen.
- **Content modules.** Named, UI-describable settings, per-module state and
  ``clone()`` for running a preview and an export side by side.
- **MIDI import.** Standard MIDI Files become blocks, one per track.

Minimal example:

    ```python
    import notevisual

    engine = notevisual.VisualObjectEngine()

    engine.define_object("sphere") \\
        .apply_adsr(notevisual.AdsrConfig(attack=0.1, decay=0.1, sustain=0.5, release=0.2)) \\
        .with_scale(lambda ctx, settings: 0.5 + ctx.note.velocity / 127) \\
        .with_opacity(lambda ctx, settings: ctx.adsr_amplitude)

    block = notevisual.make_block([notevisual.MIDINote("n1", start_beat=0, duration=1, velocity=100, pitch=60)])

    objects = engine.evaluate(0.2, [block], bpm=120)
    ```

Package-level exports: ``VisualObjectEngine``, ``ContentModule``,
``MIDINote``, ``MIDIBlock``, ``make_block``, ``AdsrConfig``,
``PhysicsEnvelopeConfig``, ``ApproachEnvelopeConfig``, ``VisualObject``.
"""

import notevisual.context
import notevisual.engine
import notevisual.envelopes
import notevisual.module
import notevisual.notes


VisualObjectEngine = notevisual.engine.VisualObjectEngine
ContentModule = notevisual.module.ContentModule
MIDINote = notevisual.notes.MIDINote
MIDIBlock = notevisual.notes.MIDIBlock
make_block = notevisual.notes.make_block
AdsrConfig = notevisual.envelopes.AdsrConfig
PhysicsEnvelopeConfig = notevisual.envelopes.PhysicsEnvelopeConfig
ApproachEnvelopeConfig = notevisual.envelopes.ApproachEnvelopeConfig
VisualObject = notevisual.context.VisualObject
