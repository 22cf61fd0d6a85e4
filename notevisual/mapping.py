"""Value mapping helpers for mappers - ranges, pitch, velocity and HSL colour strings.

Example::

	def color (ctx, settings):
		return notevisual.mapping.map_pitch_to_hsl(ctx.note.pitch, 80, 55, hue_start=200, hue_end=320)

	def scale (ctx, settings):
		return notevisual.mapping.map_value(ctx.note.velocity, 0, 127, 0.5, 2.0, shape="ease_out")
"""

import typing

import notevisual.easing


MIDI_MAX = 127


def map_value (
	value: float,
	in_min: float = 0.0,
	in_max: float = 1.0,
	out_min: float = 0.0,
	out_max: float = 1.0,
	shape: typing.Union[str, notevisual.easing.EasingFn] = "linear",
	clamp: bool = True
) -> float:

	"""Map a value from one range to another, with optional easing.

	*value* is normalised against ``[in_min, in_max]``, clamped (unless
	``clamp`` is False), eased with ``shape`` and interpolated into
	``[out_min, out_max]``.  Reversed output ranges are fine.

	Parameters:
		value: The raw input.
		in_min: Lower bound of the input range.
		in_max: Upper bound of the input range.
		out_min: Output at ``in_min``.
		out_max: Output at ``in_max``.
		shape: Easing curve name or callable (see :mod:`notevisual.easing`).
		clamp: Keep the result inside the output range.

	Returns:
		The mapped value.  An empty input range (``in_min == in_max``)
		returns ``out_min``.
	"""

	if in_min == in_max:
		return out_min

	t = (value - in_min) / (in_max - in_min)

	if clamp:
		t = max(0.0, min(1.0, t))

	eased_t = notevisual.easing.get_easing(shape)(t)

	return out_min + (out_max - out_min) * eased_t


def map_pitch_to_range (pitch: float, out_min: float, out_max: float, pitch_min: float = 0, pitch_max: float = MIDI_MAX) -> float:

	"""Map a MIDI pitch linearly into ``[out_min, out_max]``."""

	return map_value(pitch, pitch_min, pitch_max, out_min, out_max)


def velocity_to_unit (velocity: float) -> float:

	"""Map a MIDI velocity (0-127) to [0, 1]."""

	return map_value(velocity, 0, MIDI_MAX, 0.0, 1.0)


def hsl (hue: float, saturation: float, lightness: float) -> str:

	"""Format a CSS ``hsl()`` colour string with whole-number components."""

	return f"hsl({hue:.0f}, {saturation:.0f}%, {lightness:.0f}%)"


def map_pitch_to_hsl (
	pitch: float,
	saturation: float,
	lightness: float,
	hue_start: float = 0,
	hue_end: float = 360,
	pitch_min: float = 0,
	pitch_max: float = MIDI_MAX
) -> str:

	"""
	Colour a note by pitch: the pitch range is spread across ``[hue_start, hue_end]``.

	Example::

		map_pitch_to_hsl(60, 80, 50)   # 'hsl(170, 80%, 50%)'
	"""

	return hsl(map_value(pitch, pitch_min, pitch_max, hue_start, hue_end), saturation, lightness)


def map_value_to_hsl (
	value: float,
	saturation: float,
	lightness: float,
	in_min: float,
	in_max: float,
	hue_start: float = 0,
	hue_end: float = 360
) -> str:

	"""Like :func:`map_pitch_to_hsl` for an arbitrary input range."""

	return hsl(map_value(value, in_min, in_max, hue_start, hue_end), saturation, lightness)
