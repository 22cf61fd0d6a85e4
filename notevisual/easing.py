"""Easing curves for mapper output.

An easing function maps normalised progress *t* in [0, 1] to an eased value
in [0, 1].  Mappers use them to shape how an attribute moves between two
values - a sphere that swells with ``ease_out`` feels punchy, the same swell
with ``s_curve`` feels soft.

Pass a name or any callable wherever a ``shape`` is accepted:

	notevisual.mapping.map_value(ctx.note_progress_percent, 0, 1, 1.0, 3.0, shape="ease_out")
	notevisual.mapping.map_value(ctx.note.velocity, 0, 127, 0, 1, shape=lambda t: t ** 0.5)

Available shapes:

	"linear"      Constant rate (default).
	"ease_in"     Slow start, accelerates.
	"ease_out"    Fast start, decelerates - impacts, pops.
	"ease_in_out" Hermite smoothstep S-curve.
	"exponential" Cubic ease-in - a long, quiet build.
	"logarithmic" Cubic ease-out - most of the change up front.
	"s_curve"     Perlin smootherstep - the gentlest S-curve.

All satisfy f(0) = 0 and f(1) = 1 and never decrease.
"""

import typing


def linear (t: float) -> float:
	return t


def ease_in (t: float) -> float:
	return t * t


def ease_out (t: float) -> float:
	return 1.0 - (1.0 - t) * (1.0 - t)


def ease_in_out (t: float) -> float:

	"""Hermite smoothstep: slow at both ends, fastest in the middle."""

	return t * t * (3.0 - 2.0 * t)


def exponential (t: float) -> float:
	return t * t * t


def logarithmic (t: float) -> float:
	return 1.0 - (1.0 - t) * (1.0 - t) * (1.0 - t)


def s_curve (t: float) -> float:

	"""Perlin smootherstep.

	Zero first and second derivatives at both ends, so an object eased with
	it starts and stops without a visible jolt.
	"""

	return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


EasingFn = typing.Callable[[float], float]

EASING_FUNCTIONS: typing.Dict[str, EasingFn] = {
	"linear":      linear,
	"ease_in":     ease_in,
	"ease_out":    ease_out,
	"ease_in_out": ease_in_out,
	"exponential": exponential,
	"logarithmic": logarithmic,
	"s_curve":     s_curve,
}


def get_easing (shape: typing.Union[str, EasingFn]) -> EasingFn:

	"""Return the easing function for ``shape`` (a registered name or a callable).

	Raises :class:`ValueError` for unknown names.
	"""

	if callable(shape):
		return shape

	if shape not in EASING_FUNCTIONS:
		available = ", ".join(f'"{k}"' for k in sorted(EASING_FUNCTIONS))
		raise ValueError(f"Unknown easing shape {shape!r}. Available shapes: {available}")

	return EASING_FUNCTIONS[shape]
