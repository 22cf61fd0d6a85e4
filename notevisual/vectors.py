"""Small helpers for ``(x, y, z)`` tuples, for use inside position mappers."""

import math
import typing


Vec3 = typing.Tuple[float, float, float]


def add (a: Vec3, b: Vec3) -> Vec3:
	return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def scale (v: Vec3, factor: float) -> Vec3:
	return (v[0] * factor, v[1] * factor, v[2] * factor)


def length (v: Vec3) -> float:
	return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def normalize (v: Vec3) -> Vec3:

	"""Unit vector in the direction of ``v``.  The zero vector stays zero."""

	size = length(v)

	if size == 0:
		return (0.0, 0.0, 0.0)

	return scale(v, 1.0 / size)


def lerp (a: Vec3, b: Vec3, t: float) -> Vec3:

	"""Interpolate from ``a`` (t=0) to ``b`` (t=1).  ``t`` is not clamped."""

	return (
		a[0] + (b[0] - a[0]) * t,
		a[1] + (b[1] - a[1]) * t,
		a[2] + (b[2] - a[2]) * t,
	)


def on_circle (radius: float, angle: float, z: float = 0.0) -> Vec3:

	"""Point on a circle in the XY plane."""

	return (math.cos(angle) * radius, math.sin(angle) * radius, z)
