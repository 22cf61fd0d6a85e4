import math

import pytest

import notevisual.easing
import notevisual.mapping
import notevisual.vectors


# ─── Easing curves ───────────────────────────────────────────────────────────


def test_all_easings_pin_the_endpoints ():

	"""Every easing function maps 0 to 0 and 1 to 1."""

	for name, fn in notevisual.easing.EASING_FUNCTIONS.items():
		assert fn(0.0) == pytest.approx(0.0), f"{name}(0) should be 0.0"
		assert fn(1.0) == pytest.approx(1.0), f"{name}(1) should be 1.0"


def test_all_easings_monotonic ():

	"""Every easing function is non-decreasing over [0, 1]."""

	steps = 100

	for name, fn in notevisual.easing.EASING_FUNCTIONS.items():
		values = [fn(i / steps) for i in range(steps + 1)]
		for i in range(len(values) - 1):
			assert values[i] <= values[i + 1] + 1e-9, f"{name} is not monotonic at t={i / steps:.2f}"


def test_easing_shapes ():

	"""ease_in starts slow, ease_out starts fast and the symmetric curves cross at 0.5."""

	assert notevisual.easing.ease_in(0.5) < 0.5
	assert notevisual.easing.ease_out(0.5) > 0.5
	assert notevisual.easing.ease_in_out(0.5) == pytest.approx(0.5)
	assert notevisual.easing.s_curve(0.5) == pytest.approx(0.5)
	assert notevisual.easing.exponential(0.3) < notevisual.easing.ease_in(0.3)


def test_get_easing ():

	"""Names resolve to functions, callables pass through and unknown names raise."""

	assert notevisual.easing.get_easing("linear") is notevisual.easing.linear

	custom = lambda t: t
	assert notevisual.easing.get_easing(custom) is custom

	with pytest.raises(ValueError):
		notevisual.easing.get_easing("wobbly")


# ─── map_value ───────────────────────────────────────────────────────────────


def test_map_value_linear ():

	"""A linear map interpolates between the output bounds."""

	assert notevisual.mapping.map_value(0.5) == pytest.approx(0.5)
	assert notevisual.mapping.map_value(64, 0, 128, 10, 20) == pytest.approx(15.0)
	assert notevisual.mapping.map_value(0.25, 0, 1, 1, 0) == pytest.approx(0.75)


def test_map_value_clamps_by_default ():

	"""Values outside the input range are clamped unless clamp=False."""

	assert notevisual.mapping.map_value(2.0, 0, 1, 0, 10) == pytest.approx(10.0)
	assert notevisual.mapping.map_value(-1.0, 0, 1, 0, 10) == pytest.approx(0.0)
	assert notevisual.mapping.map_value(2.0, 0, 1, 0, 10, clamp=False) == pytest.approx(20.0)


def test_map_value_with_shape ():

	"""The easing shape bends the curve but keeps the endpoints."""

	assert notevisual.mapping.map_value(0.5, shape="ease_in") < 0.5
	assert notevisual.mapping.map_value(1.0, shape="ease_in") == pytest.approx(1.0)


def test_map_value_empty_input_range ():

	"""in_min == in_max returns out_min instead of dividing by zero."""

	assert notevisual.mapping.map_value(5, 3, 3, 7, 9) == 7


def test_pitch_and_velocity_helpers ():

	"""MIDI helpers map the 0-127 range."""

	assert notevisual.mapping.map_pitch_to_range(127, -5, 5) == pytest.approx(5.0)
	assert notevisual.mapping.map_pitch_to_range(36, 0, 1, pitch_min=36, pitch_max=84) == pytest.approx(0.0)
	assert notevisual.mapping.velocity_to_unit(127) == pytest.approx(1.0)
	assert notevisual.mapping.velocity_to_unit(0) == pytest.approx(0.0)


# ─── Colour ──────────────────────────────────────────────────────────────────


def test_hsl_format ():

	"""hsl() formats whole-number CSS components."""

	assert notevisual.mapping.hsl(120.4, 80, 49.6) == "hsl(120, 80%, 50%)"


def test_map_pitch_to_hsl ():

	"""Middle C lands about halfway round the default hue range."""

	assert notevisual.mapping.map_pitch_to_hsl(60, 80, 50) == "hsl(170, 80%, 50%)"
	assert notevisual.mapping.map_pitch_to_hsl(0, 80, 50, hue_start=200, hue_end=320) == "hsl(200, 80%, 50%)"


def test_map_value_to_hsl ():

	"""Arbitrary input ranges map onto the hue range."""

	assert notevisual.mapping.map_value_to_hsl(0.5, 100, 50, 0.0, 1.0, hue_start=0, hue_end=240) == "hsl(120, 100%, 50%)"


# ─── Vectors ─────────────────────────────────────────────────────────────────


def test_vector_arithmetic ():

	"""add, scale and length behave like their maths counterparts."""

	assert notevisual.vectors.add((1, 2, 3), (4, 5, 6)) == (5, 7, 9)
	assert notevisual.vectors.scale((1, -2, 3), 2) == (2, -4, 6)
	assert notevisual.vectors.length((3, 4, 0)) == pytest.approx(5.0)


def test_normalize ():

	"""normalize() gives a unit vector and leaves the zero vector alone."""

	assert notevisual.vectors.normalize((0, 0, 2)) == pytest.approx((0.0, 0.0, 1.0))
	assert notevisual.vectors.normalize((0, 0, 0)) == (0.0, 0.0, 0.0)


def test_lerp_and_circle ():

	"""lerp() interpolates; on_circle() places points on an XY circle."""

	assert notevisual.vectors.lerp((0, 0, 0), (2, 4, 6), 0.5) == pytest.approx((1.0, 2.0, 3.0))
	assert notevisual.vectors.on_circle(2.0, math.pi / 2, z=1.0) == pytest.approx((0.0, 2.0, 1.0))
