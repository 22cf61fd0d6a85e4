"""Envelope calculators - ADSR, damped-oscillator physics and the approach window.

Every function here is pure: it takes times in seconds and a config value and
returns a number.  The engine calls them once per instance per frame, so none
of them allocate more than a small result tuple.

Three envelopes are available to object definitions:

	ADSR        Attack-decay-sustain-release amplitude in [0, 1], driven by the
	            note's start and end.
	Physics     A mass-spring-damper kicked by an impulse at every matching note.
	            The value is the sum of all past kicks, so rapid notes pile up.
	Approach    A window *before* the note starts, so objects can travel toward
	            the point where they will be struck.

Example::

	state = calculate_adsr(0.05, 0.0, 1.0, AdsrConfig(attack=0.1, decay=0.1, sustain=0.5, release=0.2))
	state.amplitude   # 0.5 - halfway up the attack ramp
	state.phase       # "attack"
"""

import bisect
import dataclasses
import logging
import math
import numbers
import typing


logger = logging.getLogger(__name__)


# Below this the damped frequency (or overdamped rate) is treated as zero.
DEGENERATE_FREQUENCY = 1e-9

# Substituted for a non-positive spring tension.
MIN_TENSION = 0.1


# ─── Phases ───────────────────────────────────────────────────────────────────


class AdsrPhase:

	"""Names of the ADSR phases, as reported on ``MappingContext.adsr_phase``."""

	IDLE = "idle"
	ATTACK = "attack"
	DECAY = "decay"
	SUSTAIN = "sustain"
	RELEASE = "release"


# ─── Configs ──────────────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class AdsrConfig:

	"""
	ADSR envelope shape.  Times are in seconds, ``sustain`` is a level in [0, 1].
	"""

	attack: float = 0.0
	decay: float = 0.0
	sustain: float = 1.0
	release: float = 0.0

	def clamped (self) -> "AdsrConfig":

		"""Return a copy with negative times at zero and sustain inside [0, 1]."""

		return AdsrConfig(
			attack = max(0.0, self.attack),
			decay = max(0.0, self.decay),
			sustain = min(1.0, max(0.0, self.sustain)),
			release = max(0.0, self.release)
		)


@dataclasses.dataclass(frozen=True)
class PhysicsEnvelopeConfig:

	"""
	Damped oscillator parameters (unit mass).

	Attributes:
		tension: Spring stiffness *k*.  Higher is faster oscillation.
		friction: Damping coefficient *c*.  Higher settles sooner.
		initial_velocity: Impulse *v0* delivered when the note starts.
	"""

	tension: float = 100.0
	friction: float = 10.0
	initial_velocity: float = 1.0


@dataclasses.dataclass(frozen=True)
class ApproachEnvelopeConfig:

	"""
	How long before a note starts its objects begin to appear (seconds).
	"""

	lookahead_time: float = 0.5


@dataclasses.dataclass(frozen=True)
class EnvelopeState:

	"""Amplitude in [0, 1] and the phase that produced it."""

	amplitude: float
	phase: str


IDLE_STATE = EnvelopeState(0.0, AdsrPhase.IDLE)


_ConfigT = typing.TypeVar("_ConfigT", AdsrConfig, PhysicsEnvelopeConfig, ApproachEnvelopeConfig)


def coerce_config (value: typing.Any, config_type: typing.Type[_ConfigT]) -> typing.Optional[_ConfigT]:

	"""
	Turn a config value returned by content code into a config dataclass.

	Accepts an instance of ``config_type`` or a mapping of its field names.
	Anything else - including a mapping with unknown or non-numeric fields -
	returns ``None`` so the caller can treat the envelope as absent.
	"""

	if isinstance(value, config_type):
		return value

	if not isinstance(value, typing.Mapping):
		return None

	field_names = {field.name for field in dataclasses.fields(config_type)}

	kwargs: typing.Dict[str, float] = {}

	for key, raw in value.items():

		if key not in field_names:
			logger.debug("Ignoring unknown %s field %r", config_type.__name__, key)
			continue

		if isinstance(raw, bool) or not isinstance(raw, numbers.Real) or not math.isfinite(raw):
			return None

		kwargs[key] = float(raw)

	return config_type(**kwargs)


# ─── ADSR ─────────────────────────────────────────────────────────────────────


def calculate_adsr (time: float, note_start: float, note_end: float, config: AdsrConfig) -> EnvelopeState:

	"""
	Evaluate an ADSR envelope for one note.

	Parameters:
		time: Current time in seconds.
		note_start: Note start in seconds.
		note_end: Note end in seconds.  The sustain phase holds until here.
		config: Envelope shape.  Negative times are treated as zero.

	Returns:
		An :class:`EnvelopeState`.  Before the note starts and after the
		release has finished the state is ``(0.0, "idle")``.
	"""

	config = config.clamped()

	elapsed = time - note_start

	if elapsed < 0:
		return IDLE_STATE

	# Attack: 0 -> 1.  A zero-length attack is skipped entirely.
	if elapsed < config.attack:
		return EnvelopeState(min(1.0, elapsed / config.attack), AdsrPhase.ATTACK)

	# Decay: 1 -> sustain.
	decay_elapsed = elapsed - config.attack

	if decay_elapsed < config.decay:
		progress = decay_elapsed / config.decay
		amplitude = 1.0 - (1.0 - config.sustain) * progress
		return EnvelopeState(max(0.0, amplitude), AdsrPhase.DECAY)

	if time <= note_end:
		return EnvelopeState(config.sustain, AdsrPhase.SUSTAIN)

	# Release: sustain -> 0.
	release_elapsed = time - note_end

	if release_elapsed < config.release:
		amplitude = config.sustain * (1.0 - release_elapsed / config.release)
		return EnvelopeState(max(0.0, amplitude), AdsrPhase.RELEASE)

	return IDLE_STATE


# ─── Physics ──────────────────────────────────────────────────────────────────


def calculate_damped_oscillator (time: float, tension: float, friction: float, initial_velocity: float) -> float:

	"""
	Displacement of a unit-mass damped oscillator struck at ``time == 0``.

	Solves ``x'' + friction * x' + tension * x = 0`` with ``x(0) = 0`` and
	``x'(0) = initial_velocity``.  With ``omega = sqrt(tension)`` and damping
	ratio ``zeta = friction / (2 * omega)``:

		zeta < 1   (v0 / wd) * exp(-zeta * omega * t) * sin(wd * t),  wd = omega * sqrt(1 - zeta^2)
		zeta == 1  v0 * t * exp(-omega * t)
		zeta > 1   (v0 / a) * exp(-zeta * omega * t) * sinh(a * t),   a = omega * sqrt(zeta^2 - 1)

	A non-positive tension is replaced with ``MIN_TENSION`` and a negative
	friction with zero.  Negative time and zero velocity both return 0.

	Example::

		calculate_damped_oscillator(math.pi / 20, tension=100, friction=0, initial_velocity=1)
		# 0.1 - a quarter period of a 10 rad/s sine with amplitude 1/10
	"""

	if tension <= 0:
		logger.debug("Oscillator tension %s is not positive - using %s", tension, MIN_TENSION)
		tension = MIN_TENSION

	if friction < 0:
		logger.debug("Oscillator friction %s is negative - using 0", friction)
		friction = 0.0

	if time < 0 or initial_velocity == 0:
		return 0.0

	omega = math.sqrt(tension)
	zeta = friction / (2.0 * omega)

	if zeta < 1.0:
		omega_d = omega * math.sqrt(1.0 - zeta * zeta)

		if omega_d > DEGENERATE_FREQUENCY:
			return (initial_velocity / omega_d) * math.exp(-zeta * omega * time) * math.sin(omega_d * time)

	elif zeta > 1.0:
		alpha = omega * math.sqrt(zeta * zeta - 1.0)

		if alpha > DEGENERATE_FREQUENCY:
			return (initial_velocity / alpha) * math.exp(-zeta * omega * time) * math.sinh(alpha * time)

	# Critically damped, or close enough that the closed forms lose precision.
	return initial_velocity * time * math.exp(-omega * time)


def oscillator_for (time: float, config: PhysicsEnvelopeConfig) -> float:

	"""Shorthand for :func:`calculate_damped_oscillator` with a config object."""

	return calculate_damped_oscillator(time, config.tension, config.friction, config.initial_velocity)


class PhysicsTriggers:

	"""
	Every trigger (start time and resolved config) feeding one physics envelope.

	Trigger times are kept sorted so a lookup only visits triggers that have
	already happened.  Built once per evaluation per physics level.
	"""

	def __init__ (self, triggers: typing.Iterable[typing.Tuple[float, PhysicsEnvelopeConfig]]) -> None:

		ordered = sorted(triggers, key=lambda item: item[0])

		self._times: typing.List[float] = [start for start, _ in ordered]
		self._configs: typing.List[PhysicsEnvelopeConfig] = [config for _, config in ordered]

	def __len__ (self) -> int:

		return len(self._times)

	def value_at (self, time: float) -> float:

		"""Return the summed displacement of all triggers at or before ``time``."""

		return sum_physics_envelope(time, self._times, self._configs)


def sum_physics_envelope (time: float, trigger_times: typing.Sequence[float], configs: typing.Sequence[PhysicsEnvelopeConfig]) -> float:

	"""
	Sum the oscillator response of every trigger that has already fired.

	Each trigger contributes an independent decaying term, so a fast run of
	notes keeps the system excited while a single hit rings out on its own.

	Parameters:
		time: Current time in seconds.
		trigger_times: Start time of each trigger, sorted ascending.
		configs: The oscillator config for each trigger (same order).
	"""

	if len(trigger_times) != len(configs):
		raise ValueError("sum_physics_envelope(): trigger_times and configs must be the same length")

	fired = bisect.bisect_right(trigger_times, time)

	total = 0.0

	for start, config in zip(trigger_times[:fired], configs[:fired]):
		total += oscillator_for(time - start, config)

	return total


# ─── Approach ─────────────────────────────────────────────────────────────────


def calculate_approach (time: float, note_start: float, lookahead: float) -> typing.Optional[float]:

	"""
	Return the time remaining until the note starts, if inside the approach window.

	The window is ``[note_start - lookahead, note_start)``.  Inside it the
	result is strictly positive; anywhere else (including once the note has
	started) the result is ``None``.
	"""

	if lookahead <= 0:
		return None

	remaining = note_start - time

	if 0 < remaining <= lookahead:
		return remaining

	return None
