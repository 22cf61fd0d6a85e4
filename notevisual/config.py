"""YAML configuration for the engine and the preview command.

Example ``notevisual.yaml``::

	engine:
	  opacity_epsilon: 0.001
	  physics_epsilon: 0.000001
	  min_bpm: 1.0
	  default_color: "#ffffff"

	preview:
	  preset: nested_ring
	  fps: 30
	  seconds: 8
	  bpm: 120

	logging:
	  level: INFO

Every section and key is optional.
"""

import dataclasses
import logging
import os
import typing

import yaml


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class EngineConfig:

	"""
	Numeric tolerances and defaults used by :class:`~notevisual.engine.VisualObjectEngine`.

	Attributes:
		opacity_epsilon: Objects at or below this opacity are not emitted.
		physics_epsilon: A physics value at or below this magnitude counts
			as settled when deciding whether to prune a released branch.
		min_bpm: Tempos below this are clamped before beat/second conversion.
		default_color: Colour used when a level has no colour mapper.
	"""

	opacity_epsilon: float = 1e-3
	physics_epsilon: float = 1e-6
	min_bpm: float = 1.0
	default_color: str = "#ffffff"


@dataclasses.dataclass(frozen=True)
class PreviewConfig:

	"""Settings for ``python -m notevisual``."""

	preset: str = "pulse_sphere"
	fps: float = 30.0
	seconds: typing.Optional[float] = None
	bpm: typing.Optional[float] = None


@dataclasses.dataclass(frozen=True)
class Config:

	engine: EngineConfig = dataclasses.field(default_factory=EngineConfig)
	preview: PreviewConfig = dataclasses.field(default_factory=PreviewConfig)
	log_level: str = "INFO"


_SectionT = typing.TypeVar("_SectionT", EngineConfig, PreviewConfig)


def _section (raw: typing.Any, section_type: typing.Type[_SectionT], name: str) -> _SectionT:

	"""Build one config section, ignoring (and logging) keys it does not know."""

	if raw is None:
		return section_type()

	if not isinstance(raw, dict):
		raise ValueError(f"Config section '{name}' must be a mapping, got {type(raw).__name__}")

	known = {field.name for field in dataclasses.fields(section_type)}
	kwargs = {}

	for key, value in raw.items():

		if key not in known:
			logger.warning(f"Unknown config key '{name}.{key}' - ignoring")
			continue

		kwargs[key] = value

	return section_type(**kwargs)


def parse_config (data: typing.Optional[typing.Mapping[str, typing.Any]]) -> Config:

	"""Build a :class:`Config` from an already-parsed mapping."""

	if not data:
		return Config()

	logging_section = data.get("logging") or {}

	return Config(
		engine = _section(data.get("engine"), EngineConfig, "engine"),
		preview = _section(data.get("preview"), PreviewConfig, "preview"),
		log_level = str(logging_section.get("level", "INFO")).upper()
	)


def load_config (config_path: str = "notevisual.yaml") -> Config:

	"""
	Load configuration from a YAML file.

	A missing file is not an error - defaults are used and a warning logged.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return Config()

	with open(config_path, "r") as f:
		data = yaml.safe_load(f)

	if data is not None and not isinstance(data, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping at the top level")

	return parse_config(data)
