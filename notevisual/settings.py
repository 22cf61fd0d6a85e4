"""User-adjustable settings for content modules.

Each content module declares a handful of named settings (sizes, colours,
envelope times) with enough metadata for a UI to draw a control for them.
Mappers receive the module's :class:`Settings` as their second argument and
read values by name:

	def scale (ctx, settings):
		return settings.get("base_size", 1.0) * ctx.adsr_amplitude
"""

import copy
import dataclasses
import logging
import typing


logger = logging.getLogger(__name__)


UI_TYPES = ("slider", "number", "dropdown", "color", "color_range")


@dataclasses.dataclass(frozen=True)
class SettingMetadata:

	"""
	Describes how a setting is presented and which values it accepts.

	Attributes:
		label: Human readable name.
		ui_type: One of ``UI_TYPES``.
		minimum: Lower bound for numeric settings.
		maximum: Upper bound for numeric settings.
		step: Control increment for numeric settings.
		options: Allowed values for ``"dropdown"`` settings.
		description: Optional tooltip text.
	"""

	label: str
	ui_type: str = "slider"
	minimum: typing.Optional[float] = None
	maximum: typing.Optional[float] = None
	step: typing.Optional[float] = None
	options: typing.Tuple[typing.Any, ...] = ()
	description: str = ""

	def __post_init__ (self) -> None:

		if self.ui_type not in UI_TYPES:
			raise ValueError(f"Unknown ui_type {self.ui_type!r}. Available: {', '.join(UI_TYPES)}")

		if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
			raise ValueError(f"Setting {self.label!r}: minimum {self.minimum} is above maximum {self.maximum}")


class Setting:

	"""
	A single named value with a default and UI metadata.

	Numeric values assigned outside ``[minimum, maximum]`` are clamped into
	range.  Dropdown values must be one of ``options``.
	"""

	def __init__ (self, name: str, default: typing.Any, metadata: typing.Optional[SettingMetadata] = None) -> None:

		self.name = name
		self.metadata = metadata if metadata is not None else SettingMetadata(label=name, ui_type="number")
		self.default = self._validate(default)
		self._value = self.default

	@property
	def value (self) -> typing.Any:

		return self._value

	@value.setter
	def value (self, new_value: typing.Any) -> None:

		self._value = self._validate(new_value)

	def reset (self) -> None:

		"""Return to the default value."""

		self._value = self.default

	def _validate (self, value: typing.Any) -> typing.Any:

		meta = self.metadata

		if meta.ui_type == "dropdown" and meta.options and value not in meta.options:
			raise ValueError(f"Setting {self.name!r}: {value!r} is not one of {list(meta.options)}")

		if isinstance(value, bool) or not isinstance(value, (int, float)):
			return value

		if meta.minimum is not None and value < meta.minimum:
			return meta.minimum

		if meta.maximum is not None and value > meta.maximum:
			return meta.maximum

		return value

	def __repr__ (self) -> str:

		return f"Setting({self.name!r}, value={self._value!r})"


class Settings:

	"""
	An ordered collection of :class:`Setting` objects, addressed by name.
	"""

	def __init__ (self, settings: typing.Iterable[Setting] = ()) -> None:

		self._settings: typing.Dict[str, Setting] = {}

		for setting in settings:
			self.add(setting)

	def add (self, setting: Setting) -> Setting:

		"""Register a setting, replacing any existing one of the same name."""

		self._settings[setting.name] = setting
		return setting

	def define (self, name: str, default: typing.Any, label: typing.Optional[str] = None, **metadata: typing.Any) -> Setting:

		"""
		Create and register a setting in one call.

		Example::

			settings.define("base_size", 1.5, minimum=0.1, maximum=5.0, step=0.1)
			settings.define("color", "#ff4400", ui_type="color")
		"""

		meta = SettingMetadata(label=label or name.replace("_", " ").title(), **metadata)
		return self.add(Setting(name, default, meta))

	def get (self, name: str, default: typing.Any = None) -> typing.Any:

		"""Return the current value of ``name``, or ``default`` if there is no such setting."""

		setting = self._settings.get(name)

		if setting is None:
			return default

		return setting.value

	def set (self, name: str, value: typing.Any) -> None:

		"""Change a setting's value.  Unknown names are logged and ignored."""

		setting = self._settings.get(name)

		if setting is None:
			logger.warning(f"Setting {name!r} not found - ignoring")
			return

		setting.value = value

	def reset (self) -> None:

		"""Return every setting to its default."""

		for setting in self._settings.values():
			setting.reset()

	def values (self) -> typing.Dict[str, typing.Any]:

		"""Snapshot of the current values, by name."""

		return {name: setting.value for name, setting in self._settings.items()}

	def copy (self) -> "Settings":

		"""Independent copy - changing the copy never affects the original."""

		return copy.deepcopy(self)

	def __contains__ (self, name: object) -> bool:

		return name in self._settings

	def __iter__ (self) -> typing.Iterator[Setting]:

		return iter(self._settings.values())

	def __len__ (self) -> int:

		return len(self._settings)

	def __getitem__ (self, name: str) -> typing.Any:

		return self._settings[name].value
