"""Content modules - the base class every visual preset builds on.

A content module owns a :class:`~notevisual.engine.VisualObjectEngine`, a set
of user-adjustable :class:`~notevisual.settings.Settings`, and optionally some
mutable ``state`` its mappers keep between frames (for example a memoised
slot per note).  Subclasses override two hooks:

	class PulseSphere (ContentModule):

		def define_settings (self, settings):
			settings.define("base_size", 1.0, minimum=0.1, maximum=5.0, step=0.1)

		def define_objects (self, engine):
			engine.define_object("sphere") \\
				.apply_adsr({"attack": 0.05, "decay": 0.2, "sustain": 0.6, "release": 0.4}) \\
				.with_scale(lambda ctx, settings: settings.get("base_size") * ctx.adsr_amplitude)

``clone()`` gives an independent copy for parallel playback (a preview and
an export running side by side): setting values are copied, ``state`` is
deep-copied, and the definitions are rebuilt so no mapper closure is shared.
"""

import copy
import typing

import notevisual.config
import notevisual.context
import notevisual.engine
import notevisual.notes
import notevisual.settings


_ModuleT = typing.TypeVar("_ModuleT", bound="ContentModule")


class ContentModule:

	"""
	Base class for a configurable set of object definitions.
	"""

	name: str = "module"

	def __init__ (self, config: typing.Optional[notevisual.config.EngineConfig] = None) -> None:

		self.settings = notevisual.settings.Settings()
		self.state: typing.Dict[str, typing.Any] = {}
		self.define_settings(self.settings)

		self.engine = notevisual.engine.VisualObjectEngine(settings=self.settings, config=config)
		self.define_objects(self.engine)

	def define_settings (self, settings: notevisual.settings.Settings) -> None:

		"""Declare settings.  The base class has none."""

	def define_objects (self, engine: notevisual.engine.VisualObjectEngine) -> None:

		"""Declare object definitions on ``engine``.  The base class has none."""

	def get_setting (self, name: str, default: typing.Any = None) -> typing.Any:

		return self.settings.get(name, default)

	def set_setting (self, name: str, value: typing.Any) -> None:

		self.settings.set(name, value)

	def evaluate (self, time_beats: float, blocks: typing.Sequence[notevisual.notes.MIDIBlock], bpm: float) -> typing.List[notevisual.context.VisualObject]:

		"""Evaluate this module's definitions at ``time_beats``.  See :meth:`VisualObjectEngine.evaluate`."""

		return self.engine.evaluate(time_beats, blocks, bpm)

	def clone (self: _ModuleT) -> _ModuleT:

		"""
		Return an independent copy of this module.

		The copy has its own engine and freshly built definitions, the same
		setting values, and a deep copy of ``state`` and of any other
		attribute a subclass keeps (memo tables and the like).  Changing
		either module afterwards never affects the other.
		"""

		cloned = type(self).__new__(type(self))

		# References back to this module inside copied attributes point at the clone.
		memo: typing.Dict[int, typing.Any] = {id(self): cloned}

		extra = {key: value for key, value in self.__dict__.items() if key not in ("settings", "state", "engine")}
		cloned.__dict__.update(copy.deepcopy(extra, memo))

		cloned.settings = copy.deepcopy(self.settings, memo)
		cloned.state = copy.deepcopy(self.state, memo)
		cloned.engine = notevisual.engine.VisualObjectEngine(settings=cloned.settings, config=self.engine.config)
		cloned.define_objects(cloned.engine)

		return cloned

	def __repr__ (self) -> str:

		return f"{type(self).__name__}({self.settings.values()!r})"
