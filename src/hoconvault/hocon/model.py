"""Immutable HOCON configuration values with per-leaf provenance.

``Config`` wraps a ``pyhocon.ConfigTree``. pyhocon handles parsing,
substitution and merging; this module adds what the keystore and hierarchy
layers need on top of it:

- value semantics (every operation returns a fresh ``Config``),
- enumeration of leaf entries by full dotted path,
- an origin description per leaf, so values that came from process
  properties can be told apart from values read out of a file,
- translation of pyhocon and pyparsing failures into ``hoconvault.errors``.
"""

from __future__ import annotations

import copy
from pathlib import Path
import re
from typing import TYPE_CHECKING, Any

from pyhocon import ConfigFactory, ConfigParser, ConfigTree
from pyhocon.config_tree import ConfigSubstitution, ConfigValues, NoneValue
from pyhocon.exceptions import (
    ConfigException,
    ConfigMissingException,
    ConfigSubstitutionException,
    ConfigWrongTypeException,
)
from pyparsing import ParseBaseException

from hoconvault.errors import (
    ConfigError,
    ConfigMissingError,
    ConfigWrongTypeError,
    ParseError,
    UnresolvedSubstitutionError,
)

from .properties import SYSTEM_PROPERTIES_ORIGIN, system_properties
from .render import RenderOptions, render_tree

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

HARDCODED_ORIGIN = "hardcoded value"
EMPTY_ORIGIN = "empty config"

_SUBSTITUTION_RE = re.compile(r"\$\{\??([^}]+)\}")


class Config:
    """An immutable HOCON document.

    Instances are created through the ``parse_*`` constructors, ``empty`` or
    ``system_properties`` and combined with ``with_fallback``. The wrapped
    tree is never mutated after construction.
    """

    __slots__ = ("_description", "_origins", "_tree")

    def __init__(
        self,
        tree: ConfigTree,
        origins: Mapping[str, str] | None = None,
        *,
        description: str,
    ) -> None:
        self._tree = tree
        self._description = description
        self._origins = dict(origins or {})

    # --- Constructors ---

    @classmethod
    def parse_file(cls, path: str | Path, *, resolve: bool = True) -> Config:
        """Parse a HOCON file.

        Raises:
            ParseError: The file is malformed or cannot be read.
            UnresolvedSubstitutionError: ``resolve`` is set and a required
                substitution has no value.
        """
        path = Path(path)
        try:
            tree = ConfigFactory.parse_file(str(path), resolve=False)
        except OSError as exc:
            raise ParseError(
                f"Cannot read config file {path}: {exc.strerror or exc}",
                path=str(path),
            ) from exc
        except (ParseBaseException, ConfigException) as exc:
            raise ParseError(f"Malformed HOCON in {path}: {exc}", path=str(path)) from exc
        config = cls._from_tree(tree, description=str(path))
        return config.resolve() if resolve else config

    @classmethod
    def parse_string(
        cls, text: str, *, description: str = "String", resolve: bool = True
    ) -> Config:
        """Parse HOCON text; ``description`` becomes the origin of every leaf."""
        try:
            tree = ConfigFactory.parse_string(text, resolve=False)
        except (ParseBaseException, ConfigException) as exc:
            raise ParseError(f"Malformed HOCON in {description}: {exc}") from exc
        config = cls._from_tree(tree, description=description)
        return config.resolve() if resolve else config

    @classmethod
    def parse_map(
        cls, values: Mapping[str, Any], *, description: str = HARDCODED_ORIGIN
    ) -> Config:
        """Build a config from a flat mapping whose keys are dotted paths."""
        tree = ConfigTree()
        for key, value in values.items():
            tree.put(key, _to_tree_value(value))
        return cls._from_tree(tree, description=description)

    @classmethod
    def empty(cls, description: str = EMPTY_ORIGIN) -> Config:
        """The identity for ``with_fallback``."""
        return cls(ConfigTree(), description=description)

    @classmethod
    def system_properties(cls) -> Config:
        """Process properties (``os.name``, ``user.dir``, ...) as a config."""
        return cls.parse_map(system_properties(), description=SYSTEM_PROPERTIES_ORIGIN)

    @classmethod
    def load(cls, path: str | Path) -> Config:
        """Parse ``path`` with system properties layered on top, then resolve."""
        return cls.system_properties().with_fallback(
            cls.parse_file(path, resolve=False)
        ).resolve()

    @classmethod
    def _from_tree(cls, tree: Any, *, description: str) -> Config:
        if not isinstance(tree, ConfigTree):
            raise ParseError(
                f"Config root in {description} must be an object, "
                f"not {type(tree).__name__}"
            )
        origins = {path: description for path, _ in _walk(tree)}
        return cls(tree, origins, description=description)

    # --- Composition ---

    def with_fallback(self, other: Config) -> Config:
        """Return a config where this config's values win over ``other``'s.

        Objects merge recursively; lists and scalars replace wholesale.
        Substitutions are left unresolved.
        """
        if not other._tree:
            return self
        if not self._tree:
            return Config(other._tree, other._origins, description=self._description)
        try:
            merged = self._tree.with_fallback(other._tree, resolve=False)
        except ConfigException as exc:
            raise ConfigError(f"Cannot merge configs: {exc}") from exc
        origins: dict[str, str] = {}
        for path, _ in _walk(merged):
            origin = self._origins.get(path)
            if origin is None:
                origin = other._origins.get(path)
            if origin is not None:
                origins[path] = origin
        return Config(merged, origins, description=self._description)

    def resolve(self) -> Config:
        """Substitute every ``${name}`` reference.

        References that the config does not define fall back to process
        environment variables of the same name, as pyhocon does.
        """
        if self.is_resolved:
            return self
        tree = copy.deepcopy(self._tree)
        try:
            ConfigParser.resolve_substitutions(tree)
        except ConfigSubstitutionException as exc:
            raise _unresolved_error(exc, self._pending_names()) from exc
        except ConfigException as exc:
            raise ConfigError(f"Cannot resolve {self._description}: {exc}") from exc
        return Config(tree, self._origins, description=self._description)

    def resolve_with(self, facts: Config) -> Config:
        """Resolve substitutions against ``facts`` without importing its keys.

        A reference names a fact before it names a key of this config, so a
        fact shadows a same-named key for substitution purposes. The result
        holds exactly this config's own paths: concrete values are kept as
        they are and only substituted values are taken from the resolution.
        """
        resolved = facts.with_fallback(self).resolve()
        tree = _project(self._tree, resolved._tree)
        return Config(tree, self._origins, description=self._description)

    # --- Inspection ---

    @property
    def description(self) -> str:
        return self._description

    @property
    def is_resolved(self) -> bool:
        return not self._pending_names()

    def is_empty(self) -> bool:
        return not self._tree

    def entries(self) -> list[tuple[str, Any]]:
        """Every leaf as ``(dotted.path, value)``; objects are never leaves.

        Null leaves and empty objects are skipped.

        Raises:
            UnresolvedSubstitutionError: A leaf still holds a substitution.
        """
        out: list[tuple[str, Any]] = []
        for path, value in _walk(self._tree):
            if _is_unresolved(value):
                raise UnresolvedSubstitutionError(
                    _substitution_names(value), detail=f"at '{path}'"
                )
            if value is None:
                continue
            out.append((path, _plain(value)))
        return out

    def keys(self) -> list[str]:
        """Leaf paths, in document order."""
        return [path for path, _ in self.entries()]

    def has_path(self, path: str) -> bool:
        try:
            return self._tree.get(path, None) is not None
        except ConfigException:
            return False

    def get(self, path: str) -> Any:
        """Return the plain value at ``path`` (objects become dicts)."""
        return _plain(self._lookup(path))

    def get_string(self, path: str) -> str:
        value = self._lookup(path)
        if isinstance(value, (ConfigTree, list)):
            raise ConfigWrongTypeError(path, "STRING", _type_name(value))
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def get_list(self, path: str) -> list[str]:
        value = self._lookup(path)
        if not isinstance(value, list):
            raise ConfigWrongTypeError(path, "LIST", _type_name(value))
        items: list[str] = []
        for index, item in enumerate(value):
            if _is_unresolved(item):
                raise UnresolvedSubstitutionError(
                    _substitution_names(item), detail=f"at '{path}[{index}]'"
                )
            if isinstance(item, (ConfigTree, list)) or item is None:
                raise ConfigWrongTypeError(f"{path}[{index}]", "STRING", _type_name(item))
            items.append(str(item).lower() if isinstance(item, bool) else str(item))
        return items

    def origin_description(self, path: str) -> str:
        """Describe where the value at ``path`` came from.

        Values from process properties report exactly ``"system properties"``.
        """
        parts = ConfigTree.parse_key(path)
        for end in range(len(parts), 0, -1):
            origin = self._origins.get(".".join(parts[:end]))
            if origin is not None:
                return origin
        return self._description

    def to_dict(self) -> dict[str, Any]:
        """Plain nested dict of the (resolved) tree."""
        if not self.is_resolved:
            raise UnresolvedSubstitutionError(self._pending_names())
        return _plain(self._tree)

    def render(self, options: RenderOptions | None = None) -> str:
        """Render as HOCON or JSON according to ``options``."""
        options = options or RenderOptions.defaults()
        if options.json and not self.is_resolved:
            raise UnresolvedSubstitutionError(
                self._pending_names(), detail="JSON output needs a resolved config"
            )
        origins = (
            [(path, self.origin_description(path)) for path, _ in _walk(self._tree)]
            if options.origin_comments
            else []
        )
        return render_tree(self._tree, options, origins=origins, plain=_plain)

    # --- Internals ---

    def _lookup(self, path: str) -> Any:
        try:
            value = self._tree.get(path)
        except ConfigMissingException as exc:
            raise ConfigMissingError(path) from exc
        except ConfigWrongTypeException as exc:
            raise ConfigWrongTypeError(path, "OBJECT", "scalar") from exc
        if value is None:
            raise ConfigMissingError(path)
        if _is_unresolved(value):
            raise UnresolvedSubstitutionError(
                _substitution_names(value), detail=f"at '{path}'"
            )
        return value

    def _pending_names(self) -> list[str]:
        names: list[str] = []
        for _, value in _walk(self._tree):
            for name in _substitution_names(value):
                if name not in names:
                    names.append(name)
        return names

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Config):
            return NotImplemented
        return _plain(self._tree) == _plain(other._tree)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Config({self._description!r}, leaves={len(list(_walk(self._tree)))})"


# --- Tree helpers ---


def _walk(tree: ConfigTree, prefix: str = "") -> Iterator[tuple[str, Any]]:
    """Yield ``(path, raw value)`` for every leaf, descending into objects."""
    for key in tree.keys():
        value = dict.__getitem__(tree, key)
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, ConfigTree):
            yield from _walk(value, path)
        elif isinstance(value, NoneValue):
            yield path, None
        else:
            yield path, value


def _project(own: ConfigTree, resolved: Any) -> ConfigTree:
    """Rebuild ``own``'s shape, filling its substitutions from ``resolved``.

    Keys whose substitution resolved to nothing (``${?missing}``) are dropped,
    as pyhocon drops them.
    """
    out = ConfigTree()
    for key in own.keys():
        value = dict.__getitem__(own, key)
        present = isinstance(resolved, ConfigTree) and key in resolved.keys()
        match = dict.__getitem__(resolved, key) if present else None
        if isinstance(value, ConfigTree):
            out[key] = _project(value, match)
        elif not _is_unresolved(value):
            out[key] = value
        elif present:
            out[key] = match
    return out


def _is_unresolved(value: Any) -> bool:
    if isinstance(value, (ConfigValues, ConfigSubstitution)):
        return True
    if isinstance(value, list):
        return any(_is_unresolved(item) for item in value)
    if isinstance(value, ConfigTree):
        return any(_is_unresolved(item) for _, item in _walk(value))
    return False


def _substitution_names(value: Any) -> list[str]:
    if isinstance(value, ConfigSubstitution):
        return [value.variable]
    if isinstance(value, ConfigValues):
        return [token.variable for token in value.get_substitutions()]
    if isinstance(value, list):
        return [name for item in value for name in _substitution_names(item)]
    if isinstance(value, ConfigTree):
        return [name for _, item in _walk(value) for name in _substitution_names(item)]
    return []


def _unresolved_error(
    exc: ConfigSubstitutionException, pending: list[str]
) -> UnresolvedSubstitutionError:
    names = list(dict.fromkeys(_SUBSTITUTION_RE.findall(str(exc))))
    return UnresolvedSubstitutionError(names or pending, detail=str(exc))


def _plain(value: Any) -> Any:
    if isinstance(value, ConfigTree):
        return {
            key.strip('"'): _plain(dict.__getitem__(value, key))
            for key in value.keys()
        }
    if isinstance(value, list):
        return [_plain(item) for item in value]
    if isinstance(value, NoneValue):
        return None
    if isinstance(value, str):
        return str(value)
    return value


def _to_tree_value(value: Any) -> Any:
    if isinstance(value, dict):
        tree = ConfigTree()
        for key, item in value.items():
            tree.put(key, _to_tree_value(item))
        return tree
    if isinstance(value, (list, tuple)):
        return [_to_tree_value(item) for item in value]
    if value is None:
        return NoneValue()
    return value


def _type_name(value: Any) -> str:
    if isinstance(value, ConfigTree):
        return "OBJECT"
    if isinstance(value, list):
        return "LIST"
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "BOOLEAN"
    if isinstance(value, (int, float)):
        return "NUMBER"
    return "STRING"

