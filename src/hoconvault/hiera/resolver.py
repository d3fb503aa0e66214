"""Hiera-style layered configuration.

A hierarchy root holds ``hiera.conf``, whose ``hierarchy`` list names config
fragments relative to the root. Entries reference facts with HOCON
substitutions, so one description serves every host or environment::

    hierarchy = [
      "app/"${app}".conf",
      "node/"${node}".conf"
    ]

Given facts, the list resolves to concrete paths. Fragments are folded so
that later entries override earlier ones. A fragment that does not exist is
an optional layer: it is logged and contributes nothing.
"""

from __future__ import annotations

from functools import reduce
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from hoconvault.errors import HierarchyKeyMissingError, HierarchyMissingError
from hoconvault.hocon import Config

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)

HIERA_CONFIG_FILE = "hiera.conf"
HIERARCHY_KEY = "hierarchy"
FACTS_ORIGIN = "facts"


def fold(fragments: Iterable[Config]) -> Config:
    """Fold fragments so each one overrides everything before it."""
    return reduce(lambda acc, fragment: fragment.with_fallback(acc), fragments, Config.empty())


def facts_config(facts: Mapping[str, str]) -> Config:
    return Config.parse_map(facts, description=FACTS_ORIGIN)


class HoconHiera:
    """Hierarchy resolver over a directory tree."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    @property
    def hiera_path(self) -> Path:
        return self.root / HIERA_CONFIG_FILE

    def hiera(self) -> Config:
        """The unresolved hierarchy description.

        Raises:
            HierarchyMissingError: ``hiera.conf`` does not exist.
        """
        path = self.hiera_path
        if not path.is_file():
            raise HierarchyMissingError(str(path))
        return Config.parse_file(path, resolve=False)

    def hierarchy(self, facts: Mapping[str, str]) -> list[str]:
        """Fragment paths, in order, with facts substituted.

        Raises:
            UnresolvedSubstitutionError: A referenced fact is missing.
            HierarchyKeyMissingError: The description has no ``hierarchy``.
        """
        description = self.hiera().resolve_with(facts_config(facts))
        if not description.has_path(HIERARCHY_KEY):
            raise HierarchyKeyMissingError(str(self.hiera_path))
        return description.get_list(HIERARCHY_KEY)

    def locate(self, relative: str) -> Path | None:
        """The file a hierarchy entry points at, or None if there is none.

        Entries with empty path segments (a fact that resolved to ``""``
        between separators) never match a file.
        """
        if not relative or "" in relative.split("/"):
            return None
        path = self.root / relative
        return path if path.is_file() else None

    def fragment(self, relative: str) -> Config:
        """Parse one fragment, unresolved; a missing file yields ``Config.empty()``.

        Raises:
            ParseError: The file exists but is unreadable or malformed.
        """
        path = self.locate(relative)
        if path is None:
            logger.warning(
                "No config file for hierarchy entry '%s' under %s", relative, self.root
            )
            return Config.empty()
        logger.debug("Loading hierarchy fragment %s", path)
        return Config.parse_file(path, resolve=False)

    def fragments(self, facts: Mapping[str, str]) -> list[Config]:
        return [self.fragment(relative) for relative in self.hierarchy(facts)]

    def config(self, facts: Mapping[str, str], *, resolve: bool = True) -> Config:
        """The effective config for ``facts``.

        With ``resolve`` the folded config is also resolved against the facts,
        so fragments may reference facts directly.
        """
        effective = fold(self.fragments(facts))
        if resolve:
            return effective.resolve_with(facts_config(facts))
        return effective
