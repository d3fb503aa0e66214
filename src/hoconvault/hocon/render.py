"""Rendering of config trees to HOCON or JSON text."""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import TYPE_CHECKING, Any

from pyhocon import ConfigTree, HOCONConverter

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

INDENT = 2


@dataclass(frozen=True)
class RenderOptions:
    """Toggles for ``Config.render``.

    ``comments`` gates comment output as a whole. pyhocon discards the
    comments of the source document while parsing, so the only comments
    that can be emitted are the generated origin annotations, which also
    need ``origin_comments``. JSON output never carries comments.
    """

    formatted: bool = True
    json: bool = True
    origin_comments: bool = True
    comments: bool = True

    @classmethod
    def defaults(cls) -> RenderOptions:
        return cls()

    @classmethod
    def concise(cls) -> RenderOptions:
        return cls(formatted=False, json=True, origin_comments=False, comments=False)

    @classmethod
    def for_output(cls, *, json: bool) -> RenderOptions:
        """Options used by the command line tools: formatted, no origins."""
        return cls(formatted=True, json=json, origin_comments=False, comments=not json)


def render_tree(
    tree: ConfigTree,
    options: RenderOptions,
    *,
    origins: Sequence[tuple[str, str]] = (),
    plain: Callable[[Any], Any],
) -> str:
    if options.json:
        if options.formatted:
            return HOCONConverter.to_json(tree, indent=INDENT)
        return json.dumps(plain(tree), separators=(",", ":"), ensure_ascii=False, default=str)

    body = HOCONConverter.to_hocon(tree, compact=not options.formatted, indent=INDENT)
    if not (options.comments and options.origin_comments and origins):
        return body
    header = ["# Origins:"]
    header.extend(f"#   {path}: {origin}" for path, origin in origins)
    return "\n".join(header) + "\n" + body
