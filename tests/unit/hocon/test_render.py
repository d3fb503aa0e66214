from __future__ import annotations

import json

import pytest

from hoconvault.errors import UnresolvedSubstitutionError
from hoconvault.hocon import Config, RenderOptions, system_properties

pytestmark = pytest.mark.unit


def test_for_output_json_disables_comments() -> None:
    options = RenderOptions.for_output(json=True)

    assert options.json is True
    assert options.comments is False
    assert options.origin_comments is False
    assert options.formatted is True


def test_for_output_hocon_keeps_comments_without_origins() -> None:
    options = RenderOptions.for_output(json=False)

    assert options.json is False
    assert options.comments is True
    assert options.origin_comments is False


def test_json_rendering_is_strict_json() -> None:
    config = Config.parse_string('a { b = "x", n = 2 }')

    rendered = config.render(RenderOptions.for_output(json=True))

    assert json.loads(rendered) == {"a": {"b": "x", "n": 2}}


def test_concise_json_has_no_whitespace() -> None:
    config = Config.parse_string("a { b = 1 }")

    assert config.render(RenderOptions.concise()) == '{"a":{"b":1}}'


def test_hocon_rendering_reparses_to_same_values() -> None:
    config = Config.parse_string('Config { Secret = "*****", FourStars = "****" }')

    rendered = config.render(RenderOptions.for_output(json=False))

    assert Config.parse_string(rendered) == config


def test_origin_comments_list_each_leaf() -> None:
    config = Config.parse_string("a = 1", description="app.conf")

    rendered = config.render(
        RenderOptions(formatted=True, json=False, origin_comments=True, comments=True)
    )

    assert rendered.startswith("# Origins:")
    assert "#   a: app.conf" in rendered


def test_json_rendering_requires_resolved_config() -> None:
    config = Config.parse_string("a = ${b}", resolve=False)

    with pytest.raises(UnresolvedSubstitutionError):
        config.render(RenderOptions.for_output(json=True))


def test_system_properties_use_jvm_style_names() -> None:
    props = system_properties()

    assert {"os.name", "user.dir", "user.home", "file.separator"} <= props.keys()
    assert all(isinstance(value, str) for value in props.values())
