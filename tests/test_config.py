import json

import pytest

from tamzen.config import (
    BACKPORT_MOVES,
    DEFAULT_CONFIG,
    ConfigError,
    glyph_char,
    load_config,
    make_config,
)


def test_default_tables():
    assert DEFAULT_CONFIG.revisions == ("v1.6", "v1.6-derived", "v1.9")
    assert [(p.pattern, r) for p, r in DEFAULT_CONFIG.moves] == BACKPORT_MOVES
    assert DEFAULT_CONFIG.rename == ("Tamsyn", "Tamzen")
    all_fonts = DEFAULT_CONFIG.specs[0]
    assert all_fonts[0].search("anything.bdf")
    assert all_fonts[1] == frozenset("bhlmnpqy")


@pytest.mark.parametrize("token, char", [
    ("b", "b"),
    ("{", "{"),
    ("braceleft", "{"),
    ("uni00E9", "\xe9"),
    ("backslash", "\\"),
])
def test_glyph_char(token, char):
    assert glyph_char(token) == char


@pytest.mark.parametrize("token", ["notaglyphname", "f_i"])
def test_glyph_char_rejects_non_characters(token):
    with pytest.raises(ConfigError):
        glyph_char(token)


def test_specs_accept_token_lists():
    config = make_config(specs=[("10x20", ["O", "braceleft"])])
    assert config.specs[0][1] == frozenset("O{")


@pytest.mark.parametrize("kwargs", [
    {"revisions": "v1.6"},
    {"moves": [("8x16",)]},
    {"specs": [("(", "b")]},
    {"specs": [("", [1, 2])]},
    {"rename": ("Tamsyn",)},
    {"rename": ("", "Tamzen")},
    {"revisions": 5},
    {"revisions": ["v1.6", 16]},
    {"rename": 5},
    {"rename": ("Tamsyn", 5)},
    {"moves": [("8x16", 17)]},
])
def test_make_config_rejects_bad_tables(kwargs):
    with pytest.raises(ConfigError):
        make_config(**kwargs)


class TestLoadConfig:
    def test_missing_keys_use_defaults(self, tmp_path):
        path = tmp_path / "backport.json"
        path.write_text(json.dumps({"revisions": ["v1.9"], "specs": [["", "b h"]]}))

        config = load_config(path)

        assert config.revisions == ("v1.9",)
        assert config.specs[0][1] == frozenset("bh")
        assert config.moves == DEFAULT_CONFIG.moves
        assert config.rename == DEFAULT_CONFIG.rename

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "backport.json"
        path.write_text(json.dumps({"trees": ["v1.6"]}))
        with pytest.raises(ConfigError, match="unknown keys"):
            load_config(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "backport.json"
        path.write_text("{revisions: }")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "backport.json"
        path.write_text("[]")
        with pytest.raises(ConfigError, match="JSON object"):
            load_config(path)

    @pytest.mark.parametrize("data", [
        {"rename": 5},
        {"revisions": 5},
        {"moves": [["8x16", None]]},
    ])
    def test_wrong_value_types(self, tmp_path, data):
        path = tmp_path / "backport.json"
        path.write_text(json.dumps(data))
        with pytest.raises(ConfigError):
            load_config(path)
