"""Tests for the relaxed JSON manifest dialect."""

import pytest

from relata.utils import read_manifest_data
from relata.utils.relaxed_json import RelaxedJSONError, loads_relaxed, normalize_relaxed_json


def test_line_and_block_comments():
    text = """/* header */
    {
        "a": 1, // trailing
        /* inline */ "b": 2
    }"""
    assert loads_relaxed(text) == {"a": 1, "b": 2}


def test_semicolon_separator():
    assert loads_relaxed('{"format": "CSV"; "path": "iris.csv"}') == {
        "format": "CSV",
        "path": "iris.csv",
    }


def test_trailing_commas_after_commented_entries():
    text = """{
        "k": 1,
        // "v": 2
    }"""
    assert loads_relaxed(text) == {"k": 1}
    assert loads_relaxed("[1, 2, /* 3 */]") == [1, 2]


def test_markers_inside_strings_are_kept():
    data = loads_relaxed('{"url": "http://x/*y*/;z", "q": "say \\"//hi\\""}')
    assert data == {"url": "http://x/*y*/;z", "q": 'say "//hi"'}


def test_key_order_preserved():
    assert list(loads_relaxed('{"z": 1, "a": 2, "m": 3}')) == ["z", "a", "m"]


def test_unterminated_block_comment():
    with pytest.raises(RelaxedJSONError, match="block comment"):
        normalize_relaxed_json('{"a": 1 /* oops')


def test_unterminated_string():
    with pytest.raises(RelaxedJSONError, match="unterminated string"):
        normalize_relaxed_json('{"a')


def test_invalid_after_normalization_is_a_value_error():
    with pytest.raises(ValueError):
        loads_relaxed("{a: 1}")


class TestReadManifestData:
    def test_yaml(self, tmp_path):
        path = tmp_path / "r.yml"
        path.write_text("name: r\nformat: CSV\n")
        assert read_manifest_data(path) == {"name": "r", "format": "CSV"}

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "r.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError, match="mapping"):
            read_manifest_data(path)

    def test_bad_yaml(self, tmp_path):
        path = tmp_path / "r.yaml"
        path.write_text("name: [unclosed\n")
        with pytest.raises(ValueError, match="invalid YAML"):
            read_manifest_data(path)
