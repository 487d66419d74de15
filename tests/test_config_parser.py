"""Tests for the oxlint config parser and the JSONC comment stripper."""

import json
import logging

import pytest

from plugins.config_parser import (
    EntryKind,
    PluginEntry,
    parse_js_plugins,
    parse_plugin_entries,
    strip_jsonc_comments,
)


class TestStripJsoncComments:
    """Tests for strip_jsonc_comments()."""

    def test_line_and_block_comments(self):
        content = """{
  // line comment
  "a": 1, /* block */ "b": 2
}"""
        assert json.loads(strip_jsonc_comments(content)) == {"a": 1, "b": 2}

    def test_comment_markers_inside_strings_are_kept(self):
        content = '{"url": "https://example.com/x", "glob": "src/*.js", "c": "/* not a comment */"}'
        data = json.loads(strip_jsonc_comments(content))
        assert data["url"] == "https://example.com/x"
        assert data["glob"] == "src/*.js"
        assert data["c"] == "/* not a comment */"

    def test_escaped_quote_does_not_end_string(self):
        content = r'{"a": "say \"// hi\"" // trailing' + "\n}"
        assert json.loads(strip_jsonc_comments(content)) == {"a": 'say "// hi"'}

    def test_trailing_commas_removed(self):
        content = '{"jsPlugins": ["a", "b",], "x": {"y": 1, /* c */ },}'
        assert json.loads(strip_jsonc_comments(content)) == {"jsPlugins": ["a", "b"], "x": {"y": 1}}

    def test_comma_inside_string_before_bracket_kept(self):
        content = '{"a": ",]"}'
        assert json.loads(strip_jsonc_comments(content)) == {"a": ",]"}

    def test_block_comment_keeps_line_count(self):
        content = '{\n/* one\ntwo\nthree */\n"a": 1}'
        assert strip_jsonc_comments(content).count("\n") == content.count("\n")

    def test_unterminated_block_comment(self):
        assert strip_jsonc_comments('{"a": 1} /* open') == '{"a": 1} '


class TestPluginEntryDecode:
    """Tests for PluginEntry.decode()."""

    def test_string(self):
        assert PluginEntry.decode("  eslint-plugin-foo ") == PluginEntry(EntryKind.STRING, "eslint-plugin-foo")

    def test_specifier_preferred_over_name(self):
        entry = PluginEntry.decode({"specifier": "eslint-plugin-a", "name": "eslint-plugin-b"})
        assert entry == PluginEntry(EntryKind.SPECIFIER, "eslint-plugin-a")

    def test_name_when_specifier_not_string(self):
        entry = PluginEntry.decode({"specifier": 3, "name": "eslint-plugin-b"})
        assert entry == PluginEntry(EntryKind.NAME, "eslint-plugin-b")

    @pytest.mark.parametrize("raw", [None, 1, True, [], {}, {"other": "x"}, "   "])
    def test_unsupported_shapes(self, raw):
        assert PluginEntry.decode(raw) is None


class TestParseJsPlugins:
    """Tests for parse_js_plugins()."""

    def test_missing_file(self, tmp_path):
        assert parse_js_plugins(str(tmp_path / "nope.json")) == []

    def test_mixed_entries(self, tmp_path):
        config = tmp_path / ".oxlintrc.json"
        config.write_text("""{
  // plugins used by this repo
  "jsPlugins": [
    "eslint-plugin-foo",
    { "specifier": " @acme/eslint-plugin ", "name": "ignored" },
    { "name": "eslint-plugin-bar" },
    42,
    "./local/plugin.js",
  ],
}""")
        assert parse_js_plugins(str(config)) == [
            "eslint-plugin-foo",
            "@acme/eslint-plugin",
            "eslint-plugin-bar",
            "./local/plugin.js",
        ]

    def test_entry_kinds(self, tmp_path):
        config = tmp_path / "c.json"
        config.write_text(json.dumps({"jsPlugins": ["a", {"specifier": "b"}, {"name": "c"}]}))
        kinds = [entry.kind for entry in parse_plugin_entries(str(config))]
        assert kinds == [EntryKind.STRING, EntryKind.SPECIFIER, EntryKind.NAME]

    def test_no_js_plugins_key(self, tmp_path):
        config = tmp_path / "c.json"
        config.write_text('{"rules": {}}')
        assert parse_js_plugins(str(config)) == []

    def test_js_plugins_not_a_list(self, tmp_path):
        config = tmp_path / "c.json"
        config.write_text('{"jsPlugins": "eslint-plugin-foo"}')
        assert parse_js_plugins(str(config)) == []

    def test_invalid_json_warns(self, tmp_path, caplog):
        config = tmp_path / "c.json"
        config.write_text("{not json")
        with caplog.at_level(logging.WARNING, logger="plugins.config_parser"):
            assert parse_js_plugins(str(config)) == []
        assert "Could not parse oxlint config" in caplog.text

    def test_top_level_list(self, tmp_path):
        config = tmp_path / "c.json"
        config.write_text('["eslint-plugin-foo"]')
        assert parse_js_plugins(str(config)) == []

    def test_directory_instead_of_file(self, tmp_path):
        assert parse_js_plugins(str(tmp_path)) == []
