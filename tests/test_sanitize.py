"""
Unit Tests for Completion Output Sanitization
"""

import pytest

from utils.exceptions import CompletionParseError
from utils.sanitize import clean_reply, find_json_object, parse_json_object, strip_code_fences


class TestJsonIsolation:

    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n{"a": "1"}\n```') == '{"a": "1"}'

    def test_first_balanced_object(self):
        text = 'prefix {"a": {"b": "c"}} suffix {"d": "e"}'
        assert find_json_object(text) == '{"a": {"b": "c"}}'

    def test_braces_inside_strings_ignored(self):
        text = '{"a": "curly } brace", "b": "\\"quoted {"}'
        assert find_json_object(text) == text

    def test_unbalanced_returns_none(self):
        assert find_json_object('{"a": "1"') is None
        assert find_json_object("no json here") is None

    def test_parse_fenced_object(self):
        assert parse_json_object('```JSON\n{"e1": "Jane"}\n```') == {"e1": "Jane"}

    @pytest.mark.parametrize("raw", ["", "nothing", '{"a": }', "[1, 2]"])
    def test_parse_errors(self, raw):
        with pytest.raises(CompletionParseError):
            parse_json_object(raw)


class TestCleanReply:

    def test_trims_and_unquotes(self):
        assert clean_reply('  "Got it!"  ') == "Got it!"
        assert clean_reply("'Go ahead!'") == "Go ahead!"

    def test_inner_quotes_kept(self):
        assert clean_reply('Say "hi" to Sam') == 'Say "hi" to Sam'

    def test_empty(self):
        assert clean_reply(None) == ""
        assert clean_reply('   ""  ') == ""
