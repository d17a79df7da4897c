"""
Tests for the Lua table writer.
"""

import math

from conftest import read_lua
from utils.lua import format_number, to_lua_table


class TestFormatNumber:

    def test_integers_and_whole_floats(self):
        assert format_number(7) == '7'
        assert format_number(2.0) == '2'
        assert format_number(-3.0) == '-3'

    def test_fractions_keep_precision(self):
        assert format_number(0.62) == '0.62'
        assert format_number(1.25) == '1.25'

    def test_booleans(self):
        assert format_number(True) == 'true'
        assert format_number(False) == 'false'

    def test_non_finite(self):
        assert format_number(math.inf) == 'math.huge'
        assert format_number(-math.inf) == '-math.huge'
        assert format_number(math.nan) == '0/0'


class TestToLuaTable:

    def test_layout(self):
        text = to_lua_table({'a': [1, 2, 'x'], 'b': True})
        assert text == (
            'return {\n'
            '  ["a"] = {\n'
            '    1,\n'
            '    2,\n'
            '    "x"\n'
            '  },\n'
            '  ["b"] = true\n'
            '}'
        )

    def test_round_trip(self):
        data = {'a': [1, 2, 'x'], 'b': True}
        assert read_lua(to_lua_table(data)) == data

    def test_key_order_preserved(self):
        data = {'zeta': 1, 'alpha': 2, 'mid': 3}
        assert list(read_lua(to_lua_table(data))) == ['zeta', 'alpha', 'mid']

    def test_deterministic(self):
        data = {'x': {'y': [1.5, None, 'z']}, 'w': []}
        assert to_lua_table(data) == to_lua_table(data)

    def test_none_is_nil(self):
        assert to_lua_table({'rankTag': None}) == 'return {\n  ["rankTag"] = nil\n}'

    def test_empty_collections(self):
        assert to_lua_table({}) == 'return {}'
        assert to_lua_table({'skills': [], 'shop': {}}) == (
            'return {\n  ["skills"] = {},\n  ["shop"] = {}\n}'
        )

    def test_no_trailing_commas(self):
        text = to_lua_table({'a': [1, [2, 3]], 'b': {'c': 4}})
        assert ',\n}' not in text
        assert ',\n  }' not in text

    def test_strings_are_not_escaped_again(self):
        text = to_lua_table({'d': 'say \\"hi\\"\\nbye'})
        assert text == 'return {\n  ["d"] = "say \\"hi\\"\\nbye"\n}'
        assert read_lua(text) == {'d': 'say \\"hi\\"\\nbye'}

    def test_nested_indentation(self):
        text = to_lua_table({'a': {'b': {'c': 1}}})
        assert '      ["c"] = 1' in text
