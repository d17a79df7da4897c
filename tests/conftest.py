"""
Pytest configuration and shared fixtures.
"""

import json
import logging
import sys
from pathlib import Path

import pytest

# Make the flat top-level packages importable without installing.
sys.path.insert(0, str(Path(__file__).parent.parent))

from parsers.asset_lookup import AssetLookup
from parsers.base_parser import PassContext
from utils.logging_config import get_pass_logger


# =============================================================================
# CORPUS FIXTURES
# =============================================================================

def write_asset(root: Path, relative: str, behaviour: dict, guid: str = None, extra=()) -> Path:
    """
    Write one converted asset file: [{"guid": ..., "MonoBehaviour": ...}, *extra].

    extra elements are written as-is after the root element.
    """
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    root_element = {'MonoBehaviour': behaviour}
    if guid is not None:
        root_element = {'guid': guid, **root_element}
    path.write_text(json.dumps([root_element, *extra]), encoding='utf-8')
    return path


def write_scene(root: Path, relative: str, behaviours: list) -> Path:
    """Write a scene dump: one element per MonoBehaviour."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([{'MonoBehaviour': b} for b in behaviours]), encoding='utf-8')
    return path


@pytest.fixture
def project(tmp_path):
    """A project folder with an empty data/output corpus."""
    (tmp_path / 'data' / 'output').mkdir(parents=True)
    return tmp_path


@pytest.fixture
def corpus(project):
    return project / 'data' / 'output'


@pytest.fixture
def make_ctx(corpus):
    """Factory for a PassContext over the test corpus."""
    def _make(pass_name='test', file_workers=1, store=None):
        return PassContext(
            pass_name=pass_name,
            corpus_path=corpus,
            lookup=AssetLookup(corpus, store),
            log=get_pass_logger(pass_name),
            file_workers=file_workers,
        )
    return _make


@pytest.fixture(autouse=True)
def _debug_logging(caplog):
    caplog.set_level(logging.DEBUG)


# =============================================================================
# LUA READER
# =============================================================================

class LuaReader:
    """
    Minimal reader for the tables utils.lua writes.

    Understands nested {...} tables with either positional items or
    ["key"] = value pairs, double-quoted strings with backslash escapes
    kept verbatim, numbers, true/false/nil and math.huge.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def _skip_ws(self):
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _expect(self, token):
        self._skip_ws()
        assert self.text.startswith(token, self.pos), f"expected {token!r} at {self.pos}"
        self.pos += len(token)

    def _peek(self, token):
        self._skip_ws()
        return self.text.startswith(token, self.pos)

    def read_module(self):
        self._expect('return')
        value = self.read_value()
        self._skip_ws()
        assert self.pos == len(self.text), "trailing text after table"
        return value

    def read_value(self):
        self._skip_ws()
        if self._peek('{'):
            return self._read_table()
        if self._peek('"'):
            return self._read_string()
        for literal, value in (('true', True), ('false', False), ('nil', None),
                               ('-math.huge', float('-inf')), ('math.huge', float('inf'))):
            if self._peek(literal):
                self.pos += len(literal)
                return value
        return self._read_number()

    def _read_string(self):
        self._expect('"')
        start = self.pos
        while self.text[self.pos] != '"':
            self.pos += 2 if self.text[self.pos] == '\\' else 1
        value = self.text[start:self.pos]
        self.pos += 1
        return value

    def _read_number(self):
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] in '+-0123456789.eE/':
            self.pos += 1
        token = self.text[start:self.pos]
        assert token, f"unexpected character at {start}"
        if token == '0/0':
            return float('nan')
        return float(token) if any(c in token for c in '.eE') else int(token)

    def _read_table(self):
        self._expect('{')
        if self._peek('}'):
            self.pos += 1
            return {}
        keyed = self._peek('["')
        result = {} if keyed else []
        while True:
            if keyed:
                self._expect('[')
                key = self._read_string()
                self._expect(']')
                self._expect('=')
                result[key] = self.read_value()
            else:
                result.append(self.read_value())
            if self._peek(','):
                self.pos += 1
                continue
            self._expect('}')
            return result


def read_lua(text: str):
    """Parse `return {...}` text back into Python values."""
    return LuaReader(text).read_module()
