"""Game version parsing, ordering and detection."""
from __future__ import annotations

import re
from pathlib import Path
from typing import NamedTuple

import yaml

# Legacy builds: "Beta 1.6.2b", "Alpha 0.9.1", "1.0.0"
_LEGACY_RE = re.compile(r'^(Alpha|Beta)?\s?(\d+)\.(\d+)\.(\d+)([a-z]?)$', re.IGNORECASE)
# Current builds: "72025.a3"
_MODERN_RE = re.compile(r'^(\d+)\.([a-z])(\d+)$', re.IGNORECASE)

_PRE_RELEASE_ORDER = {'alpha': 1, 'beta': 2, '': 3}

LEGACY = 0
MODERN = 1

# Unity prefixes every YAML asset with these; PyYAML rejects the custom tags.
_UNITY_DIRECTIVE_RE = re.compile(r'^%(YAML|TAG).*$', re.MULTILINE)
_UNITY_DOCUMENT_RE = re.compile(r'^--- !u!\d+ &\d+.*$', re.MULTILINE)


class VersionFormatError(ValueError):
    """Raised when a version string matches neither known format."""


class VersionToken(NamedTuple):
    scheme: int
    key: tuple[int, ...]
    text: str


def parse_version(version: str) -> VersionToken:
    """
    Parse a version string into an orderable token.

    Raises:
        VersionFormatError: if the string is neither a legacy nor a modern version
    """
    value = version.strip() if isinstance(version, str) else version
    if not isinstance(value, str):
        raise VersionFormatError(f"Unknown version format: {version!r}")

    match = _LEGACY_RE.match(value)
    if match:
        pre_release, major, minor, patch, suffix = match.groups()
        key = (
            _PRE_RELEASE_ORDER[(pre_release or '').lower()],
            int(major),
            int(minor),
            int(patch),
            ord(suffix) if suffix else 0,
        )
        return VersionToken(LEGACY, key, value)

    match = _MODERN_RE.match(value)
    if match:
        build, letter, num = match.groups()
        return VersionToken(MODERN, (int(build), ord(letter.lower()), int(num)), value)

    raise VersionFormatError(f"Unknown version format: {version}")


def compare_versions(a: str, b: str) -> int:
    """
    Compare two game versions.

    Returns -1, 0 or 1. Any modern build sorts after every legacy build.
    """
    va = parse_version(a)
    vb = parse_version(b)
    if va.scheme != vb.scheme:
        return 1 if va.scheme > vb.scheme else -1
    return (va.key > vb.key) - (va.key < vb.key)


def read_bundle_version(project_settings_path: str | Path) -> str:
    """
    Read PlayerSettings.bundleVersion from a Unity ProjectSettings.asset file.

    Raises:
        OSError: if the file cannot be read
        KeyError: if the document has no bundleVersion
    """
    text = Path(project_settings_path).read_text(encoding='utf-8')
    text = _UNITY_DIRECTIVE_RE.sub('', text)
    text = _UNITY_DOCUMENT_RE.sub('---', text)

    for document in yaml.safe_load_all(text):
        if not isinstance(document, dict):
            continue
        settings = document.get('PlayerSettings')
        if isinstance(settings, dict) and 'bundleVersion' in settings:
            return str(settings['bundleVersion']).strip()

    raise KeyError(f"bundleVersion not found in {project_settings_path}")
