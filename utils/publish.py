"""Decide whether a freshly parsed table should replace the published copy."""
from __future__ import annotations

import json
from typing import NamedTuple, Optional

from .versions import compare_versions


class PublishDecision(NamedTuple):
    publish: bool
    reason: str


def read_published_version(version_page: Optional[str]) -> Optional[str]:
    """
    Pull the version out of a published version.json page body.

    Returns None for a missing page, an empty page or a page without a version.
    Malformed JSON raises json.JSONDecodeError so a broken page is never
    mistaken for "nothing published yet".
    """
    if not version_page or not version_page.strip():
        return None
    data = json.loads(version_page)
    if not isinstance(data, dict):
        return None
    version = data.get('version')
    return version if isinstance(version, str) and version else None


def render_version_page(version: str) -> str:
    """Body for the version.json page that sits next to a data module."""
    return json.dumps({'version': version}, indent=2)


def decide_publish(
    new_version: str,
    new_text: str,
    remote_version: Optional[str],
    remote_text: Optional[str],
) -> PublishDecision:
    """
    Gate an upload of new_text over remote_text.

    The remote copy is kept when it was produced by the same or a newer game
    version, or when the text did not change. VersionFormatError from either
    version string propagates.
    """
    if remote_version and compare_versions(remote_version, new_version) != -1:
        return PublishDecision(False, f"Remote version {remote_version} is not older than {new_version}")

    if remote_text is not None and remote_text.strip() == new_text.strip():
        return PublishDecision(False, "No changes detected")

    return PublishDecision(True, f"Updated data for version {new_version}")
