"""Base helpers for parsing the converted Unity asset corpus"""
from __future__ import annotations

import math
import os
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Optional, Sequence

import orjson

from utils.lua import format_number

if TYPE_CHECKING:
    from utils.logging_config import PassLogger
    from .asset_lookup import AssetLookup

# Display labels indexed by the enum value stored in the asset.
DAMAGE_TYPES = ('Strength', 'Dexterity', 'Mind')
ITEM_RARITIES = ('Common', 'Exotic', 'Magic', 'Rare', 'Legendary')
ZONE_TYPES = ('Safe', 'Field', 'Dungeon', 'Arena')
ZONE_DIFFICULTIES = ('EASY', 'NORMAL', 'HARD')

# Output stat name -> field on the raw stat struct.
STAT_FIELDS = (
    ('maxHealth', '_maxHealth'),
    ('maxMana', '_maxMana'),
    ('maxStamina', '_maxStamina'),
    ('experience', '_experience'),
    ('attackPower', '_attackPower'),
    ('dexPower', '_dexPower'),
    ('magicPower', '_magicPower'),
    ('criticalRate', '_criticalRate'),
    ('magicCriticalRate', '_magicCriticalRate'),
    ('defense', '_defense'),
    ('magicDefense', '_magicDefense'),
    ('evasion', '_evasion'),
)

_COLOR_OPEN_RE = re.compile(r'<color=(\w*)>')
_COLOR_CLOSE = '</color>'


class PassError(RuntimeError):
    """A pass cannot run at all (unreadable input root, unwritable output)."""


def translate_markup(text: Optional[str]) -> str:
    """
    Convert Unity rich text into wiki-safe HTML.

    Newlines become a literal \\n, quotes are escaped for the Lua string and
    <color=NAME>...</color> becomes <span style="color: NAME;">...</span>.
    """
    if not text or not isinstance(text, str):
        return ''
    text = text.replace('\n', '\\n').replace('"', '\\"')
    text = text.replace(_COLOR_CLOSE, '</span>')
    return _COLOR_OPEN_RE.sub(r'<span style=\\"color: \1;\\">', text)


def strip_markup(text: Optional[str], escape_quotes: bool = False) -> str:
    """
    Escape newlines and drop color tags entirely.

    Used for table keys and plain-text fields where markup is unwanted.
    """
    if not text or not isinstance(text, str):
        return ''
    text = text.replace('\n', '\\n')
    if escape_quotes:
        text = text.replace('"', '\\"')
    text = text.replace(_COLOR_CLOSE, '')
    return _COLOR_OPEN_RE.sub('', text)


def classify(name: Optional[str], rules: Sequence[tuple[str, str]]) -> str:
    """Return the label of the first (substring, label) rule found in name."""
    if not name:
        return ''
    for needle, label in rules:
        if needle in name:
            return label
    return ''


def label_for(labels: Sequence[str], index: Any) -> Optional[str]:
    """Look up an enum label; unknown or missing indexes give None."""
    if isinstance(index, bool) or not isinstance(index, int):
        return None
    if 0 <= index < len(labels):
        return labels[index]
    return None


def project_stats(raw: Optional[dict]) -> dict:
    """Copy the known stat fields out of a raw stat struct, defaulting to 0."""
    raw = raw if isinstance(raw, dict) else {}
    return {name: number_or_zero(raw.get(field)) for name, field in STAT_FIELDS}


def number_or_zero(value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def ref_guid(ref: Any) -> Optional[str]:
    """GUID of a {guid: ...} reference field, or None when unset."""
    if isinstance(ref, dict):
        guid = ref.get('guid')
        if isinstance(guid, str) and guid:
            return guid
    return None


def vector_component(vector: Any, axis: str) -> float:
    """
    Read one axis of a serialized Vector2.

    YAML 1.1 loads a bare `y` key as boolean true, so the converted corpus
    stores the y axis under "true".
    """
    if not isinstance(vector, dict):
        return 0
    value = vector.get(axis)
    if value is None and axis == 'y':
        value = vector.get('true')
    return number_or_zero(value)


def truncate(value: Any) -> int:
    value = number_or_zero(value)
    return math.trunc(value)


def format_game_number(value: Any) -> str:
    """Format a number for inline description text (5.0 -> "5")."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_number(value)
    return '' if value is None else str(value)


@dataclass
class PassContext:
    """Everything one pass invocation needs; owned by that invocation."""
    pass_name: str
    corpus_path: Path
    lookup: 'AssetLookup'
    log: 'PassLogger'
    file_workers: int = 1

    def lookup_field(self, ref: Any, field: str, default: Any = None) -> Any:
        """
        Resolve a {guid} reference and read one field from the target.

        Unset references and dangling GUIDs both give default.
        """
        guid = ref_guid(ref)
        if guid is None:
            return default
        resolution = self.lookup.resolve(guid)
        if not resolution.found:
            self.log.info(resolution.message)
            return default
        self.log.debug(resolution.message)
        value = resolution.data.get(field) if isinstance(resolution.data, dict) else None
        return default if value is None else value


class AssetParser:
    """Shared file-level helpers for every category pass"""

    @staticmethod
    def load_json(filepath: str | Path) -> Any:
        """
        Load a converted asset file.

        Raises:
            OSError: unreadable file
            orjson.JSONDecodeError: malformed JSON (a ValueError subclass)
        """
        with open(filepath, 'rb') as f:
            return orjson.loads(f.read())

    @classmethod
    def load_behaviour(cls, filepath: str | Path) -> Optional[dict]:
        """Return the MonoBehaviour payload of the file's first element."""
        data = cls.load_json(filepath)
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            return None
        behaviour = data[0].get('MonoBehaviour')
        return behaviour if isinstance(behaviour, dict) else None

    @classmethod
    def find_behaviour(cls, elements: Any, field: str) -> Optional[dict]:
        """First MonoBehaviour in a multi-element file that has a truthy field."""
        for behaviour in cls.iter_behaviours(elements):
            if behaviour.get(field):
                return behaviour
        return None

    @staticmethod
    def iter_behaviours(elements: Any) -> Iterator[dict]:
        if isinstance(elements, dict):
            elements = [elements]
        if not isinstance(elements, list):
            return
        for element in elements:
            if isinstance(element, dict) and isinstance(element.get('MonoBehaviour'), dict):
                yield element['MonoBehaviour']

    @staticmethod
    def list_dir(directory: str | Path) -> list[os.DirEntry]:
        """List a directory in filesystem order."""
        with os.scandir(directory) as it:
            return list(it)

    @classmethod
    def walk_files(
        cls,
        root: str | Path,
        suffix: str = '.json',
        log: Optional['PassLogger'] = None,
    ) -> Iterator[Path]:
        """
        Depth-first walk in directory-listing order.

        Subdirectories are entered as they are listed, not after the files of
        their parent, matching how the corpus lookups have always visited the
        tree. The root must be listable (OSError propagates); unreadable
        subdirectories are skipped.
        """
        for entry in cls.list_dir(root):
            if entry.is_dir():
                try:
                    yield from cls.walk_files(entry.path, suffix, log)
                except OSError as e:
                    if log is not None:
                        log.warning(f"Skipped unreadable folder {entry.path}: {e}")
            elif entry.is_file() and (not suffix or entry.name.lower().endswith(suffix)):
                yield Path(entry.path)

    @classmethod
    def collect_files(cls, ctx: PassContext, root: str | Path) -> list[Path]:
        """
        All JSON files under a pass input root.

        Raises:
            PassError: the root directory cannot be read
        """
        try:
            return list(cls.walk_files(root, log=ctx.log))
        except OSError as e:
            raise PassError(f"Cannot read input folder {root}: {e}") from e

    @staticmethod
    def map_files(
        ctx: PassContext,
        files: Iterable[Path],
        visitor: Callable[[Path], Any],
    ) -> Iterator[tuple[Path, Any]]:
        """
        Run visitor over files, yielding (path, result) in input order.

        With ctx.file_workers > 1 the visitor runs on a bounded thread pool;
        results still come back in file order so the folded table does not
        depend on the worker count. A visitor that raises only loses its own
        file.
        """
        files = list(files)

        def guarded(path: Path) -> Any:
            try:
                return visitor(path)
            except Exception as e:
                ctx.log.warning(f"Skipped {path.name} due to error: {e}")
                return None

        if ctx.file_workers <= 1 or len(files) <= 1:
            for path in files:
                yield path, guarded(path)
            return

        with ThreadPoolExecutor(max_workers=ctx.file_workers) as pool:
            yield from zip(files, pool.map(guarded, files))
