"""GUID lookups across the whole converted corpus, shared by every pass."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple, Optional

from .base_parser import AssetParser

if TYPE_CHECKING:
    from utils.asset_cache import AssetCache

logger = logging.getLogger(__name__)


class Resolution(NamedTuple):
    guid: str
    data: Optional[dict]
    source: Optional[Path]
    message: str

    @property
    def found(self) -> bool:
        return self.data is not None


def read_meta_guid(asset_path: str | Path) -> Optional[str]:
    """
    Read the GUID from an asset's companion .meta file.

    Unity writes `guid: <hex>` as the second line of every .meta file.
    """
    meta_path = Path(asset_path)
    meta_path = meta_path.with_name(meta_path.name + '.meta')
    try:
        with open(meta_path, 'r', encoding='utf-8') as f:
            f.readline()
            line = f.readline().strip()
    except OSError:
        return None
    if not line.startswith('guid:'):
        return None
    return line[len('guid:'):].strip() or None


def read_root_element(path: Path) -> Optional[tuple[Optional[str], Optional[dict]]]:
    """
    Return (guid, MonoBehaviour) for a corpus file, or None if it is not one.

    Raises:
        OSError, ValueError: unreadable or malformed file
    """
    data = AssetParser.load_json(path)
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    root = data[0]
    guid = root.get('guid')
    if not isinstance(guid, str) or not guid:
        guid = read_meta_guid(path)
    behaviour = root.get('MonoBehaviour')
    return guid, behaviour if isinstance(behaviour, dict) else None


class AssetLookup:
    """
    Resolve asset GUIDs to their MonoBehaviour payload.

    Lookups go memory cache -> persistent cache -> corpus walk. Every walk
    also records where each GUID it passed lives, so most later misses read
    a single file instead of walking again. Once one walk has covered the
    whole tree, an unknown GUID is answered as not found immediately.
    """

    def __init__(self, corpus_root: str | Path, store: Optional['AssetCache'] = None):
        self.corpus_root = Path(corpus_root)
        self.store = store
        self.traversals = 0
        self._cache: dict[str, tuple[dict, Optional[Path]]] = {}
        self._locations: dict[str, Path] = {}
        self._index_complete = False
        self._lock = threading.RLock()

    def resolve(self, guid: str) -> Resolution:
        if not guid:
            return Resolution(guid, None, None, "Empty GUID.")

        with self._lock:
            cached = self._cache.get(guid)
            if cached is not None:
                return Resolution(guid, cached[0], cached[1], f"GUID: {guid} found in cache.")

            if self.store is not None:
                stored = self.store.get(guid)
                if stored is not None:
                    payload, source = stored
                    source_path = Path(source) if source else None
                    self._cache[guid] = (payload, source_path)
                    return Resolution(guid, payload, source_path, f"GUID: {guid} found in cache.")

            found = self._read_indexed(guid)
            if found is None and not self._index_complete:
                found = self._walk_for(guid)

            if found is None:
                return Resolution(guid, None, None, f"GUID: {guid} not found.")

            payload, source = found
            self._cache[guid] = (payload, source)
            message = f"GUID: {guid} found and stored in cache."
            if self.store is not None:
                try:
                    self.store.put(guid, payload, str(source))
                except Exception as e:
                    message = f"[WARN] Failed to store GUID: {guid} in cache. ({e})"
            return Resolution(guid, payload, source, message)

    def _read_indexed(self, guid: str) -> Optional[tuple[dict, Path]]:
        path = self._locations.get(guid)
        if path is None:
            return None
        try:
            element = read_root_element(path)
        except (OSError, ValueError) as e:
            logger.debug("Indexed file %s became unreadable: %s", path, e)
            return None
        if element is None or element[0] != guid or element[1] is None:
            return None
        return element[1], path

    def _walk_for(self, guid: str) -> Optional[tuple[dict, Path]]:
        """Depth-first search of the corpus; first file declaring guid wins."""
        self.traversals += 1
        try:
            files = AssetParser.walk_files(self.corpus_root)
            for path in files:
                try:
                    element = read_root_element(path)
                except (OSError, ValueError):
                    continue
                if element is None or not element[0]:
                    continue
                file_guid, behaviour = element
                self._locations.setdefault(file_guid, path)
                if file_guid == guid and behaviour is not None:
                    return behaviour, path
        except OSError as e:
            logger.warning("Cannot walk corpus %s: %s", self.corpus_root, e)
            return None

        self._index_complete = True
        return None

