"""
Tests for the SQLite GUID cache.
"""

import sqlite3
import threading

from utils.asset_cache import AssetCache


class TestAssetCache:

    def test_get_missing(self, tmp_path):
        with AssetCache(tmp_path / 'cache.sqlite3') as cache:
            assert cache.get('nope') is None

    def test_put_then_get(self, tmp_path):
        with AssetCache(tmp_path / 'cache.sqlite3') as cache:
            cache.put('abc', {'_itemName': 'Copper Ore', 'n': [1, 2]}, '/corpus/ore.json')
            assert cache.get('abc') == ({'_itemName': 'Copper Ore', 'n': [1, 2]}, '/corpus/ore.json')

    def test_first_write_wins(self, tmp_path):
        with AssetCache(tmp_path / 'cache.sqlite3') as cache:
            cache.put('abc', {'v': 1}, 'first.json')
            cache.put('abc', {'v': 2}, 'second.json')
            assert cache.get('abc') == ({'v': 1}, 'first.json')
            assert len(cache) == 1

    def test_persists_across_connections(self, tmp_path):
        db_path = tmp_path / 'sub' / 'cache.sqlite3'
        with AssetCache(db_path) as cache:
            cache.put('abc', {'v': 1})
        with AssetCache(db_path) as cache:
            assert cache.get('abc') == ({'v': 1}, None)

    def test_concurrent_identical_writes(self, tmp_path):
        with AssetCache(tmp_path / 'cache.sqlite3') as cache:
            def worker():
                for i in range(25):
                    cache.put(f'g{i}', {'i': i}, f'{i}.json')

            threads = [threading.Thread(target=worker) for _ in range(4)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            assert len(cache) == 25
            assert cache.get('g7') == ({'i': 7}, '7.json')

    def test_corrupt_row_is_a_miss(self, tmp_path):
        db_path = tmp_path / 'cache.sqlite3'
        AssetCache(db_path).close()
        conn = sqlite3.connect(str(db_path))
        conn.execute("INSERT INTO assets (guid, source, payload) VALUES ('bad', NULL, ?)", (b'{oops',))
        conn.commit()
        conn.close()

        with AssetCache(db_path) as cache:
            assert cache.get('bad') is None
