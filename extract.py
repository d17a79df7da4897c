#!/usr/bin/env python3
r"""
Single entrypoint for all extraction workflows.

Examples:
  # Parse data/output into data/parsed/<pass>/<pass>.lua with every pass
  python extract.py

  # Only a few passes, with JSON twins for debugging
  python extract.py --passes classes equipmentItems --export-json

  # Record the game version from the Unity project, then parse
  python extract.py --game-project "C:\ATLYSS\ExportedProject"
"""
from __future__ import annotations

import argparse
import json
import logging
import multiprocessing
import sqlite3
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, NamedTuple, Optional

from parsers.asset_lookup import AssetLookup
from parsers.base_parser import PassContext, PassError
from parsers.classes import parse_classes
from parsers.consumable_items import parse_consumable_items
from parsers.creeps import parse_creeps
from parsers.drop_tables import parse_drop_tables
from parsers.equipment_items import parse_equipment_items
from parsers.locations import parse_locations
from parsers.npcs import parse_npcs
from parsers.trade_items import parse_trade_items
from utils.asset_cache import AssetCache
from utils.clean import clean_parsed
from utils.config import ExtractorConfig, load_config
from utils.logging_config import (
    configure_worker_logging,
    get_pass_logger,
    setup_logging,
    start_queue_listener,
)
from utils.lua import to_lua_table
from utils.smoke import run_smoke_check
from utils.versions import read_bundle_version

logger = logging.getLogger("extract")

# Pass name -> parser. The pass name is also the output folder and file stem.
PASSES: dict[str, Callable[[PassContext], dict]] = {
    'classes': parse_classes,
    'equipmentItems': parse_equipment_items,
    'consumableItems': parse_consumable_items,
    'tradeItems': parse_trade_items,
    'creeps': parse_creeps,
    'dropTables': parse_drop_tables,
    'locations': parse_locations,
    'npcs': parse_npcs,
}

GAME_VERSION_FILE = 'gameVersion.txt'
PROJECT_SETTINGS = Path('ProjectSettings') / 'ProjectSettings.asset'


class PassResult(NamedTuple):
    """Completion signal for one pass; finished=False carries the error."""
    parser: str
    finished: bool
    error: Optional[str] = None
    output_path: Optional[Path] = None
    entries: int = 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Unified ATLYSS extraction command")
    parser.add_argument("--config", default=None, help="Path to a YAML config file.")
    parser.add_argument("--project", default=None, help="Project folder containing data/ (default: current directory).")
    parser.add_argument("--raw-data", default=None, help="Converted JSON corpus (default: <project>/data/output).")
    parser.add_argument(
        "--passes",
        nargs="+",
        choices=sorted(PASSES),
        metavar="PASS",
        help=f"Passes to run (default: all). Choices: {', '.join(PASSES)}",
    )
    parser.add_argument("--export-json", action="store_true", help="Also write a pretty-printed JSON twin of every table.")
    parser.add_argument("--jobs", type=int, default=None, help="Passes to run in parallel worker processes.")
    parser.add_argument("--file-workers", type=int, default=None, help="Threads per pass for file-level work.")
    parser.add_argument("--no-cache", action="store_true", help="Do not read or write data/cache.sqlite3.")
    parser.add_argument("--keep-parsed", action="store_true", help="Do not clear data/parsed before running.")
    parser.add_argument("--no-strict", action="store_true", help="Skip smoke checks after extraction.")
    parser.add_argument("--game-project", default=None, help="Unity project folder; records its bundle version in data/gameVersion.txt.")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR.")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ExtractorConfig:
    """Config file and environment first, then command-line flags."""
    config = load_config(args.config, args.project)
    overrides = {
        'raw_data_path': args.raw_data,
        'pass_jobs': args.jobs,
        'file_workers': args.file_workers,
        'log_level': args.log_level,
    }
    if args.export_json:
        overrides['export_json'] = True
    if args.no_cache:
        overrides['use_cache'] = False
    config.update(overrides)
    return config


def save_lua(data: dict, path: Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(to_lua_table(data))


def save_json(data: dict, path: Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent="\t", ensure_ascii=False)


def write_output(config: ExtractorConfig, pass_name: str, data: dict) -> Path:
    """
    Write data/parsed/<pass>/<pass>.lua (and .json when enabled).

    Raises:
        PassError: the output location cannot be written
    """
    output_dir = config.parsed_path / pass_name
    output_path = output_dir / f"{pass_name}.lua"
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        save_lua(data, output_path)
        if config.export_json:
            save_json(data, output_path.with_suffix(".json"))
    except OSError as e:
        raise PassError(f"Cannot write {output_path}: {e}") from e
    return output_path


def _open_store(config: ExtractorConfig, log) -> Optional[AssetCache]:
    if not config.use_cache:
        return None
    try:
        return AssetCache(config.cache_path)
    except (OSError, sqlite3.Error) as e:
        log.warning(f"[WARN] GUID cache unavailable, continuing without it: {e}")
        return None


def run_pass(pass_name: str, config: ExtractorConfig) -> PassResult:
    """
    Run one pass start to finish: walk, fold, serialize, write.

    Pass-fatal problems come back as a PassResult with finished=False so
    sibling passes keep running.
    """
    log = get_pass_logger(pass_name)
    parse = PASSES[pass_name]
    log.info(f"Starting {pass_name}...")
    start_time = time.time()

    store = _open_store(config, log)
    try:
        lookup = AssetLookup(config.corpus_path, store)
        ctx = PassContext(pass_name, config.corpus_path, lookup, log, config.file_workers)
        data = parse(ctx)
        output_path = write_output(config, pass_name, data)
    except PassError as e:
        log.error(f"[ERROR] Couldn't process parser: {pass_name}. Error message: {e}")
        return PassResult(pass_name, False, str(e))
    finally:
        if store is not None:
            store.close()

    elapsed = time.time() - start_time
    log.info(f"Finished parsing {pass_name}: {len(data)} entries in {elapsed:.1f}s "
             f"({lookup.traversals} corpus walks)")
    return PassResult(pass_name, True, None, output_path, len(data))


def _run_sequential(pass_names: list[str], config: ExtractorConfig) -> dict[str, PassResult]:
    results = {}
    for name in pass_names:
        try:
            results[name] = run_pass(name, config)
        except Exception as e:
            logger.exception("[ERROR] Couldn't process parser: %s", name)
            results[name] = PassResult(name, False, str(e))
    return results


def _run_parallel(
    pass_names: list[str],
    config: ExtractorConfig,
    handlers: list[logging.Handler],
) -> dict[str, PassResult]:
    results = {}
    with multiprocessing.Manager() as manager:
        queue = manager.Queue()
        listener = start_queue_listener(queue, handlers)
        try:
            with ProcessPoolExecutor(
                max_workers=min(config.pass_jobs, len(pass_names)),
                initializer=configure_worker_logging,
                initargs=(queue, config.log_level),
            ) as pool:
                futures = {pool.submit(run_pass, name, config): name for name in pass_names}
                for future in as_completed(futures):
                    name = futures[future]
                    try:
                        results[name] = future.result()
                    except Exception as e:
                        logger.error("[ERROR] Couldn't process parser: %s. Error message: %s", name, e)
                        results[name] = PassResult(name, False, str(e))
        finally:
            listener.stop()
    return results


def run_passes(
    pass_names: list[str],
    config: ExtractorConfig,
    handlers: Optional[list[logging.Handler]] = None,
) -> list[PassResult]:
    """Run passes independently; results come back in pass_names order."""
    if config.pass_jobs <= 1 or len(pass_names) <= 1:
        results = _run_sequential(pass_names, config)
    else:
        results = _run_parallel(pass_names, config, handlers or logging.getLogger().handlers)
    return [results[name] for name in pass_names]


def record_game_version(game_project: Path, config: ExtractorConfig) -> str:
    """Read the build's bundle version and store it in data/gameVersion.txt."""
    version = read_bundle_version(Path(game_project) / PROJECT_SETTINGS)
    version_path = Path(config.project_path) / 'data' / GAME_VERSION_FILE
    version_path.parent.mkdir(parents=True, exist_ok=True)
    version_path.write_text(version, encoding='utf-8')
    logger.info("[OK] Game version %s written to %s", version, version_path)
    return version


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = build_config(args)
    handlers = setup_logging(config.log_level)

    if args.game_project:
        try:
            record_game_version(Path(args.game_project), config)
        except (OSError, KeyError) as e:
            logger.error("[ERROR] Could not read game version: %s", e)
            return 1

    pass_names = args.passes or list(PASSES)
    if not config.corpus_path.is_dir():
        logger.error("[ERROR] Missing corpus directory: %s", config.corpus_path)
        return 1

    logger.info("=" * 70)
    logger.info("ATLYSS DATA EXTRACTION - %d passes", len(pass_names))
    logger.info("=" * 70)
    if not args.keep_parsed:
        clean_parsed(config.project_path)

    start_time = time.time()
    results = run_passes(pass_names, config, handlers)

    failed = [r for r in results if not r.finished]
    for result in results:
        if result.finished:
            logger.info("  [OK] %s: %d entries -> %s", result.parser, result.entries, result.output_path)
        else:
            logger.error("  [ERROR] %s: %s", result.parser, result.error)
    logger.info("Done in %.1fs", time.time() - start_time)

    if not args.no_strict:
        finished = [r.parser for r in results if r.finished]
        if finished and run_smoke_check(config.project_path, finished) != 0:
            return 1

    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
