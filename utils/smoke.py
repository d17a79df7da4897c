#!/usr/bin/env python3
"""Lightweight post-extraction smoke checks."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

import orjson

logger = logging.getLogger(__name__)

TABLE_PREFIX = "return {"
EMPTY_TABLE = "return {}"


def _check_pass(parsed_dir: Path, pass_name: str, failures: list[str], warnings: list[str]) -> None:
    lua_path = parsed_dir / pass_name / f"{pass_name}.lua"
    if not lua_path.exists():
        failures.append(f"{pass_name}: {lua_path.name} missing")
        return

    try:
        text = lua_path.read_text(encoding="utf-8")
    except OSError as e:
        failures.append(f"{pass_name}: unreadable ({e})")
        return

    if not text.startswith(TABLE_PREFIX):
        failures.append(f"{pass_name}: expected output to start with '{TABLE_PREFIX}'")
        return
    if text.strip() == EMPTY_TABLE:
        warnings.append(f"{pass_name}: table is empty")

    json_path = lua_path.with_suffix(".json")
    if json_path.exists():
        try:
            orjson.loads(json_path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            failures.append(f"{pass_name}: invalid JSON twin ({e})")


def run_smoke_check(project_root: Path, pass_names: list[str]) -> int:
    """Return 0 when every pass produced a well-formed table, 1 otherwise."""
    parsed_dir = Path(project_root) / "data" / "parsed"
    failures: list[str] = []
    warnings: list[str] = []

    if not parsed_dir.exists():
        logger.error("[ERROR] Missing directory: %s", parsed_dir)
        return 1

    for pass_name in pass_names:
        _check_pass(parsed_dir, pass_name, failures, warnings)

    if failures:
        logger.error("[FAIL] Smoke checks failed:")
        for issue in failures:
            logger.error("  - %s", issue)
        for issue in warnings:
            logger.warning("[WARN] %s", issue)
        return 1

    if warnings:
        logger.info("[OK] Smoke checks passed with warnings.")
        for issue in warnings:
            logger.warning("[WARN] %s", issue)
    else:
        logger.info("[OK] Smoke checks passed.")

    logger.info("Checked %d tables in %s", len(pass_names), parsed_dir)
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run lightweight post-extraction smoke checks.")
    parser.add_argument(
        "--project",
        type=Path,
        default=Path.cwd(),
        help="Project root containing data/parsed (default: current directory).",
    )
    parser.add_argument("passes", nargs="+", help="Pass names to check.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = parse_args(argv)
    return run_smoke_check(args.project.resolve(), args.passes)


if __name__ == "__main__":
    raise SystemExit(main())
