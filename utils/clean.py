#!/usr/bin/env python3
"""Clear data/parsed before a fresh extraction run."""
from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def clean_parsed(project_root: Path) -> Path:
    """Remove every pass output under data/parsed and recreate the folder."""
    parsed_dir = Path(project_root) / "data" / "parsed"

    if parsed_dir.exists():
        for child in parsed_dir.iterdir():
            if child.is_dir():
                shutil.rmtree(child, ignore_errors=True)
                logger.info("Removed data/parsed/%s/", child.name)
            else:
                child.unlink(missing_ok=True)
                logger.info("Removed data/parsed/%s", child.name)

    parsed_dir.mkdir(parents=True, exist_ok=True)
    return parsed_dir


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    clean_parsed(Path.cwd())


if __name__ == "__main__":
    main()
