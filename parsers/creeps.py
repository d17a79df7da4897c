"""Parse creeps (enemies) from the creep directory"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from .base_parser import AssetParser, PassContext, number_or_zero, project_stats

CREEP_DIR = ('_prefab', '_entity', '_creep', '_creepdirectory')


def is_boss(data: dict) -> bool:
    """Bosses pay out a currency bonus and have no regular item drops."""
    return number_or_zero(data.get('_currencyDropBonus')) > 0 and not data.get('_itemDrops')


def parse_creep_file(ctx: PassContext, path: Path) -> Optional[dict]:
    data = AssetParser.load_behaviour(path)
    if data is None or not data.get('_creepName'):
        ctx.log.info(f"File {path.name} doesn't contain any MonoBehaviour.")
        return None

    creep = {
        'name': data['_creepName'],
        'level': data.get('_creepLevel'),
        'type': 'Boss' if is_boss(data) else 'Normal',
        'element': ctx.lookup_field(data.get('_combatElement'), '_elementName', 'Normal'),
        'damage': data.get('_baseDamage'),
        'stats': project_stats(data.get('_creepStatStruct')),
    }
    ctx.log.info(f"Added Creep [{creep['name']}].")
    return creep


def parse_creeps(ctx: PassContext) -> dict:
    files = AssetParser.collect_files(ctx, ctx.corpus_path.joinpath(*CREEP_DIR))
    creeps = {}
    for _path, creep in AssetParser.map_files(ctx, files, lambda p: parse_creep_file(ctx, p)):
        if creep is not None:
            creeps[creep['name']] = creep

    ctx.log.info(f"[OK] Parsed {len(creeps)} creeps")
    return creeps
