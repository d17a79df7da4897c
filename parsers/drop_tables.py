"""Parse loot tables for chests, pots, creeps and gambling vendors"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from .base_parser import AssetParser, PassContext, classify, ref_guid
from .creeps import CREEP_DIR

INPUT_DIRS = (
    ('_item', '00_chest_loot_table'),
    ('_prefab', '_entity', '_npc'),
    CREEP_DIR,
)

DROP_TABLE_TYPES = (
    ('Chest', 'Chest'),
    ('Breakbox', 'Breakable'),
    ('CREEP', 'Creep'),
    ('Cost_tier', 'Gambling'),
)

# Applied in order, first occurrence only.
_NAME_REWRITES = (
    ('ChestBoss', 'Boss Chest'),
    ('Breakbox', ' Pot'),
    ('Catcombs', 'Catacombs'),
    ('Catacombs', 'Sanctum Catacombs'),
    ('Crescentkeep', 'Crescent Keep'),
    ('Grove', 'Crescent Grove'),
    ('Chest ', ''),
    (' Chest', ''),
)
_COST_TIER_RE = re.compile(r'_(\d+).*tier(\d+)')
_PARENS_RE = re.compile(r'[()]')


def clean_table_name(m_name: str) -> str:
    """
    Turn an internal loot table name into a readable one.

    lootTable_crescentkeepChestBoss -> "Crescent Keep Boss",
    gambling tables "..._03_tier2" -> "... Cost 3 Tier 2".
    """
    name = m_name.replace('lootTable_', '', 1)
    name = ' Chest'.join(part[:1].upper() + part[1:] for part in name.split('Chest'))
    name = _PARENS_RE.sub('', name)
    for old, new in _NAME_REWRITES:
        name = name.replace(old, new, 1)
    return _COST_TIER_RE.sub(
        lambda m: f" Cost {int(m.group(1))} Tier {int(m.group(2))}", name, count=1
    )


def parse_drop_file(ctx: PassContext, path: Path) -> Optional[tuple[str, str, list]]:
    """Return (table type, entry name, resolved item names) for one loot table."""
    data = AssetParser.load_behaviour(path)
    drops = data.get('_itemDrops') if data is not None else None
    if not isinstance(drops, list) or not drops:
        ctx.log.info(f"File {path.name} doesn't contain valid _itemDrops.")
        return None

    table_type = classify(data.get('m_Name'), DROP_TABLE_TYPES)
    if not table_type:
        ctx.log.info(f"File {path.name} is not a known drop table type. Skipping.")
        return None

    entry_name = data.get('_creepName')
    if entry_name is None:
        entry_name = clean_table_name(data.get('m_Name') or '')

    items = []
    for drop in drops:
        guid = ref_guid(drop.get('_item')) if isinstance(drop, dict) else None
        if guid is None:
            continue
        resolution = ctx.lookup.resolve(guid)
        ctx.log.info(resolution.message)
        if not resolution.found:
            continue
        item_name = resolution.data.get('_itemName')
        items.append(item_name)
        ctx.log.info(f"Added {table_type} drop for {entry_name}: {item_name}")
    return table_type, entry_name, items


def parse_drop_tables(ctx: PassContext) -> dict:
    """
    Parse every loot table into per-type lists of item names.

    Tables sharing an entry name accumulate their drops into one list.

    Target structure:
    {
        "Chest": {"Crescent Keep": ["Iron Sword", ...]},
        "Breakable": {...},
        "Creep": {"Slime": ["Slime Jelly"]},
        "Gambling": {"Cost 3 Tier 2": [...]}
    }
    """
    tables = {label: {} for _needle, label in DROP_TABLE_TYPES}
    for input_dir in INPUT_DIRS:
        files = AssetParser.collect_files(ctx, ctx.corpus_path.joinpath(*input_dir))
        for _path, result in AssetParser.map_files(ctx, files, lambda p: parse_drop_file(ctx, p)):
            if result is None:
                continue
            table_type, entry_name, items = result
            tables[table_type].setdefault(entry_name, []).extend(items)

    total = sum(len(entries) for entries in tables.values())
    ctx.log.info(f"[OK] Parsed {total} drop tables")
    return tables
