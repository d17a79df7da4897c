"""Parse consumables (potions, tomes, dyes, scrolls)"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from .base_parser import (
    AssetParser,
    ITEM_RARITIES,
    PassContext,
    classify,
    label_for,
    number_or_zero,
    translate_markup,
)

INPUT_DIR = ('_item', '02_consumable')

CONSUMABLE_TYPES = (
    ('CLASSTOME', 'Class Tome'),
    ('DYE', 'Dye'),
    ('SKILLSCROLL', 'Skill Scroll'),
    ('STATUSCONSUMABLE', 'Status'),
)


def parse_consumable_file(ctx: PassContext, path: Path) -> Optional[dict]:
    data = AssetParser.load_behaviour(path)
    if data is None or not data.get('_itemName'):
        ctx.log.info(f"File {path.name} doesn't contain any MonoBehaviour.")
        return None

    item = {
        'type': classify(data.get('m_Name'), CONSUMABLE_TYPES),
        'name': data['_itemName'],
        'description': translate_markup(data.get('_itemDescription')),
        'rarity': label_for(ITEM_RARITIES, data.get('_itemRarity')),
        'maxStack': data.get('_maxStackAmount'),
        'price': data.get('_vendorCost'),
        'cooldown': data.get('_consumableCooldown'),
        'health': number_or_zero(data.get('_healthApply')),
        'mana': number_or_zero(data.get('_manaApply')),
        'stamina': number_or_zero(data.get('_staminaApply')),
        'experience': number_or_zero(data.get('_expGain')),
    }
    ctx.log.info(f"Added Consumable Item [{item['name']}].")
    return item


def parse_consumable_items(ctx: PassContext) -> dict:
    files = AssetParser.collect_files(ctx, ctx.corpus_path.joinpath(*INPUT_DIR))
    items = {}
    for _path, item in AssetParser.map_files(ctx, files, lambda p: parse_consumable_file(ctx, p)):
        if item is not None:
            items[item['name']] = item

    ctx.log.info(f"[OK] Parsed {len(items)} consumable items")
    return items
