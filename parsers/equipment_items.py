"""Parse equipment (armor, weapons, rings) from _item/01_equipment"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from .base_parser import (
    AssetParser,
    ITEM_RARITIES,
    PassContext,
    classify,
    label_for,
    project_stats,
    translate_markup,
    truncate,
    vector_component,
)

INPUT_DIR = ('_item', '01_equipment')

# First matching substring of m_Name wins; "Heavy Melee" must precede "Melee".
EQUIPMENT_TYPES = (
    ('HELM', 'Helm'),
    ('CAPE', 'Cape'),
    ('CHESTPIECE', 'Chestpiece'),
    ('LEGGINGS', 'Leggings'),
    ('SHIELD', 'Shield'),
    ('RING', 'Ring'),
    ('Katars', 'Katars'),
    ('Ranged', 'Ranged'),
    ('Range Weapon', 'Ranged'),
    ('Heavy Melee', 'Heavy Melee'),
    ('Melee', 'Melee'),
    ('Polearm', 'Polearm'),
    ('Magic Scepter', 'Scepter'),
    ('Magic Bell', 'Bell'),
)


def parse_equipment_file(ctx: PassContext, path: Path) -> Optional[dict]:
    data = AssetParser.load_behaviour(path)
    if data is None or not data.get('_itemName'):
        ctx.log.info(f"File {path.name} doesn't contain any MonoBehaviour.")
        return None

    cost = data.get('_statModifierCost') or {}
    item = {
        'type': classify(data.get('m_Name'), EQUIPMENT_TYPES),
        'name': data['_itemName'],
        'description': translate_markup(data.get('_itemDescription')),
        'level': data.get('_equipmentLevel'),
        'class': ctx.lookup_field(data.get('_classRequirement'), '_className', 'Any'),
        'stats': project_stats(data.get('_statArray')),
        'enchantment': {
            'item': ctx.lookup_field(cost.get('_scriptItem'), '_itemName', ''),
            'amount': cost.get('_scriptItemQuantity') or 0,
        },
    }

    if data.get('_weaponDamage'):
        damage_range = data.get('_readonlyDamageRange')
        item['weapon'] = {
            'element': ctx.lookup_field(data.get('_combatElement'), '_elementName', 'Normal'),
            'minBase': truncate(vector_component(damage_range, 'x')),
            'maxBase': truncate(vector_component(damage_range, 'y')),
        }
    elif data.get('_blockDamageThreshold'):
        item['blockDamage'] = data['_blockDamageThreshold']

    item['rarity'] = label_for(ITEM_RARITIES, data.get('_itemRarity'))
    item['dye'] = data.get('_canDyeArmor') == 1
    item['maxStack'] = data.get('_maxStackAmount')
    item['price'] = data.get('_vendorCost')

    ctx.log.info(f"Added Equipment Item [{item['name']}].")
    return item


def parse_equipment_items(ctx: PassContext) -> dict:
    """
    Parse all equipment items.

    Target structure (keyed by item name):
    {
        "Iron Sword": {
            "type": "Melee", "name": "Iron Sword", "level": 4, "class": "Any",
            "stats": {...}, "enchantment": {"item": "", "amount": 0},
            "weapon": {"element": "Normal", "minBase": 3, "maxBase": 6},
            "rarity": "Common", "dye": false, "maxStack": 1, "price": 120
        }
    }
    """
    files = AssetParser.collect_files(ctx, ctx.corpus_path.joinpath(*INPUT_DIR))
    items = {}
    for _path, item in AssetParser.map_files(ctx, files, lambda p: parse_equipment_file(ctx, p)):
        if item is not None:
            items[item['name']] = item

    ctx.log.info(f"[OK] Parsed {len(items)} equipment items")
    return items
