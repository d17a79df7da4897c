"""Parse NPCs together with their shops and quests"""
from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Callable, Optional

from utils.experience import experience_for_level

from .base_parser import AssetParser, PassContext, ref_guid, strip_markup, translate_markup

NPC_DIR = ('_prefab', '_entity', '_npc')
NPC_FILE_PREFIX = '_npc'
SHOP_FILE_PREFIX = 'shopKeep'
QUEST_DIR = '_quest'
QUEST_FILE_MARKER = 'QUEST'
JSON_SUFFIX = '.json'


def resolve_entries(
    ctx: PassContext,
    entries: Any,
    ref_of: Callable[[dict], Any],
    build: Callable[[dict, dict], Optional[dict]],
) -> list:
    """
    Resolve each entry of a nested reference list independently.

    ref_of picks the {guid} reference out of an entry and build turns the
    entry plus its resolved payload into an output record. Entries that do
    not resolve are dropped; survivors keep their relative order.
    """
    results = []
    for entry in entries or []:
        if not isinstance(entry, dict):
            continue
        guid = ref_guid(ref_of(entry))
        if guid is None:
            continue
        resolution = ctx.lookup.resolve(guid)
        ctx.log.info(resolution.message)
        if not resolution.found:
            continue
        record = build(entry, resolution.data)
        if record is not None:
            results.append(record)
    return results


def _first_behaviour(path: Path) -> Optional[dict]:
    return next(AssetParser.iter_behaviours(AssetParser.load_json(path)), None)


def parse_shop_item(ctx: PassContext, entry: dict, item: dict) -> dict:
    special = entry.get('_specialStoreCost') or {}
    if ref_guid(special.get('_scriptItem')) is not None:
        price = special.get('_scriptItemQuantity')
        price_item = ctx.lookup_field(special['_scriptItem'], '_itemName')
    elif entry.get('_useDedicatedItemValue'):
        price = entry.get('_dedicatedItemValue')
        price_item = None
    else:
        price = item.get('_vendorCost')
        price_item = None
    return {
        'name': item.get('_itemName'),
        'price': price,
        'priceItem': price_item,
    }


def parse_shop(ctx: PassContext, shop: dict) -> dict:
    """
    Shop record: the shop name followed by one "Tier N" entry per item table.

    {"name": "Frankie's Wares", "Tier 1": {"level": 1, "items": [...]}}
    """
    result = {'name': shop.get('_shopName')}
    for tier, table in enumerate(shop.get('_shopkeepItemTables') or [], start=1):
        table = table if isinstance(table, dict) else {}
        result[f"Tier {tier}"] = {
            'level': table.get('_levelRequirement'),
            'items': resolve_entries(
                ctx,
                table.get('_shopkeepItems'),
                lambda entry: entry.get('_scriptItem'),
                lambda entry, item: parse_shop_item(ctx, entry, item),
            ),
        }
    return result


def quest_experience(level: Any, percentage: Any) -> int:
    """Experience reward: a share of the experience needed for the quest level."""
    return math.floor(math.floor(experience_for_level(level or 0)) * (percentage or 0))


def parse_quest(ctx: PassContext, quest: dict) -> dict:
    objective = quest.get('_questObjective') or {}
    return {
        'name': quest.get('_questName'),
        'description': strip_markup(quest.get('_questDescription'), escape_quotes=True),
        'level': quest.get('_questLevel'),
        'expReward': quest_experience(quest.get('_questLevel'), quest.get('_questExperiencePercentage')),
        'currencyReward': quest.get('_questCurrencyReward'),
        'itemRewards': resolve_entries(
            ctx,
            quest.get('_questItemRewards'),
            lambda entry: entry.get('_scriptItem'),
            lambda entry, item: {'name': item.get('_itemName'), 'quantity': entry.get('_itemQuantity')},
        ),
        'type': 'Repeatable' if quest.get('_questType') == 1 else 'Single',
        'prerequisites': resolve_entries(
            ctx,
            quest.get('_preQuestRequirements'),
            lambda entry: entry,
            lambda entry, prereq: {'name': prereq.get('_questName')},
        ),
        'objectives': {
            'itemRequirements': resolve_entries(
                ctx,
                objective.get('_questItemRequirements'),
                lambda entry: entry.get('_questItem'),
                lambda entry, item: {'item': item.get('_itemName'), 'quantity': entry.get('_itemsNeeded')},
            ),
            'creepRequirements': resolve_entries(
                ctx,
                objective.get('_questCreepRequirements'),
                lambda entry: entry.get('_questCreep'),
                lambda entry, creep: {'creep': creep.get('_creepName'), 'quantity': entry.get('_creepsKilled')},
            ),
            'triggerRequirements': [
                {
                    'tag': trigger.get('_questTriggerTag'),
                    'prefix': trigger.get('_prefix'),
                    'suffix': trigger.get('_suffix'),
                    'emitsNeeded': trigger.get('_triggerEmitsNeeded'),
                }
                for trigger in objective.get('_questTriggerRequirements') or []
                if isinstance(trigger, dict)
            ],
        },
    }


def _quest_files(npc_folder: Path) -> list[Path]:
    """JSON files in the NPC's _quest folder, then sibling JSON files named *QUEST*."""
    files = []
    quest_dir = npc_folder / QUEST_DIR
    if quest_dir.is_dir():
        files.extend(
            Path(e.path) for e in AssetParser.list_dir(quest_dir)
            if e.name.endswith(JSON_SUFFIX) and e.is_file()
        )
    files.extend(
        Path(e.path) for e in AssetParser.list_dir(npc_folder)
        if QUEST_FILE_MARKER in e.name and e.name.endswith(JSON_SUFFIX) and e.is_file()
    )
    return files


def _load_quests(ctx: PassContext, npc_folder: Path, npc_key: str) -> list[dict]:
    quests = []
    for path in _quest_files(npc_folder):
        try:
            quest = _first_behaviour(path)
        except (OSError, ValueError):
            ctx.log.info(f"Failed to parse quest file: {path.name}")
            continue
        if quest is not None:
            quests.append(quest)
    if not quests:
        ctx.log.info(f"No quest files were found for {npc_key}")
    return quests


def _load_shop(npc_folder: Path) -> Optional[dict]:
    shop_file = next(
        (e for e in AssetParser.list_dir(npc_folder)
         if e.name.startswith(SHOP_FILE_PREFIX) and e.name.endswith(JSON_SUFFIX) and e.is_file()),
        None,
    )
    if shop_file is None:
        return None
    return _first_behaviour(Path(shop_file.path))


def parse_npc_file(ctx: PassContext, path: Path) -> Optional[tuple[str, dict]]:
    if not path.name.startswith(NPC_FILE_PREFIX):
        ctx.log.debug(f"File {path.name} isn't an NPC file")
        return None

    npc = AssetParser.find_behaviour(AssetParser.load_json(path), 'm_text')
    if npc is None:
        ctx.log.info(f"File {path.name} doesn't contain any MonoBehaviour")
        return None

    npc_key = strip_markup(npc['m_text'], escape_quotes=True)
    npc_folder = path.parent
    shop = _load_shop(npc_folder)
    quests = _load_quests(ctx, npc_folder, npc_key)

    record = {
        'name': translate_markup(npc['m_text']),
        'shop': parse_shop(ctx, shop) if shop is not None else {},
        'quests': [parse_quest(ctx, quest) for quest in quests],
    }
    ctx.log.info(f"Added NPC [{npc_key}]")
    return npc_key, record


def parse_npcs(ctx: PassContext) -> dict:
    """
    Parse every _npc* prefab under the NPC directory.

    Keyed by the NPC's display text with color tags stripped.
    """
    files = AssetParser.collect_files(ctx, ctx.corpus_path.joinpath(*NPC_DIR))
    npcs = {}
    for _path, result in AssetParser.map_files(ctx, files, lambda p: parse_npc_file(ctx, p)):
        if result is None:
            continue
        npc_key, record = result
        npcs[npc_key] = record

    ctx.log.info(f"[OK] Parsed {len(npcs)} NPCs")
    return npcs
