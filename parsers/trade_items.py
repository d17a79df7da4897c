"""Parse trade goods from _item/03_trade"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from .base_parser import AssetParser, ITEM_RARITIES, PassContext, label_for, translate_markup

INPUT_DIR = ('_item', '03_trade')


def parse_trade_file(ctx: PassContext, path: Path) -> Optional[dict]:
    data = AssetParser.load_behaviour(path)
    if data is None or not data.get('_itemName'):
        ctx.log.info(f"File {path.name} doesn't contain any MonoBehaviour.")
        return None

    ctx.log.info(f"Added Trade Item [{data['_itemName']}].")
    return {
        'name': data['_itemName'],
        'description': translate_markup(data.get('_itemDescription')),
        'rarity': label_for(ITEM_RARITIES, data.get('_itemRarity')),
        'maxStack': data.get('_maxStackAmount'),
        'price': data.get('_vendorCost'),
    }


def parse_trade_items(ctx: PassContext) -> dict:
    files = AssetParser.collect_files(ctx, ctx.corpus_path.joinpath(*INPUT_DIR))
    items = {}
    for _path, item in AssetParser.map_files(ctx, files, lambda p: parse_trade_file(ctx, p)):
        if item is not None:
            items[item['name']] = item

    ctx.log.info(f"[OK] Parsed {len(items)} trade items")
    return items
