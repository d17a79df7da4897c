"""ATLYSS Data Parsers - Convert the exported asset corpus to Lua tables"""

from .asset_lookup import AssetLookup, Resolution
from .base_parser import AssetParser, PassContext, PassError
from .classes import parse_classes
from .consumable_items import parse_consumable_items
from .creeps import parse_creeps
from .drop_tables import parse_drop_tables
from .equipment_items import parse_equipment_items
from .locations import parse_locations
from .npcs import parse_npcs
from .trade_items import parse_trade_items

__all__ = [
    'AssetLookup',
    'AssetParser',
    'PassContext',
    'PassError',
    'Resolution',
    'parse_classes',
    'parse_consumable_items',
    'parse_creeps',
    'parse_drop_tables',
    'parse_equipment_items',
    'parse_locations',
    'parse_npcs',
    'parse_trade_items',
]
