"""
Tests for the equipment, consumable and trade item passes.
"""

import pytest

from conftest import write_asset
from parsers.consumable_items import parse_consumable_items
from parsers.equipment_items import EQUIPMENT_TYPES, parse_equipment_items
from parsers.base_parser import classify
from parsers.trade_items import parse_trade_items

STAT_ARRAY = {
    '_maxHealth': 10,
    '_maxMana': 0,
    '_attackPower': 4,
    '_defense': 2.0,
}


def sword(**overrides):
    data = {
        'm_Name': '(lv-4) Melee_Iron Sword',
        '_itemName': 'Iron Sword',
        '_itemDescription': 'A <color=grey>plain</color> "sword".',
        '_equipmentLevel': 4,
        '_classRequirement': {'guid': ''},
        '_statArray': STAT_ARRAY,
        '_statModifierCost': {'_scriptItem': {'guid': ''}, '_scriptItemQuantity': 0},
        '_weaponDamage': 1,
        '_readonlyDamageRange': {'x': 3.7, 'true': 6.2},
        '_combatElement': {'guid': ''},
        '_itemRarity': 0,
        '_canDyeArmor': 0,
        '_maxStackAmount': 1,
        '_vendorCost': 120,
    }
    data.update(overrides)
    return data


class TestEquipmentItems:

    def test_weapon(self, corpus, make_ctx):
        write_asset(corpus, '_item/01_equipment/weapons/sword.json', sword())

        item = parse_equipment_items(make_ctx('equipmentItems'))['Iron Sword']

        assert item['type'] == 'Melee'
        assert item['description'] == 'A <span style=\\"color: grey;\\">plain</span> \\"sword\\".'
        assert item['level'] == 4
        assert item['class'] == 'Any'
        assert item['stats']['maxHealth'] == 10
        assert item['stats']['attackPower'] == 4
        assert item['stats']['evasion'] == 0
        assert len(item['stats']) == 12
        assert item['enchantment'] == {'item': '', 'amount': 0}
        assert item['weapon'] == {'element': 'Normal', 'minBase': 3, 'maxBase': 6}
        assert 'blockDamage' not in item
        assert item['rarity'] == 'Common'
        assert item['dye'] is False
        assert item['maxStack'] == 1
        assert item['price'] == 120

    def test_field_order(self, corpus, make_ctx):
        write_asset(corpus, '_item/01_equipment/sword.json', sword())
        item = parse_equipment_items(make_ctx('equipmentItems'))['Iron Sword']
        assert list(item) == [
            'type', 'name', 'description', 'level', 'class', 'stats', 'enchantment',
            'weapon', 'rarity', 'dye', 'maxStack', 'price',
        ]

    def test_references_resolved(self, corpus, make_ctx):
        write_asset(corpus, '_item/01_equipment/sword.json', sword(
            _classRequirement={'guid': 'cls'},
            _combatElement={'guid': 'fire'},
            _statModifierCost={'_scriptItem': {'guid': 'stone'}, '_scriptItemQuantity': 2},
            _readonlyDamageRange={'x': 1, 'y': 9},
        ))
        write_asset(corpus, '_class/fighter.json', {'_className': 'Fighter'}, guid='cls')
        write_asset(corpus, 'elements/fire.json', {'_elementName': 'Fire'}, guid='fire')
        write_asset(corpus, '_item/03_trade/stone.json', {'_itemName': 'Enchant Stone'}, guid='stone')

        item = parse_equipment_items(make_ctx('equipmentItems'))['Iron Sword']

        assert item['class'] == 'Fighter'
        assert item['weapon'] == {'element': 'Fire', 'minBase': 1, 'maxBase': 9}
        assert item['enchantment'] == {'item': 'Enchant Stone', 'amount': 2}

    def test_shield_block_damage(self, corpus, make_ctx):
        write_asset(corpus, '_item/01_equipment/shield.json', sword(
            m_Name='(lv-2) SHIELD_Buckler', _itemName='Buckler',
            _weaponDamage=0, _blockDamageThreshold=5, _canDyeArmor=1, _itemRarity=3,
        ))
        item = parse_equipment_items(make_ctx('equipmentItems'))['Buckler']
        assert item['type'] == 'Shield'
        assert item['blockDamage'] == 5
        assert 'weapon' not in item
        assert item['dye'] is True
        assert item['rarity'] == 'Rare'

    def test_files_without_item_name_skipped(self, corpus, make_ctx):
        write_asset(corpus, '_item/01_equipment/sword.json', sword())
        write_asset(corpus, '_item/01_equipment/other.json', {'m_Name': 'prefab'})
        (corpus / '_item' / '01_equipment' / 'bad.json').write_text('nope', encoding='utf-8')

        items = parse_equipment_items(make_ctx('equipmentItems'))
        assert list(items) == ['Iron Sword']

    def test_duplicate_names_last_write_wins(self, corpus, make_ctx):
        write_asset(corpus, '_item/01_equipment/sword.json', sword(_vendorCost=1))
        write_asset(corpus, '_item/01_equipment/sub/sword.json', sword(_vendorCost=2))

        items = parse_equipment_items(make_ctx('equipmentItems'))
        # Which file wins depends on directory listing order.
        assert len(items) == 1
        assert items['Iron Sword']['price'] in (1, 2)

    @pytest.mark.parametrize("m_name,expected", [
        ('HELM_Leather', 'Helm'),
        ('CAPE_Red', 'Cape'),
        ('CHESTPIECE_Iron', 'Chestpiece'),
        ('LEGGINGS_Iron', 'Leggings'),
        ('RING_Gold', 'Ring'),
        ('Katars_Twin', 'Katars'),
        ('Ranged_Bow', 'Ranged'),
        ('Range Weapon_Sling', 'Ranged'),
        ('Heavy Melee_Maul', 'Heavy Melee'),
        ('Polearm_Spear', 'Polearm'),
        ('Magic Scepter_Oak', 'Scepter'),
        ('Magic Bell_Brass', 'Bell'),
        ('Trinket', ''),
    ])
    def test_slot_types(self, m_name, expected):
        assert classify(m_name, EQUIPMENT_TYPES) == expected


class TestConsumableItems:

    def test_consumable(self, corpus, make_ctx):
        write_asset(corpus, '_item/02_consumable/potion.json', {
            'm_Name': 'STATUSCONSUMABLE_Bunbag',
            '_itemName': 'Bunbag',
            '_itemDescription': 'Restores health.\nTasty.',
            '_itemRarity': 1,
            '_maxStackAmount': 99,
            '_vendorCost': 8,
            '_consumableCooldown': 2.5,
            '_healthApply': 30,
        })

        item = parse_consumable_items(make_ctx('consumableItems'))['Bunbag']

        assert item == {
            'type': 'Status',
            'name': 'Bunbag',
            'description': 'Restores health.\\nTasty.',
            'rarity': 'Exotic',
            'maxStack': 99,
            'price': 8,
            'cooldown': 2.5,
            'health': 30,
            'mana': 0,
            'stamina': 0,
            'experience': 0,
        }

    @pytest.mark.parametrize("m_name,expected", [
        ('CLASSTOME_Fighter', 'Class Tome'),
        ('DYE_Red', 'Dye'),
        ('SKILLSCROLL_Blink', 'Skill Scroll'),
        ('misc', ''),
    ])
    def test_types(self, corpus, make_ctx, m_name, expected):
        write_asset(corpus, '_item/02_consumable/x.json', {'m_Name': m_name, '_itemName': 'X'})
        assert parse_consumable_items(make_ctx('consumableItems'))['X']['type'] == expected


class TestTradeItems:

    def test_trade_item(self, corpus, make_ctx):
        write_asset(corpus, '_item/03_trade/ore.json', {
            '_itemName': 'Copper Ore',
            '_itemDescription': 'Shiny <color=orange>ore</color>.',
            '_itemRarity': 4,
            '_maxStackAmount': 250,
            '_vendorCost': 3,
        })
        write_asset(corpus, '_item/03_trade/empty.json', {})

        items = parse_trade_items(make_ctx('tradeItems'))

        assert items == {
            'Copper Ore': {
                'name': 'Copper Ore',
                'description': 'Shiny <span style=\\"color: orange;\\">ore</span>.',
                'rarity': 'Legendary',
                'maxStack': 250,
                'price': 3,
            }
        }

    def test_unknown_rarity_is_nil(self, corpus, make_ctx):
        write_asset(corpus, '_item/03_trade/ore.json', {'_itemName': 'Odd', '_itemRarity': 12})
        assert parse_trade_items(make_ctx('tradeItems'))['Odd']['rarity'] is None
