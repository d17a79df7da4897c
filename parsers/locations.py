"""Parse locations (maps, dungeons, arenas) from scene dumps"""
from __future__ import annotations

from pathlib import Path
from typing import NamedTuple, Optional

from .base_parser import (
    AssetParser,
    PassContext,
    ZONE_DIFFICULTIES,
    ZONE_TYPES,
    label_for,
    number_or_zero,
    ref_guid,
)

SCENE_DIR = 'Scenes'
DUNGEON = 'Dungeon'


class Portal(NamedTuple):
    """A portal element: the map it leads to and its per-difficulty level bounds."""
    destination: str
    level_ranges: dict


class SceneLocation(NamedTuple):
    record: dict
    portals: list


def _unique(values: list) -> list:
    return list(dict.fromkeys(values))


def _read_portal(behaviour: dict) -> Portal:
    ranges = {}
    for entry in behaviour.get('_portalDifficultyRanges') or []:
        if not isinstance(entry, dict):
            continue
        difficulty = label_for(ZONE_DIFFICULTIES, entry.get('_zoneDifficulty'))
        if difficulty is None:
            continue
        ranges[difficulty] = {
            'min': entry.get('_minLevel'),
            'max': entry.get('_maxLevel'),
        }
    return Portal(behaviour['_portalCaptionTitle'], ranges)


def _arena_creeps(ctx: PassContext, arena_slots: list, is_dungeon_file: bool) -> dict:
    """Creep names per difficulty from tagged arena slots."""
    creeps = {}
    for slot in arena_slots:
        if not isinstance(slot, dict):
            continue
        difficulty = label_for(ZONE_DIFFICULTIES, slot.get('_zoneDifficulty'))
        if difficulty is None:
            continue
        names = creeps.setdefault(difficulty, [])
        if not (slot.get('_arenaSlotTag') and is_dungeon_file):
            continue
        for wave in slot.get('_creepArenaWaves') or []:
            for ref in (wave or {}).get('_creepPool') or []:
                creep_name = ctx.lookup_field(ref, '_creepName')
                if creep_name is not None:
                    names.append(creep_name)
    return creeps


def parse_scene_file(ctx: PassContext, path: Path) -> Optional[SceneLocation]:
    behaviours = list(AssetParser.iter_behaviours(AssetParser.load_json(path)))
    map_data = next((b for b in behaviours if b.get('_mapName')), None)
    if map_data is None:
        ctx.log.info(f"File {path.name} isn't a valid location")
        return None

    map_name = map_data['_mapName']
    record = {
        'name': map_name,
        'difficulties': {},
        'type': label_for(ZONE_TYPES, map_data.get('_zoneType')),
        'bosses': [],
        'creeps': [],
    }

    is_dungeon_file = 'map_dungeon' in str(path)
    arena_creeps = {}
    for behaviour in behaviours:
        slots = behaviour.get('_creepArenaSlots')
        if not isinstance(slots, list):
            continue
        for difficulty, names in _arena_creeps(ctx, slots, is_dungeon_file).items():
            arena_creeps.setdefault(difficulty, []).extend(names)
    for difficulty, names in arena_creeps.items():
        if names:
            record['difficulties'][difficulty] = {'creeps': _unique(names)}

    seen = set()
    for behaviour in behaviours:
        guid = ref_guid(behaviour.get('_creepToSpawn'))
        if guid is None or guid in seen:
            continue
        seen.add(guid)
        resolution = ctx.lookup.resolve(guid)
        ctx.log.info(resolution.message)
        if not resolution.found:
            continue
        creep = resolution.data
        if number_or_zero(creep.get('_currencyDropBonus')) > 0:
            record['bosses'].append(creep.get('_creepName'))
        else:
            record['creeps'].append(creep.get('_creepName'))

    portals = [_read_portal(b) for b in behaviours if b.get('_portalCaptionTitle')]

    ctx.log.info(f"Added Location [{map_name}] to locations.")
    return SceneLocation(record, portals)


def link_dungeon_levels(ctx: PassContext, locations: dict, portals: dict) -> None:
    """
    Merge level ranges into each dungeon from the map whose portal leads back to it.

    The paired map is found by the display name the dungeon's own portal
    shows. A paired map that was not parsed, or that has no portal back to
    the dungeon, leaves the dungeon unchanged.
    """
    for name, record in locations.items():
        if record['type'] != DUNGEON:
            continue
        for portal in portals.get(name, []):
            paired = portals.get(portal.destination)
            if paired is None:
                ctx.log.info(f"Paired location [{portal.destination}] for [{name}] not found.")
                continue
            back = next((p for p in paired if p.destination == name), None)
            if back is None:
                ctx.log.info(f"Location [{portal.destination}] has no portal back to [{name}].")
                continue
            for difficulty, level_range in back.level_ranges.items():
                entry = record['difficulties'].setdefault(difficulty, {})
                entry['levelRange'] = dict(level_range)
            ctx.log.info(f"Linked level ranges from [{portal.destination}] into [{name}].")


def parse_locations(ctx: PassContext) -> dict:
    """
    Parse every scene that declares a map, then link dungeon level ranges.

    Target structure (keyed by map name):
    {
        "Crescent Grove": {
            "name": "Crescent Grove",
            "difficulties": {"EASY": {"creeps": [...], "levelRange": {"min": 6, "max": 12}}},
            "type": "Dungeon", "bosses": [...], "creeps": [...]
        }
    }
    """
    files = AssetParser.collect_files(ctx, ctx.corpus_path / SCENE_DIR)
    locations = {}
    portals = {}
    for _path, scene in AssetParser.map_files(ctx, files, lambda p: parse_scene_file(ctx, p)):
        if scene is None:
            continue
        name = scene.record['name']
        locations[name] = scene.record
        portals[name] = scene.portals

    link_dungeon_levels(ctx, locations, portals)
    ctx.log.info(f"[OK] Parsed {len(locations)} locations")
    return locations
