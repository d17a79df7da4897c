"""Parse player classes and their skills"""
from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Optional

from .base_parser import (
    AssetParser,
    DAMAGE_TYPES,
    PassContext,
    format_game_number,
    label_for,
    ref_guid,
    translate_markup,
)

CLASS_DIR = '_class'
SKILL_DIR = '_skill'
NOVICE_CLASS = 'Novice'
# Folders whose skill_*.json files all belong to the Novice class.
NOVICE_SKILL_DIRS = ('01_novice', '00_skillscroll_skills')

_SKILL_FILE_RE = re.compile(r'^skill_.*\.json$', re.IGNORECASE)

# Base stat a fresh character has in every power stat, indexed by damage type.
_BASE_POWER_STATS = (1, 1, 1)
_POWER_SCALING = 0.62
_INSTANT_CAST_THRESHOLD = 0.12

_POWER_TOKENS = {
    '$ATKPWR': '(+62% Attack Power)',
    '$DEXPWR': '(+62% Dexterity Power)',
    '$MGKPWR': '(+62% Magic Power)',
}


def skill_type(source: Optional[Path]) -> str:
    """Skills stored under a passive or masteries folder are passives."""
    if source is None:
        return 'Active'
    folder = str(Path(source).parent).lower()
    if 'passive' in folder or 'masteries' in folder:
        return 'Passive'
    return 'Active'


def _skill_power(skill: dict, params: dict) -> int:
    damage_type = skill.get('_skillDamageType')
    if label_for(DAMAGE_TYPES, damage_type) is None:
        return 0
    base = params.get('_baseSkillPower') or 0
    return math.floor(base * 1 + _BASE_POWER_STATS[damage_type] * _POWER_SCALING)


def replace_first(text: str, replacements: dict[str, str]) -> str:
    """
    Replace the first occurrence of each token in one scan.

    Substituted values are never rescanned, so a value containing another
    token's text is left alone.
    """
    if not text or not replacements:
        return text or ''
    pattern = re.compile('|'.join(re.escape(token) for token in
                                  sorted(replacements, key=len, reverse=True)))
    seen = set()

    def substitute(match: re.Match) -> str:
        token = match.group(0)
        if token in seen:
            return token
        seen.add(token)
        return replacements[token]

    return pattern.sub(substitute, text)


def rank_description(skill: dict) -> str:
    """Fill in the $-tokens of a skill description for its first rank."""
    params = skill.get('_skillRankParams') or {}
    cast_time = params.get('_baseCastTime') or 0
    if cast_time > _INSTANT_CAST_THRESHOLD:
        cast_text = f"<color=yellow>{cast_time:.2f} sec cast time.</color>"
    else:
        cast_text = "<color=yellow>instant cast time.</color>"

    values = {
        '$SKP': f"<color=yellow>{_skill_power(skill, params)}</color>",
        '$CASTTIME': cast_text,
        '$COOLDWN': f"{format_game_number(params.get('_baseCooldown'))} sec Cooldown",
    }
    values.update(_POWER_TOKENS)
    return replace_first(skill.get('_skillDescription') or '', values)


def _item_cost(ctx: PassContext, params: dict) -> str:
    ref = params.get('_baseRequiredItem')
    if ref_guid(ref) is None:
        return ''
    item_name = ctx.lookup_field(ref, '_itemName')
    if item_name is None:
        return ''
    return f"x{format_game_number(params.get('_basedItemCost'))} {item_name}"


def build_skill(ctx: PassContext, skill: dict, source: Optional[Path]) -> Optional[dict]:
    """
    Build one skill record, or None when the skill has no rank data.

    Target structure:
    {
        "name": "Slash",
        "description": "...",
        "damageType": "Strength",
        "type": "Active",
        "ranks": [{"rankTag": nil, "description": "...", "level": 1, ...}]
    }
    """
    params = skill.get('_skillRankParams')
    if not isinstance(params, dict):
        ctx.log.info(f"Skill [{skill.get('_skillName')}] is missing _skillRankParams. Skipping.")
        return None

    return {
        'name': skill.get('_skillName'),
        'description': translate_markup(skill.get('_skillDescription')),
        'damageType': label_for(DAMAGE_TYPES, skill.get('_skillDamageType')),
        'type': skill_type(source),
        'ranks': [
            {
                'rankTag': None,
                'description': translate_markup(rank_description(skill)),
                'level': params.get('_levelRequirement'),
                'castTime': params.get('_baseCastTime'),
                'cooldown': params.get('_baseCooldown'),
                'itemCost': _item_cost(ctx, params),
                'manaCost': params.get('_manaCost'),
                'healthCost': params.get('_healthCost'),
                'staminaCost': params.get('_staminaCost'),
            }
        ],
    }


def _class_skill_refs(data: dict) -> list[tuple[dict, Optional[str]]]:
    """(reference, tier name) pairs: base skills first, then each tier's."""
    refs = [(ref, None) for ref in data.get('_classSkills') or []]
    for tier in data.get('_playerClassTiers') or []:
        if not isinstance(tier, dict):
            continue
        for ref in tier.get('_classTierSkills') or []:
            refs.append((ref, tier.get('_classTierName')))
    return refs


def parse_class_file(ctx: PassContext, path: Path) -> Optional[tuple[str, dict]]:
    data = AssetParser.load_behaviour(path)
    if data is None:
        ctx.log.info(f"File {path.name} doesn't contain any MonoBehaviour")
        return None
    class_name = data.get('_className')
    if not class_name:
        ctx.log.info(f"File {path.name} is not a class. Skipping.")
        return None

    skills = []
    seen = set()
    for ref, tier_name in _class_skill_refs(data):
        guid = ref_guid(ref)
        if guid is None or guid in seen:
            continue
        seen.add(guid)

        resolution = ctx.lookup.resolve(guid)
        ctx.log.info(resolution.message)
        if not resolution.found:
            continue

        skill = build_skill(ctx, resolution.data, resolution.source)
        if skill is None:
            continue
        if tier_name:
            skill['tier'] = tier_name
        skills.append(skill)
        tier_note = f" (Tier: {tier_name})" if tier_name else ''
        ctx.log.info(f"Added Skill [{skill['name']}] to Class [{class_name}]{tier_note}.")

    ctx.log.info(f"Added Class [{class_name}] with skills.")
    return class_name, {'name': class_name, 'skills': skills}


def _novice_skill_files(ctx: PassContext, folder: Path) -> list[Path]:
    if not folder.is_dir():
        ctx.log.info(f"Skill folder {folder} does not exist. Skipping.")
        return []
    files = [path for path in AssetParser.walk_files(folder, log=ctx.log)
             if _SKILL_FILE_RE.match(path.name)]
    if not files:
        ctx.log.info(f"No skill files found in folder {folder}")
    return files


def parse_novice_skill(ctx: PassContext, path: Path) -> Optional[dict]:
    skill = AssetParser.load_behaviour(path)
    if skill is None:
        ctx.log.info(f"File {path.name} doesn't contain any MonoBehaviour")
        return None
    record = build_skill(ctx, skill, path)
    if record is not None:
        ctx.log.info(f"Added Skill [{record['name']}] to Class [{NOVICE_CLASS}].")
    return record


def parse_classes(ctx: PassContext) -> dict:
    """
    Parse every class under _class/ plus the synthetic Novice class.

    Returns:
        Mapping of class name -> {"name", "skills"}
    """
    class_files = AssetParser.collect_files(ctx, ctx.corpus_path / CLASS_DIR)
    classes = {}
    for _path, result in AssetParser.map_files(ctx, class_files,
                                               lambda p: parse_class_file(ctx, p)):
        if result is None:
            continue
        class_name, record = result
        classes[class_name] = record

    novice_files = []
    for folder in NOVICE_SKILL_DIRS:
        novice_files.extend(_novice_skill_files(ctx, ctx.corpus_path / SKILL_DIR / folder))
    novice_skills = [
        skill for _path, skill in AssetParser.map_files(ctx, novice_files,
                                                        lambda p: parse_novice_skill(ctx, p))
        if skill is not None
    ]
    classes[NOVICE_CLASS] = {'name': NOVICE_CLASS, 'skills': novice_skills}

    ctx.log.info(f"[OK] Parsed {len(classes)} classes")
    return classes
