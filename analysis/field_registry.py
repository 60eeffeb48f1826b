"""Registry of known Battle Report fields.

Runs keep an open-ended field mapping, but the fields the game exports are
known ahead of time. The registry maps each internal camelCase name to its
display label and unit category so import reports can flag unrecognized
columns and display code can label values without guessing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .fields import INTERNAL_FIELD_HEADERS, to_camel_case
from .quantity import UnitType


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Semantics of one known field.

    Attributes:
        name: Internal camelCase field name.
        label: Label as printed in the game's Battle Report.
        unit_type: Unit category for the value.
        aliases: Older labels that normalize to other names but mean this field.
    """

    name: str
    label: str
    unit_type: UnitType
    aliases: tuple[str, ...] = ()


_SPECS: Final[tuple[FieldSpec, ...]] = (
    FieldSpec("battleDate", "Battle Date", UnitType.time),
    FieldSpec("gameTime", "Game Time", UnitType.time),
    FieldSpec("realTime", "Real Time", UnitType.time),
    FieldSpec("tier", "Tier", UnitType.count),
    FieldSpec("wave", "Wave", UnitType.count),
    FieldSpec("killedBy", "Killed By", UnitType.count),
    FieldSpec("coinsEarned", "Coins earned", UnitType.coins, aliases=("Coins",)),
    FieldSpec("coinsPerHour", "Coins per hour", UnitType.coins),
    FieldSpec("cashEarned", "Cash earned", UnitType.cash),
    FieldSpec("interestEarned", "Interest earned", UnitType.cash),
    FieldSpec("gemBlocksTapped", "Gem Blocks Tapped", UnitType.count),
    FieldSpec("cellsEarned", "Cells Earned", UnitType.count),
    FieldSpec("rerollShardsEarned", "Reroll Shards Earned", UnitType.count),
    FieldSpec("damageTaken", "Damage Taken", UnitType.damage),
    FieldSpec("damageTakenWall", "Damage Taken Wall", UnitType.damage),
    FieldSpec("damageTakenWhileBerserked", "Damage Taken While Berserked", UnitType.damage),
    FieldSpec("damageGainFromBerserk", "Damage Gain From Berserk", UnitType.multiplier),
    FieldSpec("deathDefy", "Death Defy", UnitType.count),
    FieldSpec("lifesteal", "Lifesteal", UnitType.count),
    FieldSpec("damageDealt", "Damage dealt", UnitType.damage),
    FieldSpec("projectilesDamage", "Projectiles Damage", UnitType.damage),
    FieldSpec("projectilesCount", "Projectiles Count", UnitType.count),
    FieldSpec("thornDamage", "Thorn Damage", UnitType.damage),
    FieldSpec("orbDamage", "Orb Damage", UnitType.damage),
    FieldSpec("enemiesHitByOrbs", "Enemies Hit by Orbs", UnitType.count),
    FieldSpec("landMineDamage", "Land Mine Damage", UnitType.damage),
    FieldSpec("landMinesSpawned", "Land Mines Spawned", UnitType.count),
    FieldSpec("innerLandMineDamage", "Inner Land Mine Damage", UnitType.damage),
    FieldSpec("chainLightningDamage", "Chain Lightning Damage", UnitType.damage),
    FieldSpec("deathWaveDamage", "Death Wave Damage", UnitType.damage),
    FieldSpec("deathRayDamage", "Death Ray Damage", UnitType.damage),
    FieldSpec("smartMissileDamage", "Smart Missile Damage", UnitType.damage),
    FieldSpec("blackHoleDamage", "Black Hole Damage", UnitType.damage),
    FieldSpec("swampDamage", "Swamp Damage", UnitType.damage),
    FieldSpec("electronsDamage", "Electrons Damage", UnitType.damage),
    FieldSpec("rendArmorDamage", "Rend Armor Damage", UnitType.damage),
    FieldSpec("wavesSkipped", "Waves Skipped", UnitType.count),
    FieldSpec("recoveryPackages", "Recovery Packages", UnitType.count),
    FieldSpec("freeAttackUpgrade", "Free Attack Upgrade", UnitType.count),
    FieldSpec("freeDefenseUpgrade", "Free Defense Upgrade", UnitType.count),
    FieldSpec("freeUtilityUpgrade", "Free Utility Upgrade", UnitType.count),
    FieldSpec("coinsFromDeathWave", "Coins From Death Wave", UnitType.coins),
    FieldSpec("cashFromGoldenTower", "Cash From Golden Tower", UnitType.cash),
    FieldSpec("coinsFromGoldenTower", "Coins From Golden Tower", UnitType.coins),
    FieldSpec("coinsFromBlackHole", "Coins From Black Hole", UnitType.coins),
    FieldSpec("coinsFromSpotlight", "Coins From Spotlight", UnitType.coins),
    FieldSpec("coinsFromOrb", "Coins From Orb", UnitType.coins),
    FieldSpec("coinsFromCoinUpgrade", "Coins from Coin Upgrade", UnitType.coins),
    FieldSpec("coinsFromCoinBonuses", "Coins from Coin Bonuses", UnitType.coins),
    FieldSpec("totalEnemies", "Total Enemies", UnitType.count),
    FieldSpec("basic", "Basic", UnitType.count),
    FieldSpec("fast", "Fast", UnitType.count),
    FieldSpec("tank", "Tank", UnitType.count),
    FieldSpec("ranged", "Ranged", UnitType.count),
    FieldSpec("boss", "Boss", UnitType.count),
    FieldSpec("protector", "Protector", UnitType.count),
    FieldSpec("totalElites", "Total Elites", UnitType.count),
    FieldSpec("vampires", "Vampires", UnitType.count),
    FieldSpec("rays", "Rays", UnitType.count),
    FieldSpec("scatters", "Scatters", UnitType.count),
    FieldSpec("saboteur", "Saboteur", UnitType.count),
    FieldSpec("commander", "Commander", UnitType.count),
    FieldSpec("overcharge", "Overcharge", UnitType.count),
    FieldSpec("destroyedByOrbs", "Destroyed By Orbs", UnitType.count),
    FieldSpec("destroyedByThorns", "Destroyed by Thorns", UnitType.count),
    FieldSpec("destroyedByDeathRay", "Destroyed by Death Ray", UnitType.count),
    FieldSpec("destroyedByLandMine", "Destroyed by Land Mine", UnitType.count),
    FieldSpec("destroyedInSpotlight", "Destroyed in Spotlight", UnitType.count),
    FieldSpec("destroyedInGoldenBot", "Destroyed in Golden Bot", UnitType.count),
    FieldSpec("flameBotDamage", "Flame Bot Damage", UnitType.damage),
    FieldSpec("thunderBotStuns", "Thunder Bot Stuns", UnitType.count),
    FieldSpec("goldenBotCoinsEarned", "Golden Bot Coins Earned", UnitType.coins),
    FieldSpec("guardianCatches", "Guardian Catches", UnitType.count),
    FieldSpec("coinsStolen", "Coins Stolen", UnitType.coins, aliases=("Guardian coins stolen",)),
    FieldSpec("coinsFetched", "Coins Fetched", UnitType.coins),
    FieldSpec("gems", "Gems", UnitType.count),
    FieldSpec("medals", "Medals", UnitType.count),
    FieldSpec("rerollShards", "Reroll Shards", UnitType.count),
    FieldSpec("cannonShards", "Cannon Shards", UnitType.count),
    FieldSpec("armorShards", "Armor Shards", UnitType.count),
    FieldSpec("generatorShards", "Generator Shards", UnitType.count),
    FieldSpec("coreShards", "Core Shards", UnitType.count),
    FieldSpec("commonModules", "Common Modules", UnitType.count),
    FieldSpec("rareModules", "Rare Modules", UnitType.count),
)

FIELD_REGISTRY: Final[dict[str, FieldSpec]] = {spec.name: spec for spec in _SPECS}

_ALIAS_INDEX: Final[dict[str, str]] = {
    to_camel_case(alias): spec.name for spec in _SPECS for alias in spec.aliases
}

SUPPORTED_FIELDS: Final[frozenset[str]] = frozenset(FIELD_REGISTRY) | frozenset(INTERNAL_FIELD_HEADERS)


def resolve_field_alias(field_name: str) -> str:
    """Return the registered name for an aliased field, or the name unchanged."""

    return _ALIAS_INDEX.get(field_name, field_name)


def get_field_spec(field_name: str) -> FieldSpec | None:
    """Look up a field by internal name or alias."""

    return FIELD_REGISTRY.get(resolve_field_alias(field_name))


def is_supported_field(field_name: str) -> bool:
    """Return True when the field is registered or internal."""

    return field_name in SUPPORTED_FIELDS or field_name in _ALIAS_INDEX


def field_label(field_name: str, fallback: str | None = None) -> str:
    """Return the display label for a field.

    Internal fields use their export header, registered fields their Battle
    Report label, and anything else `fallback` (typically the original key)
    or the field name itself.
    """

    if field_name in INTERNAL_FIELD_HEADERS:
        return INTERNAL_FIELD_HEADERS[field_name]
    spec = get_field_spec(field_name)
    if spec is not None:
        return spec.label
    return fallback or field_name
