from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, Optional, Tuple, Union

Coords = Tuple[float, float]  # (latitude, longitude) in degrees

class EntityKind(Enum):
    """Kind tag carried by every map entity"""
    MISSILE = "missile"
    LANDMINE = "landmine"
    SHIELD = "shield"
    LOOT = "loot"

class MissileStatus(Enum):
    INCOMING = "Incoming"
    HIT = "Hit"

class ShieldType(Enum):
    SHIELD = "Shield"
    ULTRA_SHIELD = "UltraShield"

class Rarity(Enum):
    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"

class WeaponCategory(Enum):
    MISSILE = "missile"
    LANDMINE = "landmine"

SHIELD_BREAKER = "ShieldBreaker"

@dataclass
class WeaponType:
    """Catalog entry for a launchable or placeable weapon"""
    name: str
    category: WeaponCategory
    radius_m: float
    damage: int
    price: int
    speed_mps: float = 0.0       # missiles only
    fallout_min: float = 30.0    # how long an impacted missile stays on the map
    duration_h: float = 0.0      # landmines only

@dataclass
class Missile:
    id: int
    origin: Coords
    destination: Coords
    current: Coords
    radius_m: float
    damage: int
    weapon_type: str
    sent_by: str
    launched_ms: Optional[int]
    impact_ms: Optional[int]
    status: MissileStatus = MissileStatus.INCOMING
    kind: ClassVar[EntityKind] = EntityKind.MISSILE

    @property
    def impacted(self) -> bool:
        return self.status == MissileStatus.HIT

@dataclass
class Landmine:
    id: int
    coords: Coords
    damage: int
    placed_by: str
    weapon_type: str
    expires_ms: int
    kind: ClassVar[EntityKind] = EntityKind.LANDMINE

@dataclass
class Shield:
    id: int
    coords: Coords
    radius_m: float
    placed_by: str
    expires_ms: int
    shield_type: ShieldType = ShieldType.SHIELD
    kind: ClassVar[EntityKind] = EntityKind.SHIELD

    def active_at(self, now_ms: int) -> bool:
        return self.expires_ms > now_ms

@dataclass
class Loot:
    id: int
    coords: Coords
    rarity: Rarity
    expires_ms: int
    kind: ClassVar[EntityKind] = EntityKind.LOOT

MapEntity = Union[Missile, Landmine, Shield, Loot]

@dataclass
class Player:
    """Snapshot of the gameplay fields this core reads and mutates"""
    username: str
    coords: Optional[Coords] = None
    health: int = 100
    alive: bool = True
    money: int = 0
    rank_points: int = 0
    friends_only: bool = False
    loc_active: bool = True
    location_updated_ms: int = 0
    deaths: int = 0
    inventory: Dict[Tuple[str, str], int] = field(default_factory=dict)  # (category, name) -> quantity

DamageKey = Tuple[str, EntityKind, int]  # (username, hazard kind, hazard id)

@dataclass
class DamageTask:
    """Pending damage against one player from one hazard.

    Persisted in the entity store so that a restarted or overlapping damage
    scan resumes the chain from ``due_ms`` instead of starting a new one.
    """
    username: str
    hazard_kind: EntityKind
    hazard_id: int
    attacker: str
    weapon_type: str
    damage: int
    due_ms: int
    recurring: bool
    created_ms: int = 0
    ticks_applied: int = 0

    @property
    def key(self) -> DamageKey:
        return (self.username, self.hazard_kind, self.hazard_id)

@dataclass
class Event:
    kind: str
    ts_ms: int
    data: Dict
