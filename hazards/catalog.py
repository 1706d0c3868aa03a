from typing import Dict, Optional
from .model import SHIELD_BREAKER, WeaponCategory, WeaponType

def _missile(name: str, radius_m: float, damage: int, price: int, speed_mps: float,
             fallout_min: float) -> WeaponType:
    return WeaponType(name=name, category=WeaponCategory.MISSILE, radius_m=radius_m,
                      damage=damage, price=price, speed_mps=speed_mps, fallout_min=fallout_min)

def _landmine(name: str, damage: int, price: int, duration_h: float) -> WeaponType:
    return WeaponType(name=name, category=WeaponCategory.LANDMINE, radius_m=10,
                      damage=damage, price=price, duration_h=duration_h)

# Predefined weapon types
WEAPON_TYPES: Dict[str, WeaponType] = {
    # Missiles
    "Amplifier": _missile("Amplifier", radius_m=60, damage=10, price=400, speed_mps=250, fallout_min=10),
    "Ballista": _missile("Ballista", radius_m=80, damage=15, price=600, speed_mps=300, fallout_min=15),
    "Buzzard": _missile("Buzzard", radius_m=100, damage=20, price=900, speed_mps=400, fallout_min=20),
    "ClusterBomb": _missile("ClusterBomb", radius_m=250, damage=15, price=1500, speed_mps=250, fallout_min=30),
    "CorporateRaider": _missile("CorporateRaider", radius_m=150, damage=25, price=2000, speed_mps=500, fallout_min=30),
    "GutShot": _missile("GutShot", radius_m=50, damage=35, price=1200, speed_mps=600, fallout_min=10),
    "Yokozuna": _missile("Yokozuna", radius_m=300, damage=30, price=3500, speed_mps=200, fallout_min=45),
    "Zippy": _missile("Zippy", radius_m=40, damage=10, price=300, speed_mps=900, fallout_min=5),
    "TheNuke": _missile("TheNuke", radius_m=1000, damage=50, price=10000, speed_mps=150, fallout_min=120),
    SHIELD_BREAKER: _missile(SHIELD_BREAKER, radius_m=120, damage=5, price=2500, speed_mps=350, fallout_min=5),
    # Landmines
    "StandardLandmine": _landmine("StandardLandmine", damage=30, price=500, duration_h=24),
    "Bombabom": _landmine("Bombabom", damage=25, price=400, duration_h=12),
    "BigBertha": _landmine("BigBertha", damage=50, price=1500, duration_h=48),
    "BunkerBlocker": _landmine("BunkerBlocker", damage=40, price=1000, duration_h=24),
}

class StaticWeaponCatalog:
    """Read-only weapon lookup backed by an in-process table."""

    def __init__(self, types: Optional[Dict[str, WeaponType]] = None):
        self._types = dict(WEAPON_TYPES if types is None else types)

    def weapon_type(self, name: str) -> Optional[WeaponType]:
        return self._types.get(name)

