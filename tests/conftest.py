import pytest
from hazards.catalog import StaticWeaponCatalog
from hazards.geo import destination_point
from hazards.model import Coords, Landmine, Missile, MissileStatus, Player, Shield, ShieldType
from hazards.rng import DRNG
from scheduler.eventlog import EventLog
from scheduler.friends import FriendGraph
from scheduler.memstore import InMemoryStore
from scheduler.notify import EventLogNotifier

T0 = 1_700_000_000_000  # arbitrary epoch ms
MINUTE = 60_000
HOME: Coords = (40.7128, -74.0060)

def offset(origin: Coords, meters: float, bearing: float = 0.0) -> Coords:
    """Point `meters` away from origin on the given bearing."""
    return destination_point(origin, meters, bearing)

def make_player(username: str, coords: Coords = HOME, **kw) -> Player:
    kw.setdefault("location_updated_ms", T0)
    return Player(username=username, coords=coords, **kw)

def make_missile(id: int, destination: Coords = HOME, origin: Coords = None, status=MissileStatus.HIT,
                 radius_m: float = 80, damage: int = 20, weapon_type: str = "Ballista",
                 sent_by: str = "attacker", launched_ms: int = T0, impact_ms: int = T0 + 10 * MINUTE) -> Missile:
    origin = origin or offset(destination, 20_000, 270)
    current = destination if status == MissileStatus.HIT else origin
    return Missile(id=id, origin=origin, destination=destination, current=current, radius_m=radius_m,
                   damage=damage, weapon_type=weapon_type, sent_by=sent_by, launched_ms=launched_ms,
                   impact_ms=impact_ms, status=status)

def make_landmine(id: int, coords: Coords = HOME, damage: int = 30, placed_by: str = "attacker",
                  weapon_type: str = "StandardLandmine", expires_ms: int = T0 + 60 * MINUTE) -> Landmine:
    return Landmine(id=id, coords=coords, damage=damage, placed_by=placed_by, weapon_type=weapon_type,
                    expires_ms=expires_ms)

def make_shield(id: int, coords: Coords = HOME, radius_m: float = 100, placed_by: str = "defender",
                expires_ms: int = T0 + 60 * MINUTE, shield_type=ShieldType.SHIELD) -> Shield:
    return Shield(id=id, coords=coords, radius_m=radius_m, placed_by=placed_by, expires_ms=expires_ms,
                  shield_type=shield_type)

@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()

@pytest.fixture
def events() -> EventLog:
    return EventLog()

@pytest.fixture
def notifier(events) -> EventLogNotifier:
    return EventLogNotifier(events, clock=lambda: T0)

@pytest.fixture
def friends() -> FriendGraph:
    return FriendGraph()

@pytest.fixture
def catalog() -> StaticWeaponCatalog:
    return StaticWeaponCatalog()

@pytest.fixture
def rng() -> DRNG:
    return DRNG(1234)
