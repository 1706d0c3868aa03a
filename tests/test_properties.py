"""Property-based checks for flight paths and kill settlement."""
import asyncio
from hypothesis import assume, given, settings
from hypothesis import strategies as st
from hazards.catalog import StaticWeaponCatalog
from hazards.damage import RANK_REWARD_CAP, DamageProcessor, settle_kill
from hazards.geo import rhumb_distance_m
from hazards.model import EntityKind, MissileStatus
from hazards.rng import DRNG
from hazards.trajectory import TrajectoryEngine
from scheduler.eventlog import EventLog
from scheduler.friends import FriendGraph
from scheduler.memstore import InMemoryStore
from scheduler.notify import EventLogNotifier
from conftest import MINUTE, T0, make_missile, make_player

lats = st.floats(min_value=-60, max_value=60, allow_nan=False)
lons = st.floats(min_value=-179, max_value=179, allow_nan=False)
points = st.tuples(lats, lons)
fractions = st.floats(min_value=0.0, max_value=0.999)

FLIGHT_MS = 10 * MINUTE


def flight(origin, destination):
    return make_missile(1, destination=destination, origin=origin, status=MissileStatus.INCOMING,
                        launched_ms=T0, impact_ms=T0 + FLIGHT_MS)


@given(origin=points, destination=points, f=fractions)
def test_interpolated_position_splits_the_path(origin, destination, f):
    assume(abs(origin[0] - destination[0]) > 0.01)
    engine = TrajectoryEngine(store=None, holding_distance_km=0)
    m = flight(origin, destination)
    pos, status = engine.position_at(m, T0 + int(f * FLIGHT_MS))

    total = rhumb_distance_m(origin, destination)
    elapsed = int(f * FLIGHT_MS) / FLIGHT_MS
    tol = max(1.0, 1e-5 * total)
    assert status == MissileStatus.INCOMING
    assert abs(rhumb_distance_m(origin, pos) - elapsed * total) <= tol
    assert abs(rhumb_distance_m(pos, destination) - (1 - elapsed) * total) <= tol


@given(origin=points, destination=points, a=fractions, b=fractions)
def test_missile_never_backs_away(origin, destination, a, b):
    assume(abs(origin[0] - destination[0]) > 0.01)
    engine = TrajectoryEngine(store=None, holding_distance_km=0)
    m = flight(origin, destination)
    early, late = sorted((a, b))
    p1, _ = engine.position_at(m, T0 + int(early * FLIGHT_MS))
    p2, _ = engine.position_at(m, T0 + int(late * FLIGHT_MS))
    tol = max(1.0, 1e-5 * rhumb_distance_m(origin, destination))
    assert rhumb_distance_m(p2, destination) <= rhumb_distance_m(p1, destination) + tol


@given(origin=points, destination=points, late_ms=st.integers(min_value=0, max_value=10**9))
def test_landed_at_or_after_impact(origin, destination, late_ms):
    engine = TrajectoryEngine(store=None)
    m = flight(origin, destination)
    pos, status = engine.position_at(m, T0 + FLIGHT_MS + late_ms)
    assert status == MissileStatus.HIT
    assert pos == destination


@given(money=st.integers(min_value=0, max_value=10**7),
       rank=st.integers(min_value=0, max_value=10**5),
       price=st.integers(min_value=0, max_value=10**5),
       source=st.sampled_from([EntityKind.MISSILE, EntityKind.LANDMINE]),
       roll=st.integers(min_value=100, max_value=200))
def test_settlement_bounds(money, rank, price, source, roll):
    s = settle_kill(money, rank, price, source, roll)
    assert 0 <= s.money_loss <= money
    assert 0 <= s.rank_penalty <= min(rank, 200)
    assert s.reward >= price
    assert s.rank_reward <= RANK_REWARD_CAP


async def _kill(victim_money: int, attacker_money: int, seed: int):
    store = InMemoryStore()
    notifier = EventLogNotifier(EventLog(), clock=lambda: T0)
    processor = DamageProcessor(store, notifier, FriendGraph(), StaticWeaponCatalog(), rng=DRNG(seed))
    await store.save_player(make_player("victim", health=10, money=victim_money, rank_points=500))
    await store.save_player(make_player("attacker", coords=(0.0, 0.0), money=attacker_money))
    await store.add_missile(make_missile(1))
    impact = T0 + 10 * MINUTE
    await processor.scan(impact)
    await processor.scan(impact + processor.damage_delay_ms)
    return await store.get_player("victim"), await store.get_player("attacker")


@settings(max_examples=30, deadline=None)
@given(victim_money=st.integers(min_value=0, max_value=10**6),
       attacker_money=st.integers(min_value=0, max_value=10**6),
       seed=st.integers(min_value=0, max_value=2**32 - 1))
def test_elimination_conserves_money_plus_reward(victim_money, attacker_money, seed):
    victim, attacker = asyncio.run(_kill(victim_money, attacker_money, seed))
    reward = StaticWeaponCatalog().weapon_type("Ballista").price * 11 // 10
    assert not victim.alive
    assert victim.money + attacker.money == victim_money + attacker_money + reward
    assert 100 <= 500 - victim.rank_points <= 200
