"""Test shield destruction by ShieldBreaker missiles."""
import pytest
from hazards.model import EntityKind, MissileStatus, ShieldType
from hazards.shieldbreaker import ShieldBreakerResolver
from conftest import HOME, MINUTE, T0, make_missile, make_player, make_shield, offset

IMPACT = T0 + 10 * MINUTE


def shield_breaker(id: int = 1, distance_m: float = 50, **kw):
    kw.setdefault("radius_m", 120)
    return make_missile(id, destination=offset(HOME, distance_m, 90), weapon_type="ShieldBreaker",
                        sent_by="breaker", **kw)


class RecordingOwner:
    def __init__(self):
        self.forgotten = []

    def forget_entity(self, kind, entity_id):
        self.forgotten.append((kind, entity_id))


@pytest.mark.asyncio
async def test_destroys_shield_and_notifies_players_once(store, notifier):
    owner = RecordingOwner()
    resolver = ShieldBreakerResolver(store, notifier, cache_owners=[owner])
    await store.add_shield(make_shield(1, radius_m=100, placed_by="defender", shield_type=ShieldType.ULTRA_SHIELD))
    await store.save_player(make_player("p1"))
    await store.save_player(make_player("p2", coords=offset(HOME, 40, 90)))
    await store.save_player(make_player("far", coords=offset(HOME, 500)))
    await store.save_player(make_player("defender", coords=offset(HOME, 3000)))
    await store.add_missile(shield_breaker())

    evts = await resolver.resolve(IMPACT)

    assert await store.shields() == []
    assert [e.kind for e in evts] == ["ShieldDestroyed"]
    assert sorted(evts[0].data["notified"]) == ["defender", "p1", "p2"]
    assert [n.title for n in notifier.for_user("p1")] == ["Shield Destroyed!"]
    assert notifier.for_user("p2")[0].body == \
        "A shield protecting you has been destroyed by a Shield Breaker missile from breaker!"
    assert notifier.for_user("defender")[0].body == \
        "The shield you placed has been destroyed by a Shield Breaker missile from breaker!"
    assert notifier.for_user("far") == []
    assert owner.forgotten == [(EntityKind.SHIELD, 1)]

    assert await resolver.resolve(IMPACT + MINUTE) == []
    assert len(notifier.sent) == 3


@pytest.mark.asyncio
async def test_placer_inside_shield_is_notified_once(store, notifier):
    resolver = ShieldBreakerResolver(store, notifier)
    await store.add_shield(make_shield(1, placed_by="defender"))
    await store.save_player(make_player("defender"))
    await store.add_missile(shield_breaker())
    await resolver.resolve(IMPACT)

    assert len(notifier.for_user("defender")) == 1


@pytest.mark.asyncio
async def test_ignores_shields_outside_blast(store, notifier):
    resolver = ShieldBreakerResolver(store, notifier)
    await store.add_shield(make_shield(1))
    await store.add_missile(shield_breaker(distance_m=300))
    assert await resolver.resolve(IMPACT) == []
    assert len(await store.shields()) == 1


@pytest.mark.asyncio
async def test_ignores_other_weapons_and_flying_missiles(store, notifier):
    resolver = ShieldBreakerResolver(store, notifier)
    await store.add_shield(make_shield(1))
    await store.add_missile(make_missile(1, destination=HOME, radius_m=500, weapon_type="TheNuke"))
    await store.add_missile(shield_breaker(2, status=MissileStatus.INCOMING))
    await store.add_missile(shield_breaker(3, impact_ms=IMPACT + MINUTE))

    assert await resolver.resolve(IMPACT) == []
    assert len(await store.shields()) == 1


@pytest.mark.asyncio
async def test_landed_missile_breaks_shields_placed_later(store, notifier):
    """A ShieldBreaker keeps working on its blast zone until it is purged."""
    resolver = ShieldBreakerResolver(store, notifier)
    await store.add_missile(shield_breaker())
    assert await resolver.resolve(IMPACT) == []

    await store.add_shield(make_shield(5))
    evts = await resolver.resolve(IMPACT + MINUTE)
    assert [e.data["shield_id"] for e in evts] == [5]


@pytest.mark.asyncio
async def test_two_missiles_break_a_shield_once(store, notifier):
    resolver = ShieldBreakerResolver(store, notifier)
    await store.add_shield(make_shield(1, placed_by="defender"))
    await store.add_missile(shield_breaker(1))
    await store.add_missile(shield_breaker(2, distance_m=20))

    evts = await resolver.resolve(IMPACT)
    assert len(evts) == 1
    assert evts[0].data["missile_id"] == 1
    assert len(notifier.for_user("defender")) == 1


@pytest.mark.asyncio
async def test_shield_across_antimeridian_notifies_both_sides(store, notifier):
    resolver = ShieldBreakerResolver(store, notifier)
    center = (-17.0, 179.9996)
    await store.add_shield(make_shield(1, coords=center, radius_m=100, placed_by="defender"))
    await store.save_player(make_player("west", coords=offset(center, 30, 270)))
    await store.save_player(make_player("east", coords=offset(center, 60, 90)))
    await store.add_missile(make_missile(1, destination=center, radius_m=120, weapon_type="ShieldBreaker",
                                         sent_by="breaker"))

    (evt,) = await resolver.resolve(IMPACT)
    assert (await store.get_player("east")).coords[1] < 0
    assert sorted(evt.data["notified"]) == ["defender", "east", "west"]
