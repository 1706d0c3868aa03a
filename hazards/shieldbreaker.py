import logging
from typing import Iterable, List
from .geo import bounding_box, haversine_m
from .model import SHIELD_BREAKER, Event, Missile, MissileStatus, Shield
from .ports import EntityCacheOwner, EntityStore, NotificationSink

logger = logging.getLogger(__name__)

class ShieldBreakerResolver:
    """Destroys shields caught in the blast of landed ShieldBreaker missiles."""

    def __init__(self, store: EntityStore, notifier: NotificationSink,
                 cache_owners: Iterable[EntityCacheOwner] = (), weapon_type: str = SHIELD_BREAKER):
        self.store = store
        self.notifier = notifier
        self.cache_owners = list(cache_owners)
        self.weapon_type = weapon_type

    async def resolve(self, now_ms: int) -> List[Event]:
        evts: List[Event] = []
        missiles = [m for m in await self.store.missiles(status=MissileStatus.HIT, weapon_type=self.weapon_type)
                    if m.impact_ms is not None and m.impact_ms <= now_ms]
        if not missiles:
            return evts
        logger.info("[ShieldBreaker] Found %d missiles to process", len(missiles))

        for missile in missiles:
            shields = await self.store.shields(active_at=now_ms)
            in_blast = [s for s in shields if haversine_m(missile.destination, s.coords) <= missile.radius_m]
            for shield in in_blast:
                evts += await self._break(shield, missile, now_ms)
        return evts

    async def _break(self, shield: Shield, missile: Missile, now_ms: int) -> List[Event]:
        box = bounding_box(shield.coords, shield.radius_m)
        affected = await self.store.players_in_box(box, alive=True, loc_active=True)
        if not await self.store.delete_shield(shield.id):
            # Already taken down by another missile in this pass
            return []
        for owner in self.cache_owners:
            owner.forget_entity(shield.kind, shield.id)

        notified = []
        for player in affected:
            await self.notifier.notify(
                player.username, "Shield Destroyed!",
                f"A shield protecting you has been destroyed by a Shield Breaker missile from {missile.sent_by}!",
                missile.sent_by)
            notified.append(player.username)
        if shield.placed_by not in notified:
            await self.notifier.notify(
                shield.placed_by, "Shield Destroyed!",
                f"The shield you placed has been destroyed by a Shield Breaker missile from {missile.sent_by}!",
                missile.sent_by)
            notified.append(shield.placed_by)

        logger.info("[ShieldBreaker] Shield %s destroyed by missile %s, %d users notified",
                    shield.id, missile.id, len(notified))
        return [Event("ShieldDestroyed", now_ms, {"shield_id": shield.id, "missile_id": missile.id,
                                                  "by": missile.sent_by, "notified": notified})]
