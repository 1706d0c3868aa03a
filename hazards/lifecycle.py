import logging
from typing import Iterable, List
from .model import EntityKind, Event, MissileStatus
from .ports import EntityCacheOwner, EntityStore, WeaponCatalog

logger = logging.getLogger(__name__)

DEFAULT_FALLOUT_MIN = 30.0
MINUTE_MS = 60 * 1000

class LifecycleManager:
    """Purges map entities whose time is up."""

    def __init__(self, store: EntityStore, catalog: WeaponCatalog,
                 cache_owners: Iterable[EntityCacheOwner] = (),
                 default_fallout_min: float = DEFAULT_FALLOUT_MIN):
        self.store = store
        self.catalog = catalog
        self.cache_owners = list(cache_owners)
        self.default_fallout_min = default_fallout_min

    def fallout_ms(self, weapon_type: str) -> int:
        wt = self.catalog.weapon_type(weapon_type)
        minutes = wt.fallout_min if wt else self.default_fallout_min
        return int(minutes * MINUTE_MS)

    async def sweep(self, now_ms: int) -> List[Event]:
        """Run each purge independently so one failing kind doesn't block the rest."""
        evts: List[Event] = []
        for kind, purge in ((EntityKind.MISSILE, self._purge_missiles),
                            (EntityKind.LANDMINE, self._purge_expired),
                            (EntityKind.LOOT, self._purge_expired),
                            (EntityKind.SHIELD, self._purge_expired)):
            try:
                deleted = await purge(kind, now_ms)
            except Exception:
                logger.exception("Failed to delete expired %s entities", kind.value)
                continue
            for entity_id in deleted:
                for owner in self.cache_owners:
                    owner.forget_entity(kind, entity_id)
            logger.info("%d %s deleted.", len(deleted), kind.value)
            if deleted:
                evts.append(Event("EntitiesPurged", now_ms, {"kind": kind.value, "ids": deleted}))
        return evts

    async def _purge_missiles(self, kind: EntityKind, now_ms: int) -> List[int]:
        deleted: List[int] = []
        for m in await self.store.missiles(status=MissileStatus.HIT):
            if m.impact_ms is None:
                continue
            if m.impact_ms + self.fallout_ms(m.weapon_type) < now_ms and await self.store.delete_missile(m.id):
                deleted.append(m.id)
        return deleted

    async def _purge_expired(self, kind: EntityKind, now_ms: int) -> List[int]:
        return await self.store.delete_expired(kind, now_ms)
