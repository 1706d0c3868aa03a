import logging
from typing import List, Optional, Set
from .cache import DedupCache, EntityRef
from .damage import round_half_up
from .geo import haversine_km
from .model import EntityKind, Event, Landmine, Loot, Missile, Player
from .ports import EntityStore, LootCollector, NotificationSink, VisibilityResolver
from .visibility import sender_filter

logger = logging.getLogger(__name__)

MISSILE_ALERT_BUFFER_KM = 0.5  # alert this far beyond the blast radius
LANDMINE_ALERT_KM = 0.05
LOOT_NEARBY_KM = 0.5
LOOT_COLLECT_KM = 0.05

SERVER = "Server"

def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'' if n == 1 else 's'}"

def format_eta(seconds: float) -> str:
    """Human-readable ETA using only the largest whole unit."""
    total = max(0, round_half_up(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours > 0:
        return _plural(hours, "hour")
    if minutes > 0:
        return _plural(minutes, "minute")
    return _plural(secs, "second")

class ProximityDetector:
    """Raises one-shot alerts when players come near missiles, landmines or loot."""

    def __init__(self, store: EntityStore, notifier: NotificationSink, visibility: VisibilityResolver,
                 collector: Optional[LootCollector] = None,
                 missile_alert_buffer_km: float = MISSILE_ALERT_BUFFER_KM,
                 landmine_alert_km: float = LANDMINE_ALERT_KM,
                 loot_nearby_km: float = LOOT_NEARBY_KM,
                 loot_collect_km: float = LOOT_COLLECT_KM):
        self.store = store
        self.notifier = notifier
        self.visibility = visibility
        self.collector = collector
        self.missile_alert_buffer_km = missile_alert_buffer_km
        self.landmine_alert_km = landmine_alert_km
        self.loot_nearby_km = loot_nearby_km
        self.loot_collect_km = loot_collect_km
        self.notified = DedupCache()

    def forget_entity(self, kind: EntityKind, entity_id: int) -> None:
        self.notified.forget_entity(kind, entity_id)

    async def scan(self, now_ms: int) -> List[Event]:
        """Check every living, location-visible player against nearby entities."""
        evts: List[Event] = []
        players = await self.store.players(alive=True, loc_active=True)
        missiles = await self.store.missiles()
        landmines = await self.store.landmines(active_at=now_ms)
        loot = [item for item in await self.store.loot() if item.expires_ms >= now_ms]
        collected: Set[int] = set()

        for player in players:
            if player.coords is None:
                continue
            visible = await sender_filter(player, self.visibility)
            evts += await self._check_missiles(player, [m for m in missiles if visible(m.sent_by)], now_ms)
            evts += await self._check_landmines(player, [lm for lm in landmines if visible(lm.placed_by)], now_ms)
            evts += await self._check_loot(player, [i for i in loot if i.id not in collected], now_ms, collected)

        # Anything no longer on the map can't alert again; drop its keys
        live: Set[EntityRef] = {(m.kind, m.id) for m in missiles}
        live |= {(lm.kind, lm.id) for lm in landmines}
        live |= {(i.kind, i.id) for i in loot if i.id not in collected}
        pruned = self.notified.retain_entities(live)

        logger.info("Proximity scan: %d players, %d alerts, %d stale keys pruned",
                    len(players), len(evts), pruned)
        return evts

    async def _check_missiles(self, player: Player, missiles: List[Missile], now_ms: int) -> List[Event]:
        evts: List[Event] = []
        for m in missiles:
            distance = haversine_km(player.coords, m.destination)
            radius_km = m.radius_m / 1000
            if distance > radius_km + self.missile_alert_buffer_km:
                continue
            if not self.notified.add_if_absent((m.kind, m.id, player.username), now_ms):
                continue

            if m.impacted:
                title = "Missile Impact Alert!"
                body = "A missile has impacted nearby! Proceed with caution."
            else:
                eta = format_eta(((m.impact_ms or now_ms) - now_ms) / 1000)
                title = "Missile Alert!"
                if distance <= radius_km:
                    body = f"A missile is approaching your location! ETA: {eta}. Take cover!"
                else:
                    body = f"A missile is approaching nearby! ETA: {eta}. Be prepared to take cover."
            await self.notifier.notify(player.username, title, body, SERVER)
            evts.append(Event("AlertSent", now_ms, {"player": player.username, "kind": m.kind.value,
                                                     "entity_id": m.id, "title": title}))
        return evts

    async def _check_landmines(self, player: Player, landmines: List[Landmine], now_ms: int) -> List[Event]:
        evts: List[Event] = []
        for lm in landmines:
            if haversine_km(player.coords, lm.coords) > self.landmine_alert_km:
                continue
            if not self.notified.add_if_absent((lm.kind, lm.id, player.username), now_ms):
                continue
            meters = round(self.landmine_alert_km * 1000)
            await self.notifier.notify(player.username, "Landmine Nearby!",
                                       f"Caution: You're within {meters} meters of a landmine!", SERVER)
            evts.append(Event("AlertSent", now_ms, {"player": player.username, "kind": lm.kind.value,
                                                     "entity_id": lm.id, "title": "Landmine Nearby!"}))
        return evts

    async def _check_loot(self, player: Player, loot: List[Loot], now_ms: int,
                          collected: Set[int]) -> List[Event]:
        evts: List[Event] = []
        nearby = 0
        for item in loot:
            distance = haversine_km(player.coords, item.coords)
            if self.collector is not None and distance <= self.loot_collect_km:
                if await self.collector.collect(player, item, now_ms):
                    collected.add(item.id)
                    self.notified.forget_entity(item.kind, item.id)
                    evts.append(Event("LootCollected", now_ms, {"player": player.username, "loot_id": item.id}))
                continue
            if distance <= self.loot_nearby_km and self.notified.add_if_absent(
                    (item.kind, item.id, player.username), now_ms):
                nearby += 1

        if nearby > 0:
            verb = "is" if nearby == 1 else "are"
            meters = round(self.loot_nearby_km * 1000)
            await self.notifier.notify(player.username, "Loot Nearby!",
                                       f"There {verb} {_plural(nearby, 'loot item')} within {meters} meters of you!",
                                       SERVER)
            evts.append(Event("AlertSent", now_ms, {"player": player.username, "kind": "loot", "count": nearby,
                                                     "title": "Loot Nearby!"}))
        return evts
