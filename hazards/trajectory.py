import logging
from typing import List, Optional, Tuple
from .geo import destination_point, haversine_km, rhumb_bearing_deg, rhumb_destination, rhumb_distance_m
from .model import Coords, Event, Missile, MissileStatus
from .ports import EntityStore

logger = logging.getLogger(__name__)

BATCH_SIZE = 100
HOLDING_DISTANCE_KM = 1.0   # start circling when this close to target
HOLDING_RADIUS_KM = 0.5
HOLDING_PERIOD_MS = 10_000  # one full orbit

class TrajectoryEngine:
    """Advances in-flight missiles along their path and lands them on schedule."""

    def __init__(self, store: EntityStore, batch_size: int = BATCH_SIZE,
                 holding_distance_km: float = HOLDING_DISTANCE_KM,
                 holding_radius_km: float = HOLDING_RADIUS_KM,
                 holding_period_ms: int = HOLDING_PERIOD_MS):
        self.store = store
        self.batch_size = batch_size
        self.holding_distance_km = holding_distance_km
        self.holding_radius_km = holding_radius_km
        self.holding_period_ms = holding_period_ms

    def position_at(self, missile: Missile, now_ms: int) -> Tuple[Coords, MissileStatus]:
        """Return where the missile is at now_ms and whether it has landed.

        Raises ValueError when the missile's timestamps can't be used.
        """
        if missile.impacted:
            return missile.destination, MissileStatus.HIT

        launched, impact = missile.launched_ms, missile.impact_ms
        if launched is None or impact is None:
            raise ValueError(f"missing timestamps (launched={launched}, impact={impact})")
        if now_ms >= impact:
            return missile.destination, MissileStatus.HIT

        total = impact - launched
        if total <= 0:
            raise ValueError(f"impact {impact} is not after launch {launched}")
        fraction = min(max((now_ms - launched) / total, 0.0), 1.0)

        # Bearing is taken once from the fixed origin so every tick stays on the same line
        distance = rhumb_distance_m(missile.origin, missile.destination)
        bearing = rhumb_bearing_deg(missile.origin, missile.destination)
        pos = rhumb_destination(missile.origin, fraction * distance, bearing)

        if haversine_km(pos, missile.destination) < self.holding_distance_km:
            pos = self._holding_position(missile.destination, now_ms)
        return pos, MissileStatus.INCOMING

    def _holding_position(self, destination: Coords, now_ms: int) -> Coords:
        center = destination_point(destination, self.holding_distance_km * 1000, 0.0)
        angle = (now_ms % self.holding_period_ms) / self.holding_period_ms * 360.0
        return destination_point(center, self.holding_radius_km * 1000, angle)

    async def tick(self, now_ms: int) -> List[Event]:
        """Move every Incoming missile to its position for now_ms, in id-ordered pages."""
        evts: List[Event] = []
        moved = skipped = 0
        after_id: Optional[int] = None

        while True:
            batch = await self.store.missiles(status=MissileStatus.INCOMING, after_id=after_id,
                                              limit=self.batch_size)
            for m in batch:
                try:
                    current, status = self.position_at(m, now_ms)
                except (TypeError, ValueError) as e:
                    logger.warning("Skipping missile %s: %s", m.id, e)
                    skipped += 1
                    continue

                m.current = current
                m.status = status
                await self.store.save_missile(m)
                if status == MissileStatus.HIT:
                    evts.append(Event("MissileImpacted", now_ms,
                                      {"missile_id": m.id, "type": m.weapon_type, "sent_by": m.sent_by,
                                       "at": list(m.destination)}))
                else:
                    moved += 1

            if len(batch) < self.batch_size:
                break
            after_id = batch[-1].id

        logger.info("Updated %d missiles (%d impacted, %d skipped)", moved + len(evts), len(evts), skipped)
        return evts
