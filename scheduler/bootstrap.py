"""Wires the simulation components to a store and a scheduler."""
import logging
from dataclasses import dataclass
from typing import Optional
from hazards.catalog import StaticWeaponCatalog
from hazards.damage import DamageProcessor
from hazards.lifecycle import LifecycleManager
from hazards.loot import LootSpawner, StoreLootCollector
from hazards.ports import NotificationSink, VisibilityResolver, WeaponCatalog
from hazards.proximity import ProximityDetector
from hazards.rng import DRNG
from hazards.shieldbreaker import ShieldBreakerResolver
from hazards.trajectory import TrajectoryEngine
from .config import Settings
from .eventlog import EventLog
from .friends import FriendGraph
from .memstore import InMemoryStore
from .notify import EventLogNotifier
from .runner import Clock, TickScheduler, wall_clock_ms

logger = logging.getLogger(__name__)

@dataclass
class Runtime:
    settings: Settings
    store: InMemoryStore
    notifier: NotificationSink
    events: EventLog
    trajectory: TrajectoryEngine
    proximity: ProximityDetector
    damage: DamageProcessor
    shield_breaker: ShieldBreakerResolver
    lifecycle: LifecycleManager
    loot_spawner: LootSpawner
    scheduler: TickScheduler

def build_runtime(settings: Settings, store: Optional[InMemoryStore] = None,
                  notifier: Optional[NotificationSink] = None,
                  visibility: Optional[VisibilityResolver] = None,
                  catalog: Optional[WeaponCatalog] = None,
                  clock: Clock = wall_clock_ms) -> Runtime:
    events = EventLog(settings.EVENT_LOG_CAPACITY)
    store = store or InMemoryStore()
    notifier = notifier or EventLogNotifier(events, clock)
    visibility = visibility or FriendGraph()
    catalog = catalog or StaticWeaponCatalog()
    rng = DRNG(settings.RNG_SEED)

    trajectory = TrajectoryEngine(store, batch_size=settings.TRAJECTORY_BATCH_SIZE,
                                  holding_distance_km=settings.HOLDING_DISTANCE_KM,
                                  holding_radius_km=settings.HOLDING_RADIUS_KM,
                                  holding_period_ms=int(settings.HOLDING_PERIOD_S * 1000))
    proximity = ProximityDetector(store, notifier, visibility,
                                  collector=StoreLootCollector(store, notifier, rng),
                                  missile_alert_buffer_km=settings.MISSILE_ALERT_BUFFER_KM,
                                  landmine_alert_km=settings.LANDMINE_ALERT_KM,
                                  loot_nearby_km=settings.LOOT_NEARBY_KM,
                                  loot_collect_km=settings.LOOT_COLLECT_KM)
    damage = DamageProcessor(store, notifier, visibility, catalog, rng,
                             damage_delay_ms=int(settings.DAMAGE_DELAY_S * 1000),
                             landmine_trigger_m=settings.LANDMINE_TRIGGER_M,
                             dedup_horizon_ms=int(settings.DEDUP_HORIZON_S * 1000),
                             active_window_ms=int(settings.ACTIVE_PLAYER_WINDOW_H * 3600 * 1000))
    shield_breaker = ShieldBreakerResolver(store, notifier, cache_owners=[proximity, damage])
    lifecycle = LifecycleManager(store, catalog, cache_owners=[proximity, damage],
                                 default_fallout_min=settings.DEFAULT_FALLOUT_MIN)
    loot_spawner = LootSpawner(store, rng)

    scheduler = TickScheduler(clock=clock, events=events)
    scheduler.add("trajectory", trajectory.tick, settings.TRAJECTORY_INTERVAL_S)
    scheduler.add("proximity", proximity.scan, settings.PROXIMITY_INTERVAL_S)
    scheduler.add("damage", damage.scan, settings.DAMAGE_INTERVAL_S)
    scheduler.add("shield_breaker", shield_breaker.resolve, settings.SHIELD_BREAKER_INTERVAL_S)
    scheduler.add("lifecycle", lifecycle.sweep, settings.LIFECYCLE_INTERVAL_S)
    if settings.LOOT_SPAWN_ENABLED:
        scheduler.add("loot_spawn", loot_spawner.spawn, settings.LOOT_SPAWN_INTERVAL_S)

    logger.info("Runtime built with %d scheduled passes", len(scheduler.tasks))
    return Runtime(settings=settings, store=store, notifier=notifier, events=events,
                   trajectory=trajectory, proximity=proximity, damage=damage,
                   shield_breaker=shield_breaker, lifecycle=lifecycle,
                   loot_spawner=loot_spawner, scheduler=scheduler)
