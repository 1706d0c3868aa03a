import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional
from .cache import DedupCache
from .geo import haversine_m
from .model import (Coords, DamageKey, DamageTask, EntityKind, Event, MissileStatus, Player, Shield)
from .ports import EntityStore, NotificationSink, Transaction, VisibilityResolver, WeaponCatalog
from .rng import DRNG
from .visibility import sender_filter

logger = logging.getLogger(__name__)

DAMAGE_DELAY_MS = 30_000
LANDMINE_TRIGGER_M = 10.0
DEDUP_HORIZON_MS = 5 * 60 * 1000
ACTIVE_PLAYER_WINDOW_MS = 7 * 24 * 60 * 60 * 1000

VICTIM_MONEY_LOSS = 0.2
RANK_PENALTY_RANGE = (100, 200)
REWARD_MULTIPLIER: Dict[EntityKind, float] = {EntityKind.MISSILE: 1.1, EntityKind.LANDMINE: 1.5}
BASE_RANK_REWARD: Dict[EntityKind, int] = {EntityKind.MISSILE: 20, EntityKind.LANDMINE: 30}
RANK_BONUS_CAP = 20
RANK_REWARD_CAP = 67

SERVER = "Server"

def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))

@dataclass
class KillSettlement:
    """Economy transfer for one elimination"""
    money_loss: int
    rank_penalty: int
    reward: int        # weapon-based payout, excluding the money taken from the victim
    rank_reward: int
    credited: bool = True

def settle_kill(victim_money: int, victim_rank: int, weapon_price: int,
                source: EntityKind, penalty_roll: int) -> KillSettlement:
    """Compute what the victim loses and what the attacker earns."""
    money_loss = math.floor(victim_money * VICTIM_MONEY_LOSS)
    rank_penalty = max(0, min(penalty_roll, victim_rank))
    reward = round_half_up(weapon_price * REWARD_MULTIPLIER[source])
    bonus = min(round_half_up(reward / 100), RANK_BONUS_CAP)
    rank_reward = min(BASE_RANK_REWARD[source] + bonus, RANK_REWARD_CAP)
    return KillSettlement(money_loss=money_loss, rank_penalty=rank_penalty,
                          reward=reward, rank_reward=rank_reward)

def is_protected(coords: Coords, shields: List[Shield]) -> bool:
    """True if coords fall inside any of the given shields."""
    return any(haversine_m(coords, s.coords) <= s.radius_m for s in shields)

@dataclass
class TickOutcome:
    task: DamageTask
    tick_ms: int
    health: int = 0
    damage: int = 0
    blocked: bool = False
    stopped: bool = False
    done: bool = False
    settlement: Optional[KillSettlement] = None

class DamageProcessor:
    """Schedules and applies hazard damage to exposed players.

    Missiles that have landed keep hurting anyone caught in their radius every
    ``damage_delay_ms`` until that player dies; landmines go off once after the
    same delay and are then removed. Pending damage lives in the store as
    DamageTask records so that every tick is a single transaction.
    """

    def __init__(self, store: EntityStore, notifier: NotificationSink, visibility: VisibilityResolver,
                 catalog: WeaponCatalog, rng: Optional[DRNG] = None,
                 damage_delay_ms: int = DAMAGE_DELAY_MS,
                 landmine_trigger_m: float = LANDMINE_TRIGGER_M,
                 dedup_horizon_ms: int = DEDUP_HORIZON_MS,
                 active_window_ms: int = ACTIVE_PLAYER_WINDOW_MS):
        self.store = store
        self.notifier = notifier
        self.visibility = visibility
        self.catalog = catalog
        self.rng = rng or DRNG()
        self.damage_delay_ms = damage_delay_ms
        self.landmine_trigger_m = landmine_trigger_m
        self.active_window_ms = active_window_ms
        self.missile_hits = DedupCache(dedup_horizon_ms)
        self.landmine_hits = DedupCache(dedup_horizon_ms)

    def forget_entity(self, kind: EntityKind, entity_id: int) -> None:
        self.missile_hits.forget_entity(kind, entity_id)
        self.landmine_hits.forget_entity(kind, entity_id)

    async def scan(self, now_ms: int) -> List[Event]:
        """Find new exposures, then run every damage tick that has come due."""
        evts: List[Event] = []
        evts += await self._schedule_exposures(now_ms)
        evts += await self._run_due(now_ms)
        self.missile_hits.sweep(now_ms)
        self.landmine_hits.sweep(now_ms)
        return evts

    async def _schedule_exposures(self, now_ms: int) -> List[Event]:
        evts: List[Event] = []
        players = await self.store.players(alive=True, seen_since=now_ms - self.active_window_ms)
        if not players:
            return evts
        missiles = await self.store.missiles(status=MissileStatus.HIT)
        landmines = await self.store.landmines(active_at=now_ms)
        shields = await self.store.shields(active_at=now_ms)

        for player in players:
            if player.coords is None or is_protected(player.coords, shields):
                continue
            visible = await sender_filter(player, self.visibility)

            for m in missiles:
                if not visible(m.sent_by) or haversine_m(player.coords, m.destination) > m.radius_m:
                    continue
                task = DamageTask(username=player.username, hazard_kind=m.kind, hazard_id=m.id,
                                  attacker=m.sent_by, weapon_type=m.weapon_type, damage=m.damage,
                                  due_ms=now_ms + self.damage_delay_ms, recurring=True, created_ms=now_ms)
                if await self._schedule(task, self.missile_hits, now_ms):
                    await self.notifier.notify(
                        player.username, "Missile Impact Alert!",
                        f"You're in a missile impact zone! You will start taking damage in "
                        f"{self.damage_delay_ms // 1000} seconds.", SERVER)
                    evts.append(Event("DamageScheduled", now_ms, self._task_data(task)))

            for lm in landmines:
                if not visible(lm.placed_by) or haversine_m(player.coords, lm.coords) > self.landmine_trigger_m:
                    continue
                task = DamageTask(username=player.username, hazard_kind=lm.kind, hazard_id=lm.id,
                                  attacker=lm.placed_by, weapon_type=lm.weapon_type, damage=lm.damage,
                                  due_ms=now_ms + self.damage_delay_ms, recurring=False, created_ms=now_ms)
                if await self._schedule(task, self.landmine_hits, now_ms):
                    await self.notifier.notify(
                        player.username, "Landmine Alert!",
                        f"You've stepped on a landmine! You will take damage in "
                        f"{self.damage_delay_ms // 1000} seconds.", SERVER)
                    evts.append(Event("DamageScheduled", now_ms, self._task_data(task)))

        logger.info("Damage scan: %d players checked, %d new exposures", len(players), len(evts))
        return evts

    async def _schedule(self, task: DamageTask, cache: DedupCache, now_ms: int) -> bool:
        """Persist task unless this (player, hazard) pair is already being handled."""
        cache_key = (task.hazard_kind, task.hazard_id, task.username)
        if cache_key in cache:
            return False
        async with self.store.transaction() as tx:
            if tx.get_damage_task(task.key) is not None:
                return False
            tx.save_damage_task(task)
        cache.add_if_absent(cache_key, now_ms)
        return True

    async def _run_due(self, now_ms: int) -> List[Event]:
        evts: List[Event] = []
        for task in await self.store.damage_tasks(due_at=now_ms):
            try:
                evts += await self._run_task(task.key, now_ms)
            except Exception:
                logger.exception("Damage tick for %s failed; it stays due for the next scan", task.key)
        return evts

    async def _run_task(self, key: DamageKey, now_ms: int) -> List[Event]:
        """Apply every tick of one task that is due by now_ms."""
        evts: List[Event] = []
        while True:
            outcome = await self._apply_tick(key, now_ms)
            if outcome is None:
                break
            evts += await self._report(outcome, now_ms)
            if outcome.done:
                break
        return evts

    async def _apply_tick(self, key: DamageKey, now_ms: int) -> Optional[TickOutcome]:
        async with self.store.transaction() as tx:
            task = tx.get_damage_task(key)
            # Already advanced by an overlapping scan
            if task is None or task.due_ms > now_ms:
                return None

            outcome = TickOutcome(task=task, tick_ms=task.due_ms)
            player = tx.get_player(task.username)
            if player is None or not player.alive:
                tx.delete_damage_task(key)
                outcome.stopped = outcome.done = True
                return outcome

            if player.coords is not None and is_protected(player.coords, tx.shields(active_at=task.due_ms)):
                outcome.blocked = True
            else:
                player.health -= task.damage
                outcome.damage = task.damage
                task.ticks_applied += 1
                if player.health <= 0:
                    outcome.settlement = self._eliminate(tx, player, task)
                tx.save_player(player)
            outcome.health = player.health

            if task.hazard_kind == EntityKind.LANDMINE:
                tx.delete_landmine(task.hazard_id)

            if outcome.settlement is not None or not task.recurring:
                tx.delete_damage_task(key)
                outcome.done = True
            elif outcome.blocked:
                # Protected: skip the missed intervals rather than replaying them
                missed = (now_ms - task.due_ms) // self.damage_delay_ms + 1
                task.due_ms += missed * self.damage_delay_ms
                tx.save_damage_task(task)
            else:
                task.due_ms += self.damage_delay_ms
                tx.save_damage_task(task)
            return outcome

    def _eliminate(self, tx: Transaction, victim: Player, task: DamageTask) -> KillSettlement:
        """Zero the victim and transfer money/rank to the attacker inside tx."""
        wt = self.catalog.weapon_type(task.weapon_type)
        settlement = settle_kill(victim.money, victim.rank_points, wt.price if wt else 0,
                                 task.hazard_kind, self.rng.integer(*RANK_PENALTY_RANGE))

        victim.alive = False
        victim.health = 0
        victim.money -= settlement.money_loss
        victim.rank_points -= settlement.rank_penalty
        victim.deaths += 1

        attacker = tx.get_player(task.attacker) if task.attacker != victim.username else None
        if attacker is None:
            settlement.credited = False
            return settlement
        attacker.money += settlement.reward + settlement.money_loss
        attacker.rank_points += settlement.rank_reward
        tx.save_player(attacker)
        return settlement

    async def _report(self, outcome: TickOutcome, now_ms: int) -> List[Event]:
        """Emit events and notifications for a committed tick."""
        task = outcome.task
        data = self._task_data(task)
        if task.hazard_kind == EntityKind.LANDMINE:
            self.forget_entity(EntityKind.LANDMINE, task.hazard_id)

        if outcome.stopped:
            return [Event("DamageChainStopped", now_ms, data)]
        if outcome.blocked:
            return [Event("DamageBlocked", now_ms, {**data, "tick_ms": outcome.tick_ms})]

        evts = [Event("DamageApplied", now_ms, {**data, "tick_ms": outcome.tick_ms,
                                                "damage": outcome.damage, "health": outcome.health})]
        s = outcome.settlement
        if s is None:
            return evts

        source = "missile" if task.hazard_kind == EntityKind.MISSILE else "landmine"
        await self.notifier.notify(
            task.username, "Eliminated!",
            f"You have been eliminated by {task.attacker}'s {source}! "
            f"You lost {s.money_loss} coins and {s.rank_penalty} rank points.", SERVER)
        if s.credited:
            await self.notifier.notify(
                task.attacker, "Kill Reward",
                f"You've been rewarded {s.reward + s.money_loss} coins and {s.rank_reward} rank points "
                f"for eliminating {task.username} with your {source}!", SERVER)
        evts.append(Event("PlayerEliminated", now_ms, {
            "victim": task.username, "attacker": task.attacker, "source": source,
            "money_loss": s.money_loss, "rank_penalty": s.rank_penalty,
            "reward": s.reward, "rank_reward": s.rank_reward, "credited": s.credited}))
        logger.info("%s eliminated by %s's %s", task.username, task.attacker, task.weapon_type)
        return evts

    @staticmethod
    def _task_data(task: DamageTask) -> Dict:
        return {"player": task.username, "kind": task.hazard_kind.value, "hazard_id": task.hazard_id,
                "attacker": task.attacker, "due_ms": task.due_ms}
