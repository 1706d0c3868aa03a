import asyncio
import copy
import itertools
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, TypeVar
from hazards.geo import BoundingBox, in_box
from hazards.model import (DamageKey, DamageTask, EntityKind, Landmine, Loot, Missile, MissileStatus,
                           Player, Shield)

T = TypeVar("T")

def _copy(record: T) -> T:
    return copy.deepcopy(record)

class MemoryTransaction:
    """Unit of work over an InMemoryStore; only valid while the store lock is held."""

    def __init__(self, store: "InMemoryStore"):
        self._store = store

    def get_player(self, username: str) -> Optional[Player]:
        p = self._store._players.get(username)
        return _copy(p) if p else None

    def save_player(self, player: Player) -> None:
        self._store._players[player.username] = _copy(player)

    def shields(self, active_at: Optional[int] = None) -> List[Shield]:
        return self._store._list_shields(active_at)

    def get_damage_task(self, key: DamageKey) -> Optional[DamageTask]:
        t = self._store._tasks.get(key)
        return _copy(t) if t else None

    def save_damage_task(self, task: DamageTask) -> None:
        self._store._tasks[task.key] = _copy(task)

    def delete_damage_task(self, key: DamageKey) -> bool:
        return self._store._tasks.pop(key, None) is not None

    def delete_landmine(self, landmine_id: int) -> bool:
        return self._store._landmines.pop(landmine_id, None) is not None

    def delete_loot(self, loot_id: int) -> bool:
        return self._store._loot.pop(loot_id, None) is not None

class InMemoryStore:
    """Process-local entity store.

    Records are copied on the way in and out, so callers only change stored
    state through save/delete calls. One asyncio lock serialises writes and
    transactions; a failed transaction restores the snapshot taken when it
    began.
    """

    def __init__(self):
        self._missiles: Dict[int, Missile] = {}
        self._landmines: Dict[int, Landmine] = {}
        self._shields: Dict[int, Shield] = {}
        self._loot: Dict[int, Loot] = {}
        self._players: Dict[str, Player] = {}
        self._tasks: Dict[DamageKey, DamageTask] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    def _assign_id(self, entity):
        if not entity.id:
            entity.id = next(self._ids)
        return entity

    # Missiles

    async def add_missile(self, missile: Missile) -> Missile:
        async with self._lock:
            self._missiles[self._assign_id(missile).id] = _copy(missile)
        return missile

    async def missiles(self, status: Optional[MissileStatus] = None, weapon_type: Optional[str] = None,
                       after_id: Optional[int] = None, limit: Optional[int] = None) -> List[Missile]:
        out = [m for _, m in sorted(self._missiles.items())
               if (status is None or m.status == status)
               and (weapon_type is None or m.weapon_type == weapon_type)
               and (after_id is None or m.id > after_id)]
        if limit is not None:
            out = out[:limit]
        return [_copy(m) for m in out]

    async def get_missile(self, missile_id: int) -> Optional[Missile]:
        m = self._missiles.get(missile_id)
        return _copy(m) if m else None

    async def save_missile(self, missile: Missile) -> None:
        async with self._lock:
            self._missiles[missile.id] = _copy(missile)

    async def delete_missile(self, missile_id: int) -> bool:
        async with self._lock:
            return self._missiles.pop(missile_id, None) is not None

    # Landmines, shields, loot

    async def add_landmine(self, landmine: Landmine) -> Landmine:
        async with self._lock:
            self._landmines[self._assign_id(landmine).id] = _copy(landmine)
        return landmine

    async def landmines(self, active_at: Optional[int] = None) -> List[Landmine]:
        return [_copy(lm) for _, lm in sorted(self._landmines.items())
                if active_at is None or lm.expires_ms > active_at]

    async def add_shield(self, shield: Shield) -> Shield:
        async with self._lock:
            self._shields[self._assign_id(shield).id] = _copy(shield)
        return shield

    def _list_shields(self, active_at: Optional[int]) -> List[Shield]:
        return [_copy(s) for _, s in sorted(self._shields.items())
                if active_at is None or s.active_at(active_at)]

    async def shields(self, active_at: Optional[int] = None) -> List[Shield]:
        return self._list_shields(active_at)

    async def delete_shield(self, shield_id: int) -> bool:
        async with self._lock:
            return self._shields.pop(shield_id, None) is not None

    async def add_loot(self, loot: Loot) -> Loot:
        async with self._lock:
            self._loot[self._assign_id(loot).id] = _copy(loot)
        return loot

    async def loot(self) -> List[Loot]:
        return [_copy(i) for _, i in sorted(self._loot.items())]

    async def delete_expired(self, kind: EntityKind, now_ms: int) -> List[int]:
        tables = {EntityKind.LANDMINE: self._landmines, EntityKind.LOOT: self._loot,
                  EntityKind.SHIELD: self._shields}
        if kind not in tables:
            raise ValueError(f"{kind.value} entities do not expire by timestamp")
        table = tables[kind]
        async with self._lock:
            expired = [eid for eid, e in table.items() if e.expires_ms < now_ms]
            for eid in expired:
                del table[eid]
        return expired

    # Players

    async def save_player(self, player: Player) -> None:
        async with self._lock:
            self._players[player.username] = _copy(player)

    async def get_player(self, username: str) -> Optional[Player]:
        p = self._players.get(username)
        return _copy(p) if p else None

    async def players(self, alive: Optional[bool] = None, loc_active: Optional[bool] = None,
                      seen_since: Optional[int] = None) -> List[Player]:
        return [_copy(p) for p in self._players.values()
                if (alive is None or p.alive == alive)
                and (loc_active is None or p.loc_active == loc_active)
                and (seen_since is None or p.location_updated_ms >= seen_since)]

    async def players_in_box(self, box: BoundingBox, alive: Optional[bool] = True,
                             loc_active: Optional[bool] = True) -> List[Player]:
        return [p for p in await self.players(alive=alive, loc_active=loc_active)
                if p.coords is not None and in_box(p.coords, box)]

    # Damage tasks

    async def damage_tasks(self, due_at: Optional[int] = None) -> List[DamageTask]:
        return [_copy(t) for t in sorted(self._tasks.values(), key=lambda t: (t.due_ms, t.key[0], t.hazard_id))
                if due_at is None or t.due_ms <= due_at]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[MemoryTransaction]:
        async with self._lock:
            snapshot = (dict(self._players), dict(self._tasks), dict(self._landmines), dict(self._loot))
            try:
                yield MemoryTransaction(self)
            except BaseException:
                self._players, self._tasks, self._landmines, self._loot = snapshot
                raise

    def counts(self) -> Dict[str, int]:
        return {"missiles": len(self._missiles), "landmines": len(self._landmines),
                "shields": len(self._shields), "loot": len(self._loot),
                "players": len(self._players), "damage_tasks": len(self._tasks)}
