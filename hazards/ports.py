"""Interfaces the simulation core expects from its collaborators."""
from typing import AsyncContextManager, List, Optional, Protocol, Set
from .geo import BoundingBox
from .model import (DamageKey, DamageTask, EntityKind, Landmine, Loot, Missile,
                    MissileStatus, Player, Shield, WeaponType)

class Transaction(Protocol):
    """All-or-nothing unit of work against the entity store."""

    def get_player(self, username: str) -> Optional[Player]: ...
    def save_player(self, player: Player) -> None: ...
    def shields(self, active_at: Optional[int] = None) -> List[Shield]: ...
    def get_damage_task(self, key: DamageKey) -> Optional[DamageTask]: ...
    def save_damage_task(self, task: DamageTask) -> None: ...
    def delete_damage_task(self, key: DamageKey) -> bool: ...
    def delete_landmine(self, landmine_id: int) -> bool: ...
    def delete_loot(self, loot_id: int) -> bool: ...

class EntityStore(Protocol):
    async def missiles(self, status: Optional[MissileStatus] = None, weapon_type: Optional[str] = None,
                       after_id: Optional[int] = None, limit: Optional[int] = None) -> List[Missile]: ...
    async def save_missile(self, missile: Missile) -> None: ...
    async def delete_missile(self, missile_id: int) -> bool: ...

    async def landmines(self, active_at: Optional[int] = None) -> List[Landmine]: ...
    async def shields(self, active_at: Optional[int] = None) -> List[Shield]: ...
    async def delete_shield(self, shield_id: int) -> bool: ...
    async def loot(self) -> List[Loot]: ...
    async def add_loot(self, loot: Loot) -> Loot: ...
    async def delete_expired(self, kind: EntityKind, now_ms: int) -> List[int]: ...

    async def players(self, alive: Optional[bool] = None, loc_active: Optional[bool] = None,
                      seen_since: Optional[int] = None) -> List[Player]: ...
    async def players_in_box(self, box: BoundingBox, alive: Optional[bool] = True,
                             loc_active: Optional[bool] = True) -> List[Player]: ...
    async def get_player(self, username: str) -> Optional[Player]: ...

    async def damage_tasks(self, due_at: Optional[int] = None) -> List[DamageTask]: ...

    def transaction(self) -> AsyncContextManager[Transaction]: ...

class NotificationSink(Protocol):
    async def notify(self, username: str, title: str, body: str, source: str) -> None: ...

class VisibilityResolver(Protocol):
    async def mutual_friends(self, username: str) -> Set[str]: ...
    async def friends_only_users(self) -> Set[str]: ...

class WeaponCatalog(Protocol):
    def weapon_type(self, name: str) -> Optional[WeaponType]: ...

class LootCollector(Protocol):
    async def collect(self, player: Player, loot: Loot, now_ms: int) -> bool: ...

class EntityCacheOwner(Protocol):
    """Component holding per-entity de-duplication state."""

    def forget_entity(self, kind: EntityKind, entity_id: int) -> None: ...
