import logging
from dataclasses import dataclass
from typing import Dict, List, Optional
from .geo import destination_point, haversine_km
from .model import Event, Loot, Player, Rarity
from .ports import EntityStore, NotificationSink
from .rng import DRNG

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class LootItem:
    name: str
    category: str

    @property
    def is_coins(self) -> bool:
        return self.category == "Currency" and self.name == "Coins"

GOOD_LOOT = [
    LootItem("ClusterBomb", "Missiles"),
    LootItem("CorporateRaider", "Missiles"),
    LootItem("GutShot", "Missiles"),
    LootItem("Yokozuna", "Missiles"),
    LootItem("Zippy", "Missiles"),
    LootItem("BunkerBlocker", "Landmines"),
    LootItem("Buzzard", "Missiles"),
]

NOT_SO_GOOD_LOOT = [
    LootItem("Bombabom", "Landmines"),
    LootItem("BigBertha", "Landmines"),
    LootItem("Ballista", "Missiles"),
    LootItem("Amplifier", "Missiles"),
    LootItem("LootDrop", "Loot Drops"),
    LootItem("Coins", "Currency"),
]

# Percent chances per rarity
GOOD_CHANCE: Dict[Rarity, float] = {Rarity.COMMON: 20, Rarity.UNCOMMON: 30, Rarity.RARE: 50}
NOTHING_CHANCE: Dict[Rarity, float] = {Rarity.COMMON: 10, Rarity.UNCOMMON: 5, Rarity.RARE: 2}

COINS_ITEM_VALUE = 1000
PICKUP_COINS = 200
PICKUP_RANK_POINTS = 50
PICKUP_HEALTH = 40
MAX_HEALTH = 100

SPAWN_PLAYER_WINDOW_MS = 48 * 60 * 60 * 1000
SPAWN_SPACING_KM = 0.5
SPAWN_SCATTER_M = 100.0
LOOT_LIFETIME_MS = 24 * 60 * 60 * 1000

def roll_loot(rarity: Rarity, rng: DRNG) -> Optional[LootItem]:
    """Roll the contents of one loot drop; None means it was empty."""
    chance = rng.uniform(0, 100)
    if chance < NOTHING_CHANCE[rarity]:
        return None
    if chance < NOTHING_CHANCE[rarity] + GOOD_CHANCE[rarity]:
        return rng.choice(GOOD_LOOT)
    return rng.choice(NOT_SO_GOOD_LOOT)

class StoreLootCollector:
    """Credits a player for picking up loot, at most once per loot item."""

    def __init__(self, store: EntityStore, notifier: NotificationSink, rng: Optional[DRNG] = None):
        self.store = store
        self.notifier = notifier
        self.rng = rng or DRNG()

    async def collect(self, player: Player, loot: Loot, now_ms: int) -> bool:
        async with self.store.transaction() as tx:
            # Whoever deletes the loot owns the reward
            if not tx.delete_loot(loot.id):
                return False
            current = tx.get_player(player.username)
            if current is None:
                return True
            item = roll_loot(loot.rarity, self.rng)
            coins = rank = health_gain = 0
            if item is not None:
                coins = PICKUP_COINS + (COINS_ITEM_VALUE if item.is_coins else 0)
                rank = PICKUP_RANK_POINTS
                health_gain = max(0, min(current.health + PICKUP_HEALTH, MAX_HEALTH) - current.health)
                if not item.is_coins:
                    slot = (item.category, item.name)
                    current.inventory[slot] = current.inventory.get(slot, 0) + 1
                current.money += coins
                current.rank_points += rank
                current.health += health_gain
                tx.save_player(current)

        if item is None:
            await self.notifier.notify(player.username, "Loot Collected!",
                                       "The loot drop you opened was empty.", "Server")
            return True
        what = f"{COINS_ITEM_VALUE} coins" if item.is_coins else f"{item.name} ({item.category})"
        health_msg = f"and {health_gain} health" if health_gain > 0 else "(health already at maximum)"
        await self.notifier.notify(
            player.username, "Loot Collected!",
            f"You've collected: {what}. You gained {rank} rank points, {coins} coins, {health_msg}!",
            "Server")
        logger.info("Loot %s collected by %s: %s", loot.id, player.username, what)
        return True

class LootSpawner:
    """Drops fresh loot near a randomly chosen recently active player."""

    def __init__(self, store: EntityStore, rng: Optional[DRNG] = None):
        self.store = store
        self.rng = rng or DRNG()

    async def spawn(self, now_ms: int) -> List[Event]:
        players = [p for p in await self.store.players(seen_since=now_ms - SPAWN_PLAYER_WINDOW_MS)
                   if p.coords is not None]
        if not players:
            logger.info("No active user locations available to place loot.")
            return []

        base = self.rng.choice(players).coords
        if any(haversine_km(base, item.coords) < SPAWN_SPACING_KM for item in await self.store.loot()):
            logger.info("Loot not added, as there is already loot nearby.")
            return []

        coords = destination_point(base, self.rng.uniform(0, SPAWN_SCATTER_M), self.rng.uniform(0, 360))
        rarity = self.rng.choice(list(Rarity))
        loot = await self.store.add_loot(Loot(id=0, coords=(round(coords[0], 6), round(coords[1], 6)),
                                              rarity=rarity, expires_ms=now_ms + LOOT_LIFETIME_MS))
        logger.info("Loot %s added (%s).", loot.id, rarity.value)
        return [Event("LootSpawned", now_ms, {"loot_id": loot.id, "rarity": rarity.value,
                                              "at": list(loot.coords)})]
