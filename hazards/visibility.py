from typing import Callable
from .model import Player
from .ports import VisibilityResolver

SenderFilter = Callable[[str], bool]

async def sender_filter(player: Player, resolver: VisibilityResolver) -> SenderFilter:
    """Build a predicate telling whether hazards from a sender can reach player.

    Friends-only players are only exposed to mutual friends. Everyone else is
    exposed to any sender who is not friends-only, plus their mutual friends.
    """
    mutual = await resolver.mutual_friends(player.username)
    if player.friends_only:
        return lambda sender: sender in mutual
    restricted = await resolver.friends_only_users()
    return lambda sender: sender not in restricted or sender in mutual
