from typing import Dict, Iterable, Optional, Set

class FriendGraph:
    """In-process visibility resolver built from each user's friend list."""

    def __init__(self, friends: Optional[Dict[str, Iterable[str]]] = None, friends_only: Iterable[str] = ()):
        self._friends: Dict[str, Set[str]] = {u: set(f) for u, f in (friends or {}).items()}
        self._friends_only: Set[str] = set(friends_only)

    def add_friend(self, username: str, friend: str) -> None:
        """One-directional; a friendship is mutual once both sides add each other."""
        self._friends.setdefault(username, set()).add(friend)

    def set_friends_only(self, username: str, enabled: bool) -> None:
        if enabled:
            self._friends_only.add(username)
        else:
            self._friends_only.discard(username)

    async def mutual_friends(self, username: str) -> Set[str]:
        return {f for f in self._friends.get(username, ()) if username in self._friends.get(f, ())}

    async def friends_only_users(self) -> Set[str]:
        return set(self._friends_only)
