"""
Impostor - Membership Index
===========================

In-memory map of voice channel -> members currently in it.

The index is fed only by live voice-state events, so it starts empty on
every process start and knows nothing about channels it has not seen
since. It is never persisted.
"""

from typing import Dict, List


class MembershipIndex:
    """Tracks which members sit in which voice channel."""

    def __init__(self) -> None:
        self._channels: Dict[int, Dict[int, None]] = {}  # channel_id -> ordered set of member_ids

    def on_join(self, member_id: int, channel_id: int) -> None:
        """Record a member entering a channel. Joining twice is a no-op."""
        self._channels.setdefault(channel_id, {})[member_id] = None

    def on_leave(self, member_id: int, channel_id: int) -> None:
        """Record a member leaving a channel. Unknown members are ignored."""
        members = self._channels.get(channel_id)
        if members is None:
            return
        members.pop(member_id, None)
        if not members:
            del self._channels[channel_id]

    def on_move(self, member_id: int, from_channel_id: int, to_channel_id: int) -> None:
        """Leave then join, so the member is never counted in both channels."""
        self.on_leave(member_id, from_channel_id)
        self.on_join(member_id, to_channel_id)

    def members_of(self, channel_id: int) -> List[int]:
        """Members currently in a channel, empty if the channel is unknown."""
        return list(self._channels.get(channel_id, ()))

    def is_empty(self, channel_id: int) -> bool:
        return not self._channels.get(channel_id)

    def forget_channel(self, channel_id: int) -> None:
        """Drop a deleted channel from the index."""
        self._channels.pop(channel_id, None)

    def clear(self) -> None:
        self._channels.clear()

    def __len__(self) -> int:
        return len(self._channels)
