"""
In-process publish/subscribe hub for realtime display clients.

Clients (WebSocket connections, or anything with an async ``send_json``)
join named channels; REST handlers publish to a channel after a successful
write. Delivery is fire-and-forget: no acknowledgements, no replay for
clients that subscribe later, and a client whose send fails is dropped.
"""
import asyncio
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)

SCHEDULE_CHANNEL = "schedule-updates"
SETTINGS_CHANNEL = "settings-updates"
DEVICE_CHANNEL_PREFIX = "device:"

SCHEDULE_UPDATED = "schedule:updated"
SETTINGS_UPDATED = "settings:updated"
DEVICE_UPDATED = "device:updated"
DEVICE_COMMAND = "device:command"


def device_channel(device_id: str) -> str:
    return f"{DEVICE_CHANNEL_PREFIX}{device_id}"


def event_for_channel(channel: str) -> str:
    if channel == SCHEDULE_CHANNEL:
        return SCHEDULE_UPDATED
    if channel == SETTINGS_CHANNEL:
        return SETTINGS_UPDATED
    if channel.startswith(DEVICE_CHANNEL_PREFIX):
        return DEVICE_COMMAND
    raise ValueError(f"Unknown channel '{channel}'")


class RealtimeClient(Protocol):
    async def send_json(self, data: Any) -> None: ...


class BroadcastHub:
    """Channel membership registry plus fan-out.

    Publishes to one channel are serialized so every member sees them in
    call order. Nothing is promised across channels.
    """

    def __init__(self) -> None:
        self.clients: set[RealtimeClient] = set()
        self.channels: dict[str, set[RealtimeClient]] = {}
        # Locks live only while a publish on the channel is running or waiting
        self._channel_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._all_clients_lock = asyncio.Lock()

    def connect(self, client: RealtimeClient) -> None:
        self.clients.add(client)
        logger.info("Realtime client connected (total: %d)", len(self.clients))

    def disconnect(self, client: RealtimeClient) -> None:
        self.clients.discard(client)
        for channel in list(self.channels):
            self._leave(client, channel)
        logger.info("Realtime client disconnected (total: %d)", len(self.clients))

    def subscribe(self, client: RealtimeClient, channel: str) -> None:
        self.clients.add(client)
        self.channels.setdefault(channel, set()).add(client)
        logger.debug("Client subscribed to %s", channel)

    def unsubscribe(self, client: RealtimeClient, channel: str) -> None:
        self._leave(client, channel)
        logger.debug("Client unsubscribed from %s", channel)

    def subscriptions(self, client: RealtimeClient) -> set[str]:
        return {channel for channel, members in self.channels.items() if client in members}

    def _leave(self, client: RealtimeClient, channel: str) -> None:
        members = self.channels.get(channel)
        if members is None:
            return
        members.discard(client)
        if not members:
            del self.channels[channel]

    def _acquire_lock_slot(self, channel: str) -> asyncio.Lock:
        lock = self._channel_locks.get(channel)
        if lock is None:
            lock = self._channel_locks[channel] = asyncio.Lock()
        self._lock_users[channel] = self._lock_users.get(channel, 0) + 1
        return lock

    def _release_lock_slot(self, channel: str) -> None:
        users = self._lock_users[channel] - 1
        if users:
            self._lock_users[channel] = users
        else:
            del self._lock_users[channel]
            del self._channel_locks[channel]

    async def publish(self, channel: str, payload: Any, event: str | None = None) -> int:
        """Send ``payload`` to the current members of ``channel``. Returns delivered count."""
        message = {"type": event or event_for_channel(channel), "data": payload}
        lock = self._acquire_lock_slot(channel)
        try:
            async with lock:
                members = list(self.channels.get(channel, ()))
                delivered = await self._deliver(members, message)
        finally:
            self._release_lock_slot(channel)
        logger.info("Broadcasted %s to %d/%d clients on %s", message["type"], delivered, len(members), channel)
        return delivered

    async def publish_device_update(self, payload: Any) -> int:
        """Send a device roster change to every connected client, subscribed or not."""
        message = {"type": DEVICE_UPDATED, "data": payload}
        async with self._all_clients_lock:
            clients = list(self.clients)
            delivered = await self._deliver(clients, message)
        logger.info("Broadcasted %s to %d/%d clients", DEVICE_UPDATED, delivered, len(clients))
        return delivered

    async def broadcast_schedule_update(self, schedule: Any) -> int:
        return await self.publish(SCHEDULE_CHANNEL, schedule)

    async def broadcast_settings_update(self, settings: Any) -> int:
        return await self.publish(SETTINGS_CHANNEL, settings)

    async def broadcast_device_command(self, device_id: str, command: Any) -> int:
        return await self.publish(device_channel(device_id), command)

    async def _deliver(self, clients: list[RealtimeClient], message: dict) -> int:
        delivered = 0
        dead = []
        for client in clients:
            try:
                await client.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning("Failed to send %s to realtime client: %s", message["type"], e)
                dead.append(client)

        # Clean up dead connections
        for client in dead:
            self.disconnect(client)
        return delivered
