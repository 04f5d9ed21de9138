"""
Client → server messages of the realtime protocol.

Clients send JSON objects such as::

    {"type": "subscribe:schedule"}
    {"type": "subscribe:device", "data": "<device id>"}
    {"type": "unsubscribe:settings"}

and receive an acknowledgement (or an ``error``) for each one.
"""
from typing import Any

from signage.realtime.hub import SCHEDULE_CHANNEL, SETTINGS_CHANNEL, BroadcastHub, RealtimeClient, device_channel


def _error(message: str) -> dict[str, Any]:
    return {"type": "error", "data": {"message": message}}


def resolve_channel(target: str, data: Any) -> str | None:
    if target == "schedule":
        return SCHEDULE_CHANNEL
    if target == "settings":
        return SETTINGS_CHANNEL
    if target == "device" and isinstance(data, str) and data:
        return device_channel(data)
    return None


def handle_client_message(hub: BroadcastHub, client: RealtimeClient, message: Any) -> dict[str, Any]:
    """Apply one client message to the hub and return the reply to send back."""
    if not isinstance(message, dict) or not isinstance(message.get("type"), str):
        return _error("message must be an object with a string 'type'")

    msg_type = message["type"]
    if msg_type == "ping":
        return {"type": "pong", "data": message.get("data")}

    action, _, target = msg_type.partition(":")
    if action not in ("subscribe", "unsubscribe"):
        return _error(f"unknown message type '{msg_type}'")

    channel = resolve_channel(target, message.get("data"))
    if channel is None:
        return _error(f"unknown channel in '{msg_type}'")

    if action == "subscribe":
        hub.subscribe(client, channel)
        return {"type": "subscribed", "data": {"channel": channel}}

    hub.unsubscribe(client, channel)
    return {"type": "unsubscribed", "data": {"channel": channel}}
