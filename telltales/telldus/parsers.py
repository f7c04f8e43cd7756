"""
Telldus Live response parsers.

Telldus Live is loose about field names and value types (ids arrive as
strings or numbers, flags as "1"/"true"/1), so lookups try several keys
and normalize values to trimmed strings.
"""

import json
from typing import Any, Dict, Iterable, List, Optional

from .models import Category, Entry

TRUE_VALUES = {"1", "true"}
FALSE_VALUES = {"0", "false"}


def value_as_string(value: Any) -> Optional[str]:
    """Render a JSON value as a trimmed string (None for null)."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value)


def pick_string(data: Dict[str, Any], keys: Iterable[str]) -> Optional[str]:
    """First non-empty string value among the given keys."""
    if not isinstance(data, dict):
        return None
    for key in keys:
        if key in data:
            text = value_as_string(data[key])
            if text:
                return text
    return None


def array_from(payload: Any, keys: Iterable[str]) -> List[Dict[str, Any]]:
    """Extract the item list from a bare array or a keyed wrapper object."""
    items: Any = payload
    if isinstance(payload, dict):
        items = next(
            (payload[key] for key in keys if isinstance(payload.get(key), list)), []
        )
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def details_to_string(parts: List[str]) -> Optional[str]:
    """Join non-blank detail parts, or None when nothing remains."""
    kept = [part for part in parts if part and part.strip()]
    return ", ".join(kept) if kept else None


def parse_controllers(payload: Any) -> List[Entry]:
    """Parse /json/clients/list."""
    entries = []
    for client in array_from(payload, ("client", "clients")):
        details = []
        online = pick_string(client, ("online",))
        if online is not None:
            if online.lower() in TRUE_VALUES:
                details.append("online")
            elif online.lower() in FALSE_VALUES:
                details.append("offline")
        last_seen = pick_string(client, ("lastSeen", "lastseen"))
        if last_seen and last_seen != "0":
            details.append(f"lastSeen={last_seen}")
        firmware = pick_string(client, ("firmware", "firmwareVersion"))
        if firmware:
            details.append(f"fw={firmware}")

        entries.append(
            Entry(
                category=Category.CONTROLLER,
                id=pick_string(client, ("id", "clientId")) or "?",
                name=pick_string(client, ("name", "clientName")) or "(controller)",
                details=details_to_string(details),
            )
        )
    return entries


def parse_devices(payload: Any) -> List[Entry]:
    """Parse /json/devices/list."""
    entries = []
    for device in array_from(payload, ("device", "devices")):
        details = []
        model = pick_string(device, ("model", "deviceType", "type"))
        if model:
            details.append(model)
        state = pick_string(device, ("statevalue", "state", "stateValue"))
        if state:
            details.append(f"state={state}")
        client_name = pick_string(device, ("clientName",))
        if client_name:
            details.append(f"client={client_name}")

        entries.append(
            Entry(
                category=Category.DEVICE,
                id=pick_string(device, ("id", "deviceId")) or "?",
                name=pick_string(device, ("name",)) or "(unnamed device)",
                details=details_to_string(details),
            )
        )
    return entries


def parse_sensors(payload: Any) -> List[Entry]:
    """Parse /json/sensors/list (requested with includeValues and includeScale)."""
    entries = []
    for sensor in array_from(payload, ("sensor", "sensors")):
        details = []
        model = pick_string(sensor, ("model",))
        if model:
            details.append(model)
        protocol = pick_string(sensor, ("protocol",))
        if protocol:
            details.append(f"protocol={protocol}")

        samples = []
        readings = sensor.get("data")
        for reading in readings if isinstance(readings, list) else []:
            name = pick_string(reading, ("name",))
            if not name:
                continue
            sample = f"{name}={pick_string(reading, ('value',)) or ''}"
            scale = pick_string(reading, ("scale",))
            if scale:
                sample += f"@{scale}"
            samples.append(sample)
        if samples:
            details.append(", ".join(samples))

        entries.append(
            Entry(
                category=Category.SENSOR,
                id=pick_string(sensor, ("id", "sensorId")) or "?",
                name=pick_string(sensor, ("name",)) or "(unnamed sensor)",
                details=details_to_string(details),
            )
        )
    return entries


def parse_account_name(profile: Dict[str, Any]) -> Optional[str]:
    """
    Display name from a /json/user/profile response.

    Uses "firstname lastname" when either is set, otherwise the username.
    """
    user = profile.get("user") if isinstance(profile.get("user"), dict) else profile
    first = pick_string(user, ("firstname",)) or ""
    last = pick_string(user, ("lastname",)) or ""
    composed = f"{first} {last}".strip()
    if composed:
        return composed
    return pick_string(user, ("username", "email"))
