from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

PREVIEW_ROLE_COLOR = "#7289da"


@dataclass(frozen=True)
class UserInfo:
    username: str
    avatar: str | None = None


@dataclass(frozen=True)
class RoleInfo:
    name: str
    color: str | None = None


@dataclass(frozen=True)
class ChannelInfo:
    name: str
    type: str | None = None


# A resolver may return one of the dataclasses above, any mapping or object
# exposing the same field names, or None for "no match".
Resolver = Callable[[str], Any]


@dataclass(frozen=True)
class Resolvers:
    user: Resolver | None = None
    role: Resolver | None = None
    channel: Resolver | None = None

    @classmethod
    def coerce(cls, value: "Resolvers | Mapping[str, Any] | None") -> "Resolvers":
        if value is None:
            return cls()
        if isinstance(value, Resolvers):
            return value
        return cls(
            user=value.get("resolve_user") or value.get("user"),
            role=value.get("resolve_role") or value.get("role"),
            channel=value.get("resolve_channel") or value.get("channel"),
        )


@dataclass(frozen=True)
class ResolvedMention:
    name: str
    resolved: bool
    color: str | None = None


def _field(result: Any, name: str) -> Any:
    if result is None:
        return None
    if isinstance(result, Mapping):
        return result.get(name)
    return getattr(result, name, None)


def _lookup(resolver: Resolver | None, target_id: str) -> Any:
    if resolver is None:
        return None
    return resolver(target_id)


def resolve_user(resolvers: Resolvers, target_id: str) -> ResolvedMention:
    username = _field(_lookup(resolvers.user, target_id), "username")
    if username:
        return ResolvedMention(name=str(username), resolved=True)
    return ResolvedMention(name=f"User-{target_id}", resolved=False)


def resolve_role(resolvers: Resolvers, target_id: str) -> ResolvedMention:
    result = _lookup(resolvers.role, target_id)
    name = _field(result, "name")
    if name:
        color = _field(result, "color")
        return ResolvedMention(
            name=str(name), resolved=True, color=str(color) if color else None
        )
    return ResolvedMention(name=f"Role-{target_id}", resolved=False)


def resolve_channel(resolvers: Resolvers, target_id: str) -> ResolvedMention:
    name = _field(_lookup(resolvers.channel, target_id), "name")
    if name:
        return ResolvedMention(name=str(name), resolved=True)
    return ResolvedMention(name=f"Channel-{target_id}", resolved=False)


def preview_resolvers() -> Resolvers:
    """Placeholder resolvers for previewing content with no guild context."""
    return Resolvers(
        user=lambda target_id: UserInfo(username=f"User{target_id[-3:]}"),
        role=lambda target_id: RoleInfo(
            name=f"Role{target_id[-3:]}", color=PREVIEW_ROLE_COLOR
        ),
        channel=lambda target_id: ChannelInfo(
            name=f"channel-{target_id[-3:]}", type="text"
        ),
    )


def _entry_lookup(entries: Mapping[str, Any], factory, key: str) -> Resolver:
    def lookup(target_id: str):
        entry = entries.get(str(target_id))
        if entry is None:
            return None
        if isinstance(entry, str):
            return factory(entry)
        if isinstance(entry, Mapping):
            name = entry.get(key)
            if not name:
                return None
            extras = {k: v for k, v in entry.items() if k != key}
            return factory(name, **_known_fields(factory, extras))
        return None

    return lookup


def _known_fields(factory, extras: Mapping[str, Any]) -> dict[str, Any]:
    allowed = set(factory.__dataclass_fields__)
    return {k: v for k, v in extras.items() if k in allowed}


def resolvers_from_mapping(data: Mapping[str, Any] | None) -> Resolvers:
    """Build table-backed resolvers from ``{"users": {...}, "roles": {...}, "channels": {...}}``.

    Each table maps an id to either a bare name or a mapping of fields, e.g.::

        users:
          "999": Alice
        roles:
          "42": {name: Moderators, color: "#ff0000"}
    """
    data = data or {}

    def table(name: str) -> dict[str, Any]:
        raw = data.get(name) or {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"'{name}' must be a mapping of id to entry")
        return {str(k): v for k, v in raw.items()}

    return Resolvers(
        user=_entry_lookup(table("users"), UserInfo, "username"),
        role=_entry_lookup(table("roles"), RoleInfo, "name"),
        channel=_entry_lookup(table("channels"), ChannelInfo, "name"),
    )
