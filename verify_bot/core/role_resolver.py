"""Map a verified clan tag and kingdom to Discord role ids."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Mapping, Optional

if TYPE_CHECKING:  # pragma: no cover
    from verify_bot.config import VerifyBotConfig


@dataclass(slots=True)
class RoleResolver:
    """Static lookup over the configured clan and kingdom role maps.

    Unknown clans or kingdoms simply contribute nothing.
    """

    clan_role_map: Mapping[str, int] = field(default_factory=dict)
    kingdom_role_map: Mapping[str, int] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: "VerifyBotConfig") -> "RoleResolver":
        return cls(
            clan_role_map={key.upper().strip(): value for key, value in config.clan_role_map.items()},
            kingdom_role_map=dict(config.kingdom_role_map),
        )

    def roles_for(self, clan_tag: Optional[str], kingdom: Optional[str]) -> List[int]:
        role_ids: List[int] = []

        clan_key = str(clan_tag or "").upper().strip()
        clan_role = self.clan_role_map.get(clan_key)
        if clan_role:
            role_ids.append(clan_role)

        kingdom_key = str(kingdom or "").strip().lstrip("#").strip()
        kingdom_role = self.kingdom_role_map.get(kingdom_key)
        if kingdom_role and kingdom_role not in role_ids:
            role_ids.append(kingdom_role)

        return role_ids


__all__ = ["RoleResolver"]
