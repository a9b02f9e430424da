"""Authenticated caller passed into privileged kernel operations."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Principal:
    """
    Identity of the caller as resolved by the (external) auth layer.

    The kernel never looks at ids to decide privileges; it only checks
    ``roles`` for the role named in configuration.
    """

    principal_id: str
    roles: frozenset[str] = field(default_factory=frozenset)
    name: str | None = None

    def has_role(self, role: str) -> bool:
        return role in self.roles
