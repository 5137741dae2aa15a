"""Provenance kinds for effective permissions."""

from enum import StrEnum


class SourceKind(StrEnum):
    """Where an effective scope came from. Declaration order is the sort order."""

    DIRECT = "Direct"
    GROUP = "Group"
    ORGANIZATION = "Organization"

    @property
    def order(self) -> int:
        return list(SourceKind).index(self)
