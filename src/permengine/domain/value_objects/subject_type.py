"""Subject types that can hold grants."""

from enum import StrEnum


class SubjectType(StrEnum):
    """Kinds of grant holders."""

    USER = "User"
    GROUP = "Group"
    ORGANIZATION = "Organization"
    ROLE = "Role"
