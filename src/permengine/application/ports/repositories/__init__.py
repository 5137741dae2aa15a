"""Repository ports."""

from permengine.application.ports.repositories.check_log_repository import (
    CheckLogRepository,
)
from permengine.application.ports.repositories.grant_repository import GrantRepository
from permengine.application.ports.repositories.resource_repository import (
    ResourceRepository,
)
from permengine.application.ports.repositories.scope_repository import ScopeRepository

__all__ = [
    "CheckLogRepository",
    "GrantRepository",
    "ResourceRepository",
    "ScopeRepository",
]
