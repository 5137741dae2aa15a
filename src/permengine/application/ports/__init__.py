"""Application ports - interfaces for external adapters."""

from permengine.application.ports.membership_resolver import SubjectMembershipResolver
from permengine.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "SubjectMembershipResolver",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
