"""Domain value objects."""

from permengine.domain.value_objects.source_kind import SourceKind
from permengine.domain.value_objects.subject_type import SubjectType

__all__ = [
    "SourceKind",
    "SubjectType",
]
