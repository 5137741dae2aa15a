"""Domain exceptions."""


class PermEngineError(Exception):
    """Base exception for PermEngine."""

    pass


class NotFound(PermEngineError):
    """Referenced resource, scope, subject or grant does not exist."""

    def __init__(self, kind: str, ref: object = None) -> None:
        self.kind = kind
        self.ref = ref
        message = f"{kind} not found" if ref is None else f"{kind} not found: {ref}"
        super().__init__(message)


class InvalidScope(PermEngineError):
    """Requested scope codes are not in the scope registry."""

    def __init__(self, codes: set[str] | frozenset[str] | list[str]) -> None:
        self.codes = sorted(codes)
        super().__init__(f"Unknown scope codes: {', '.join(self.codes)}")


class ValidationError(PermEngineError):
    """Validation failed for input data."""

    pass


class ConcurrentMutationConflict(PermEngineError):
    """Another transaction changed the same grant key first. Safe to retry."""

    retryable = True


class MembershipResolutionFailure(PermEngineError):
    """Group/organization membership could not be resolved."""

    pass


class ResourceTreeError(PermEngineError):
    """Stored resource tree violates a structural invariant."""

    pass
