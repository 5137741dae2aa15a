"""Scope set codec.

Scope sets travel either as a JSON array of codes or in the legacy string
form ``@code1@code2@code3``. Both decode to a ``frozenset`` of trimmed codes
with their case preserved; the legacy form is produced again only at the
edges. Codes are matched against the scope registry case-insensitively by
``canonicalize``, which rewrites them to the registered spelling.
"""

from collections.abc import Iterable

LEGACY_SEPARATOR = "@"

# Grants carrying this code satisfy a check for any scope.
ALL_SCOPES = "all"


def decode_scopes(value: str | Iterable[str] | None) -> frozenset[str]:
    """Decode an array of codes or a legacy ``@a@b`` string."""
    if value is None:
        return frozenset()
    if isinstance(value, str):
        parts: Iterable[str] = value.split(LEGACY_SEPARATOR)
    else:
        parts = value
    codes = set()
    for part in parts:
        if not isinstance(part, str):
            raise TypeError(f"Scope code must be a string, got {type(part).__name__}")
        code = part.strip()
        if code:
            if LEGACY_SEPARATOR in code:
                codes.update(decode_scopes(code))
            else:
                codes.add(code)
    return frozenset(codes)


def encode_list(scopes: Iterable[str]) -> list[str]:
    """Canonical array form - sorted codes."""
    return sorted(set(scopes))


def encode_legacy(scopes: Iterable[str]) -> str:
    """Legacy ``@a@b@c`` form, codes sorted. Empty set encodes to ''."""
    return "".join(f"{LEGACY_SEPARATOR}{code}" for code in encode_list(scopes))


def canonicalize(
    scopes: Iterable[str], registered: Iterable[str]
) -> tuple[frozenset[str], frozenset[str]]:
    """Map codes to their registered spelling, ignoring case.

    Returns ``(known, unknown)``; unknown codes keep the caller's spelling.
    """
    by_folded = {code.casefold(): code for code in registered}
    known = set()
    unknown = set()
    for code in scopes:
        match = by_folded.get(code.casefold())
        if match is None:
            unknown.add(code)
        else:
            known.add(match)
    return frozenset(known), frozenset(unknown)


def grants_scope(scopes: Iterable[str], scope: str) -> bool:
    """True when ``scopes`` contains ``scope`` or the ``all`` wildcard, ignoring case."""
    held = {code.casefold() for code in scopes}
    return scope.casefold() in held or ALL_SCOPES in held
