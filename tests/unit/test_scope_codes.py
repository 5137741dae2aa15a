"""Unit tests for the scope set codec."""

import pytest

from permengine.domain.value_objects.scope_codes import (
    canonicalize,
    decode_scopes,
    encode_legacy,
    encode_list,
    grants_scope,
)


@pytest.mark.parametrize(
    "value",
    ["@read@write", "@read@ write @", "read@write", "@@read@@write@@"],
)
def test_decode_legacy_string(value: str) -> None:
    """Legacy strings decode to trimmed codes, blanks dropped."""
    assert decode_scopes(value) == frozenset({"read", "write"})


def test_decode_array() -> None:
    """Arrays decode the same way, duplicates collapse."""
    assert decode_scopes([" read", "write", "read ", ""]) == frozenset({"read", "write"})


@pytest.mark.parametrize("value", [None, "", "@", "@@@", []])
def test_decode_empty(value) -> None:
    """Missing or blank input is the empty set."""
    assert decode_scopes(value) == frozenset()


def test_decode_rejects_non_string_codes() -> None:
    """Array items must be strings."""
    with pytest.raises(TypeError):
        decode_scopes(["read", 7])


def test_encode_legacy_sorted() -> None:
    """Legacy form is sorted and prefixed with '@'."""
    assert encode_legacy({"write", "admin", "read"}) == "@admin@read@write"
    assert encode_legacy(set()) == ""


def test_encode_list_sorted() -> None:
    assert encode_list(frozenset({"write", "read"})) == ["read", "write"]


def test_legacy_form_decodes_back() -> None:
    """Legacy output of a set decodes to the same set."""
    scopes = frozenset({"export", "read", "write"})
    assert decode_scopes(encode_legacy(scopes)) == scopes


def test_grants_scope_with_wildcard() -> None:
    """The 'all' code satisfies any scope."""
    assert grants_scope({"read"}, "READ")
    assert not grants_scope({"read"}, "write")
    assert grants_scope({"all"}, "write")


def test_mixed_case_codes_survive_legacy_round_trip() -> None:
    """Case is kept, so any set of codes decodes back to itself."""
    scopes = frozenset({"Read", "Export", "write"})
    assert decode_scopes(encode_legacy(scopes)) == scopes
    assert decode_scopes(encode_list(scopes)) == scopes


def test_canonicalize_uses_registered_spelling() -> None:
    """Codes match the registry ignoring case and take its spelling."""
    known, unknown = canonicalize({"EXPORT", "read", "fly"}, {"read", "Export"})
    assert known == frozenset({"read", "Export"})
    assert unknown == frozenset({"fly"})
