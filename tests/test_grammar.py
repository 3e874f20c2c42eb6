import pytest

from portray.features.permissions.grammar import (
    Grant,
    Level,
    WILDCARD,
    decode,
    decode_all,
    describe,
    encode,
    validate,
)


@pytest.mark.parametrize("raw", [
    "",
    ":",
    "::",
    ":::",
    "ports",
    "ports:",
    "a:b:c:d",
    "ports:terminals:",
    "ports:bogus",
    ",,,",
    None,
    42,
    ["ports:read"],
])
def test_decode_never_raises(raw):
    assert isinstance(decode(raw), Grant)


def test_decode_section_only():
    grant = decode("ports:read,write")
    assert grant == Grant(section="ports", levels=frozenset({Level.READ, Level.WRITE}))
    assert not grant.malformed


def test_decode_with_subsection():
    grant = decode("ports:terminals:read,manage")
    assert grant.section == "ports"
    assert grant.subsection == "terminals"
    assert grant.levels == {Level.READ, Level.MANAGE}


def test_decode_empty_levels_is_not_malformed():
    grant = decode("x:")
    assert grant.section == "x"
    assert grant.levels == frozenset()
    assert not grant.malformed


def test_decode_drops_unknown_levels_and_whitespace():
    assert decode("ports: read , admin,manage").levels == {Level.READ, Level.MANAGE}


@pytest.mark.parametrize("raw", ["ports", "a:b:c:d", ""])
def test_decode_wrong_segment_count_is_malformed(raw):
    grant = decode(raw)
    assert grant.malformed
    assert grant.levels == frozenset()


def test_decode_non_string_is_malformed():
    assert decode(None).malformed


def test_decode_is_idempotent():
    assert decode("customers:contracts:write") == decode("customers:contracts:write")


def test_decode_all_handles_missing_list():
    assert decode_all(None) == []
    assert decode_all("ports:read") == []
    assert [g.section for g in decode_all(["ports:read", "customers:write"])] == ["ports", "customers"]


def test_wildcard_grant():
    assert decode("*:read").is_wildcard
    assert decode("*:read").section == WILDCARD


def test_encode_orders_levels():
    assert encode("ports", "terminals", ["manage", "read"]) == "ports:terminals:read,manage"
    assert encode("ports", None, [Level.WRITE]) == "ports:write"


@pytest.mark.parametrize("section,subsection,levels", [
    ("ports", None, {Level.READ}),
    ("ports", "terminals", {Level.READ, Level.WRITE, Level.MANAGE}),
    ("users-access", "roles", {Level.MANAGE}),
    ("*", None, {Level.READ, Level.WRITE}),
])
def test_encode_decode_round_trip(section, subsection, levels):
    grant = decode(encode(section, subsection, levels))
    assert (grant.section, grant.subsection, grant.levels) == (section, subsection, levels)


def test_validate_accepts_well_formed():
    assert validate("customers:contracts:read,write").subsection == "contracts"


@pytest.mark.parametrize("raw", ["ports", "ports:reed", "a:b:c:read", ":read", "ports::read", "ports:read,"])
def test_validate_rejects_malformed(raw):
    with pytest.raises(ValueError):
        validate(raw)


def test_level_implied():
    assert Level.MANAGE.implied() == {Level.READ, Level.WRITE, Level.MANAGE}
    assert Level.READ.implied() == {Level.READ}


def test_describe():
    assert describe("ports", "terminals", Level.WRITE) == "ports:terminals:write"
    assert describe("audit-logs", None, "read") == "audit-logs:read"


def test_validate_accepts_empty_level_list():
    assert validate("customers:").levels == frozenset()
