import pytest

from portray.features.permissions.evaluator import (
    AccessRequest,
    has_all,
    has_any,
    has_any_access,
    has_exact_level,
    is_admin_override,
    levels_for,
    summarize,
)
from portray.features.permissions.grammar import Level


@pytest.mark.parametrize("grants", [[], None, ["garbage"], ["a:b:c:d", ""]])
def test_admin_flag_overrides_everything(grants):
    assert has_exact_level(grants, True, "anything", "at-all", "manage")
    assert has_any_access(grants, True, "anything")
    assert levels_for(grants, True, "anything").as_dict() == {"read": True, "write": True, "manage": True}


@pytest.mark.parametrize("role_name", ["SystemAdmin", "System Admin"])
def test_reserved_role_name_overrides(role_name):
    assert has_exact_level([], False, "ports", "terminals", "manage", role_name=role_name)
    assert is_admin_override(False, role_name)


def test_other_role_names_do_not_override():
    assert not is_admin_override(False, "PortAdmin")
    assert not is_admin_override(False, None)
    assert not has_exact_level([], False, "ports", role_name="systemadmin")


def test_section_grant_levels_are_literal():
    grants = ["ports:read,write"]
    assert has_exact_level(grants, False, "ports", level="write")
    assert not has_exact_level(grants, False, "ports", level="manage")


def test_subsection_grant():
    grants = ["ports:terminals:read,manage"]
    assert has_exact_level(grants, False, "ports", "terminals", "manage")
    assert not has_exact_level(grants, False, "ports", "terminals", "write")


def test_section_only_grant_does_not_cover_subsection():
    assert not has_exact_level(["ports:read"], False, "ports", "terminals", "read")


def test_subsection_grant_counts_for_section_request():
    # With no subsection requested the grant's subsection is not considered
    assert has_exact_level(["ports:terminals:read"], False, "ports", level="read")
    assert has_any_access(["ports:terminals:read"], False, "ports")
    assert levels_for(["ports:terminals:read"], False, "ports").read


def test_other_subsection_does_not_match():
    assert not has_exact_level(["ports:terminals:read"], False, "ports", "terminal-activation", "read")


def test_levels_for_is_independent_per_level():
    result = levels_for(["x:read", "x:manage"], False, "x")
    assert result.as_dict() == {"read": True, "write": False, "manage": True}


def test_levels_for_unions_grants():
    result = levels_for(["ports:terminals:read", "ports:terminals:write"], False, "ports", "terminals")
    assert result.as_dict() == {"read": True, "write": True, "manage": False}


def test_has_any_access_with_empty_levels():
    assert has_any_access(["x:"], False, "x")
    assert not has_exact_level(["x:"], False, "x", level="read")


def test_malformed_grants_never_match():
    grants = ["ports", "ports:terminals:read:extra", None, 7]
    assert not has_any_access(grants, False, "ports")
    assert not has_exact_level(grants, False, "ports", level="read")
    assert levels_for(grants, False, "ports").as_dict() == {"read": False, "write": False, "manage": False}


def test_unknown_level_never_matches():
    assert not has_exact_level(["ports:read,write,manage"], False, "ports", level="admin")


def test_no_grants():
    assert not has_exact_level([], False, "ports")
    assert not has_exact_level(None, False, "ports")
    assert not has_any_access(None, False, "ports")


def test_wildcard_matches_any_section():
    grants = ["*:read"]
    assert has_exact_level(grants, False, "customers", level="read")
    assert has_exact_level(grants, False, "ports", "terminals", "read")
    assert not has_exact_level(grants, False, "ports", level="write")


def test_wildcard_with_subsection_matches_that_subsection_only():
    grants = ["*:menus:read"]
    assert has_exact_level(grants, False, "configuration", "menus", "read")
    assert not has_exact_level(grants, False, "configuration", "users", "read")


def test_hierarchy_off_by_default():
    assert not has_exact_level(["ports:manage"], False, "ports", level="read")


def test_hierarchy_flag():
    grants = ["ports:manage"]
    assert has_exact_level(grants, False, "ports", level="read", infer_hierarchy=True)
    assert has_exact_level(grants, False, "ports", level="write", infer_hierarchy=True)
    assert not has_exact_level(["ports:write"], False, "ports", level="manage", infer_hierarchy=True)
    assert levels_for(["ports:write"], False, "ports", infer_hierarchy=True).as_dict() == {
        "read": True, "write": True, "manage": False,
    }


def test_evaluation_does_not_mutate_grants():
    grants = ["ports:read", "customers:write"]
    snapshot = list(grants)
    has_exact_level(grants, False, "ports")
    levels_for(grants, False, "customers")
    has_any_access(grants, False, "ports")
    assert grants == snapshot


def test_has_all_and_has_any():
    grants = ["customers:read", "customers:contracts:read,write"]
    checks = [
        AccessRequest("customers", None, Level.READ),
        AccessRequest("customers", "contracts", Level.WRITE),
    ]
    assert has_all(grants, False, checks)
    assert has_any(grants, False, checks)

    checks.append(AccessRequest("customers", None, Level.MANAGE))
    assert not has_all(grants, False, checks)
    assert has_any(grants, False, checks)
    assert not has_any(grants, False, [AccessRequest("ports")])
    assert has_all([], True, checks)


def test_summarize():
    summary = summarize(["ports:read,write", "ports:terminals:manage", "customers:read", "bad"])
    assert summary == {
        "total_permissions": 4,
        "read_count": 2,
        "write_count": 1,
        "manage_count": 1,
        "sections": ["ports", "customers", "bad"],
    }
