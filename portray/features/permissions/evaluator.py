"""
Permission evaluation over a user's grant list.

Every function here is pure: the caller passes the role's grant strings, the
user's admin flag and role name, and the scope being requested. Nothing is
read from the request, the database or any cache.

Matching rules:
- A user flagged as system admin, or whose role name is a reserved admin role
  name, passes every check before any grant is looked at.
- A grant is a candidate for (section, subsection) when its section equals the
  requested one or is "*".
- When a subsection is requested the grant must name that same subsection; a
  section-only grant does not cover it unless it is a "*" grant.
- When no subsection is requested the grant's subsection is not considered, so
  "ports:terminals:read" counts towards a plain "ports" check.
- Levels are matched literally: "manage" does not imply "read" unless
  infer_hierarchy is set.
"""
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional, Sequence

from portray.core import config
from portray.features.permissions.grammar import Grant, Level, decode_all


class AccessRequest(NamedTuple):
    """One scope to check: section, optional subsection, required level."""
    section: str
    subsection: Optional[str] = None
    level: Level = Level.READ


@dataclass(frozen=True)
class LevelSet:
    read: bool = False
    write: bool = False
    manage: bool = False

    def as_dict(self) -> dict[str, bool]:
        return {"read": self.read, "write": self.write, "manage": self.manage}


FULL_ACCESS = LevelSet(read=True, write=True, manage=True)
NO_ACCESS = LevelSet()


def is_admin_override(is_system_admin: bool, role_name: Optional[str] = None) -> bool:
    """True when the flag is set or the role is one of the reserved admin roles."""
    if is_system_admin:
        return True
    return role_name is not None and role_name in config.SYSTEM_ADMIN_ROLE_NAMES


def _is_candidate(grant: Grant, section: str, subsection: Optional[str]) -> bool:
    if grant.malformed:
        return False
    if grant.section != section and not grant.is_wildcard:
        return False
    if subsection:
        if grant.subsection is None:
            return grant.is_wildcard
        return grant.subsection == subsection
    return True


def _candidates(grants: Optional[Iterable[str]], section: str, subsection: Optional[str]) -> list[Grant]:
    return [grant for grant in decode_all(grants) if _is_candidate(grant, section, subsection)]


def _held_levels(candidates: Iterable[Grant], infer_hierarchy: bool) -> set[Level]:
    held: set[Level] = set()
    for grant in candidates:
        for level in grant.levels:
            held |= level.implied() if infer_hierarchy else {level}
    return held


def has_exact_level(
    grants: Optional[Iterable[str]],
    is_system_admin: bool,
    section: str,
    subsection: Optional[str] = None,
    level: Level | str = Level.READ,
    role_name: Optional[str] = None,
    infer_hierarchy: bool = False,
) -> bool:
    """
    Check that some grant at this scope lists the requested level.

    An unknown level string never matches.
    """
    if is_admin_override(is_system_admin, role_name):
        return True
    try:
        wanted = Level(level)
    except ValueError:
        return False
    return wanted in _held_levels(_candidates(grants, section, subsection), infer_hierarchy)


def levels_for(
    grants: Optional[Iterable[str]],
    is_system_admin: bool,
    section: str,
    subsection: Optional[str] = None,
    role_name: Optional[str] = None,
    infer_hierarchy: bool = False,
) -> LevelSet:
    """
    Read/write/manage flags for a scope, each computed on its own over the
    union of every matching grant.
    """
    if is_admin_override(is_system_admin, role_name):
        return FULL_ACCESS
    held = _held_levels(_candidates(grants, section, subsection), infer_hierarchy)
    return LevelSet(
        read=Level.READ in held,
        write=Level.WRITE in held,
        manage=Level.MANAGE in held,
    )


def has_any_access(
    grants: Optional[Iterable[str]],
    is_system_admin: bool,
    section: str,
    subsection: Optional[str] = None,
    role_name: Optional[str] = None,
) -> bool:
    """True if any grant references this scope, whatever levels it carries."""
    if is_admin_override(is_system_admin, role_name):
        return True
    return bool(_candidates(grants, section, subsection))


def has_all(
    grants: Optional[Iterable[str]],
    is_system_admin: bool,
    checks: Sequence[AccessRequest],
    role_name: Optional[str] = None,
    infer_hierarchy: bool = False,
) -> bool:
    return all(
        has_exact_level(grants, is_system_admin, c.section, c.subsection, c.level, role_name, infer_hierarchy)
        for c in checks
    )


def has_any(
    grants: Optional[Iterable[str]],
    is_system_admin: bool,
    checks: Sequence[AccessRequest],
    role_name: Optional[str] = None,
    infer_hierarchy: bool = False,
) -> bool:
    return any(
        has_exact_level(grants, is_system_admin, c.section, c.subsection, c.level, role_name, infer_hierarchy)
        for c in checks
    )


def summarize(grants: Optional[Iterable[str]]) -> dict:
    """
    Count grants and levels per type, and list the sections referenced.

    Malformed grants are counted in the total but contribute no levels.
    """
    decoded = decode_all(grants)
    summary = {
        "total_permissions": len(decoded),
        "read_count": 0,
        "write_count": 0,
        "manage_count": 0,
        "sections": [],
    }
    for grant in decoded:
        if grant.section and grant.section not in summary["sections"]:
            summary["sections"].append(grant.section)
        for level in grant.levels:
            summary[f"{level.value}_count"] += 1
    return summary
