"""
Permission grant grammar.

A grant is stored on a role as a flat string:

    section:levels                 e.g. "ports:read,write"
    section:subsection:levels      e.g. "users-access:users:read,write,manage"

`section` may be the wildcard "*". `levels` is a comma-separated subset of
read, write and manage.

`decode` is tolerant and never raises: anything it cannot parse comes back as a
malformed Grant that matches no request. `validate` is the strict variant used
when role data is written through the API.
"""
import enum
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional


WILDCARD = "*"


class Level(str, enum.Enum):
    """Access level conferred by a grant. Ordered read < write < manage."""
    READ = "read"
    WRITE = "write"
    MANAGE = "manage"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def implied(self) -> frozenset["Level"]:
        """This level and every level below it."""
        return frozenset(level for level in Level if level.rank <= self.rank)


_RANK = {Level.READ: 0, Level.WRITE: 1, Level.MANAGE: 2}


@dataclass(frozen=True)
class Grant:
    """Structured form of a grant string."""
    section: str
    subsection: Optional[str] = None
    levels: frozenset[Level] = field(default_factory=frozenset)
    malformed: bool = False

    @property
    def is_wildcard(self) -> bool:
        return self.section == WILDCARD


def _parse_levels(raw: str) -> frozenset[Level]:
    levels = set()
    for token in raw.split(","):
        token = token.strip()
        try:
            levels.add(Level(token))
        except ValueError:
            continue
    return frozenset(levels)


def decode(grant: Any) -> Grant:
    """
    Decode a grant string. Never raises.

    Two segments are section:levels, three are section:subsection:levels.
    Any other shape yields a malformed grant with no levels.
    """
    if not isinstance(grant, str):
        return Grant(section="", malformed=True)

    parts = grant.split(":")
    if len(parts) == 2:
        return Grant(section=parts[0], levels=_parse_levels(parts[1]))
    if len(parts) == 3:
        return Grant(section=parts[0], subsection=parts[1], levels=_parse_levels(parts[2]))
    return Grant(section=parts[0], malformed=True)


def decode_all(grants: Optional[Iterable[Any]]) -> list[Grant]:
    """Decode a role's grant list; a missing list decodes to nothing."""
    if not grants or isinstance(grants, str):
        return []
    return [decode(grant) for grant in grants]


def encode(section: str, subsection: Optional[str], levels: Iterable[Level | str]) -> str:
    """
    Build a grant string. Levels are written in canonical order.

    >>> encode("ports", "terminals", ["manage", "read"])
    'ports:terminals:read,manage'
    """
    wanted = {Level(level) for level in levels}
    level_part = ",".join(level.value for level in Level if level in wanted)
    if subsection:
        return f"{section}:{subsection}:{level_part}"
    return f"{section}:{level_part}"


def validate(grant: str) -> Grant:
    """
    Strictly parse a grant string.

    Raises:
        ValueError: wrong number of segments, empty names or unknown levels
    """
    parts = grant.split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid permission '{grant}': expected section[:subsection]:levels")
    if any(not part.strip() for part in parts[:-1]):
        raise ValueError(f"Invalid permission '{grant}': section and subsection must not be empty")

    if not parts[-1].strip():
        # A bare reference with no levels, e.g. "customers:"
        return decode(grant)
    tokens = [token.strip() for token in parts[-1].split(",")]
    unknown = [token for token in tokens if token not in {level.value for level in Level}]
    if unknown:
        raise ValueError(
            f"Invalid permission '{grant}': unknown level(s) {', '.join(repr(t) for t in unknown)}"
        )
    return decode(grant)


def describe(section: str, subsection: Optional[str], level: Level | str) -> str:
    """Human readable scope used in denial messages, e.g. 'ports:terminals:write'."""
    level_value = level.value if isinstance(level, Level) else level
    if subsection:
        return f"{section}:{subsection}:{level_value}"
    return f"{section}:{level_value}"
