"""Server version coercion."""

import re

from pydantic import BaseModel

# First semver-like run of digits, not glued to a preceding digit
_VERSION_PATTERN = re.compile(r"(?<!\d)(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?!\d)")


class ServerVersion(BaseModel):
    """Semantic version reported by a database server."""

    model_config = {"frozen": True}

    major: int
    minor: int = 0
    patch: int = 0

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __lt__(self, other: "ServerVersion") -> bool:
        return self.as_tuple() < other.as_tuple()

    def __le__(self, other: "ServerVersion") -> bool:
        return self.as_tuple() <= other.as_tuple()

    def __gt__(self, other: "ServerVersion") -> bool:
        return self.as_tuple() > other.as_tuple()

    def __ge__(self, other: "ServerVersion") -> bool:
        return self.as_tuple() >= other.as_tuple()

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def coerce_version(version: str | None) -> ServerVersion | None:
    """Extract the first semantic version from a free-form version string.

    Vendor banners are tolerated, missing minor/patch parts default to zero:

        "PostgreSQL 9.3.1 on x86_64-pc-linux-gnu" -> 9.3.1
        "PostgreSQL 14.2 (Debian 14.2-1.pgdg110+1)" -> 14.2.0
        "16" -> 16.0.0

    Args:
        version: Version string to coerce

    Returns:
        The coerced version, or None if no version-like substring exists
    """
    if not version:
        return None

    match = _VERSION_PATTERN.search(version)
    if not match:
        return None

    major, minor, patch = match.groups()
    return ServerVersion(major=int(major), minor=int(minor or 0), patch=int(patch or 0))
