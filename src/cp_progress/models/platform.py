"""Platform names and lookup of a platform's progress record."""

from enum import StrEnum
from typing import Literal

from cp_progress.errors import InvalidPlatform
from cp_progress.models.records import PlatformProgress, Platforms

HistoryLog = Literal["contests", "submissions"]

PLATFORM_DATA_FIELD = "platformData"


class Platform(StrEnum):
    """Tracked judge platforms. Values are the persisted field keys."""

    LEETCODE = "leetcode"
    CODEFORCES = "codeforces"
    CODECHEF = "codechef"
    CPOJ = "cpoj"
    HACKEREARTH = "hackerearth"
    ATCODER = "atcoder"

    @classmethod
    def parse(cls, name: "str | Platform") -> "Platform":
        """Map a caller-supplied name onto a platform, case-insensitively.

        Raises:
            InvalidPlatform: If the name is not one of the tracked platforms.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise InvalidPlatform(str(name), [p.value for p in cls]) from None

    def field_path(self, log: HistoryLog | None = None) -> str:
        """Dotted document path of this platform's record or one of its logs."""
        path = f"{PLATFORM_DATA_FIELD}.{self.value}"
        if log is not None:
            path = f"{path}.{log}"
        return path


def resolve_platform(platforms: Platforms, platform: Platform) -> PlatformProgress:
    """Return the progress record bound to ``platform``."""
    match platform:
        case Platform.LEETCODE:
            return platforms.leetcode
        case Platform.CODEFORCES:
            return platforms.codeforces
        case Platform.CODECHEF:
            return platforms.codechef
        case Platform.CPOJ:
            return platforms.cpoj
        case Platform.HACKEREARTH:
            return platforms.hackerearth
        case Platform.ATCODER:
            return platforms.atcoder
    raise InvalidPlatform(str(platform), [p.value for p in Platform])
