from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

"""
Fabric endpoints (no key required):
- meta.fabricmc.net: JSON list of yarn builds, newest first.
- maven.fabricmc.net: yarn-<version>-v2.jar holding mappings/mappings.tiny.

Parsing is offline and tolerant; tests use small JSON fixtures.
"""

MAVEN_BASE = "https://maven.fabricmc.net/net/fabricmc/yarn/"


@dataclass(frozen=True)
class YarnBuild:
    game_version: str
    build: int
    separator: str = "+build."
    stable: Optional[bool] = None

    @property
    def yarn_version(self) -> str:
        return f"{self.game_version}{self.separator}{self.build}"

    def to_info(self) -> Dict[str, Any]:
        return {
            "gameVersion": self.game_version,
            "separator": self.separator,
            "build": self.build,
            "version": self.yarn_version,
            "stable": self.stable,
        }


def build_yarn_jar_url(b: YarnBuild, base: str = MAVEN_BASE) -> str:
    # Example: .../yarn/1.16.1+build.21/yarn-1.16.1+build.21-v2.jar
    v = b.yarn_version
    return f"{base}{v}/yarn-{v}-v2.jar"


def parse_yarn_build(item: Dict[str, Any]) -> Optional[YarnBuild]:
    try:
        return YarnBuild(
            game_version=str(item["gameVersion"]),
            build=int(item["build"]),
            separator=str(item.get("separator", "+build.")),
            stable=item.get("stable"),
        )
    except (KeyError, TypeError, ValueError):
        return None


def latest_builds(payload: List[Dict[str, Any]]) -> Dict[str, YarnBuild]:
    """Pick the newest build per game version from the meta payload.

    Meta lists newest first, but the highest build number wins regardless of
    position. Returned dict keeps first-seen game version order.
    """
    if not isinstance(payload, list):
        raise ValueError("yarn meta payload must be a list")
    out: Dict[str, YarnBuild] = {}
    for item in payload:
        b = parse_yarn_build(item) if isinstance(item, dict) else None
        if b is None:
            continue
        cur = out.get(b.game_version)
        if cur is None or b.build > cur.build:
            out[b.game_version] = b
    return out
