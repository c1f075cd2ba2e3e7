from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional
import io
import json
import logging
import os
import time
import zipfile

import requests
from requests.adapters import HTTPAdapter, Retry

from yarn_mapper.config.env import MappingsConfig
from yarn_mapper.ingestion.fabric_client import YarnBuild, build_yarn_jar_url, latest_builds
from yarn_mapper.ingestion.tiny_parser import TINY_FILENAME

logger = logging.getLogger(__name__)

INFO_FILENAME = "info.json"
JAR_TINY_ENTRY = "mappings/mappings.tiny"


@dataclass(frozen=True)
class SyncResult:
    version: str
    status: str  # current|downloaded|failed
    build: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != "failed"


def make_session() -> requests.Session:
    session = requests.Session()
    retries = Retry(total=3, backoff_factor=0.5, status_forcelist=[429, 500, 502, 503, 504], allowed_methods=["GET"])
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def fetch_latest_builds(session: requests.Session, cfg: MappingsConfig) -> Dict[str, YarnBuild]:
    r = session.get(cfg.meta_url, timeout=cfg.request_timeout_sec)
    r.raise_for_status()
    builds = latest_builds(r.json())
    return {v: b for v, b in builds.items() if cfg.wants(v)}


def read_cached_build(version_dir: Path) -> Optional[int]:
    """Build recorded in info.json, None if the version was never synced.

    Raises ValueError when the info file exists but is corrupt.
    """
    info = version_dir / INFO_FILENAME
    if not info.exists():
        return None
    try:
        return int(json.loads(info.read_text())["build"])
    except (KeyError, TypeError, json.JSONDecodeError) as e:
        raise ValueError(f"corrupt {info}: {e}") from e


def is_current(version_dir: Path, build: YarnBuild) -> bool:
    if not (version_dir / TINY_FILENAME).exists():
        return False
    return read_cached_build(version_dir) == build.build


def extract_tiny(jar_bytes: bytes) -> bytes:
    with zipfile.ZipFile(io.BytesIO(jar_bytes)) as zf:
        return zf.read(JAR_TINY_ENTRY)


def download_version(session: requests.Session, cfg: MappingsConfig, build: YarnBuild) -> None:
    version_dir = Path(cfg.mappings_dir) / build.game_version
    url = build_yarn_jar_url(build)
    logger.info("Downloading %s from %s", build.yarn_version, url)
    r = session.get(url, timeout=cfg.request_timeout_sec)
    r.raise_for_status()
    tiny = extract_tiny(r.content)

    version_dir.mkdir(parents=True, exist_ok=True)
    part = version_dir / (TINY_FILENAME + ".part")
    part.write_bytes(tiny)
    os.replace(part, version_dir / TINY_FILENAME)
    # info.json last: a failed download must not look current next cycle
    (version_dir / INFO_FILENAME).write_text(json.dumps(build.to_info(), indent=2))
    logger.info("Extracted %s to %s", JAR_TINY_ENTRY, version_dir)


def _failed(build: YarnBuild, e: Exception) -> SyncResult:
    logger.warning("Sync failed for %s: %s", build.game_version, e)
    return SyncResult(build.game_version, "failed", build=build.build, error=str(e))


def sync(
    cfg: MappingsConfig,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[SyncResult]:
    """Refresh on-disk mappings for every wanted version; downloads only stale ones.

    Returns one result per version. An empty list means meta could not be fetched.
    """
    session = session or make_session()
    try:
        builds = fetch_latest_builds(session, cfg)
    except (requests.RequestException, ValueError) as e:
        logger.warning("Could not fetch yarn versions from %s: %s", cfg.meta_url, e)
        return []

    results: List[SyncResult] = []
    attempts = 0
    for build in builds.values():
        version_dir = Path(cfg.mappings_dir) / build.game_version
        try:
            if is_current(version_dir, build):
                results.append(SyncResult(build.game_version, "current", build=build.build))
                continue
        except (ValueError, OSError) as e:
            results.append(_failed(build, e))
            continue

        # pace maven requests
        if attempts and cfg.download_delay_sec > 0:
            sleep(cfg.download_delay_sec)
        attempts += 1
        try:
            download_version(session, cfg, build)
        except (requests.RequestException, zipfile.BadZipFile, KeyError, OSError) as e:
            results.append(_failed(build, e))
            continue
        results.append(SyncResult(build.game_version, "downloaded", build=build.build))
    logger.info("Sync finished: %s", {r.version: r.status for r in results})
    return results
