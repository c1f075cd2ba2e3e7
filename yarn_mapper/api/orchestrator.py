from __future__ import annotations
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import logging
import threading
import time

import requests

from yarn_mapper.config.env import MappingsConfig, get_mappings_config
from yarn_mapper.ingestion.downloader import SyncResult, sync
from yarn_mapper.ingestion.tiny_parser import TINY_FILENAME, load_version
from yarn_mapper.mapping.store import VersionRegistry

logger = logging.getLogger(__name__)

_MAX_EVENTS = 200


class SyncPipeline:
    """Download -> register -> parse -> publish, once at start and then on a timer.

    The pipeline is the registry's only writer. Tables are built off to the side
    and published whole, so readers see either the old table or the new one.
    """

    def __init__(
        self,
        registry: VersionRegistry,
        cfg: Optional[MappingsConfig] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.registry = registry
        self.cfg = cfg or get_mappings_config()
        self.session = session
        self.sleep = sleep
        self.events: List[Dict[str, Any]] = []
        self.last_results: List[SyncResult] = []
        self._lock = threading.Lock()  # one cycle at a time
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _event(self, stage: str, message: str):
        self.events.append({"stage": stage, "message": message, "ts": time.time()})
        del self.events[:-_MAX_EVENTS]

    def load_cached(self) -> List[str]:
        """Publish wanted versions already on disk but not yet in the registry.

        Runs before every sync so a restart serves the last good mappings even
        when meta or maven is unreachable.
        """
        root = Path(self.cfg.mappings_dir)
        if not root.is_dir():
            return []
        loaded = []
        for vdir in sorted(p for p in root.iterdir() if p.is_dir()):
            version = vdir.name
            if not self.cfg.wants(version) or version in self.registry:
                continue
            if not (vdir / TINY_FILENAME).is_file():
                continue
            if load_version(self.registry, root, version):
                loaded.append(version)
        if loaded:
            self._event("Cache", f"Loaded cached {', '.join(loaded)}")
        return loaded

    def run_once(self) -> List[SyncResult]:
        with self._lock:
            self.load_cached()
            self._event("Sync", f"Checking {self.cfg.meta_url}")
            results = sync(self.cfg, session=self.session, sleep=self.sleep)
            if not results:
                self._event("Error", "No yarn versions fetched; keeping current tables")
                return results

            for r in results:
                if r.ok and r.version not in self.registry:
                    self.registry.register(r.version)
            self._event("Register", f"{len(self.registry.list_versions())} versions known")

            loaded = []
            for r in results:
                if not r.ok:
                    self._event("Error", f"{r.version}: {r.error}")
                    continue
                if load_version(self.registry, self.cfg.mappings_dir, r.version):
                    loaded.append(r.version)
                else:
                    self._event("Error", f"{r.version}: mappings file unreadable")
            self._event("Done", f"Loaded {', '.join(loaded) or 'nothing'}")
            self.last_results = results
            return results

    def _loop(self):  # pragma: no cover (timing; run_once is tested directly)
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Mapping sync cycle failed; retrying next cycle")
                self._event("Error", "sync cycle crashed")
            self._stop.wait(self.cfg.refresh_interval_sec)

    def start(self) -> threading.Thread:
        if self._thread is None or not self._thread.is_alive():
            self._stop.clear()
            self._thread = threading.Thread(target=self._loop, name="mapping-sync", daemon=True)
            self._thread.start()
        return self._thread

    def stop(self):
        self._stop.set()


REGISTRY = VersionRegistry()
