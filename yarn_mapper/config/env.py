from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Tuple

FABRIC_META_URL = "https://meta.fabricmc.net/v2/versions/yarn"


@dataclass(frozen=True)
class MappingsConfig:
    mappings_dir: str = "./mappings"
    meta_url: str = FABRIC_META_URL
    game_versions: Tuple[str, ...] = ("1.16.1",)  # "*" selects every version
    download_delay_sec: float = 10.0
    refresh_interval_sec: float = 60 * 60 * 24
    request_timeout_sec: float = 30.0

    def wants(self, game_version: str) -> bool:
        return "*" in self.game_versions or game_version in self.game_versions


def get_mappings_config() -> MappingsConfig:
    versions = os.getenv("MAPPER_GAME_VERSIONS", "1.16.1")
    return MappingsConfig(
        mappings_dir=os.getenv("MAPPINGS_DIR", "./mappings"),
        meta_url=os.getenv("FABRIC_META_URL", FABRIC_META_URL),
        game_versions=tuple(v.strip() for v in versions.split(",") if v.strip()),
        download_delay_sec=float(os.getenv("MAPPER_DOWNLOAD_DELAY_SEC", "10")),
        refresh_interval_sec=float(os.getenv("MAPPER_REFRESH_INTERVAL_SEC", str(60 * 60 * 24))),
        request_timeout_sec=float(os.getenv("MAPPER_REQUEST_TIMEOUT_SEC", "30")),
    )


@dataclass(frozen=True)
class ApiConfig:
    host: str = "0.0.0.0"
    port: int = 5501
    rate_limit_n: int = 1
    rate_limit_window_sec: float = 10.0
    trust_forwarded: bool = False  # only behind a proxy that sets X-Forwarded-For


def get_api_config() -> ApiConfig:
    return ApiConfig(
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5501")),
        rate_limit_n=int(os.getenv("RATE_LIMIT_N", "1")),
        rate_limit_window_sec=float(os.getenv("RATE_LIMIT_WINDOW_SEC", "10.0")),
        trust_forwarded=os.getenv("TRUST_FORWARDED_FOR", "").lower() in ("1", "true", "yes"),
    )
