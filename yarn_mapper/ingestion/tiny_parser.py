from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional
import logging

from yarn_mapper.mapping.store import MappingTable, VersionRegistry

logger = logging.getLogger(__name__)

TINY_FILENAME = "mappings.tiny"

CLASS = "c"
METHOD = "m"
FIELD = "f"


@dataclass(frozen=True)
class TinyRecord:
    kind: str  # c|m|f
    unmapped: str
    mapped: str
    descriptor: Optional[str] = None  # methods and fields only


def parse_line(line: str) -> Optional[TinyRecord]:
    """Parse one tiny v2 line; None for headers, params, comments and malformed lines.

    c<TAB>net/minecraft/class_1<TAB>net/minecraft/entity/MyEntity
    <TAB>m<TAB>(Lnet/minecraft/class_1;)V<TAB>method_1<TAB>myMethod
    <TAB>f<TAB>Lnet/minecraft/class_2941;<TAB>field_1<TAB>myField
    """
    parts = line.strip().split("\t")
    kind = parts[0]
    if kind == CLASS and len(parts) == 3:
        return TinyRecord(CLASS, parts[1].replace("/", "."), parts[2].replace("/", "."))
    if kind == METHOD and len(parts) == 4:
        return TinyRecord(METHOD, parts[2], parts[3], descriptor=parts[1])
    if kind == FIELD and len(parts) == 4:
        return TinyRecord(FIELD, parts[2], parts[3], descriptor=parts[1])
    return None


def parse_lines(lines: Iterable[str]) -> Iterator[TinyRecord]:
    for line in lines:
        rec = parse_line(line)
        if rec is not None:
            yield rec


def build_table(lines: Iterable[str]) -> MappingTable:
    table = MappingTable()
    for rec in parse_lines(lines):
        if rec.kind == CLASS:
            table.record_class(rec.unmapped, rec.mapped)
        elif rec.kind == METHOD:
            table.record_method(rec.unmapped, rec.mapped)
        else:
            table.record_field(rec.unmapped, rec.mapped)
    return table


def tiny_path(root: str | Path, version: str) -> Path:
    return Path(root) / version / TINY_FILENAME


def load_table(path: str | Path) -> MappingTable:
    with open(path, "r", encoding="utf-8") as f:
        return build_table(f)


def load_version(registry: VersionRegistry, root: str | Path, version: str) -> bool:
    """Build `version`'s table from disk and publish it whole. False if the file can't be read."""
    path = tiny_path(root, version)
    try:
        table = load_table(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read %s for %s (%s); delete the folder to re-download", path, version, e)
        return False
    registry.publish(version, table)
    logger.info("Loaded %s mappings: %s", version, table.size())
    return True


def load_all(registry: VersionRegistry, root: str | Path) -> List[str]:
    """Load every registered version; returns the versions that were published."""
    return [v for v in registry.list_versions() if load_version(registry, root, v)]
