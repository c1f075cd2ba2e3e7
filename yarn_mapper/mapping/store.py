from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import re
import threading

# Shared with the short-class pass in engine.py; recording and lookup must agree.
SHORT_CLASS_RE = re.compile(r"class_[1-9]\d*")


def derive_short_class(unmapped: str, mapped: str) -> Optional[tuple[str, str]]:
    """Return (short intermediary, short mapped) for a class record, or None.

    `net.minecraft.class_1` / `net.minecraft.entity.MyEntity` -> (`class_1`, `MyEntity`).

    Inner classes (`$`) get no short entry: their first class_N is the outer
    class, which would be overwritten with `Outer$Inner`. The inner class_N is
    therefore only mapped as part of a full `net.minecraft.` name, never by
    the short pass.
    """
    if "$" in unmapped:
        return None
    m = SHORT_CLASS_RE.search(unmapped)
    if m is None:
        return None
    return m.group(0), mapped.split(".")[-1]


@dataclass
class MappingTable:
    full_classes: Dict[str, str] = field(default_factory=dict)
    short_classes: Dict[str, str] = field(default_factory=dict)
    methods: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, str] = field(default_factory=dict)

    def record_class(self, unmapped: str, mapped: str) -> None:
        # internal names (net/minecraft/class_1) are stored in source form
        unmapped = unmapped.replace("/", ".")
        mapped = mapped.replace("/", ".")
        self.full_classes[unmapped] = mapped
        short = derive_short_class(unmapped, mapped)
        if short is not None:
            self.short_classes[short[0]] = short[1]

    def record_method(self, unmapped: str, mapped: str) -> None:
        self.methods[unmapped] = mapped

    def record_field(self, unmapped: str, mapped: str) -> None:
        self.fields[unmapped] = mapped

    def size(self) -> Dict[str, int]:
        return {
            "full_classes": len(self.full_classes),
            "short_classes": len(self.short_classes),
            "methods": len(self.methods),
            "fields": len(self.fields),
        }


class VersionRegistry:
    """Version -> MappingTable. Tables are swapped whole, never edited by the sync pipeline."""

    def __init__(self):
        self._tables: Dict[str, MappingTable] = {}
        self._lock = threading.Lock()

    def register(self, version: str) -> MappingTable:
        table = MappingTable()
        with self._lock:
            self._tables[version] = table
        return table

    def publish(self, version: str, table: MappingTable) -> None:
        with self._lock:
            self._tables[version] = table

    def get(self, version: str) -> Optional[MappingTable]:
        with self._lock:
            return self._tables.get(version)

    def list_versions(self) -> List[str]:
        with self._lock:
            return list(self._tables.keys())

    def __contains__(self, version: str) -> bool:
        with self._lock:
            return version in self._tables

    def record_class(self, version: str, unmapped: str, mapped: str) -> None:
        with self._lock:
            t = self._tables.get(version)
            if t is None:
                return
            t.record_class(unmapped, mapped)

    def record_method(self, version: str, unmapped: str, mapped: str) -> None:
        with self._lock:
            t = self._tables.get(version)
            if t is None:
                return
            t.record_method(unmapped, mapped)

    def record_field(self, version: str, unmapped: str, mapped: str) -> None:
        with self._lock:
            t = self._tables.get(version)
            if t is None:
                return
            t.record_field(unmapped, mapped)
