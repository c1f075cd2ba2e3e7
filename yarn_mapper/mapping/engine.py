from __future__ import annotations
from typing import Callable, Dict, Optional, Tuple
import re

from yarn_mapper.mapping.store import SHORT_CLASS_RE, MappingTable, VersionRegistry

FULL_CLASS_RE = re.compile(r"net\.minecraft\.class_[1-9]\d*(?:\$class_[1-9]\d*)*")
METHOD_RE = re.compile(r"method_[1-9]\d*")
FIELD_RE = re.compile(r"field_[1-9]\d*")

Lookup = Callable[[Dict[str, str], str], str]


def exact(table: Dict[str, str], token: str) -> str:
    return table.get(token, token)


def outer_class(table: Dict[str, str], token: str) -> str:
    # net.minecraft.class_1$class_2 without its own entry keeps the mapped outer class
    if token in table:
        return table[token]
    outer, sep, inner = token.partition("$")
    if sep and outer in table:
        return table[outer] + sep + inner
    return token


# Order matters: full classes must be rewritten before the short-class pass
# can see the class_N embedded in them.
PASSES: Tuple[Tuple[re.Pattern[str], str, Lookup], ...] = (
    (FULL_CLASS_RE, "full_classes", outer_class),
    (METHOD_RE, "methods", exact),
    (SHORT_CLASS_RE, "short_classes", exact),
    (FIELD_RE, "fields", exact),
)


def substitute(text: str, pattern: re.Pattern[str], table: Dict[str, str], lookup: Lookup = exact) -> str:
    """Replace every match of `pattern` found in `table`; leave the rest verbatim.

    The replacement is returned from a callback so mapped names are never
    parsed as backreferences.
    """
    if not table:
        return text
    return pattern.sub(lambda m: lookup(table, m.group(0)), text)


def apply_table(text: str, table: MappingTable) -> str:
    for pattern, attr, lookup in PASSES:
        text = substitute(text, pattern, getattr(table, attr), lookup)
    return text


def map_text(registry: VersionRegistry, version: str, text: str) -> Optional[str]:
    """Map `text` with `version`'s table. None when the version is not registered."""
    table = registry.get(version)
    if table is None:
        return None
    return apply_table(text, table)
