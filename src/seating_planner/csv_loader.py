"""CSV loading utilities."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from .models import CANNOT, MUST, Guest, Table, parse_bool

ADJACENT = "adjacent"
RELATION_KINDS = (MUST, CANNOT, ADJACENT)

Source = Union[Path, str, IO[Any]]


@dataclass
class SeatingInput:
    """Everything one generation run consumes, as loaded from CSV."""

    guests: List[Guest] = field(default_factory=list)
    tables: List[Table] = field(default_factory=list)
    constraints: Dict[str, Dict[str, str]] = field(default_factory=dict)
    adjacency: Dict[str, List[str]] = field(default_factory=dict)
    restrictions: Dict[str, List[str]] = field(default_factory=dict)
    priority_ids: List[str] = field(default_factory=list)


def _cell(row: pd.Series, column: str, default: object = "") -> object:
    value = row.get(column, default)
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return default
    return value


def _id(value: object) -> str:
    """Normalize ids that pandas may have read as floats (``3.0``)."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def normalize_table_refs(raw: object, tables: Sequence[Table]) -> List[str]:
    """Resolve a free-form list of table references to table ids.

    Tokens may be separated by commas or pipes and may be table ids or
    table names (case-insensitive). Unknown tokens are kept as-is so that
    validation can report them; duplicates are dropped.
    """
    text = "" if raw is None else str(raw).strip()
    if not text or text.lower() == "nan":
        return []
    by_id = {t.id for t in tables}
    by_name = {t.name.strip().lower(): t.id for t in tables if t.name.strip()}
    out: List[str] = []
    for token in re.split(r"[,|]", text):
        token = token.strip()
        if not token:
            continue
        if token.endswith(".0") and token[:-2].isdigit():
            token = token[:-2]
        resolved = token if token in by_id else by_name.get(token.lower(), token)
        if resolved not in out:
            out.append(resolved)
    return out


def load_tables(path: Source) -> List[Table]:
    """Load table definitions."""
    df = pd.read_csv(path)
    tables: List[Table] = []
    for i, row in df.iterrows():
        name = str(_cell(row, "name", "")).strip()
        table_id = _id(_cell(row, "id", "")) or str(i + 1)
        tables.append(Table(id=table_id, capacity=int(row["capacity"]), name=name))
    return tables


def load_guests(path: Source, tables: Optional[Sequence[Table]] = None) -> Tuple[List[Guest], Dict[str, List[str]], List[str]]:
    """Load guests from ``guests.csv``.

    Returns the guests, their table restrictions and the ids flagged as
    priority guests.
    """
    df = pd.read_csv(path)
    guests: List[Guest] = []
    restrictions: Dict[str, List[str]] = {}
    priority: List[str] = []
    seen = set()
    for _, row in df.iterrows():
        gid = _id(row["id"])
        if gid in seen:
            raise ValueError(f"Duplicate guest id: {gid}")
        seen.add(gid)
        guest = Guest(id=gid, name=str(row["name"]).strip(), count=int(_cell(row, "count", 1)))
        guests.append(guest)
        refs = normalize_table_refs(_cell(row, "tables", ""), tables or [])
        if refs:
            restrictions[gid] = refs
        if parse_bool(_cell(row, "priority", "false")):
            priority.append(gid)
    return guests, restrictions, priority


def load_relationships(
    path: Source, guest_ids: Optional[set[str]] = None
) -> Tuple[Dict[str, Dict[str, str]], Dict[str, List[str]]]:
    """Load pairwise relations into a constraint map and an adjacency map.

    If ``guest_ids`` is provided it validates that both endpoints exist.
    """
    df = pd.read_csv(path)
    constraints: Dict[str, Dict[str, str]] = {}
    adjacency: Dict[str, List[str]] = {}
    for _, row in df.iterrows():
        a = _id(row["guest1_id"])
        b = _id(row["guest2_id"])
        if guest_ids is not None and (a not in guest_ids or b not in guest_ids):
            raise ValueError(f"Relationship references unknown guest: {a}, {b}")
        relation = str(_cell(row, "relation", "")).strip().lower()
        if relation not in RELATION_KINDS:
            raise ValueError(f"Unknown relation {relation!r} between {a} and {b}")
        if a == b:
            raise ValueError(f"Guest {a} cannot have a relation with themselves")
        if relation == ADJACENT:
            adjacency.setdefault(a, [])
            adjacency.setdefault(b, [])
            if b not in adjacency[a]:
                adjacency[a].append(b)
            if a not in adjacency[b]:
                adjacency[b].append(a)
        else:
            # Mirror without overwriting so a contradicting row stays visible.
            constraints.setdefault(a, {})[b] = relation
            constraints.setdefault(b, {}).setdefault(a, relation)
    return constraints, adjacency


def load_all(guests_path: Source, relationships_path: Source, tables_path: Source) -> SeatingInput:
    """Convenience wrapper returning one bundle for a generation run."""
    tables = load_tables(tables_path)
    guests, restrictions, priority = load_guests(guests_path, tables)
    constraints, adjacency = load_relationships(relationships_path, {g.id for g in guests})
    return SeatingInput(
        guests=guests,
        tables=tables,
        constraints=constraints,
        adjacency=adjacency,
        restrictions=restrictions,
        priority_ids=priority,
    )
