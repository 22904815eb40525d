"""Generic result model: connection descriptors, rows, fields and key-value pairs."""

from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import pandas as pd


@dataclass
class ConnectionDescriptor:
    """One configured backend connection.

    ``type`` holds the raw tag from configuration; whether it names a known
    backend is decided at dispatch time. ``handle`` is the backend's open
    connection object and is ``None`` exactly when disconnected.
    """

    alias: Optional[str]
    type: Optional[str]
    host: Optional[str] = None
    database: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    options: Dict[str, Any] = dataclass_field(default_factory=dict)
    handle: Any = dataclass_field(default=None, repr=False, compare=False)

    @property
    def is_connected(self) -> bool:
        return self.handle is not None

    def release(self) -> None:
        """Drop the handle and every string attribute of this descriptor."""
        self.handle = None
        self.alias = None
        self.type = None
        self.host = None
        self.database = None
        self.user = None
        self.password = None
        self.options = {}


class ConnectionList:
    """Ordered collection of connection descriptors.

    Alias uniqueness is the configuration loader's job; lookups return the
    first match.
    """

    def __init__(self, descriptors: Optional[Iterable[ConnectionDescriptor]] = None) -> None:
        self._descriptors: List[ConnectionDescriptor] = list(descriptors or [])

    def __iter__(self) -> Iterator[ConnectionDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __getitem__(self, index: int) -> ConnectionDescriptor:
        return self._descriptors[index]

    def append(self, descriptor: ConnectionDescriptor) -> None:
        self._descriptors.append(descriptor)

    def get(self, alias: str) -> Optional[ConnectionDescriptor]:
        """Return the first descriptor whose alias matches, or None."""
        for descriptor in self._descriptors:
            if descriptor.alias == alias:
                return descriptor
        return None

    def release(self) -> None:
        """Release every descriptor, then empty the collection."""
        for descriptor in self._descriptors:
            descriptor.release()
        self._descriptors.clear()


@dataclass
class Field:
    """A named value within a row. Values are always text."""

    name: str
    value: str


@dataclass
class Row:
    """An ordered sequence of fields as returned by a backend."""

    fields: List[Field] = dataclass_field(default_factory=list)

    def field(self, name: str) -> Optional[Field]:
        """Return the first field called ``name``, or None."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        f = self.field(name)
        return f.value if f is not None else default

    def add(self, name: str, value: Any) -> None:
        self.fields.append(Field(name, to_text(value)))

    def __len__(self) -> int:
        return len(self.fields)


@dataclass(frozen=True)
class KeyValue:
    """Name/value pair used as an insert payload or a fetch filter."""

    key: str
    value: str


def to_text(value: Any) -> str:
    """Render a backend-native value as text. NULL becomes an empty string."""
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def field(row: Row, name: str) -> Optional[Field]:
    """Look up a field by name in ``row``; first match wins."""
    return row.field(name)


def find_connection(connections: Iterable[ConnectionDescriptor], alias: str) -> Optional[ConnectionDescriptor]:
    """Return the first descriptor in ``connections`` with ``alias``, or None."""
    for descriptor in connections:
        if descriptor.alias == alias:
            return descriptor
    return None


def release_rows(rows: Optional[List[Row]]) -> None:
    """Release every field of every row, then the rows themselves."""
    if not rows:
        return
    for row in rows:
        row.fields.clear()
    rows.clear()


def release_connections(connections: Optional[ConnectionList]) -> None:
    """Release a whole connection collection. Empty or None is a no-op."""
    if connections is None:
        return
    connections.release()


def count_keyvals(pairs: Sequence[KeyValue]) -> Tuple[int, int]:
    """Count pairs, returning ``(total, unique)``.

    A key counts as unique when it differs from the key immediately before
    it, so ``[a, b, a]`` gives ``(3, 3)`` while ``[a, a, b]`` gives ``(3, 2)``.
    Callers group repeated keys adjacently (multi-valued LDAP attributes).
    """
    total = 0
    unique = 0
    last = None
    for pair in pairs:
        if total == 0 or pair.key != last:
            unique += 1
            last = pair.key
        total += 1
    return total, unique


def pairs_from_mapping(mapping: Dict[str, Any]) -> List[KeyValue]:
    """Build a payload from a mapping, keeping its iteration order."""
    return [KeyValue(key, to_text(value)) for key, value in mapping.items()]


def rows_to_dataframe(rows: Sequence[Row]) -> pd.DataFrame:
    """Convert rows to a DataFrame.

    Columns appear in order of first appearance; a field name repeated within
    a row keeps its first value, matching ``Row.field``.
    """
    columns: List[str] = []
    records: List[Dict[str, str]] = []
    for row in rows:
        record: Dict[str, str] = {}
        for f in row.fields:
            if f.name not in columns:
                columns.append(f.name)
            record.setdefault(f.name, f.value)
        records.append(record)
    return pd.DataFrame(records, columns=columns)
