"""Output buffer consumed by the downstream pipeline."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

import pandas as pd

FIELD_PREFIX = "Column"


def field_name_for_column(column: str) -> str:
    """Return the output field name for a column letter, e.g. ``ColumnA``."""
    return f"{FIELD_PREFIX}{column}"


@dataclass
class OutputRecord:
    """One output row with a fixed set of named string fields.

    Every field starts as an empty string; assignments are limited to the
    schema's field names and to ``str`` values.
    """

    field_names: tuple[str, ...]
    values: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in self.field_names:
            self.values.setdefault(name, "")

    def set(self, name: str, value: str) -> None:
        """Assign ``value`` to the field ``name``.

        Raises:
            KeyError: If ``name`` is not part of the schema.
            TypeError: If ``value`` is not a string.
        """
        if name not in self.values:
            raise KeyError(f"Unknown output field: {name}")
        if not isinstance(value, str):
            raise TypeError(
                f"Output field {name} requires str, got {type(value).__name__}"
            )
        self.values[name] = value

    def __getitem__(self, name: str) -> str:
        return self.values[name]

    def __setitem__(self, name: str, value: str) -> None:
        self.set(name, value)

    def to_dict(self) -> dict[str, str]:
        return {name: self.values[name] for name in self.field_names}


class OutputBuffer:
    """Row-oriented sink with a fixed schema of named string fields.

    Usage::

        buffer = OutputBuffer.for_columns(["A", "B", "C"])
        record = buffer.add_row()
        record["ColumnA"] = "Ann"
    """

    def __init__(self, field_names: Sequence[str]) -> None:
        names = tuple(field_names)
        if not names:
            raise ValueError("Output buffer needs at least one field")
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate output field names: {list(names)}")
        self._field_names = names
        self._records: list[OutputRecord] = []

    @classmethod
    def for_columns(cls, columns: Sequence[str]) -> OutputBuffer:
        """Build a buffer whose fields are ``Column<letter>`` for each column."""
        return cls([field_name_for_column(column) for column in columns])

    @property
    def field_names(self) -> tuple[str, ...]:
        return self._field_names

    @property
    def records(self) -> list[OutputRecord]:
        return list(self._records)

    def add_row(self) -> OutputRecord:
        """Append a new record with every field empty and return it."""
        record = OutputRecord(field_names=self._field_names)
        self._records.append(record)
        return record

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[OutputRecord]:
        return iter(self._records)

    def to_dicts(self) -> list[dict[str, str]]:
        return [record.to_dict() for record in self._records]

    def to_dataframe(self) -> pd.DataFrame:
        """Return the records as a pandas DataFrame with one column per field."""
        return pd.DataFrame(self.to_dicts(), columns=list(self._field_names))
