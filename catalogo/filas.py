from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class FilaClaves:
    """Row read as a JSON object: arbitrary column names to values."""

    valores: Mapping[str, Any]
    _folded: dict[str, list[Any]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        folded: dict[str, list[Any]] = {}
        for k in self.valores.keys():
            # Keys that only differ by case are kept in row order.
            folded.setdefault(str(k).strip().casefold(), []).append(k)
        object.__setattr__(self, "_folded", folded)

    def get(self, alias: str) -> Any:
        if alias in self.valores and self.valores[alias] is not None:
            return self.valores[alias]
        for key in self._folded.get(alias.strip().casefold(), ()):
            value = self.valores[key]
            if value is not None:
                return value
        return None


@dataclass(frozen=True)
class FilaPosicional:
    """Row read as an array; numeric aliases are zero-based column indices."""

    valores: Sequence[Any]

    def get(self, alias: str) -> Any:
        a = alias.strip()
        if not a.isdigit():
            return None
        i = int(a)
        if i >= len(self.valores):
            return None
        return self.valores[i]


Fila = Union[FilaClaves, FilaPosicional]


def como_fila(raw: Any) -> Fila | None:
    if isinstance(raw, (FilaClaves, FilaPosicional)):
        return raw
    if isinstance(raw, Mapping):
        return FilaClaves(raw)
    if isinstance(raw, (list, tuple)):
        return FilaPosicional(raw)
    return None


def resolver_valor(fila: Any, alias: Sequence[str]) -> Any:
    """Return the first non-None value among ``alias`` (in order), or None."""
    row = como_fila(fila)
    if row is None:
        return None
    for a in alias:
        value = row.get(a)
        if value is not None:
            return value
    return None
