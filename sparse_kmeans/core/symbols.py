"""
Symbol tables mapping feature names to dense dimension indices.

Indices are handed out in order of first appearance, starting at 0, so the
table doubles as the dimension layout of the dense centroids.
"""

from __future__ import annotations

from typing import Iterator, Optional, Protocol

from .errors import InvalidArgumentError, UnknownSymbolError


UNKNOWN_SYMBOL_ID = -1


class SymbolTable(Protocol):
    """Interface the vectorizer needs from a symbol table."""

    def get_or_add_symbol(self, symbol: str) -> int: ...

    def num_symbols(self) -> int: ...


class MapSymbolTable:
    """Append-only, dict-backed bijection between symbols and integer ids."""

    def __init__(self, first_id: int = 0):
        self._symbol_to_id: dict[str, int] = {}
        self._id_to_symbol: dict[int, str] = {}
        self._next_id = first_id

    def get_or_add_symbol(self, symbol: str) -> int:
        """Return the id for a symbol, assigning the next free id if it is new."""
        symbol_id = self._symbol_to_id.get(symbol)
        if symbol_id is None:
            symbol_id = self._next_id
            self._symbol_to_id[symbol] = symbol_id
            self._id_to_symbol[symbol_id] = symbol
            self._next_id += 1
        return symbol_id

    def num_symbols(self) -> int:
        return len(self._symbol_to_id)

    def symbol_to_id(self, symbol: str) -> int:
        """Id of a symbol, or UNKNOWN_SYMBOL_ID if it was never added."""
        return self._symbol_to_id.get(symbol, UNKNOWN_SYMBOL_ID)

    def id_to_symbol(self, symbol_id: int) -> str:
        try:
            return self._id_to_symbol[symbol_id]
        except KeyError:
            raise UnknownSymbolError(f"Could not find id={symbol_id}") from None

    def symbols(self) -> list[str]:
        """Symbols in id order."""
        return [self._id_to_symbol[i] for i in sorted(self._id_to_symbol)]

    def __len__(self) -> int:
        return len(self._symbol_to_id)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._symbol_to_id

    def __iter__(self) -> Iterator[str]:
        return iter(self.symbols())

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization."""
        return {"symbols": dict(self._symbol_to_id)}

    @classmethod
    def from_dict(cls, data: dict) -> MapSymbolTable:
        """Rebuild a table; ids must be unique and non-negative."""
        table = cls()
        max_id: Optional[int] = None
        for symbol, symbol_id in data.get("symbols", {}).items():
            symbol_id = int(symbol_id)
            if symbol_id < 0:
                raise InvalidArgumentError(
                    f"Symbol ids must be non-negative. Found id={symbol_id} for symbol={symbol!r}"
                )
            if symbol_id in table._id_to_symbol:
                raise InvalidArgumentError(
                    f"Identifiers must be unique. Found duplicate identifier={symbol_id}"
                )
            table._symbol_to_id[symbol] = symbol_id
            table._id_to_symbol[symbol_id] = symbol
            max_id = symbol_id if max_id is None else max(max_id, symbol_id)
        table._next_id = 0 if max_id is None else max_id + 1
        return table
