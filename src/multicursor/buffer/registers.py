"""Per-cursor register storage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping

from multicursor.core.state import SelectionKind

UNNAMED = '"'
BLACKHOLE = "_"


@dataclass(frozen=True, slots=True)
class RegisterValue:
    text: str
    kind: SelectionKind = "charwise"

    @property
    def linewise(self) -> bool:
        return self.kind == "linewise"


_EMPTY = RegisterValue(text="")


class RegisterBank:
    """Unnamed plus named registers; every cursor carries its own bank.

    Writing a named register also updates the unnamed one, and the
    black-hole register swallows whatever is written to it.
    """

    def __init__(self, values: Mapping[str, RegisterValue] | None = None) -> None:
        self._registers: Dict[str, RegisterValue] = {UNNAMED: _EMPTY}
        if values:
            self._registers.update(values)

    def get(self, name: str = UNNAMED) -> RegisterValue:
        if name == BLACKHOLE:
            return _EMPTY
        return self._registers.get(name, _EMPTY)

    def set(self, name: str, value: RegisterValue) -> None:
        if name == BLACKHOLE:
            return
        self._registers[name] = value
        if name != UNNAMED:
            self._registers[UNNAMED] = value

    def yank_to(self, name: str, text: str, *, kind: SelectionKind = "charwise") -> None:
        self.set(name or UNNAMED, RegisterValue(text=text, kind=kind))

    def append(self, name: str, text: str) -> None:
        existing = self.get(name)
        self.set(name, RegisterValue(text=existing.text + text, kind=existing.kind))

    def copy(self) -> "RegisterBank":
        return RegisterBank(self._registers)

    def serialize(self) -> Mapping[str, RegisterValue]:
        return dict(self._registers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RegisterBank):
            return NotImplemented
        return self._registers == other._registers

    def __repr__(self) -> str:
        return f"RegisterBank({self._registers!r})"


__all__ = ["RegisterBank", "RegisterValue", "UNNAMED", "BLACKHOLE"]
