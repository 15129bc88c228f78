"""Switch panel state model."""

from __future__ import annotations

from dataclasses import dataclass, asdict

from ..protocol.commands import Switch


@dataclass
class SwitchPanel:
    """Last successfully commanded on/off state of each switch."""

    door: bool = False
    light: bool = False
    eye: bool = False
    anti: bool = False

    def set(self, switch: Switch, on: bool) -> None:
        setattr(self, switch.name.lower(), bool(on))

    def to_dict(self) -> dict:
        return asdict(self)
