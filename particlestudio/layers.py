"""Ordered stacks of effect layers that can be reordered, hidden and removed."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator


@dataclass
class Layer:
    """One effect layer: its drawn items, visibility and stacking order."""

    name: str
    items: list[Any] = field(default_factory=list)
    visible: bool = True
    z: int = 0

    @property
    def action(self) -> str:
        """Label of the button that toggles this layer."""
        return "Hide" if self.visible else "Show"


class LayerStack:
    """Layers of one kind; row order is drawing order, row 0 drawn lowest."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._layers: list[Layer] = []

    def _check(self, row: int) -> None:
        if not 0 <= row < len(self._layers):
            raise IndexError(f"no layer at row {row}")

    def _restack(self) -> None:
        for z, layer in enumerate(self._layers, start=1):
            layer.z = z

    def add(self, items: Iterable[Any]) -> Layer:
        """Append a new layer holding ``items`` on top of the stack."""
        number = len(self._layers) + 1
        layer = Layer(f"New {self.kind} Layer {number}", list(items), z=number)
        self._layers.append(layer)
        return layer

    def move_up(self, row: int) -> bool:
        """Swap the layer with the row above; False if it is already first."""
        self._check(row)
        if row == 0:
            return False
        self._layers[row - 1], self._layers[row] = self._layers[row], self._layers[row - 1]
        self._restack()
        return True

    def move_down(self, row: int) -> bool:
        """Swap the layer with the row below; False if it is already last."""
        self._check(row)
        if row == len(self._layers) - 1:
            return False
        self._layers[row + 1], self._layers[row] = self._layers[row], self._layers[row + 1]
        self._restack()
        return True

    def delete(self, row: int) -> Layer:
        """Remove and return the layer at ``row``."""
        self._check(row)
        layer = self._layers.pop(row)
        self._restack()
        return layer

    def toggle(self, row: int) -> bool:
        """Flip the layer's visibility and return the new state."""
        self._check(row)
        layer = self._layers[row]
        layer.visible = not layer.visible
        return layer.visible

    def clear(self) -> None:
        self._layers.clear()

    def visible_layers(self) -> list[Layer]:
        """Visible layers in drawing order, lowest first."""
        return sorted((layer for layer in self._layers if layer.visible), key=lambda layer: layer.z)

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self._layers)

    def __getitem__(self, row: int) -> Layer:
        self._check(row)
        return self._layers[row]