"""参考冲煮物理模型：运行控制器的外部协作者。"""

from .ingredients import Coffee, Heat, Water
from .machine import (
    BrewInterruptedError,
    BrewResult,
    EspressoComponents,
    EspressoMachine,
    MachineAssemblyError,
)

__all__ = [
    "BrewInterruptedError",
    "BrewResult",
    "Coffee",
    "EspressoComponents",
    "EspressoMachine",
    "Heat",
    "MachineAssemblyError",
    "Water",
]
