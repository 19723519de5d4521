"""接口契约——运行控制器所依赖的外部仿真协作者的轻量 Protocol 定义。

控制器只通过这些接口读取派生数值并消费步骤序列，不关心具体的物理模型。
``brew_sim.physics`` 提供了一个满足这些协议的参考实现。
"""

from __future__ import annotations

from typing import AsyncIterator, Protocol

from ..data_access.models import BrewEvent, BrewInfo, RunParameters
from .timing import SimulationClock


class CoffeeLike(Protocol):
    type: str
    grind_size: str
    actual_weight_g: float


class WaterLike(Protocol):
    actual_volume_ml: float
    actual_temp_c: float


class HeatLike(Protocol):
    heat_source: str
    heat_power_w: float


class BrewResultLike(Protocol):
    def get_brew_info(self) -> BrewInfo: ...


class MachineLike(Protocol):
    """咖啡机接口：先异步组装，再以异步迭代器的形式产出步骤事件。"""

    async def assemble_machine(
        self, coffee: CoffeeLike, water: WaterLike, heat: HeatLike
    ) -> None: ...

    def brew(self) -> AsyncIterator[BrewEvent]: ...


class SimulationComponents(Protocol):
    """按运行参数构造协作者的工厂。"""

    def create_coffee(self, parameters: RunParameters) -> CoffeeLike: ...

    def create_water(self, parameters: RunParameters) -> WaterLike: ...

    def create_heat(self, parameters: RunParameters) -> HeatLike: ...

    def create_machine(self, clock: SimulationClock) -> MachineLike: ...
