"""参考意式咖啡机模型。

``EspressoMachine.brew()`` 是一个异步迭代器：依次产出加热、预热冲煮头、
预浸泡、升压与萃取阶段的 ``StepEvent``，最后以一个携带 ``BrewResult`` 的
``ResultEvent`` 结束。所有等待都通过 ``SimulationClock`` 完成，因此时间倍率
会等比例缩短真实耗时。

模型刻意保持简单：加热时间按 ``Q = m·c·ΔT / P`` 估算，萃取率由研磨度、
水温与豆种决定。
"""

from __future__ import annotations

import logging
import math
from typing import AsyncIterator, Dict, List, Optional

from ..core.timing import SimulationClock
from ..data_access.models import (
    BrewEvent,
    BrewInfo,
    BrewStep,
    CoffeeType,
    GrindSize,
    ResultEvent,
    RunParameters,
    StepEvent,
)
from ..utils.settings import MachineSettings, get_simulator_config
from .ingredients import Coffee, Heat, Water

logger = logging.getLogger(__name__)

WATER_SPECIFIC_HEAT_J_PER_G_C = 4.186
PUCK_RETENTION_G_PER_G = 0.5
CUP_COOLING_C = 4.0

# finer grinds restrict flow and lengthen the shot
GRIND_FLOW_FACTOR: Dict[GrindSize, float] = {
    GrindSize.EXTRA_FINE: 1.3,
    GrindSize.FINE: 1.1,
    GrindSize.MEDIUM: 1.0,
    GrindSize.COARSE: 0.8,
    GrindSize.EXTRA_COARSE: 0.65,
}

BASE_EXTRACTION_PCT: Dict[GrindSize, float] = {
    GrindSize.EXTRA_FINE: 23.0,
    GrindSize.FINE: 21.0,
    GrindSize.MEDIUM: 19.0,
    GrindSize.COARSE: 16.0,
    GrindSize.EXTRA_COARSE: 13.0,
}

COFFEE_TYPE_EXTRACTION_BONUS: Dict[CoffeeType, float] = {
    CoffeeType.ARABICA: 0.0,
    CoffeeType.ROBUSTA: 1.0,
    CoffeeType.BLEND: 0.5,
}


class MachineAssemblyError(RuntimeError):
    """组装阶段发现输入无法冲煮时抛出。"""


class BrewInterruptedError(RuntimeError):
    """在完成组装之前请求冲煮时抛出。"""


class BrewResult:
    """一次冲煮的结果，提供格式化后的摘要信息。"""

    def __init__(
        self,
        *,
        dose_g: float,
        beverage_volume_ml: float,
        extraction_pct: float,
        final_temp_c: float,
    ) -> None:
        self.dose_g = dose_g
        self.beverage_volume_ml = beverage_volume_ml
        self.extraction_pct = extraction_pct
        self.final_temp_c = final_temp_c

    @property
    def dissolved_g(self) -> float:
        return self.dose_g * self.extraction_pct / 100.0

    @property
    def tds_pct(self) -> float:
        beverage_mass = self.beverage_volume_ml + self.dissolved_g
        if beverage_mass <= 0:
            return 0.0
        return self.dissolved_g / beverage_mass * 100.0

    @property
    def category(self) -> str:
        if self.extraction_pct < 18.0:
            return "Under-extracted"
        if self.extraction_pct > 22.0:
            return "Over-extracted"
        return "Balanced"

    def get_brew_info(self) -> BrewInfo:
        return BrewInfo(
            tds=f"{self.tds_pct:.2f}%",
            extraction=f"{self.extraction_pct:.1f}%",
            temperature=f"{self.final_temp_c:.1f}°C",
            volume=f"{self.beverage_volume_ml:.1f}ml",
            category=self.category,
        )


class EspressoMachine:
    """可组装、可冲煮的意式咖啡机。"""

    def __init__(
        self,
        clock: SimulationClock,
        settings: Optional[MachineSettings] = None,
    ) -> None:
        self.clock = clock
        self.settings = settings or get_simulator_config().machine
        self.coffee: Optional[Coffee] = None
        self.water: Optional[Water] = None
        self.heat: Optional[Heat] = None

    @property
    def is_assembled(self) -> bool:
        return self.coffee is not None and self.water is not None and self.heat is not None

    async def assemble_machine(self, coffee: Coffee, water: Water, heat: Heat) -> None:
        if coffee.actual_weight_g <= 0:
            raise MachineAssemblyError("Coffee dose must be positive")
        if water.actual_volume_ml <= coffee.actual_weight_g * PUCK_RETENTION_G_PER_G:
            raise MachineAssemblyError(
                f"Not enough water for {coffee.actual_weight_g}g of coffee"
            )
        if float(heat.heat_power_w) <= 0:
            raise MachineAssemblyError("Heat power must be positive")
        if heat.efficiency <= 0:
            raise MachineAssemblyError(f"Unknown heat source: {heat.heat_source}")
        if not math.isfinite(self._heat_up_ms(water, heat)):
            raise MachineAssemblyError(
                f"Heat power too low to heat the water: {heat.heat_power_w}W"
            )

        await self.clock.sleep(self.settings.tick_interval_ms)
        self.coffee, self.water, self.heat = coffee, water, heat
        logger.debug(
            "machine assembled: %.1fg coffee, %.1fml water, %sW %s",
            coffee.actual_weight_g,
            water.actual_volume_ml,
            heat.heat_power_w,
            heat.heat_source,
        )

    def heat_up_ms(self) -> float:
        """把水从环境温度加热到目标温度所需的仿真毫秒数。"""
        assert self.water is not None and self.heat is not None
        return self._heat_up_ms(self.water, self.heat)

    def _heat_up_ms(self, water: Water, heat: Heat) -> float:
        delta_c = max(water.actual_temp_c - self.settings.ambient_temp_c, 0.0)
        energy_j = water.actual_volume_ml * WATER_SPECIFIC_HEAT_J_PER_G_C * delta_c
        if heat.effective_power_w <= 0:
            return math.inf
        return energy_j / heat.effective_power_w * 1000.0

    def extraction_ms(self) -> float:
        assert self.coffee is not None
        return self.settings.extraction_ms * GRIND_FLOW_FACTOR[self.coffee.grind]

    def brew(self) -> AsyncIterator[BrewEvent]:
        if not self.is_assembled:
            raise BrewInterruptedError("Machine is not assembled")
        return self._brew()

    async def _brew(self) -> AsyncIterator[BrewEvent]:
        assert self.coffee is not None and self.water is not None
        settings = self.settings
        target_c = self.water.actual_temp_c

        # heat-water: the countdown only covers the heating itself
        total_heat_ms = self.heat_up_ms()
        heat_steps = min(
            settings.max_heat_up_steps,
            max(1, math.ceil(total_heat_ms / settings.tick_interval_ms)),
        )
        start_c = min(settings.ambient_temp_c, target_c)
        for index in range(1, heat_steps + 1):
            await self.clock.sleep(total_heat_ms / heat_steps)
            fraction = index / heat_steps
            yield StepEvent(
                BrewStep(
                    step="heat-water",
                    temperature_c=start_c + (target_c - start_c) * fraction,
                    time_remaining_ms=total_heat_ms * (1.0 - fraction),
                )
            )

        await self.clock.sleep(settings.tick_interval_ms)
        yield StepEvent(BrewStep(step="pre-brew", temperature_c=target_c))

        await self.clock.sleep(settings.pre_infusion_ms)
        yield StepEvent(
            BrewStep(
                step="pre-infusion",
                pressure_bars=settings.pre_infusion_pressure_bars,
                temperature_c=target_c,
            )
        )

        for pressure in self._pressure_ramp():
            await self.clock.sleep(settings.tick_interval_ms)
            yield StepEvent(
                BrewStep(
                    step="pressure-buildup",
                    pressure_bars=pressure,
                    temperature_c=target_c,
                )
            )

        total_extraction_ms = self.extraction_ms()
        extraction_steps = max(
            1, math.ceil(total_extraction_ms / (settings.tick_interval_ms * 5))
        )
        current_c = target_c
        for index in range(1, extraction_steps + 1):
            await self.clock.sleep(total_extraction_ms / extraction_steps)
            # the puck absorbs a little heat as the shot runs
            current_c = target_c - 2.0 * index / extraction_steps
            yield StepEvent(
                BrewStep(
                    step="extraction",
                    pressure_bars=settings.target_pressure_bars,
                    temperature_c=current_c,
                    time_remaining_ms=total_extraction_ms
                    * (1.0 - index / extraction_steps),
                )
            )

        yield ResultEvent(self._build_result(current_c))

    def _pressure_ramp(self) -> List[float]:
        start = self.settings.pre_infusion_pressure_bars
        target = self.settings.target_pressure_bars
        if target <= start:
            return [target]
        middle = round((start + target) / 2.0, 1)
        return [middle, target]

    def _build_result(self, cup_temp_c: float) -> BrewResult:
        assert self.coffee is not None and self.water is not None
        extraction = (
            BASE_EXTRACTION_PCT[self.coffee.grind]
            + (self.water.actual_temp_c - 92.0) * 0.3
            + COFFEE_TYPE_EXTRACTION_BONUS[self.coffee.coffee_type]
        )
        extraction = min(max(extraction, 10.0), 28.0)
        beverage_ml = max(
            self.water.actual_volume_ml
            - self.coffee.actual_weight_g * PUCK_RETENTION_G_PER_G,
            0.0,
        )
        return BrewResult(
            dose_g=self.coffee.actual_weight_g,
            beverage_volume_ml=beverage_ml,
            extraction_pct=extraction,
            final_temp_c=cup_temp_c - CUP_COOLING_C,
        )


class EspressoComponents:
    """按运行参数构造参考实现中的各个协作者。"""

    def __init__(self, settings: Optional[MachineSettings] = None) -> None:
        self.settings = settings

    def create_coffee(self, parameters: RunParameters) -> Coffee:
        return Coffee(
            type=parameters.coffee_type,
            grind_size=parameters.coffee_grind_size,
            nominal_weight_g=parameters.coffee_nominal_weight_g,
        )

    def create_water(self, parameters: RunParameters) -> Water:
        return Water(
            nominal_volume_ml=parameters.water_nominal_volume_ml,
            nominal_temp_c=parameters.water_nominal_temp_c,
        )

    def create_heat(self, parameters: RunParameters) -> Heat:
        return Heat(
            heat_source=parameters.heat_source,
            heat_power_w=parameters.heat_power_w,
        )

    def create_machine(self, clock: SimulationClock) -> EspressoMachine:
        return EspressoMachine(clock, settings=self.settings)


__all__ = [
    "BrewInterruptedError",
    "BrewResult",
    "EspressoComponents",
    "EspressoMachine",
    "MachineAssemblyError",
]
