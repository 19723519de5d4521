"""冲煮输入：咖啡粉、水与热源。

每个对象根据名义参数推导出“实际”数值（例如粉碗残留、锅炉死水量、
冲煮头散热），运行控制器只读取并格式化这些数值。
"""

from __future__ import annotations

from typing import Dict

from ..data_access.models import CoffeeType, GrindSize

# fraction of the nominal dose that actually lands in the basket
GRIND_RETENTION: Dict[GrindSize, float] = {
    GrindSize.EXTRA_FINE: 0.97,
    GrindSize.FINE: 0.98,
    GrindSize.MEDIUM: 0.985,
    GrindSize.COARSE: 0.99,
    GrindSize.EXTRA_COARSE: 0.995,
}

HEAT_SOURCE_EFFICIENCY: Dict[str, float] = {
    "electric": 0.9,
    "induction": 0.85,
    "gas": 0.6,
}

BOILER_DEAD_VOLUME_FRACTION = 0.02
GROUP_HEAD_LOSS_C = 1.5
BOILING_POINT_C = 100.0


class Coffee:
    def __init__(
        self,
        *,
        type: CoffeeType | str,
        grind_size: GrindSize | str,
        nominal_weight_g: float,
    ) -> None:
        self.coffee_type = CoffeeType(type)
        self.grind = GrindSize(grind_size)
        self.nominal_weight_g = float(nominal_weight_g)
        self.actual_weight_g = round(
            self.nominal_weight_g * GRIND_RETENTION[self.grind], 1
        )

    @property
    def type(self) -> str:
        return self.coffee_type.value

    @property
    def grind_size(self) -> str:
        return self.grind.value


class Water:
    def __init__(self, *, nominal_volume_ml: float, nominal_temp_c: float) -> None:
        self.nominal_volume_ml = float(nominal_volume_ml)
        self.nominal_temp_c = float(nominal_temp_c)
        self.actual_volume_ml = self.nominal_volume_ml * (
            1.0 - BOILER_DEAD_VOLUME_FRACTION
        )
        self.actual_temp_c = min(
            self.nominal_temp_c - GROUP_HEAD_LOSS_C, BOILING_POINT_C
        )


class Heat:
    def __init__(self, *, heat_source: str, heat_power_w: float) -> None:
        self.heat_source = str(heat_source)
        self.heat_power_w = heat_power_w

    @property
    def efficiency(self) -> float:
        """热源效率；未知热源返回 0，由组装阶段拒绝。"""
        return HEAT_SOURCE_EFFICIENCY.get(self.heat_source.strip().lower(), 0.0)

    @property
    def effective_power_w(self) -> float:
        return float(self.heat_power_w) * self.efficiency


__all__ = ["Coffee", "Heat", "Water", "GRIND_RETENTION", "HEAT_SOURCE_EFFICIENCY"]
