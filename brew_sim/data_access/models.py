"""定义咖啡冲煮仿真领域模型的 Pydantic 数据结构。"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CoffeeType(str, Enum):
    """可选的咖啡豆品种。"""

    ARABICA = "arabica"
    ROBUSTA = "robusta"
    BLEND = "blend"


class GrindSize(str, Enum):
    """研磨度枚举，从极细到极粗。"""

    EXTRA_FINE = "extra-fine"
    FINE = "fine"
    MEDIUM = "medium"
    COARSE = "coarse"
    EXTRA_COARSE = "extra-coarse"


class RunState(str, Enum):
    """运行控制器的状态：空闲或运行中。"""

    IDLE = "idle"
    RUNNING = "running"


class ReportType(str, Enum):
    """状态条目的分类标签，决定展示层的颜色与强调方式。"""

    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"
    HEADING = "heading"
    PLAIN = "plain"


class RunParameters(BaseModel):
    """单次仿真运行的参数集合，运行期间不可变。

    取值范围的校验由表单一侧负责，这里只保证字段存在以及时间倍率为正数。
    """

    model_config = ConfigDict(frozen=True)

    time_scale: float = Field(default=1.0, gt=0.0)
    coffee_type: CoffeeType
    coffee_grind_size: GrindSize
    coffee_nominal_weight_g: float
    water_nominal_volume_ml: float
    water_nominal_temp_c: float
    heat_source: str
    heat_power_w: float


class StatusEntry(BaseModel):
    """报告流中的一条状态记录，创建后不可修改。

    ``seq`` 单调递增，作为展示层的稳定主键；``time`` 仅用于显示，
    同一秒内的多条记录可能拥有相同的 ``time``。
    """

    model_config = ConfigDict(frozen=True)

    seq: int
    time: str
    created_at: datetime
    type: ReportType = ReportType.PLAIN
    message: str


class BrewStep(BaseModel):
    """外部仿真产出的单个中间步骤，仅用于格式化成状态条目。"""

    model_config = ConfigDict(frozen=True)

    step: str
    pressure_bars: Optional[float] = None
    temperature_c: Optional[float] = None
    time_remaining_ms: Optional[float] = None


class BrewInfo(BaseModel):
    """冲煮结果摘要，字段均已格式化为可直接展示的字符串。"""

    tds: str
    extraction: str
    temperature: str
    volume: str
    category: str


@dataclass(frozen=True)
class StepEvent:
    """步骤序列中的中间事件。"""

    step: BrewStep
    kind: Literal["step"] = field(default="step", init=False)


@dataclass(frozen=True)
class ResultEvent:
    """步骤序列的终止事件，携带冲煮结果（可能为空）。"""

    result: Any
    kind: Literal["result"] = field(default="result", init=False)


BrewEvent = Union[StepEvent, ResultEvent]


__all__ = [
    "BrewEvent",
    "BrewInfo",
    "BrewStep",
    "CoffeeType",
    "GrindSize",
    "ReportType",
    "ResultEvent",
    "RunParameters",
    "RunState",
    "StatusEntry",
    "StepEvent",
]
