"""提供冲煮仿真所需的配置模型与读取工具。

配置文件默认位于仓库根目录 ``config/simulator_settings.yaml``，可通过环境变量
``BREW_SIM_CONFIG_PATH`` 指向其它文件。文件不存在时全部使用模型默认值。
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from ..data_access.models import CoffeeType, GrindSize, RunParameters


class BrewDefaults(BaseModel):
    """表单的默认取值，同时作为命令行工具的默认参数。"""

    time_scale: float = Field(default=1.0, gt=0.0)
    coffee_type: CoffeeType = CoffeeType.ARABICA
    coffee_grind_size: GrindSize = GrindSize.FINE
    coffee_nominal_weight_g: float = Field(default=20.0, gt=0.0)
    water_nominal_volume_ml: float = Field(default=36.0, gt=0.0)
    water_nominal_temp_c: float = Field(default=90.0)
    heat_source: str = Field(default="electric")
    heat_power_w: float = Field(default=1500.0)

    def to_run_parameters(self, **overrides: object) -> RunParameters:
        payload = self.model_dump()
        payload.update({k: v for k, v in overrides.items() if v is not None})
        return RunParameters.model_validate(payload)


class MachineSettings(BaseModel):
    """参考咖啡机模型的节奏与物理常量。"""

    tick_interval_ms: float = Field(
        default=1000.0,
        gt=0.0,
        description="相邻两个步骤之间的（未缩放）仿真时间间隔，单位毫秒",
    )
    ambient_temp_c: float = Field(default=20.0)
    target_pressure_bars: float = Field(default=9.0, gt=0.0)
    pre_infusion_pressure_bars: float = Field(default=3.0, gt=0.0)
    pre_infusion_ms: float = Field(default=4000.0, ge=0.0)
    extraction_ms: float = Field(default=25000.0, gt=0.0)
    max_heat_up_steps: int = Field(default=8, ge=1)


class SimulatorConfig(BaseModel):
    """完整的仿真配置对象。"""

    defaults: BrewDefaults = Field(default_factory=BrewDefaults)
    machine: MachineSettings = Field(default_factory=MachineSettings)


def _load_yaml_config(path: Path) -> dict:
    """读取并解析给定路径的 YAML 配置文件。"""
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _default_config_path() -> Path:
    env_path = os.getenv("BREW_SIM_CONFIG_PATH")
    if env_path:
        return Path(env_path)
    return Path(__file__).resolve().parents[2] / "config" / "simulator_settings.yaml"


def load_simulator_config(config_path: Optional[Path] = None) -> SimulatorConfig:
    """从 YAML 文件加载仿真配置。

    Parameters
    ----------
    config_path:
        可选的 YAML 配置文件路径。若未指定，则读取 ``BREW_SIM_CONFIG_PATH``
        或仓库根目录下的 ``config/simulator_settings.yaml``。
    """

    if config_path is None:
        config_path = _default_config_path()

    raw = _load_yaml_config(config_path) if config_path.exists() else {}
    return SimulatorConfig.model_validate(raw)


@lru_cache(maxsize=1)
def get_simulator_config(config_path: Optional[Path] = None) -> SimulatorConfig:
    """返回解析后的 :class:`SimulatorConfig`，并使用 LRU 缓存避免重复读取。"""

    return load_simulator_config(config_path=config_path)
