"""进程内共享的运行控制器。

展示层与表单提交共享同一个控制器与报告流：控制器的单次运行保护只有在
所有调用方拿到同一个实例时才有意义。实例在首次访问时延迟创建，
应用关闭时通过 ``shutdown_controller`` 释放引用。
"""

from __future__ import annotations

import logging
from typing import Optional

from .orchestrator import SimulationRunController

logger = logging.getLogger(__name__)

_CONTROLLER: Optional[SimulationRunController] = None


def get_controller() -> SimulationRunController:
    """返回共享的 :class:`SimulationRunController`，不存在时创建。"""
    global _CONTROLLER
    if _CONTROLLER is None:
        _CONTROLLER = SimulationRunController()
        logger.info("Created shared simulation run controller")
    return _CONTROLLER


def shutdown_controller() -> None:
    """清空共享引用；仍在运行的仿真不受影响。"""
    global _CONTROLLER
    if _CONTROLLER is not None and _CONTROLLER.is_running:
        logger.warning("Releasing controller while a simulation is still running")
    _CONTROLLER = None
