"""仿真时钟与时间倍率控制。

``SimulationClock`` 是仿真中所有等待的唯一入口：机器模型通过 ``clock.sleep(ms)``
推进仿真时间，实际等待时长为 ``ms / time_scale``。倍率大于 1 表示加速回放。

时间倍率只应在一次运行的范围内生效，推荐使用 ``scaled_timing`` 上下文管理器：
进入时设置倍率，无论正常结束还是抛出异常，退出时都会恢复为默认值 1。
``Timer`` 保留了进程级旋钮的调用方式，作用于 ``default_clock``。
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Awaitable, Callable, Iterator, Optional

logger = logging.getLogger(__name__)

DEFAULT_TIME_SCALE = 1.0

Sleeper = Callable[[float], Awaitable[None]]


class SimulationClock:
    """可缩放的仿真时钟。"""

    def __init__(self, *, sleeper: Optional[Sleeper] = None) -> None:
        self._time_scale = DEFAULT_TIME_SCALE
        self._sleeper: Sleeper = sleeper or asyncio.sleep
        # simulated milliseconds since the clock was created
        self.simulated_ms = 0.0

    @property
    def time_scale(self) -> float:
        return self._time_scale

    def set_time_scale(self, factor: float) -> None:
        factor = float(factor)
        if factor <= 0:
            raise ValueError("time scale must be positive")
        self._time_scale = factor

    def reset_time_scale(self) -> None:
        self._time_scale = DEFAULT_TIME_SCALE

    def scaled_seconds(self, simulated_ms: float) -> float:
        """把仿真毫秒换算为真实等待秒数。"""
        return max(float(simulated_ms), 0.0) / 1000.0 / self._time_scale

    async def sleep(self, simulated_ms: float) -> None:
        self.simulated_ms += max(float(simulated_ms), 0.0)
        await self._sleeper(self.scaled_seconds(simulated_ms))


@contextmanager
def scaled_timing(clock: SimulationClock, factor: float) -> Iterator[SimulationClock]:
    """在上下文范围内为 ``clock`` 设置时间倍率，退出时无条件恢复。

    用法示例：

        with scaled_timing(clock, 10):
            await machine.assemble_machine(coffee, water, heat)
    """

    clock.set_time_scale(factor)
    logger.debug("time scale set to %s", clock.time_scale)
    try:
        yield clock
    finally:
        clock.reset_time_scale()
        logger.debug("time scale reset to %s", DEFAULT_TIME_SCALE)


default_clock = SimulationClock()


class Timer:
    """作用于进程级 ``default_clock`` 的倍率开关。"""

    @staticmethod
    def set_time_scale(factor: float) -> None:
        default_clock.set_time_scale(factor)

    @staticmethod
    def reset_time_scale() -> None:
        default_clock.reset_time_scale()

    @staticmethod
    def get_time_scale() -> float:
        return default_clock.time_scale


__all__ = [
    "DEFAULT_TIME_SCALE",
    "SimulationClock",
    "Timer",
    "default_clock",
    "scaled_timing",
]
