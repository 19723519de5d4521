"""
Brew Simulator 应用的入口模块（FastAPI）。

此模块负责应用级别的生命周期管理（lifespan）、路由挂载与全局资源的启动/关闭：

- 启动时创建后台运行调度器并注入到接口模块，同时确保共享的运行控制器已创建；
- 关闭时优雅地停止后台任务，并释放共享控制器的引用。

重要环境变量：
- BREW_SIM_LOG_LEVEL：``brew_sim`` 日志记录器的级别（默认 INFO）。
- BREW_SIM_CONFIG_PATH：仿真配置 YAML 文件路径。
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .api import endpoints as api_endpoints_module
from .api.endpoints import router as simulator_router
from .core.controller_factory import get_controller, shutdown_controller
from .web.background import BackgroundRunManager

logger = logging.getLogger(__name__)


def configure_log_level(value: Optional[str] = None) -> int:
    """设置 ``brew_sim`` 日志记录器级别；无法识别的取值回退为 INFO。"""
    if value is None:
        value = os.getenv("BREW_SIM_LOG_LEVEL", "INFO")
    name = value.strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        logger.warning("Unknown BREW_SIM_LOG_LEVEL %r, falling back to INFO", name)
        level = logging.INFO
    logging.getLogger("brew_sim").setLevel(level)
    return level


configure_log_level()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期：启动时注入共享资源，关闭时清理后台任务。"""
    background = BackgroundRunManager()
    api_endpoints_module._background_runs = background
    get_controller()
    logger.info("--- Background runs and shared controller created ---")

    yield

    try:
        await background.shutdown()
    except Exception:
        logger.exception("Error shutting down background run manager")
    api_endpoints_module._background_runs = None
    shutdown_controller()


app = FastAPI(title="Brew Simulator", version="0.1.0", lifespan=lifespan)

app.include_router(simulator_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict:
    """提供健康检查端点，供运行时监控使用。"""
    return {"status": "ok"}
