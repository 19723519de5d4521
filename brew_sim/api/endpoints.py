"""基于 FastAPI 暴露冲煮仿真运行与状态报告流的接口定义。"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from ..core.controller_factory import get_controller
from ..core.orchestrator import SimulationRunController
from ..data_access.models import RunParameters, StatusEntry
from ..utils.settings import BrewDefaults, get_simulator_config
from ..web.background import BackgroundRunManager

router = APIRouter(prefix="/simulator", tags=["simulator"])

logger = logging.getLogger(__name__)

# Created during application startup and injected by `brew_sim.main`.
_background_runs: Optional[BackgroundRunManager] = None


def get_run_controller() -> SimulationRunController:
    """返回进程内共享的运行控制器（可在测试中通过依赖覆盖替换）。"""
    return get_controller()


def get_background_runs() -> BackgroundRunManager:
    global _background_runs
    if _background_runs is None:
        _background_runs = BackgroundRunManager()
    return _background_runs


class ReportEntryPayload(BaseModel):
    """报告流中单条记录的展示形式。"""

    seq: int
    time: str
    type: str
    message: str
    presentation: Dict[str, str]


class ReportResponse(BaseModel):
    """当前运行状态与按时间倒序排列的报告记录。"""

    state: str
    entries: List[ReportEntryPayload]


class StatusResponse(BaseModel):
    """控制器的运行状态摘要。"""

    state: str
    entries_count: int


class JobResponse(BaseModel):
    """后台运行任务的状态记录。"""

    job_id: str
    action: str
    status: str
    started_at: float
    finished_at: Optional[float] = None
    error: Optional[str] = None
    extra: Dict[str, Any] = {}


def _report_payload(controller: SimulationRunController) -> ReportResponse:
    return ReportResponse.model_validate(controller.snapshot())


def _format_reports_for_download(entries: List[StatusEntry]) -> str:
    if not entries:
        return "No reports yet.\n"
    lines = [f"{entry.time} | {entry.type.value} | {entry.message}" for entry in entries]
    return "\n".join(lines) + "\n"


@router.post("/runs")
async def start_run(
    parameters: RunParameters,
    wait: bool = Query(default=True, description="是否等待本次仿真结束再返回"),
    controller: SimulationRunController = Depends(get_run_controller),
    background: BackgroundRunManager = Depends(get_background_runs),
) -> Any:
    """启动一次仿真。

    运行结果（包括被拒绝的启动与运行失败）只通过报告流体现，
    因此本接口不会因仿真失败而返回错误码。
    """

    if wait:
        await controller.execute(parameters)
        return _report_payload(controller)

    job = await background.enqueue(
        "brew",
        lambda: controller.execute(parameters),
        extra={"parameters": parameters.model_dump(mode="json")},
    )
    logger.info("Scheduled background brew job %s", job.job_id)
    return JobResponse.model_validate(job.as_dict())


@router.get("/runs/{job_id}", response_model=JobResponse)
async def get_run_job(
    job_id: str,
    background: BackgroundRunManager = Depends(get_background_runs),
) -> JobResponse:
    job = await background.get(job_id)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Job not found"
        )
    return JobResponse.model_validate(job.as_dict())


@router.get("/status", response_model=StatusResponse)
async def get_status(
    controller: SimulationRunController = Depends(get_run_controller),
) -> StatusResponse:
    return StatusResponse(
        state=controller.state.value, entries_count=len(controller.feed)
    )


@router.get("/report", response_model=ReportResponse)
async def get_report(
    controller: SimulationRunController = Depends(get_run_controller),
) -> ReportResponse:
    return _report_payload(controller)


@router.delete("/report", response_model=ReportResponse)
async def clear_report(
    controller: SimulationRunController = Depends(get_run_controller),
) -> ReportResponse:
    controller.clear_reports()
    return _report_payload(controller)


@router.get("/report/download", response_class=PlainTextResponse)
async def download_report(
    controller: SimulationRunController = Depends(get_run_controller),
) -> PlainTextResponse:
    content = _format_reports_for_download(list(controller.feed.entries))
    return PlainTextResponse(
        content,
        headers={"Content-Disposition": 'attachment; filename="brew-report.txt"'},
    )


@router.get("/defaults", response_model=BrewDefaults)
async def get_defaults() -> BrewDefaults:
    return get_simulator_config().defaults
