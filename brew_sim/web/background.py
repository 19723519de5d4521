"""简单的后台运行调度器，用于在不阻塞请求的情况下执行仿真。

调度器本身不做并发拒绝：同时提交的多次运行都会被调度，由运行控制器的
单次运行保护负责向报告流写入拒绝信息。
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class BackgroundJob:
    """后台任务的状态记录。"""

    job_id: str
    action: str
    status: str = "queued"
    error: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "job_id": self.job_id,
            "action": self.action,
            "status": self.status,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }
        if self.error is not None:
            payload["error"] = self.error
        if self.extra:
            payload["extra"] = self.extra
        return payload


class BackgroundRunManager:
    """基于 asyncio 的轻量后台任务管理器。"""

    def __init__(self, *, max_finished_jobs: int = 200) -> None:
        self._jobs: Dict[str, BackgroundJob] = {}
        self._max_finished_jobs = max_finished_jobs
        self._lock = asyncio.Lock()
        # keep references to running tasks so shutdown can cancel or await them
        self._tasks: Dict[str, asyncio.Task] = {}

    async def enqueue(
        self,
        action: str,
        factory: Callable[[], Awaitable[Any]],
        *,
        extra: Optional[Dict[str, Any]] = None,
    ) -> BackgroundJob:
        """提交新的后台任务，立即返回任务记录。"""

        job_id = uuid.uuid4().hex
        job = BackgroundJob(job_id=job_id, action=action, extra=dict(extra or {}))
        async with self._lock:
            self._jobs[job_id] = job
            self._tasks[job_id] = asyncio.create_task(self._run_job(job_id, factory))
        return job

    async def _run_job(
        self, job_id: str, factory: Callable[[], Awaitable[Any]]
    ) -> None:
        async with self._lock:
            job = self._jobs[job_id]
            job.status = "running"
            job.started_at = time.time()

        try:
            await factory()
        except Exception as exc:
            logger.exception("Background job %s failed", job_id)
            async with self._lock:
                job.status = "failed"
                job.error = str(exc)
                job.finished_at = time.time()
                self._tasks.pop(job_id, None)
                self._evict_finished_jobs()
            return

        async with self._lock:
            job.status = "succeeded"
            job.finished_at = time.time()
            self._tasks.pop(job_id, None)
            self._evict_finished_jobs()

    def _evict_finished_jobs(self) -> None:
        # caller holds self._lock; oldest finished records go first
        finished = [job for job in self._jobs.values() if job.finished_at is not None]
        excess = len(finished) - self._max_finished_jobs
        if excess <= 0:
            return
        finished.sort(key=lambda job: job.finished_at)
        for job in finished[:excess]:
            del self._jobs[job.job_id]

    async def get(self, job_id: str) -> Optional[BackgroundJob]:
        async with self._lock:
            return self._jobs.get(job_id)

    async def wait(self, job_id: str) -> Optional[BackgroundJob]:
        """等待指定任务结束并返回其记录；任务不存在时返回 None。"""
        async with self._lock:
            task = self._tasks.get(job_id)
            job = self._jobs.get(job_id)
        if task is not None:
            await asyncio.wait([task])
        return job

    async def shutdown(self, *, cancel: bool = True, timeout: float = 5.0) -> None:
        """Gracefully shutdown background manager.

        If `cancel` is True, cancel all active runner tasks immediately and wait
        up to `timeout` seconds for them to finish. Otherwise wait for them to
        complete naturally up to `timeout` seconds.
        """
        async with self._lock:
            pending = [t for t in self._tasks.values() if not t.done()]

        if not pending:
            return

        if cancel:
            for task in pending:
                task.cancel()

        await asyncio.wait(pending, timeout=timeout)

        # jobs that did not finish in time are marked failed
        async with self._lock:
            for job_id, task in list(self._tasks.items()):
                job = self._jobs.get(job_id)
                if job is not None and job.finished_at is None:
                    job.status = "failed"
                    job.error = "shutdown: task cancelled or timed out"
                    job.finished_at = time.time()
                self._tasks.pop(job_id, None)


__all__ = ["BackgroundJob", "BackgroundRunManager"]
