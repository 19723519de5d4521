import asyncio

import pytest

from brew_sim.web.background import BackgroundRunManager


@pytest.mark.asyncio
# 测试：后台任务完成后状态为 succeeded，并记录结束时间。
async def test_job_succeeds() -> None:
    manager = BackgroundRunManager()
    calls = []

    async def _work() -> None:
        calls.append("ran")

    job = await manager.enqueue("brew", _work, extra={"note": "x"})
    finished = await manager.wait(job.job_id)

    assert calls == ["ran"]
    assert finished is not None
    assert finished.status == "succeeded"
    assert finished.finished_at is not None
    assert finished.as_dict()["extra"] == {"note": "x"}


@pytest.mark.asyncio
# 测试：任务抛出异常时状态为 failed，并保存错误信息。
async def test_job_failure_is_recorded() -> None:
    manager = BackgroundRunManager()

    async def _work() -> None:
        raise RuntimeError("kaput")

    job = await manager.enqueue("brew", _work)
    finished = await manager.wait(job.job_id)

    assert finished.status == "failed"
    assert finished.error == "kaput"


@pytest.mark.asyncio
async def test_unknown_job_returns_none() -> None:
    manager = BackgroundRunManager()
    assert await manager.get("missing") is None
    assert await manager.wait("missing") is None


@pytest.mark.asyncio
# 测试：关闭时取消仍在运行的任务并标记为失败。
async def test_shutdown_cancels_pending_jobs() -> None:
    manager = BackgroundRunManager()
    never = asyncio.Event()

    job = await manager.enqueue("brew", never.wait)
    await asyncio.sleep(0)
    await manager.shutdown(timeout=1.0)

    record = await manager.get(job.job_id)
    assert record.status == "failed"
    assert record.error.startswith("shutdown")


@pytest.mark.asyncio
# 测试：已结束任务的记录超过上限时，最早结束的记录被移除。
async def test_finished_jobs_are_capped() -> None:
    manager = BackgroundRunManager(max_finished_jobs=2)

    async def _work() -> None:
        return None

    job_ids = []
    for _ in range(3):
        job = await manager.enqueue("brew", _work)
        await manager.wait(job.job_id)
        job_ids.append(job.job_id)

    assert await manager.get(job_ids[0]) is None
    assert (await manager.get(job_ids[1])).status == "succeeded"
    assert (await manager.get(job_ids[2])).status == "succeeded"
