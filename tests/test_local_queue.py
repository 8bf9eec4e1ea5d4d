"""Tests for the single-worker local dispatch queue."""
import asyncio

import pytest

from pkg.queue.local_queue import LocalQueue


class TestLocalQueue:

    async def test_runs_in_submission_order_without_overlap(self):
        queue = LocalQueue()
        started, finished = [], []
        active = 0
        peak = 0

        def job(n):
            async def _run():
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                started.append(n)
                # earlier jobs are slower, so any overlap would reorder completion
                await asyncio.sleep((5 - n) * 0.01)
                finished.append(n)
                active -= 1
                return n * 10
            return _run

        results = await asyncio.gather(*(queue.enqueue(job(n)) for n in range(5)))

        assert results == [0, 10, 20, 30, 40]
        assert started == [0, 1, 2, 3, 4]
        assert finished == [0, 1, 2, 3, 4]
        assert peak == 1

    async def test_failure_rejects_only_its_caller(self):
        queue = LocalQueue()

        async def boom():
            raise RuntimeError("local model crashed")

        async def fine():
            return "ok"

        results = await asyncio.gather(
            queue.enqueue(fine),
            queue.enqueue(boom),
            queue.enqueue(fine),
            return_exceptions=True,
        )

        assert results[0] == "ok"
        assert isinstance(results[1], RuntimeError)
        assert results[2] == "ok"
        assert not queue.is_processing()

    async def test_status_reflects_pending_work(self):
        queue = LocalQueue()
        gate = asyncio.Event()

        async def blocked():
            await gate.wait()
            return "first"

        async def second():
            return "second"

        first_task = asyncio.create_task(queue.enqueue(blocked))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert queue.is_processing()

        second_task = asyncio.create_task(queue.enqueue(second))
        await asyncio.sleep(0)
        assert queue.status() == {"queueSize": 1, "processing": True}

        gate.set()
        assert await first_task == "first"
        assert await second_task == "second"
        assert queue.status() == {"queueSize": 0, "processing": False}

    async def test_idle_queue_restarts_after_draining(self):
        queue = LocalQueue()

        async def value():
            return 1

        assert await queue.enqueue(value) == 1
        assert not queue.is_processing()
        assert await queue.enqueue(value) == 1

    async def test_cancelled_caller_is_skipped(self):
        queue = LocalQueue()
        gate = asyncio.Event()
        ran = []

        async def blocked():
            await gate.wait()

        async def record():
            ran.append("x")

        first = asyncio.create_task(queue.enqueue(blocked))
        await asyncio.sleep(0)
        cancelled = asyncio.create_task(queue.enqueue(record))
        await asyncio.sleep(0)
        cancelled.cancel()
        with pytest.raises(asyncio.CancelledError):
            await cancelled

        gate.set()
        await first
        await asyncio.sleep(0)
        assert ran == []

    async def test_cancelled_operation_does_not_stall_queue(self):
        queue = LocalQueue()

        async def interrupted():
            raise asyncio.CancelledError()

        async def fine():
            return "ok"

        first = asyncio.create_task(queue.enqueue(interrupted))
        second = asyncio.create_task(queue.enqueue(fine))

        assert await asyncio.wait_for(second, timeout=1) == "ok"
        with pytest.raises(asyncio.CancelledError):
            await first
        assert queue.status() == {"queueSize": 0, "processing": False}
