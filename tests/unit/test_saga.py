"""Saga tests: step registration and reverse-order best-effort compensation."""

import pytest

from reefsync.reconciliation.saga import Saga


class TestSaga:
    """Compensations run newest first and never raise."""

    @pytest.mark.asyncio
    async def test_run_returns_action_result(self):
        saga = Saga("test")

        async def action():
            return 7

        assert await saga.run("step", action) == 7
        assert saga.completed_steps == ["step"]

    @pytest.mark.asyncio
    async def test_compensates_in_reverse_order(self):
        calls: list[str] = []
        saga = Saga("test", owner="0x1")

        for name in ("a", "b", "c"):

            async def action():
                return None

            async def undo(name=name):
                calls.append(name)

            await saga.run(name, action, undo)

        assert await saga.compensate() == []
        assert calls == ["c", "b", "a"]
        assert saga.completed_steps == []

    @pytest.mark.asyncio
    async def test_failed_step_registers_no_compensation(self):
        calls: list[str] = []
        saga = Saga("test")

        async def ok():
            return None

        async def boom():
            raise RuntimeError("step failed")

        async def undo_ok():
            calls.append("ok")

        async def undo_boom():
            calls.append("boom")

        await saga.run("ok", ok, undo_ok)
        with pytest.raises(RuntimeError, match="step failed"):
            await saga.run("boom", boom, undo_boom)

        await saga.compensate()
        assert calls == ["ok"]

    @pytest.mark.asyncio
    async def test_failing_compensation_does_not_stop_the_rest(self):
        calls: list[str] = []
        saga = Saga("test")

        async def action():
            return None

        async def undo_first():
            calls.append("first")

        async def undo_second():
            raise RuntimeError("cannot undo")

        await saga.run("first", action, undo_first)
        await saga.run("second", action, undo_second)

        failed = await saga.compensate()
        assert failed == ["second"]
        assert calls == ["first"]

    @pytest.mark.asyncio
    async def test_steps_without_compensation_are_skipped(self):
        saga = Saga("test")

        async def action():
            return None

        await saga.run("read_only", action)
        assert await saga.compensate() == []

    @pytest.mark.asyncio
    async def test_compensate_when_false_skips_compensation(self):
        calls: list[str] = []
        saga = Saga("test")

        async def inserted():
            return True

        async def already_stored():
            return False

        async def undo_inserted():
            calls.append("inserted")

        async def undo_already_stored():
            calls.append("already_stored")

        await saga.run("inserted", inserted, undo_inserted, compensate_when=bool)
        await saga.run("already_stored", already_stored, undo_already_stored, compensate_when=bool)

        assert saga.completed_steps == ["inserted", "already_stored"]
        assert await saga.compensate() == []
        assert calls == ["inserted"]
