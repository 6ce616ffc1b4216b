"""
Named-step sagas for workflows that span the ledger and the relational store.

The two stores cannot share a transaction. A workflow runs its steps through a
:class:`Saga`; each completed step may register a compensation, and on failure
the caller invokes :meth:`Saga.compensate`, which undoes completed steps in
reverse order. Compensation is best-effort: a failing compensation is logged
and the remaining ones still run.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass
class _CompletedStep:
    name: str
    compensation: Callable[[], Awaitable[Any]] | None


class Saga:
    """Ordered record of completed steps and their compensations."""

    def __init__(self, name: str, **context: Any) -> None:
        self.name = name
        self.context = context
        self._completed: list[_CompletedStep] = []

    @property
    def completed_steps(self) -> list[str]:
        return [step.name for step in self._completed]

    async def run(
        self,
        step_name: str,
        action: Callable[[], Awaitable[T]],
        compensation: Callable[[], Awaitable[Any]] | None = None,
        compensate_when: Callable[[T], bool] | None = None,
    ) -> T:
        """
        Run one step. The compensation is registered only if the step succeeds.

        ``compensate_when`` inspects the step's result; when it returns False
        the step is recorded without a compensation (e.g. an idempotent insert
        that found the row already stored).
        """
        try:
            result = await action()
        except Exception:
            logger.warning("saga_step_failed", saga=self.name, step=step_name, **self.context)
            raise
        if compensate_when is not None and not compensate_when(result):
            compensation = None
        self._completed.append(_CompletedStep(step_name, compensation))
        logger.debug("saga_step_completed", saga=self.name, step=step_name, **self.context)
        return result

    async def compensate(self) -> list[str]:
        """
        Undo completed steps in reverse order.

        Returns the names of steps whose compensation failed. Never raises.
        """
        failed: list[str] = []
        for step in reversed(self._completed):
            if step.compensation is None:
                continue
            try:
                await step.compensation()
                logger.info("saga_step_compensated", saga=self.name, step=step.name, **self.context)
            except Exception:
                logger.exception("saga_compensation_failed", saga=self.name, step=step.name, **self.context)
                failed.append(step.name)
        self._completed.clear()
        return failed
