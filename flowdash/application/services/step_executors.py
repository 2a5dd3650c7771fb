"""Built-in step executors.

Each executor runs one step type. The built-ins only simulate work with a
short sleep (scaled by ``delay_scale``; 0 makes them instant) and return a
small output dict recorded in the step's completion log.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from flowdash.domain.enums import StepType
from flowdash.domain.exceptions import DependencyUnavailableException
from flowdash.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from flowdash.application.interfaces.services import IStepExecutor, StepContext
    from flowdash.domain.value_objects import WorkflowStep

logger = get_logger(__name__)

TRIGGER_DELAY_SECONDS = 0.1
ACTION_DELAY_SECONDS = 0.5
CONDITION_DELAY_SECONDS = 0.05
TRANSFORM_DELAY_SECONDS = 0.2


class _SimulatedStepExecutor:
    """Sleeps for base_delay * delay_scale seconds."""

    base_delay: float = 0.0

    def __init__(self, delay_scale: float = 1.0) -> None:
        self._delay = self.base_delay * delay_scale

    async def _simulate(self) -> None:
        if self._delay > 0:
            await asyncio.sleep(self._delay)


class TriggerStepExecutor(_SimulatedStepExecutor):
    base_delay = TRIGGER_DELAY_SECONDS

    async def execute(self, step: WorkflowStep, context: StepContext) -> dict[str, Any] | None:
        await self._simulate()
        return {"triggered": True}


class ActionStepExecutor(_SimulatedStepExecutor):
    """Runs an action; a requiresApp action needs its app to hold a valid token."""

    base_delay = ACTION_DELAY_SECONDS

    async def execute(self, step: WorkflowStep, context: StepContext) -> dict[str, Any] | None:
        if step.requires_app:
            app = context.find_app(step.app_name)
            if app is None or not app.has_valid_token():
                raise DependencyUnavailableException(
                    f"App {step.app_name} authentication failed",
                    app_name=step.app_name,
                    step_id=step.id,
                )
            logger.debug(
                "Action step %s using app %s (execution_id=%s)",
                step.id,
                step.app_name,
                context.execution_id,
            )
        await self._simulate()
        output: dict[str, Any] = {"action": step.config.get("action", step.name)}
        if step.app_name:
            output["app"] = step.app_name
        return output


class ConditionStepExecutor(_SimulatedStepExecutor):
    base_delay = CONDITION_DELAY_SECONDS

    async def execute(self, step: WorkflowStep, context: StepContext) -> dict[str, Any] | None:
        await self._simulate()
        return {"result": bool(step.config.get("expected", True))}


class TransformStepExecutor(_SimulatedStepExecutor):
    base_delay = TRANSFORM_DELAY_SECONDS

    async def execute(self, step: WorkflowStep, context: StepContext) -> dict[str, Any] | None:
        await self._simulate()
        return {"transformed": True}


def default_step_executors(delay_scale: float = 1.0) -> dict[str, IStepExecutor]:
    """Return the built-in executor registry keyed by step type."""
    return {
        StepType.TRIGGER.value: TriggerStepExecutor(delay_scale),
        StepType.ACTION.value: ActionStepExecutor(delay_scale),
        StepType.CONDITION.value: ConditionStepExecutor(delay_scale),
        StepType.TRANSFORM.value: TransformStepExecutor(delay_scale),
    }
