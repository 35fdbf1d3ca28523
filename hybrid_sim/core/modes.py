"""Batch and incremental driving modes, and the host entry point."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from hybrid_sim.component import ComponentCallbacks, IComponent, Status
from hybrid_sim.model import (
    ComponentSpec,
    ExperimentSpec,
    LoggingSpec,
    RunMode,
    RunSummary,
    SimulationSpec,
    SimulationState,
    VariableSpec,
)

from .engine import SimEngine


@dataclass(frozen=True, slots=True)
class StepValue:
    """One pulled sample: ``(step_index, value, value, ...)``."""

    values: tuple[float, ...]

    @property
    def step_index(self) -> int:
        return int(self.values[0])


class Done:
    """End-of-sequence marker returned by ``IncrementalStepper.pull``."""

    _instance: "Done | None" = None

    def __new__(cls) -> "Done":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "DONE"


DONE = Done()


class BatchRunner:
    """Run a simulation to completion and report a summary."""

    def __init__(self, engine: SimEngine | None = None) -> None:
        self._engine = engine or SimEngine()

    @property
    def engine(self) -> SimEngine:
        return self._engine

    def run(self, spec: SimulationSpec) -> RunSummary:
        self._engine.build(spec)
        return self._engine.run()


class IncrementalStepper:
    """Forward-only sequence of steps, one per pull.

    The sequence is not restartable. It ends once the stop time is reached or
    the model asks to terminate, and the instance is released then. A failed
    pull propagates its error and leaves the instance alive so the host can
    pull again or give up; a sequence abandoned early must be closed
    explicitly, either with ``close()`` or by using the stepper as a context
    manager.
    """

    def __init__(self, engine: SimEngine) -> None:
        if engine.state is None:
            raise RuntimeError("engine must be built before stepping incrementally")
        self._engine = engine
        self._done = False

    @classmethod
    def start(cls, spec: SimulationSpec, engine: SimEngine | None = None) -> "IncrementalStepper":
        engine = engine or SimEngine()
        engine.build(spec)
        return cls(engine)

    @property
    def engine(self) -> SimEngine:
        return self._engine

    @property
    def state(self) -> SimulationState:
        return self._engine.state

    @property
    def done(self) -> bool:
        return self._done

    def pull(self) -> StepValue | Done:
        if self._done:
            return DONE
        state = self._engine.state
        before = state.step_count
        status = self._engine.step()
        # the step that reaches the stop time ends the sequence without a value
        if status == Status.DISCARD or state.step_count == before or not state.has_more:
            self._finish()
            return DONE
        return StepValue(self._engine.output_tuple())

    def summary(self) -> RunSummary:
        return self._engine.summary()

    def close(self) -> None:
        self._done = True
        self._engine.close()

    def _finish(self) -> None:
        self._done = True
        self._engine.publish_completed()
        self._engine.close()

    def __iter__(self) -> "IncrementalStepper":
        return self

    def __next__(self) -> tuple[float, ...]:
        result = self.pull()
        if isinstance(result, Done):
            raise StopIteration
        return result.values

    def __enter__(self) -> "IncrementalStepper":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        state = self._engine.state
        return f"IncrementalStepper({state.step_count * state.h:g}, {state.t_end:g})"


def simulate(
    component: IComponent,
    t_start: float,
    t_end: float,
    h: float,
    mode: RunMode | str = RunMode.BATCH,
    *,
    variables: Sequence[VariableSpec] | None = None,
    instance_name: str = "instance",
    callbacks: ComponentCallbacks | None = None,
    logging_on: bool = False,
) -> RunSummary | IncrementalStepper:
    """Host entry point.

    Batch mode returns the run summary; incremental mode returns a stepper
    the host pulls from.
    """
    spec = SimulationSpec(
        version="0.2",
        component=ComponentSpec(name=type(component).__name__, instance_name=instance_name),
        experiment=ExperimentSpec(
            start_time=t_start,
            stop_time=t_end,
            step_size=h,
            mode=RunMode(mode),
        ),
        logging=LoggingSpec(enabled=logging_on),
        variables=list(variables or []),
    )
    engine = SimEngine(component, callbacks=callbacks)
    if spec.experiment.mode == RunMode.INCREMENTAL:
        return IncrementalStepper.start(spec, engine)
    return BatchRunner(engine).run(spec)
