from __future__ import annotations

from pathlib import Path

import pytest

from hybrid_sim.component import BouncingBall, Status
from hybrid_sim.core import DONE, Done, IncrementalStepper, SimEngine, StepStatusFailure, StepValue
from hybrid_sim.events import EventType
from hybrid_sim.io import ConfigLoader


EXAMPLES = Path(__file__).resolve().parents[1] / "examples"


def _spec(name: str = "bouncing_ball.yaml"):
    return ConfigLoader().load(str(EXAMPLES / name))


def test_pull_yields_step_index_and_latest_values() -> None:
    stepper = IncrementalStepper.start(_spec())

    first = stepper.pull()
    second = stepper.pull()

    assert isinstance(first, StepValue)
    assert first.step_index == 1
    assert second.step_index == 2
    # step index plus every directory entry after the reserved one
    assert len(first.values) == len(BouncingBall().model_variables())
    assert first.values[3] < 0.0
    stepper.close()


def test_pull_signals_done_after_exhaustion_and_stays_done() -> None:
    stepper = IncrementalStepper.start(_spec("dahlquist.yaml"))

    values = []
    while True:
        result = stepper.pull()
        if result is DONE:
            break
        values.append(result)

    # the step reaching the stop time ends the sequence instead of yielding
    assert len(values) == 9
    assert values[-1].step_index == 9
    assert stepper.done is True
    assert stepper.pull() is DONE
    assert not DONE
    assert Done() is DONE
    assert stepper.state.released is True


def test_natural_end_publishes_completed_once() -> None:
    engine = SimEngine()
    stepper = IncrementalStepper.start(_spec("dahlquist.yaml"), engine)
    list(stepper)
    list(stepper)

    completed = [event for event in engine.events if event.type == EventType.COMPLETED]
    assert len(completed) == 1


def test_abandoned_sequence_is_released_by_close(count_calls) -> None:
    ball = BouncingBall()
    calls = count_calls(ball, "terminate", "free_instance")
    stepper = IncrementalStepper.start(_spec(), SimEngine(ball))

    for _ in range(10):
        stepper.pull()
    stepper.close()
    stepper.close()

    assert calls["terminate"] == 1
    assert calls["free_instance"] == 1
    assert stepper.pull() is DONE


def test_context_manager_releases_on_exit(count_calls) -> None:
    ball = BouncingBall()
    calls = count_calls(ball, "free_instance")

    with IncrementalStepper.start(_spec(), SimEngine(ball)) as stepper:
        for index, row in enumerate(stepper):
            if index == 4:
                break

    assert stepper.state.released is True
    assert calls["free_instance"] == 1


def test_summary_is_available_mid_sequence() -> None:
    with IncrementalStepper.start(_spec()) as stepper:
        for _ in range(50):
            stepper.pull()
        summary = stepper.summary()

    assert summary.steps == 50
    assert len(summary.series["h"]) == 50


def test_stepper_requires_built_engine() -> None:
    with pytest.raises(RuntimeError, match="built"):
        IncrementalStepper(SimEngine())


def test_repr_shows_progress() -> None:
    with IncrementalStepper.start(_spec()) as stepper:
        stepper.pull()
        assert repr(stepper) == "IncrementalStepper(0.01, 3)"


def test_failed_pull_keeps_instance_for_retry(inject_failure, count_calls) -> None:
    ball = BouncingBall()
    inject_failure(ball, "get_derivatives", Status.ERROR, after=3, times=1)
    calls = count_calls(ball, "terminate", "free_instance")
    stepper = IncrementalStepper.start(_spec(), SimEngine(ball))

    for _ in range(3):
        assert isinstance(stepper.pull(), StepValue)
    with pytest.raises(StepStatusFailure):
        stepper.pull()

    assert stepper.done is False
    assert stepper.state.released is False
    assert stepper.state.terminated is False
    assert stepper.state.failure_status == Status.ERROR

    retried = stepper.pull()
    assert isinstance(retried, StepValue)
    assert retried.step_index == 4
    stepper.close()
    assert calls["terminate"] == 1
    assert calls["free_instance"] == 1


def test_context_manager_releases_after_failed_pull(inject_failure, count_calls) -> None:
    ball = BouncingBall()
    inject_failure(ball, "get_derivatives", Status.ERROR, after=3)
    calls = count_calls(ball, "terminate", "free_instance")

    with pytest.raises(StepStatusFailure):
        with IncrementalStepper.start(_spec(), SimEngine(ball)) as stepper:
            for _ in stepper:
                pass

    assert stepper.done is True
    assert stepper.state.terminated is False
    assert calls["terminate"] == 0
    assert calls["free_instance"] == 1
    assert stepper.pull() is DONE
