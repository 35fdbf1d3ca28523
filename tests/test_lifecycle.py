from __future__ import annotations

import logging

import pytest

from hybrid_sim.component import BouncingBall, ComponentCallbacks, Dahlquist, Stair, Status
from hybrid_sim.core import (
    AllocationFailure,
    InstantiationFailure,
    LifecycleManager,
    LifecycleStatusFailure,
    log_component_message,
    release,
)
from hybrid_sim.events import EventBus, EventType, SimEvent
from hybrid_sim.model import Mode, VariableSpec


def _ball_variables() -> list[VariableSpec]:
    return [VariableSpec.model_validate(row) for row in BouncingBall().model_variables()]


def test_start_enters_continuous_time_and_samples_initial_values() -> None:
    bus = EventBus()
    seen: list[SimEvent] = []
    bus.subscribe(seen.append)

    state = LifecycleManager(BouncingBall(params={"h0": 2.0}), instance_name="ball", bus=bus).start(
        0.0, 1.0, 0.1, _ball_variables()
    )

    assert state.mode == Mode.CONTINUOUS_TIME
    assert (state.nx, state.nz) == (2, 1)
    assert state.prez == state.z == [2.0]
    assert state.output.latest[0] == 0.0
    assert state.output.latest[1] == 2.0
    assert state.output.series[0] == []
    assert [event.type for event in seen] == [EventType.INSTANTIATED, EventType.INITIALIZED]
    release(state)


def test_indicator_buffers_are_skipped_without_indicators(tracking_allocator) -> None:
    allocator = tracking_allocator()
    state = LifecycleManager(Dahlquist(), callbacks=allocator.callbacks()).start(
        0.0, 1.0, 0.1, [VariableSpec(name="time", value_reference=0)]
    )

    assert state.z is None
    assert state.prez is None
    assert len(allocator.allocated) == 2
    release(state)
    assert allocator.leaked == []


@pytest.mark.parametrize("fail_at,buffer_name", [(0, "x"), (1, "xdot"), (2, "z"), (3, "prez")])
def test_allocation_failure_releases_everything_acquired(
    tracking_allocator,
    count_calls,
    fail_at: int,
    buffer_name: str,
) -> None:
    allocator = tracking_allocator(fail_at=fail_at)
    ball = BouncingBall()
    calls = count_calls(ball, "free_instance", "terminate")

    with pytest.raises(AllocationFailure) as exc_info:
        LifecycleManager(ball, callbacks=allocator.callbacks()).start(0.0, 1.0, 0.1, _ball_variables())

    assert exc_info.value.buffer_name == buffer_name
    assert len(allocator.allocated) == fail_at
    assert allocator.leaked == []
    assert len(allocator.freed) == fail_at
    assert calls["free_instance"] == 1
    assert calls["terminate"] == 0


def test_allocator_returning_wrong_size_is_an_allocation_failure() -> None:
    callbacks = ComponentCallbacks(allocate=lambda size: [0.0] * (size + 1))

    with pytest.raises(AllocationFailure, match="x\\[2\\]"):
        LifecycleManager(BouncingBall(), callbacks=callbacks).start(0.0, 1.0, 0.1, _ball_variables())


def test_missing_handle_is_an_instantiation_failure(count_calls) -> None:
    ball = BouncingBall()
    calls = count_calls(ball, "free_instance")

    with pytest.raises(InstantiationFailure) as exc_info:
        LifecycleManager(ball, guid="{not-the-ball}").start(0.0, 1.0, 0.1, _ball_variables())

    assert exc_info.value.status == Status.FATAL
    assert exc_info.value.operation == "instantiate"
    assert calls["free_instance"] == 0


@pytest.mark.parametrize(
    "operation",
    [
        "setup_experiment",
        "enter_initialization_mode",
        "exit_initialization_mode",
        "new_discrete_states",
        "enter_continuous_time_mode",
        "get_event_indicators",
        "get_real",
    ],
)
@pytest.mark.parametrize("status", [Status.DISCARD, Status.ERROR, Status.FATAL])
def test_status_failure_during_startup_frees_instance_once(
    inject_failure,
    count_calls,
    tracking_allocator,
    operation: str,
    status: Status,
) -> None:
    allocator = tracking_allocator()
    ball = BouncingBall()
    inject_failure(ball, operation, status)
    calls = count_calls(ball, "free_instance", "terminate")
    bus = EventBus()
    seen: list[SimEvent] = []
    bus.subscribe(seen.append)

    with pytest.raises(LifecycleStatusFailure) as exc_info:
        LifecycleManager(ball, callbacks=allocator.callbacks(), bus=bus).start(0.0, 1.0, 0.1, _ball_variables())

    assert exc_info.value.status == status
    assert exc_info.value.operation.startswith(operation)
    assert calls["free_instance"] == 1
    assert calls["terminate"] == 0
    assert allocator.leaked == []
    assert seen[-1].type == EventType.ERROR


def test_warning_status_is_logged_and_startup_continues(inject_failure, caplog) -> None:
    ball = BouncingBall()
    inject_failure(ball, "setup_experiment", Status.WARNING)

    with caplog.at_level(logging.WARNING, logger="hybrid_sim.core.lifecycle"):
        state = LifecycleManager(ball).start(0.0, 1.0, 0.1, _ball_variables())

    assert state.mode == Mode.CONTINUOUS_TIME
    assert "setup_experiment returned Warning" in caplog.text
    release(state)


def test_termination_requested_while_settling_is_not_a_failure(count_calls) -> None:
    stair = Stair(params={"start": 5, "max_count": 5})
    original = stair.new_discrete_states

    def _terminate_immediately(handle, event_info):
        status = original(handle, event_info)
        event_info.terminate_simulation = True
        return status

    stair.new_discrete_states = _terminate_immediately
    calls = count_calls(stair, "enter_continuous_time_mode", "terminate", "free_instance")
    bus = EventBus()
    seen: list[SimEvent] = []
    bus.subscribe(seen.append)

    state = LifecycleManager(stair, bus=bus).start(0.0, 10.0, 1.0, [VariableSpec(name="time", value_reference=0)])

    assert state.terminated is True
    assert state.has_more is False
    assert state.mode == Mode.EVENT
    assert calls["enter_continuous_time_mode"] == 0
    assert seen[-1].type == EventType.TERMINATE_REQUESTED

    release(state)
    assert calls["terminate"] == 1
    assert calls["free_instance"] == 1


def test_settling_repeats_until_fixed_point() -> None:
    ball = BouncingBall()
    original = ball.new_discrete_states
    rounds = {"n": 0}

    def _needs_three_rounds(handle, event_info):
        status = original(handle, event_info)
        rounds["n"] += 1
        event_info.new_discrete_states_needed = rounds["n"] < 3
        return status

    ball.new_discrete_states = _needs_three_rounds

    state = LifecycleManager(ball).start(0.0, 1.0, 0.1, _ball_variables())

    assert rounds["n"] == 3
    assert state.mode == Mode.CONTINUOUS_TIME
    release(state)


def test_release_is_idempotent(count_calls, tracking_allocator) -> None:
    allocator = tracking_allocator()
    ball = BouncingBall()
    calls = count_calls(ball, "terminate", "free_instance")
    state = LifecycleManager(ball, callbacks=allocator.callbacks()).start(0.0, 1.0, 0.1, _ball_variables())

    release(state)
    release(state)

    assert calls["terminate"] == 1
    assert calls["free_instance"] == 1
    assert len(allocator.freed) == 4
    assert allocator.leaked == []
    assert state.handle is None
    assert state.mode == Mode.TERMINATED


def test_terminate_failure_is_reported_after_freeing(inject_failure, count_calls) -> None:
    ball = BouncingBall()
    inject_failure(ball, "terminate", Status.ERROR)
    calls = count_calls(ball, "free_instance")
    state = LifecycleManager(ball).start(0.0, 1.0, 0.1, _ball_variables())

    with pytest.raises(LifecycleStatusFailure, match="terminate failed with status ERROR"):
        release(state)

    assert calls["free_instance"] == 1
    assert state.released is True


@pytest.mark.parametrize("t_start,t_end,h", [(0.0, 1.0, 0.0), (0.0, 1.0, -0.1), (1.0, 1.0, 0.1), (2.0, 1.0, 0.1)])
def test_invalid_horizon_is_rejected_before_instantiation(count_calls, t_start, t_end, h) -> None:
    ball = BouncingBall()
    calls = count_calls(ball, "instantiate")

    with pytest.raises(ValueError):
        LifecycleManager(ball).start(t_start, t_end, h, _ball_variables())

    assert calls["instantiate"] == 0


def test_component_messages_map_status_to_log_level(caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="hybrid_sim.component"):
        log_component_message(None, "ball", Status.OK, "logEvents", "bounce")
        log_component_message(None, "ball", Status.FATAL, "logStatusFatal", "broken")

    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.DEBUG, logging.CRITICAL]
    assert "ball (logEvents): bounce" in caplog.records[0].getMessage()


def test_unknown_debug_category_fails_startup() -> None:
    ball = BouncingBall()

    with pytest.raises(LifecycleStatusFailure, match="set_debug_logging"):
        LifecycleManager(ball, debug_categories=["noSuchCategory"]).start(0.0, 1.0, 0.1, _ball_variables())
