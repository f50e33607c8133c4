"""
Agent pipeline tests: cadence, grid handling, determinism and run loop termination
"""
import numpy as np
import pytest

from aedoom_ai.config import Config
from aedoom_ai.core.actions import Action, action_space
from aedoom_ai.core.agent import AedoomAgent, DecisionCadence
from aedoom_ai.input.action_sink import CallbackSink, RecordingSink
from aedoom_ai.perception.frame_source import StaticFrameSource, split_scene


def test_cadence_includes_first_frame():
    cadence = DecisionCadence(30)
    assert [i for i in range(100) if cadence.is_due(i)] == [0, 30, 60, 90]
    with pytest.raises(ValueError):
        DecisionCadence(0)


def test_process_frame_decides_on_cadence(headless_config):
    sink = RecordingSink()
    agent = AedoomAgent(config=headless_config, sink=sink)
    frame = split_scene(16, 16)
    try:
        results = [agent.process_frame(frame) for _ in range(11)]
    finally:
        agent.close()

    decided = [i for i, action in enumerate(results) if action is not None]
    assert decided == [0, 5, 10]
    assert sink.actions == [results[i] for i in decided]
    assert agent.state[0] == sink.actions[-1]
    assert agent.performance_monitor.frame_count == 11
    assert agent.performance_monitor.decision_count == 3


def test_headless_samples_a_quarter_of_the_cells(headless_config):
    agent = AedoomAgent(config=headless_config)
    try:
        votes = agent.observe(split_scene(32, 32))
    finally:
        agent.close()
    assert agent.grid.size == 16
    assert len(votes) == 4
    assert len({v.cell for v in votes}) == 4
    assert agent.grid.allocated == 4


def test_at_least_one_cell_per_frame(headless_config):
    agent = AedoomAgent(config=headless_config, headless=False)
    try:
        assert len(agent.observe(split_scene(16, 16))) == 1
    finally:
        agent.close()


def test_grid_rebuilt_on_dimension_change(headless_config):
    agent = AedoomAgent(config=headless_config)
    try:
        agent.process_frame(split_scene(16, 16))
        first = agent.grid
        agent.process_frame(split_scene(16, 16))
        assert agent.grid is first
        agent.process_frame(split_scene(16, 32))
    finally:
        agent.close()
    assert agent.grid is not first
    assert agent.grid.shape == (4, 2)
    assert agent.performance_monitor.grid_rebuilds == 2


def test_grid_rebuilt_when_frame_size_changes_within_the_same_layout(headless_config):
    agent = AedoomAgent(config=headless_config)
    try:
        agent.process_frame(split_scene(16, 16))
        first = agent.grid
        agent.process_frame(split_scene(16, 17))
    finally:
        agent.close()
    assert agent.grid is not first
    assert agent.grid.shape == first.shape == (2, 2)
    assert agent.grid.frame_shape == (17, 16)
    assert agent.performance_monitor.grid_rebuilds == 2


def test_same_seed_same_actions(headless_config):
    def run_once():
        sink = RecordingSink()
        agent = AedoomAgent(config=headless_config, sink=sink)
        agent.run(StaticFrameSource(split_scene(32, 32), count=26))
        return sink.actions, agent.state.as_tuple()

    first_actions, first_state = run_once()
    second_actions, second_state = run_once()
    assert first_actions == second_actions
    assert first_state == second_state
    assert len(first_actions) == 6
    assert set(first_actions) <= set(action_space(6))


def test_static_two_tone_scene_settles_on_one_action():
    def run_once():
        sink = RecordingSink()
        agent = AedoomAgent(config=Config().replace(NUM_WORKERS=2), sink=sink, headless=False)
        assert agent.run(StaticFrameSource(split_scene(16, 16, top=40, bottom=200), count=300)) == 300
        return agent, sink.actions

    agent, actions = run_once()
    assert len(actions) == 10
    assert actions == [Action.LEFT] * 10
    assert not agent.last_decision.trained
    assert [ae.iteration for ae in agent.mind.members] == [0] * 6
    assert agent.grid.allocated >= 1

    _, again = run_once()
    assert again == actions


def test_markov_order_zero_runs(headless_config):
    sink = RecordingSink()
    cfg = headless_config.replace(MARKOV_ORDER=0)
    agent = AedoomAgent(config=cfg, sink=sink)
    frame = np.random.default_rng(3).integers(0, 256, size=(32, 32, 3), dtype=np.uint8)
    assert agent.run(StaticFrameSource(frame, count=11)) == 11
    assert len(sink.actions) == 3
    assert agent.last_decision.trained
    assert agent.state.as_tuple() == ()
    assert agent.performance_monitor.error_count == 0
    assert agent.scheduler.failed == 0


def test_run_after_close_is_rejected(headless_config):
    agent = AedoomAgent(config=headless_config)
    agent.run(StaticFrameSource(split_scene(16, 16), count=2))
    with pytest.raises(RuntimeError):
        agent.run(StaticFrameSource(split_scene(16, 16), count=2))


def test_run_stops_at_end_of_stream(headless_config):
    agent = AedoomAgent(config=headless_config)
    assert agent.run(StaticFrameSource(split_scene(16, 16), count=7)) == 7
    assert agent.scheduler._closed


def test_run_honours_max_frames(headless_config):
    agent = AedoomAgent(config=headless_config)
    assert agent.run(StaticFrameSource(split_scene(16, 16)), max_frames=4) == 4


def test_stop_ends_run(headless_config):
    holder = []
    agent = AedoomAgent(config=headless_config, sink=CallbackSink(lambda action: holder[0].stop()))
    holder.append(agent)
    assert agent.run(StaticFrameSource(split_scene(16, 16))) == 1
    assert not agent.running


def test_bad_frames_are_recorded_and_skipped(headless_config):
    agent = AedoomAgent(config=headless_config)
    frames = [None, np.zeros((4, 4), dtype=np.uint8), split_scene(16, 16)]
    assert agent.run(frames) == 1
    assert agent.performance_monitor.error_count == 1
    assert agent.error_handler.get_error_stats()['total_errors'] == 1
    assert agent.running


def test_failed_cell_task_does_not_block_the_decision(headless_config):
    agent = AedoomAgent(config=headless_config)

    def broken(task):
        raise RuntimeError("cell exploded")

    agent._evaluate_cell = broken
    try:
        action = agent.process_frame(split_scene(16, 16))
    finally:
        agent.close()
    assert isinstance(action, Action)
    assert agent.performance_monitor.error_count == 1
    assert agent.scheduler.failed == 1
