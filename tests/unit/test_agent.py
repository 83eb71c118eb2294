"""
Unit tests for the Agent class.

Covers:
- __init__: location, behaviour and schedule validation
- _set_initial_state(): placement for every part of the day
- get_next_state(): transition table, recharge only at home or work
- run(): elapsed time sums to the request, state chaining, errors
- _check_state(): departures forced by the schedule, turning around en route
- stranding: agent stays in Drive without progress
- logs / history: bounded, snapshot contents
"""

import pytest
from types import SimpleNamespace

from conftest import at_hour
from ev_demand.agent import HOME, WORK, Agent, RechargePolicy
from ev_demand.states import Drive, Idle, StateKind, StateStatus


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_agent(data, hour, charge=100.0, time_to_work=8.0, time_to_home=17.0, **kwargs):
    return Agent(
        agent_id=1,
        data=data,
        home="A",
        work="B",
        car=data.new_car("c1", charge),
        recharge_behavior="std",
        time_to_work=time_to_work,
        time_to_home=time_to_home,
        timestamp=at_hour(hour),
        **kwargs,
    )


class Stuck(Idle):
    """Idle variant that never lets time pass."""

    def _on_run(self, duration):
        return 0.0


# ---------------------------------------------------------------------------
# __init__
# ---------------------------------------------------------------------------

class TestAgentInit:
    def test_unknown_home_rejected(self, reference_data):
        with pytest.raises(ValueError, match="home location 'Z'"):
            Agent(1, reference_data, "Z", "B", reference_data.new_car("c1"), "std",
                  8.0, 17.0, at_hour(6))

    def test_unknown_work_rejected(self, reference_data):
        with pytest.raises(ValueError, match="work location 'Z'"):
            Agent(1, reference_data, "A", "Z", reference_data.new_car("c1"), "std",
                  8.0, 17.0, at_hour(6))

    def test_unknown_behavior_rejected(self, reference_data):
        with pytest.raises(ValueError, match="recharge behavior"):
            Agent(1, reference_data, "A", "B", reference_data.new_car("c1"), "nope",
                  8.0, 17.0, at_hour(6))

    @pytest.mark.parametrize("to_work, to_home", [(17.0, 8.0), (8.0, 8.0), (8.0, 24.0), (-1.0, 8.0)])
    def test_invalid_schedule_rejected(self, reference_data, to_work, to_home):
        with pytest.raises(ValueError, match="schedule"):
            make_agent(reference_data, 6, time_to_work=to_work, time_to_home=to_home)

    def test_repr_of_partly_built_agent(self, reference_data):
        with pytest.raises(ValueError, match="schedule") as excinfo:
            make_agent(reference_data, 6, time_to_work=12.0, time_to_home=10.0)
        agent = excinfo.traceback[-1].locals["self"]
        assert repr(agent) == "Agent(1, A->B, None, unplaced, charge=100.0%)"

    def test_route_helpers(self, reference_data):
        agent = make_agent(reference_data, 6)
        assert agent.route_distance(HOME, WORK) == 20.0
        assert agent.route_distance(WORK, HOME) == 20.0
        assert agent.travel_duration(HOME, WORK) == pytest.approx(0.5)
        with pytest.raises(ValueError, match="location label"):
            agent.location_id("gym")


# ---------------------------------------------------------------------------
# _set_initial_state()
# ---------------------------------------------------------------------------

class TestInitialState:
    def test_before_work_idle_at_home(self, reference_data):
        agent = make_agent(reference_data, 6)
        assert isinstance(agent.state, Idle)
        assert agent.location == HOME
        assert agent.state.status is StateStatus.PENDING

    def test_commuting_to_work(self, reference_data):
        agent = make_agent(reference_data, 8.25)
        assert isinstance(agent.state, Drive)
        assert (agent.state.origin, agent.state.destination) == (HOME, WORK)
        assert agent.location == "home|work=050"
        assert agent.state.elapsed == pytest.approx(900.0)
        assert agent.car.charge == pytest.approx(95.0)

    def test_at_work(self, reference_data):
        agent = make_agent(reference_data, 12)
        assert isinstance(agent.state, Idle)
        assert agent.location == WORK
        assert agent.state.elapsed == pytest.approx(3.5 * 3600)

    def test_commuting_home(self, reference_data):
        agent = make_agent(reference_data, 17.25)
        assert isinstance(agent.state, Drive)
        assert (agent.state.origin, agent.state.destination) == (WORK, HOME)
        assert agent.location == "work|home=050"

    def test_evening_idle_at_home(self, reference_data):
        agent = make_agent(reference_data, 20)
        assert isinstance(agent.state, Idle)
        assert agent.location == HOME
        assert agent.state.elapsed == pytest.approx(2.5 * 3600)

    def test_placement_logged(self, reference_data):
        agent = make_agent(reference_data, 6)
        assert len(agent.logs) == 1
        assert agent.logs[0]['timestamp'] == at_hour(6)
        assert agent.logs[0]['location'] == HOME


# ---------------------------------------------------------------------------
# get_next_state()
# ---------------------------------------------------------------------------

class TestNextState:
    def test_idle_at_home_drives_to_work(self, reference_data):
        state = make_agent(reference_data, 6).get_next_state()
        assert isinstance(state, Drive)
        assert (state.origin, state.destination) == (HOME, WORK)

    def test_idle_at_work_drives_home(self, reference_data):
        state = make_agent(reference_data, 12).get_next_state()
        assert isinstance(state, Drive)
        assert (state.origin, state.destination) == (WORK, HOME)

    def test_no_recharge_mid_route(self, reference_data):
        agent = make_agent(reference_data, 8.25, charge=30.0)
        assert agent.wants_recharge()
        assert not agent.can_recharge()
        assert isinstance(agent.get_next_state(), Idle)

    def test_low_charge_recharges_on_arrival(self, reference_data):
        agent = make_agent(reference_data, 8.25, charge=40.0)
        agent.run(1800)
        assert agent.location == WORK
        assert agent.state.kind is StateKind.RECHARGE

    def test_high_charge_idles_on_arrival(self, reference_data):
        agent = make_agent(reference_data, 8.25, charge=100.0)
        agent.run(1800)
        assert agent.location == WORK
        assert agent.state.kind is StateKind.IDLE

    def test_policy_decides(self, reference_data):
        agent = make_agent(reference_data, 8.25, charge=100.0,
                           recharge_policy=RechargePolicy(threshold=0.0))
        agent.run(1800)
        assert agent.state.kind is StateKind.RECHARGE

    def test_unknown_last_state_rejected(self, reference_data):
        agent = make_agent(reference_data, 6)
        agent._state = SimpleNamespace(kind="swim")
        with pytest.raises(RuntimeError, match="Invalid last state"):
            agent.get_next_state()


# ---------------------------------------------------------------------------
# run()
# ---------------------------------------------------------------------------

class TestAgentRun:
    def test_timestamp_advances_by_duration(self, reference_data):
        agent = make_agent(reference_data, 6)
        agent.run(1, 'h')
        assert agent.timestamp == pytest.approx(at_hour(7))

    def test_states_chain_within_one_run(self, reference_data):
        agent = make_agent(reference_data, 8.0)
        agent.run(1, 'h')
        assert agent.timestamp == pytest.approx(at_hour(9))
        assert agent.location == WORK
        assert isinstance(agent.state, Idle)
        assert agent.state.elapsed == pytest.approx(1800.0)
        assert [s.kind for s in agent.history] == [StateKind.DRIVE]

    def test_zero_duration_is_noop(self, reference_data):
        agent = make_agent(reference_data, 6)
        agent.run(0)
        assert agent.timestamp == at_hour(6)

    def test_negative_duration_rejected(self, reference_data):
        with pytest.raises(ValueError, match=">= 0"):
            make_agent(reference_data, 6).run(-10)

    def test_state_without_progress_rejected(self, reference_data):
        agent = make_agent(reference_data, 6)
        agent._state = Stuck(agent)
        with pytest.raises(RuntimeError, match="no progress"):
            agent.run(60)

    def test_full_day_round_trip(self, reference_data):
        agent = make_agent(reference_data, 0)
        for _ in range(240):
            agent.run(360)
        assert agent.timestamp == pytest.approx(at_hour(24))
        assert agent.location == HOME
        assert isinstance(agent.state, Idle)
        assert agent.car.odometer_km == pytest.approx(40.0)
        assert agent.car.charge == pytest.approx(80.0)


# ---------------------------------------------------------------------------
# _check_state()
# ---------------------------------------------------------------------------

class TestScheduleCorrection:
    def test_departure_time_ends_idle(self, reference_data):
        agent = make_agent(reference_data, 7.9)
        agent.run(0.2, 'h')
        assert isinstance(agent.state, Drive)
        assert agent.state.status is StateStatus.RUNNING
        assert agent.state.destination == WORK
        assert agent.location == HOME
        assert agent.history[-1].status is StateStatus.STOPPED

    def test_evening_departure_from_work(self, reference_data):
        agent = make_agent(reference_data, 16.9)
        agent.run(0.2, 'h')
        assert isinstance(agent.state, Drive)
        assert (agent.state.origin, agent.state.destination) == (WORK, HOME)

    def test_drive_in_right_direction_kept(self, reference_data):
        agent = make_agent(reference_data, 8.25)
        drive = agent.state
        agent.run(360)
        assert agent.state is drive

    def test_turns_around_en_route(self, reference_data):
        agent = make_agent(reference_data, 8.25, time_to_work=8.0, time_to_home=8.3)
        old = agent.state
        agent.run(360)
        assert isinstance(agent.state, Drive)
        assert (agent.state.origin, agent.state.destination) == (WORK, HOME)
        assert agent.state.distance_to == pytest.approx(14.0)
        assert agent.location == "work|home=070"
        assert old.status is StateStatus.STOPPED
        assert agent.history[-1] is old


# ---------------------------------------------------------------------------
# Stranding
# ---------------------------------------------------------------------------

class TestStranding:
    def test_stranded_agent_stays_in_drive(self, reference_data):
        agent = make_agent(reference_data, 8.0, charge=5.0)
        agent.run(1800)
        assert agent.is_stranded
        assert isinstance(agent.state, Drive)
        assert agent.location == "home|work=050"
        assert agent.car.odometer_km == pytest.approx(10.0)
        assert agent.timestamp == pytest.approx(at_hour(8.5))

    def test_stranded_agent_keeps_time(self, reference_data):
        agent = make_agent(reference_data, 8.0, charge=5.0)
        agent.run(1, 'h')
        agent.run(1, 'h')
        assert agent.timestamp == pytest.approx(at_hour(10))
        assert agent.location == "home|work=050"


# ---------------------------------------------------------------------------
# Logs / history
# ---------------------------------------------------------------------------

class TestAgentLogs:
    def test_logs_bounded(self, reference_data):
        agent = make_agent(reference_data, 0, max_logs=2, max_states=1)
        for _ in range(240):
            agent.run(360)
        assert len(agent.logs) == 2
        assert len(agent.history) == 1

    def test_zero_means_unbounded(self, reference_data):
        agent = make_agent(reference_data, 0, max_logs=0, max_states=0)
        for _ in range(240):
            agent.run(360)
        assert len(agent.logs) > 2
        assert len(agent.history) == len(agent.logs) - 1

    def test_snapshot_contents(self, reference_data):
        agent = make_agent(reference_data, 8.25)
        log = agent.get_log()
        assert log['state'] == "Drive"
        assert log['location'] == "home|work=050"
        assert log['charge'] == pytest.approx(95.0)
        assert log['status'] == "RUNNING"
        assert log['to'] == WORK
