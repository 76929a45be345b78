import logging
from unittest import mock

import pytest

from urkinematics.controller_stopper import (
    ControllerInfo,
    ControllerStopper,
    Strictness,
)


class FakeManager:
    def __init__(self, listings, switch_result=True):
        self._listings = list(listings)
        self.switch_calls = []
        self.list_calls = 0
        self.switch_result = switch_result

    def list_controllers(self):
        self.list_calls += 1
        index = min(self.list_calls - 1, len(self._listings) - 1)
        return self._listings[index]

    def switch_controller(self, start_controllers, stop_controllers, strictness):
        self.switch_calls.append((list(start_controllers), list(stop_controllers), strictness))
        return self.switch_result


STANDARD = [
    ControllerInfo("joint_state_controller", "running"),
    ControllerInfo("scaled_pos_joint_traj_controller", "running"),
    ControllerInfo("speed_scaling_state_controller", "running"),
    ControllerInfo("pos_joint_traj_controller", "stopped"),
]


def test_default_consistent_controllers_are_kept():
    stopper = ControllerStopper(FakeManager([STANDARD]))
    assert stopper.consistent_controllers == ["joint_state_controller"]
    assert stopper.stopped_controllers == [
        "scaled_pos_joint_traj_controller",
        "speed_scaling_state_controller",
    ]


def test_custom_consistent_controllers():
    stopper = ControllerStopper(
        FakeManager([STANDARD]),
        ["joint_state_controller", "speed_scaling_state_controller"],
    )
    assert stopper.stopped_controllers == ["scaled_pos_joint_traj_controller"]


def test_initially_running_without_switch():
    manager = FakeManager([STANDARD])
    stopper = ControllerStopper(manager)
    assert stopper.robot_running is True
    stopper.robot_running_callback(True)
    assert manager.switch_calls == []


def test_stop_then_start():
    manager = FakeManager([STANDARD])
    stopper = ControllerStopper(manager)
    stopper.robot_running_callback(False)
    expected = ["scaled_pos_joint_traj_controller", "speed_scaling_state_controller"]
    assert manager.switch_calls == [([], expected, Strictness.STRICT)]
    assert stopper.robot_running is False

    stopper.robot_running_callback(False)
    assert len(manager.switch_calls) == 1

    stopper.robot_running_callback(True)
    assert manager.switch_calls[-1] == (expected, [], Strictness.STRICT)
    assert stopper.robot_running is True


def test_stop_queries_current_controllers():
    later = [
        ControllerInfo("joint_state_controller", "running"),
        ControllerInfo("scaled_vel_joint_traj_controller", "running"),
    ]
    manager = FakeManager([STANDARD, later])
    stopper = ControllerStopper(manager)
    stopper.robot_running_callback(False)
    assert manager.switch_calls[-1][1] == ["scaled_vel_joint_traj_controller"]
    assert stopper.stopped_controllers == ["scaled_vel_joint_traj_controller"]


def test_failed_switch_is_logged(caplog):
    manager = FakeManager([STANDARD], switch_result=False)
    stopper = ControllerStopper(manager)
    with caplog.at_level(logging.ERROR):
        stopper.robot_running_callback(False)
        stopper.robot_running_callback(True)
    messages = [record.getMessage() for record in caplog.records]
    assert "Could not stop requested controllers" in messages
    assert "Could not activate requested controllers" in messages
    assert stopper.robot_running is True


def test_waits_until_controllers_are_running():
    manager = FakeManager([[], [ControllerInfo("joint_state_controller", "running")], STANDARD])
    with mock.patch("urkinematics.controller_stopper.time.sleep") as sleep:
        stopper = ControllerStopper(manager)
    assert manager.list_calls == 3
    assert sleep.call_count == 2
    assert stopper.stopped_controllers == [
        "scaled_pos_joint_traj_controller",
        "speed_scaling_state_controller",
    ]


@pytest.mark.parametrize("state", ["stopped", "initialized"])
def test_non_running_controllers_are_ignored(state):
    listing = [
        ControllerInfo("other_controller", state),
        ControllerInfo("scaled_pos_joint_traj_controller", "running"),
    ]
    stopper = ControllerStopper(FakeManager([listing]))
    assert stopper.find_stoppable_controllers() == ["scaled_pos_joint_traj_controller"]