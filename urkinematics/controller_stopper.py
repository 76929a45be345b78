"""Stop ROS-side controllers while the robot is not running and restart them afterwards."""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

logger = logging.getLogger(__name__)

DEFAULT_CONSISTENT_CONTROLLERS = ("joint_state_controller",)


class Strictness(enum.IntEnum):
    """How strictly a controller switch is carried out."""

    BEST_EFFORT = 1
    STRICT = 2


@dataclass(frozen=True)
class ControllerInfo:
    """A controller known to the controller manager and its state."""

    name: str
    state: str


class ControllerManager(Protocol):
    """What :class:`ControllerStopper` needs from a controller manager."""

    def list_controllers(self) -> Iterable[ControllerInfo]: ...

    def switch_controller(
        self,
        start_controllers: Sequence[str],
        stop_controllers: Sequence[str],
        strictness: Strictness,
    ) -> bool: ...


class ControllerStopper:
    """Switches controllers off when the robot stops and on again when it runs.

    Controllers listed as consistent are never stopped. The robot is assumed
    to be running initially; only changes of the running state cause switches.
    """

    def __init__(
        self,
        controller_manager: ControllerManager,
        consistent_controllers: Iterable[str] | None = None,
    ):
        self._manager = controller_manager
        if consistent_controllers is None:
            consistent_controllers = DEFAULT_CONSISTENT_CONTROLLERS
        self._consistent = list(consistent_controllers)
        self._stopped: list[str] = []
        self._robot_running = True

        logger.debug("Waiting for running controllers")
        # Nothing sensible can be done before the running controllers are known.
        while True:
            self.find_stoppable_controllers()
            if self._stopped:
                break
            time.sleep(1.0)
        logger.debug("Initialization finished")

    @property
    def consistent_controllers(self) -> list[str]:
        """Controllers that are never stopped."""
        return list(self._consistent)

    @property
    def stopped_controllers(self) -> list[str]:
        """Controllers that are stopped with the robot and started again with it."""
        return list(self._stopped)

    @property
    def robot_running(self) -> bool:
        """The last running state reported."""
        return self._robot_running

    def find_stoppable_controllers(self) -> list[str]:
        """Record the running controllers that are not consistent and return them."""
        self._stopped = [
            controller.name
            for controller in self._manager.list_controllers()
            if controller.state == "running" and controller.name not in self._consistent
        ]
        return list(self._stopped)

    def robot_running_callback(self, running: bool) -> None:
        """React to a new running state of the robot."""
        running = bool(running)
        logger.debug("robot_running_callback with data %s", running)
        if running and not self._robot_running:
            logger.debug("Starting controllers")
            if not self._manager.switch_controller(
                list(self._stopped), [], Strictness.STRICT
            ):
                logger.error("Could not activate requested controllers")
        elif not running and self._robot_running:
            logger.debug("Stopping controllers")
            self.find_stoppable_controllers()
            if not self._manager.switch_controller(
                [], list(self._stopped), Strictness.STRICT
            ):
                logger.error("Could not stop requested controllers")
        self._robot_running = running