"""Typed access to a UR robot's dashboard server.

The dashboard server speaks a line-based text protocol. :class:`DashboardService`
sends the commands through a client object and interprets the answers.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any, Protocol


class DashboardClient(Protocol):
    """What :class:`DashboardService` needs from a dashboard connection."""

    def connect(self) -> bool: ...

    def disconnect(self) -> None: ...

    def set_receive_timeout(self, seconds: float) -> None: ...

    def send_and_receive(self, command: str) -> str: ...


class SafetyMode(enum.Enum):
    """Safety modes the dashboard server reports."""

    NORMAL = "NORMAL"
    REDUCED = "REDUCED"
    PROTECTIVE_STOP = "PROTECTIVE_STOP"
    RECOVERY = "RECOVERY"
    SAFEGUARD_STOP = "SAFEGUARD_STOP"
    SYSTEM_EMERGENCY_STOP = "SYSTEM_EMERGENCY_STOP"
    ROBOT_EMERGENCY_STOP = "ROBOT_EMERGENCY_STOP"
    VIOLATION = "VIOLATION"
    FAULT = "FAULT"


class RobotMode(enum.Enum):
    """Robot modes the dashboard server reports."""

    NO_CONTROLLER = "NO_CONTROLLER"
    DISCONNECTED = "DISCONNECTED"
    CONFIRM_SAFETY = "CONFIRM_SAFETY"
    BOOTING = "BOOTING"
    POWER_OFF = "POWER_OFF"
    POWER_ON = "POWER_ON"
    IDLE = "IDLE"
    BACKDRIVE = "BACKDRIVE"
    RUNNING = "RUNNING"
    UPDATING_FIRMWARE = "UPDATING_FIRMWARE"


@dataclass(frozen=True)
class TriggerResponse:
    """Outcome of a command: whether the answer was the expected one, and the answer."""

    success: bool
    message: str


@dataclass(frozen=True)
class QueryResponse:
    """Outcome of a query with the value parsed from the answer, if any."""

    answer: str
    success: bool
    value: Any = None
    program_name: str | None = None


# name -> (command, pattern the whole answer must match)
_TRIGGERS: dict[str, tuple[str, str]] = {
    "brake_release": ("brake release\n", "Brake releasing"),
    "clear_operational_mode": (
        "clear operational mode\n",
        r"No longer controlling the operational mode\. "
        r"Current operational mode: '(MANUAL|AUTOMATIC)'\.",
    ),
    "close_popup": ("close popup\n", "closing popup"),
    "close_safety_popup": ("close safety popup\n", "closing safety popup"),
    "pause": ("pause\n", "Pausing program"),
    "play": ("play\n", "Starting program"),
    "power_off": ("power off\n", "Powering off"),
    "power_on": ("power on\n", "Powering on"),
    "restart_safety": ("restart safety\n", "Restarting safety"),
    "shutdown": ("shutdown\n", "Shutting down"),
    "stop": ("stop\n", "Stopped"),
    "unlock_protective_stop": ("unlock protective stop\n", "Protective stop releasing"),
}

TRIGGER_NAMES = tuple(_TRIGGERS)


class DashboardService:
    """Dashboard server commands and queries on top of a client connection."""

    def __init__(self, client: DashboardClient, receive_timeout: float = 1):
        self._client = client
        self.receive_timeout = receive_timeout
        self.connect()

    def connect(self) -> bool:
        """(Re)connect to the server and apply the receive timeout."""
        connected = bool(self._client.connect())
        self._client.set_receive_timeout(self.receive_timeout)
        return connected

    def _ask(self, command: str, pattern: str) -> tuple[str, re.Match[str] | None]:
        answer = self._client.send_and_receive(command)
        return answer, re.fullmatch(pattern, answer)

    def trigger(self, name: str) -> TriggerResponse:
        """Send the command registered under ``name``, e.g. ``"power_on"``."""
        try:
            command, expected = _TRIGGERS[name]
        except KeyError:
            raise ValueError(f"unknown dashboard command {name!r}") from None
        answer, match = self._ask(command, expected)
        return TriggerResponse(match is not None, answer)

    def program_running(self) -> QueryResponse:
        """Whether a program is running; ``value`` is a bool."""
        answer, match = self._ask("running\n", "Program running: (true|false)")
        if match is None:
            return QueryResponse(answer, False)
        return QueryResponse(answer, True, value=match[1] == "true")

    def program_saved(self) -> QueryResponse:
        """Whether the current program is saved; ``value`` is a bool."""
        answer, match = self._ask("isProgramSaved\n", r"(true|false) ([^\s]+)")
        if match is None:
            return QueryResponse(answer, False)
        return QueryResponse(answer, True, value=match[1] == "true", program_name=match[2])

    def is_in_remote_control(self) -> QueryResponse:
        """Whether the robot is in remote control; ``value`` is a bool."""
        answer, match = self._ask("is in remote control\n", "(true|false)")
        if match is None:
            return QueryResponse(answer, False)
        return QueryResponse(answer, True, value=match[1] == "true")

    def get_loaded_program(self) -> QueryResponse:
        """Name of the loaded program."""
        answer, match = self._ask("get loaded program\n", "Loaded program: (.+)")
        if match is None:
            return QueryResponse(answer, False)
        return QueryResponse(answer, True, program_name=match[1])

    def load_installation(self, filename: str) -> QueryResponse:
        """Load a robot installation from a file."""
        answer, match = self._ask(f"load installation {filename}\n", "Loading installation: .+")
        return QueryResponse(answer, match is not None)

    def load_program(self, filename: str) -> QueryResponse:
        """Load a robot program from a file."""
        answer, match = self._ask(f"load {filename}\n", "Loading program: .+")
        return QueryResponse(answer, match is not None)

    def popup(self, message: str) -> QueryResponse:
        """Show a popup on the teach pendant."""
        answer, match = self._ask(f"popup {message}\n", "showing popup")
        return QueryResponse(answer, match is not None)

    def program_state(self) -> QueryResponse:
        """Program state (``"STOPPED"``, ``"PLAYING"`` or ``"PAUSED"``) and program name."""
        answer, match = self._ask("programState\n", "(STOPPED|PLAYING|PAUSED) (.+)")
        if match is None:
            return QueryResponse(answer, False)
        return QueryResponse(answer, True, value=match[1], program_name=match[2])

    def safety_mode(self) -> QueryResponse:
        """Current safety mode; ``value`` is a :class:`SafetyMode` or None if unknown."""
        answer, match = self._ask("safetymode\n", "Safetymode: (.+)")
        if match is None:
            return QueryResponse(answer, False)
        mode = SafetyMode.__members__.get(match[1])
        return QueryResponse(answer, True, value=mode)

    def robot_mode(self) -> QueryResponse:
        """Current robot mode; ``value`` is a :class:`RobotMode` or None if unknown."""
        answer, match = self._ask("robotmode\n", "Robotmode: (.+)")
        if match is None:
            return QueryResponse(answer, False)
        mode = RobotMode.__members__.get(match[1])
        return QueryResponse(answer, True, value=mode)

    def add_to_log(self, message: str) -> QueryResponse:
        """Add a message to the robot's log."""
        answer, match = self._ask(
            f"addToLog {message}\n", "(Added log message|No log message to add)"
        )
        return QueryResponse(answer, match is not None)

    def raw_request(self, query: str) -> str:
        """Send an arbitrary query and return the raw answer."""
        return self._client.send_and_receive(query + "\n")

    def quit(self) -> TriggerResponse:
        """Ask the server to close the session, then disconnect."""
        answer, match = self._ask("quit\n", "Disconnected")
        self._client.disconnect()
        return TriggerResponse(match is not None, answer)