# urkinematics

Tools for working with six-axis robot arms that are described by
Denavit–Hartenberg (DH) parameters:

- **Calibration correction** (`urkinematics.calibration`). Factory-calibrated
  DH parameters often place the upper-arm and forearm segments far away from
  where they physically are. Offsets of hundreds of metres along the shoulder
  and elbow axes are not unusual. The correction pulls these segments back so
  that the shoulder and elbow offsets become zero. The pose of the tool flange
  stays the same for every joint configuration.
- **Forward kinematics** on the original or the corrected chain.
- **Calibration export** as a plain dictionary.
- **Dashboard access** (`urkinematics.dashboard`). This turns dashboard replies
  into structured responses.
- **Controller supervision** (`urkinematics.controller_stopper`). This stops
  controllers while the robot is not running and starts them again when it
  resumes.

## Requirements

Python 3.10 or newer, with `numpy`.

## Forward kinematics and calibration correction

```python
import json
import math

from urkinematics.calibration import Calibration, DHRobot, DHSegment

d = [0.1273, 0.0, 0.0, 0.163941, 0.1157, 0.0922]
a = [0.0, -0.612, -0.5723, 0.0, 0.0, 0.0]
theta = [0.0] * 6
alpha = [math.pi / 2, 0.0, 0.0, math.pi / 2, -math.pi / 2, 0.0]

robot = DHRobot([DHSegment(*params) for params in zip(d, a, theta, alpha)])
calibration = Calibration(robot)

joints = [0.0, -math.pi / 4, math.pi / 2, -math.pi / 4, 0.0, 0.0]
pose = calibration.forward_kinematics(joints, 6)   # 4x4 homogeneous transform
print(pose[:3, 3])                                 # flange position

calibration.correct_chain()
print(json.dumps(calibration.to_dict(), indent=2))
```

**Data types.**

- `DHSegment` holds `d`, `a`, `theta` and `alpha`.
- `DHRobot` holds a list of segments.
- Both support `+`, which adds element-wise. This lets a calibration delta be
  laid over a nominal model (`nominal + delta`).
- Adding robots with different numbers of segments raises `ValueError`.

**`Calibration` methods.**

- `chain()` returns two 4×4 transforms per joint: one for `d`/`theta` and one
  for `a`/`alpha`.
- `simplified()` returns one transform per joint.
- `forward_kinematics(joint_values, link_nr)` returns the pose of link
  `link_nr`, counted from 1, in base coordinates. It multiplies the simplified
  transforms with a rotation about Z by each joint value. A `link_nr` outside
  the range of the given joints raises `ValueError`.
- `correct_chain()` corrects the shoulder and elbow axes. It needs at least
  four segments and raises `ValueError` otherwise. It also raises `ValueError`
  if the next joint's axis is degenerate or parallel to the XY plane.
- `to_dict()` returns `{"kinematics": {...}}`. There is one entry per link,
  from `shoulder` through `upper_arm`, `forearm` and `wrist_1` to `wrist_3`.
  Each entry holds `x`, `y`, `z`, `roll`, `pitch` and `yaw` as floats.

`euler_angles_xyz(rotation)` takes a 3×3 rotation matrix. It returns
`(roll, pitch, yaw)` such that `rotation == Rx(roll) @ Ry(pitch) @ Rz(yaw)`,
with the first angle in `[0, pi]`. The export uses the same convention.

## Dashboard

`DashboardService(client, receive_timeout=1)` wraps any object with four
methods:

- `connect()`
- `disconnect()`
- `set_receive_timeout(seconds)`
- `send_and_receive(command)`

The constructor connects at once and applies the timeout. `connect()` does the
same again and returns whether the connection succeeded.

**Triggers.** `trigger(name)` sends a fixed command and returns a
`TriggerResponse(success, message)`. `success` is true when the whole answer
matches the expected reply. The valid names are listed in `TRIGGER_NAMES`:

- `brake_release`
- `clear_operational_mode`
- `close_popup`
- `close_safety_popup`
- `pause`
- `play`
- `power_off`
- `power_on`
- `restart_safety`
- `shutdown`
- `stop`
- `unlock_protective_stop`

Any other name raises `ValueError`.

**Queries.** These return a `QueryResponse(answer, success, value,
program_name)`:

- `program_running()`, `program_saved()` and `is_in_remote_control()`: `value`
  is a bool. `program_saved()` also sets `program_name`.
- `get_loaded_program()`: sets `program_name`.
- `program_state()`: `value` is `"STOPPED"`, `"PLAYING"` or `"PAUSED"`, and
  `program_name` is set.
- `safety_mode()` and `robot_mode()`: `value` is a `SafetyMode` or `RobotMode`
  member, or `None` for a mode name not in the enumeration.

**Commands with arguments.**

- `load_program(filename)`, `load_installation(filename)`, `popup(message)` and
  `add_to_log(message)` return a `QueryResponse` with `success` set.
- `raw_request(query)` returns the raw answer string.

**Closing.** `quit()` sends `quit` and then disconnects the client.

```python
from urkinematics.dashboard import DashboardService

service = DashboardService(client)      # client: your dashboard connection
if service.trigger("power_on").success:
    service.trigger("brake_release")
print(service.robot_mode().value)
```

## Controller stopper

`ControllerStopper(controller_manager, consistent_controllers=None)` works with
any object that provides two methods:

- `list_controllers()`, which yields `ControllerInfo(name, state)` items.
- `switch_controller(start_controllers, stop_controllers, strictness)`, which
  returns whether the switch succeeded.

Consistent controllers are never stopped. The default set is
`("joint_state_controller",)`.

The constructor polls the manager once a second until at least one controller
is running that is not a consistent controller. Until then it does not return.

Pass the robot's running state to `robot_running_callback(running)`. The robot
is assumed to be running at the start.

- **Robot stops:** the stopper looks up the running controllers again with
  `find_stoppable_controllers()` and stops those that are not consistent.
- **Robot resumes:** the same controllers are started again.
- **Unchanged state:** nothing happens.

Switches use `Strictness.STRICT`. A failed switch is logged as an error.

The properties `consistent_controllers`, `stopped_controllers` and
`robot_running` show the current state.

## What this package does not do

- **No robot connection.** The package opens no network connection to a robot
  and decodes no robot data packages. The dashboard and controller-manager
  objects have to be supplied by the caller.
- **No calibration file.** It does not write calibration files to disk.
  `to_dict()` returns the data, and saving it is left to you.
- **No command.** The package installs no command-line program.

## Running the tests

Install the `test` extra and run `pytest` from the project root.