"""DH-chain forward kinematics and calibration correction, dashboard replies parsing and controller supervision for six-axis robot arms."""

__version__ = "0.1.0"