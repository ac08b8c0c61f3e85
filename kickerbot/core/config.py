"""
Configuration management with YAML loading.
"""

import logging
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class NetworkConfig:
    """Discovery and session protocol settings."""
    discovery_port: int = 7500
    broadcast_address: str = "255.255.255.255"
    discovery_timeout_s: float = 5.0
    receive_timeout_s: float = 0.1
    stop_timeout_ms: int = 300  # Safety stop after this much silence
    disconnect_timeout_ms: int = 5000  # Abandon the session and rediscover
    buffer_size: int = 64
    outbound_queue_size: int = 1  # Pending telemetry readings, oldest evicted first


@dataclass
class DrivingConfig:
    """Traction motors and kicker."""
    max_speed: float = 100.0  # Duty cycle percent at fraction 1.0
    pid_speed: float = 0.5  # Authority of the line follower in the blend
    receive_timeout_s: float = 0.1
    kick_duration_ms: int = 200
    kick_position: int = 150
    kicker_speed: int = 850
    kicker_calibration_speed: int = -100
    kicker_calibration_ms: int = 2000
    kicker_settle_ms: int = 500


@dataclass
class PidConfig:
    """Line follower gains and thresholds."""
    kp: float = 0.4
    ki: float = 0.18
    kd: float = 0.25
    integral_maximum: float = 2.5
    speed: float = 0.6
    fast_boost: float = 0.4
    slow_penalty: float = 0.2
    countermeasure: float = 0.5
    drive_multiplier: float = -1.0
    lost_line_threshold: float = 0.5
    lost_line_jump: float = 0.7
    lost_line_limit: int = 15
    recovery_exit_threshold: float = -0.5
    drive_slow_iterations: int = 20
    idle_timeout_s: float = 0.5
    default_foreground: int = 20
    default_background: int = 200


@dataclass
class StorageConfig:
    """Files holding persisted robot state."""
    foreground_path: str = "foreground"
    background_path: str = "background"
    name_path: str = "name"
    color_path: str = "color"


@dataclass
class HardwareConfig:
    """Hardware backend selection and port mapping."""
    backend: str = "ev3"  # "ev3" or "sim"
    left_motor_port: str = "outB"
    right_motor_port: str = "outA"
    kicker_port: str = "outC"


@dataclass
class SupervisionConfig:
    """Actor restart policy."""
    restart_delay_s: float = 0.1


@dataclass
class Config:
    """Root configuration."""
    network: NetworkConfig = field(default_factory=NetworkConfig)
    driving: DrivingConfig = field(default_factory=DrivingConfig)
    pid: PidConfig = field(default_factory=PidConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    hardware: HardwareConfig = field(default_factory=HardwareConfig)
    supervision: SupervisionConfig = field(default_factory=SupervisionConfig)


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default config.

    Returns:
        Config object with all settings.
    """
    if config_path is None:
        return Config()

    path = Path(config_path)
    if not path.exists():
        logger.warning("%s not found, using defaults", config_path)
        return Config()

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return _dict_to_config(data)


def _dict_to_config(data: dict) -> Config:
    """Convert dictionary to Config object, keeping defaults for missing keys."""
    config = Config()

    for section in fields(Config):
        values = data.get(section.name)
        if values is None:
            continue
        current = getattr(config, section.name)
        known = {f.name for f in fields(current)}
        for key, value in values.items():
            if key not in known:
                logger.warning("Ignoring unknown config key %s.%s", section.name, key)
                continue
            setattr(current, key, value)

    for name in data:
        if name not in {f.name for f in fields(Config)}:
            logger.warning("Ignoring unknown config section %s", name)

    return config


def save_config(config: Config, path: str) -> None:
    """Save configuration to YAML file."""
    with open(path, "w") as f:
        yaml.dump(asdict(config), f, default_flow_style=False, sort_keys=False)
