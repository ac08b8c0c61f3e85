"""Tests for configuration loading."""

from kickerbot.core.config import Config, load_config, save_config


def test_defaults() -> None:
    config = load_config()

    assert config.network.discovery_port == 7500
    assert config.network.stop_timeout_ms == 300
    assert config.network.disconnect_timeout_ms == 5000
    assert config.driving.kick_duration_ms == 200
    assert config.pid.kp == 0.4
    assert config.pid.lost_line_limit == 15
    assert config.hardware.backend == "ev3"


def test_missing_file_uses_defaults(tmp_path) -> None:
    config = load_config(str(tmp_path / "missing.yaml"))

    assert config == Config()


def test_partial_file_overrides(tmp_path) -> None:
    path = tmp_path / "robot.yaml"
    path.write_text(
        "network:\n"
        "  discovery_port: 7600\n"
        "  bogus: 1\n"
        "pid:\n"
        "  kp: 0.5\n"
        "unknown_section:\n"
        "  x: 1\n"
    )

    config = load_config(str(path))

    assert config.network.discovery_port == 7600
    assert config.network.stop_timeout_ms == 300
    assert config.pid.kp == 0.5
    assert not hasattr(config.network, "bogus")


def test_empty_file_uses_defaults(tmp_path) -> None:
    path = tmp_path / "robot.yaml"
    path.write_text("")

    assert load_config(str(path)) == Config()


def test_save_and_load(tmp_path) -> None:
    config = Config()
    config.hardware.backend = "sim"
    config.driving.max_speed = 80.0
    path = str(tmp_path / "out.yaml")

    save_config(config, path)

    assert load_config(path) == config
