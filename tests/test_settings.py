from pathlib import Path

import pytest

from avcompose.cli import apply_args, get_args
from avcompose.config.settings import Settings, load_settings, validate_settings
from avcompose.domain.exceptions import ConfigurationError


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_file_or_environment(tmp_path):
    settings = load_settings(write_config(tmp_path, ""), environ={})

    assert settings == Settings()
    assert settings.worker.delivery == "at_most_once"
    assert settings.rabbitmq.queue == "jobs"


def test_yaml_values_are_applied(tmp_path):
    path = write_config(
        tmp_path,
        "minio:\n  endpoint: storage:9000\n  secure: true\n"
        "worker:\n  max_workers: 8\n  delivery: at_least_once\n  work_dir: /tmp/jobs\n"
        "logging:\n  level: DEBUG\n  file: worker.log\n",
    )

    settings = load_settings(path, environ={})

    assert settings.minio.endpoint == "storage:9000"
    assert settings.minio.secure is True
    assert settings.worker.max_workers == 8
    assert settings.worker.delivery == "at_least_once"
    assert settings.worker.work_dir == Path("/tmp/jobs")
    assert settings.logging.file == Path("worker.log")


def test_environment_overrides_yaml(tmp_path):
    path = write_config(tmp_path, "worker:\n  max_workers: 8\nmetrics:\n  enabled: true\n")
    environ = {
        "WORKER_MAX_JOBS": "2",
        "METRICS_ENABLED": "false",
        "RABBITMQ_QUEUE": "compose",
        "MINIO_ACCESS_KEY": "",
    }

    settings = load_settings(path, environ=environ)

    assert settings.worker.max_workers == 2
    assert settings.metrics.enabled is False
    assert settings.rabbitmq.queue == "compose"
    assert settings.minio.access_key == "minioadmin"


@pytest.mark.parametrize(
    "text",
    [
        "worker:\n  max_workers: many\n",
        "worker:\n  max_workers: 0\n",
        "worker:\n  delivery: exactly_once\n",
        "metrics:\n  enabled: maybe\n",
        "metrics:\n  port: 70000\n",
        "queue:\n  name: jobs\n",
        "rabbitmq:\n  exchange: jobs\n",
        "- just\n- a list\n",
        "worker: [unclosed\n",
    ],
)
def test_invalid_files_are_rejected(tmp_path, text):
    with pytest.raises(ConfigurationError):
        load_settings(write_config(tmp_path, text), environ={})


def test_invalid_environment_value_is_rejected(tmp_path):
    with pytest.raises(ConfigurationError):
        load_settings(write_config(tmp_path, ""), environ={"METRICS_PORT": "http"})


def test_missing_explicit_file_is_an_error(tmp_path):
    with pytest.raises(ConfigurationError, match="does not exist"):
        load_settings(tmp_path / "absent.yaml", environ={})


def test_summary_masks_credentials():
    summary = Settings().summary()

    assert "guest:guest" not in summary
    assert "amqp://***@rabbitmq:5672/" in summary
    assert "minioadmin" not in summary


def test_command_line_flags_override_settings(tmp_path):
    args = get_args(["--max-workers", "3", "--delivery", "at_least_once", "--log-level", "DEBUG",
                     "--work-dir", str(tmp_path)])

    settings = validate_settings(apply_args(Settings(), args))

    assert settings.worker.max_workers == 3
    assert settings.worker.max_pending == Settings().worker.max_pending
    assert settings.worker.delivery == "at_least_once"
    assert settings.worker.work_dir == tmp_path.resolve()
    assert settings.logging.level == "DEBUG"


def test_flags_left_out_do_not_override():
    settings = Settings()

    assert apply_args(settings, get_args([])) == settings


def test_invalid_flag_values_fail_validation():
    with pytest.raises(ConfigurationError):
        validate_settings(apply_args(Settings(), get_args(["--max-pending", "-1"])))
