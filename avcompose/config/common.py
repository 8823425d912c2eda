"""
Common configuration settings used throughout the application.

This module contains globally shared constants for logging, job naming and the
user configuration file location. Runtime settings that differ between
deployments (endpoints, credentials, worker limits) live in `settings.py` and
are loaded once at process start.
"""
from pathlib import Path

# --- User-Defined Configuration ---
# The optional YAML file holding deployment overrides. Environment variables
# take precedence over anything found here.

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"


# --- Logging Configuration ---

# The format string for the Loguru logger. `extra[job_id]` is bound by the
# processor for every log record emitted while a job is running and defaults
# to "-" outside of a job.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{thread.name} | job={extra[job_id]} - <level>{message}</level>"
)

DEFAULT_LOG_LEVEL = "INFO"
LOG_ROTATION = "20 MB"
LOG_RETENTION = 3


# --- Job Naming ---

# Object key of the produced video, relative to the job id.
OUTPUT_OBJECT_NAME = "output.mp4"
OUTPUT_CONTENT_TYPE = "video/mp4"

# Job ids are used verbatim as workspace directory names.
JOB_ID_PATTERN = r"[A-Za-z0-9._-]+"


# --- Worker Defaults ---

DEFAULT_QUEUE_NAME = "jobs"
DEFAULT_MAX_WORKERS = 4
DEFAULT_MAX_PENDING = 4
DEFAULT_METRICS_PORT = 9100
METRICS_NAMESPACE = "avcompose"

# Delivery policies for queue messages. See `pipeline.dispatcher`.
DELIVERY_AT_MOST_ONCE = "at_most_once"  # Ack on receipt, before processing.
DELIVERY_AT_LEAST_ONCE = "at_least_once"  # Ack only after a successful run.
DELIVERY_POLICIES = (DELIVERY_AT_MOST_ONCE, DELIVERY_AT_LEAST_ONCE)
