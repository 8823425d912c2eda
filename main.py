"""
Main entry point for the avcompose worker.

This script loads the settings, checks the external tools, exposes metrics,
and then consumes jobs from RabbitMQ until it is interrupted.
"""

import sys

from loguru import logger

from avcompose.cli import apply_args, get_args
from avcompose.config.common import DEFAULT_LOG_LEVEL
from avcompose.config.settings import load_settings, validate_settings
from avcompose.domain.exceptions import ConfigurationError
from avcompose.domain.media import MediaProber
from avcompose.pipeline.dispatcher import Dispatcher
from avcompose.pipeline.processor import Processor
from avcompose.services.encode_planner import EncodePlanner
from avcompose.services.logging_service import configure_logging
from avcompose.services.metrics import Metrics
from avcompose.services.rabbitmq import RabbitMQConsumer
from avcompose.services.storage import ObjectStore
from avcompose.utils.tool_check import Tools

# Bootstrap logging so that settings errors are reported; the configured
# level and file sink are applied once the settings are known.
configure_logging(DEFAULT_LOG_LEVEL)


def main(argv=None) -> int:
    """
    Runs the worker.

    1. Parses arguments and loads settings (defaults, YAML, environment, flags).
    2. Re-configures logging from the settings.
    3. Verifies ffmpeg/ffprobe and starts the metrics endpoint.
    4. Wires storage, processor and dispatcher, then consumes until interrupted.
    5. Waits for running jobs and closes the connection.

    Returns:
        The process exit code.
    """
    args = get_args(argv)
    try:
        settings = validate_settings(apply_args(load_settings(args.config), args))
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    configure_logging(settings.logging.level, settings.logging.file)
    logger.info(settings.summary())

    worker = settings.worker
    Tools.verify_all(worker.ffmpeg_bin, worker.ffprobe_bin)

    metrics = Metrics()
    if settings.metrics.enabled:
        metrics.serve(settings.metrics.port)
        logger.info(f"Metrics server started on :{settings.metrics.port}")

    processor = Processor(
        storage=ObjectStore.from_config(settings.minio),
        metrics=metrics,
        work_dir=worker.work_dir,
        prober=MediaProber(worker.ffprobe_bin),
        planner=EncodePlanner(worker.ffmpeg_bin),
    )
    dispatcher = Dispatcher(
        processor,
        max_workers=worker.max_workers,
        max_pending=worker.max_pending,
        delivery=worker.delivery,
    )
    consumer = RabbitMQConsumer(
        settings.rabbitmq.url, settings.rabbitmq.queue, prefetch_count=dispatcher.prefetch_count
    )

    try:
        consumer.connect()
        consumer.consume(dispatcher.dispatch)
    except KeyboardInterrupt:
        logger.info("Interrupted, waiting for running jobs to finish...")
    except Exception:
        logger.exception("Queue consumer stopped")
        return 1
    finally:
        dispatcher.shutdown(wait=True)
        consumer.flush()
        consumer.close()

    logger.success("Worker stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
