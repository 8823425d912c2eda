"""
Services Package for avcompose.

Services wrap the collaborators a job needs and keep the processor free of
transport details:

- **encode_planner**: builds the ffmpeg argument list for a job (`EncodePlanner`).
- **storage**: downloads inputs and uploads outputs through boto3 (`ObjectStore`).
- **rabbitmq**: receives job messages and settles them (`RabbitMQConsumer`).
- **metrics**: the Prometheus counters, histograms and gauge (`Metrics`).
- **workspace**: the per-job temporary directory (`Workspace`).
- **logging_service**: loguru sink configuration.
"""
