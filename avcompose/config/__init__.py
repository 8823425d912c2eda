"""
Configuration Package for avcompose.

Static constants live in `common`, `video` and `audio`. Deployment settings
(object store, queue, metrics, worker limits) are loaded at start-up by
`settings.load_settings`, which merges defaults, the optional YAML file and
environment variables.
"""
