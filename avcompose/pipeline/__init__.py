"""
The job pipeline: the `Processor` that runs a single job through its stages
and the `Dispatcher` that feeds it from the queue on a bounded worker pool.
"""
