"""
The job processor: runs one composition job from download to upload.

A run moves through

    CREATED -> FETCHING_INPUTS -> PROBING -> PLANNING -> ENCODING -> PUBLISHING -> DONE

and ends in FAILED from whichever stage raised. Every failure is converted,
where it happens, into a `JobError` tagged with its kind and operation; the
processor never retries. The workspace is removed on every exit path.
"""
import subprocess
import time
from pathlib import Path
from typing import Callable, List, Optional

from loguru import logger

from ..config.common import OUTPUT_CONTENT_TYPE, OUTPUT_OBJECT_NAME
from ..domain.exceptions import (
    ErrorKind,
    JobError,
    ProbeError,
    StorageError,
)
from ..domain.job import JobDescriptor, JobOutcome, JobState
from ..domain.media import MediaKind, MediaProber
from ..domain.resolution import CanonicalResolution
from ..services.encode_planner import EncodePlanner
from ..services.metrics import Metrics
from ..services.workspace import Workspace
from ..utils.ffmpeg_utils import run_cmd, tail
from ..utils.format_utils import formatted_size

CommandRunner = Callable[[List[str]], subprocess.CompletedProcess]


class _JobRun:
    """Mutable bookkeeping for one run: the current state and a bound logger."""

    def __init__(self, job: JobDescriptor, log):
        self.job = job
        self.log = log
        self.state = JobState.CREATED
        self.started = time.monotonic()

    def advance(self, state: JobState) -> None:
        self.log.debug(f"{self.state.value} -> {state.value}")
        self.state = state

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started


class Processor:
    """
    Orchestrates a job against its collaborators.

    All collaborators are passed in explicitly so the same processor can be
    wired to real services in `main` and to fakes in tests.

    Args:
        storage: Object store with `download_file` and `upload_file`.
        metrics: The `Metrics` to report to.
        work_dir: Parent directory of the per-job workspaces.
        prober: Media prober; a `MediaProber` on PATH's ffprobe by default.
        planner: Encode planner; an `EncodePlanner` on PATH's ffmpeg by default.
        run: Executes a command list and returns a CompletedProcess whose
             stdout holds the combined output.
        log: The loguru logger to bind per-job context on.
    """

    def __init__(
        self,
        storage,
        metrics: Metrics,
        work_dir: Path,
        prober: Optional[MediaProber] = None,
        planner: Optional[EncodePlanner] = None,
        run: CommandRunner = run_cmd,
        log=logger,
    ):
        self.storage = storage
        self.metrics = metrics
        self.work_dir = Path(work_dir)
        self.prober = prober or MediaProber()
        self.planner = planner or EncodePlanner()
        self.run = run
        self.log = log

    def handle_job(self, job: JobDescriptor) -> JobOutcome:
        """
        Runs the job and reports the result to the logs and metrics.

        Never raises: a failure of this job must not affect the dispatcher or
        other jobs. Anything that escapes the classified stages is recorded as
        a SYSTEM failure of the stage it happened in.
        """
        run = _JobRun(job, self.log.bind(job_id=job.id))
        run.log.info(
            f"Processing job started (bucket={job.bucket}, visual={job.visual_asset_key}, audio={job.audio_key})"
        )

        with self.metrics.active_jobs.track_inprogress():
            try:
                target = self.process_job(run)
            except JobError as e:
                return self._fail(run, e)
            except Exception as e:
                run.log.exception(f"Unexpected error during {run.state.value}")
                return self._fail(run, JobError(ErrorKind.SYSTEM, job.id, run.state.value, e))

        run.advance(JobState.DONE)
        elapsed = run.elapsed
        self.metrics.record_success(target.label, elapsed)
        run.log.info(
            f"Job processing completed in {elapsed:.2f}s (resolution={target.label}, output={job.output_key})"
        )
        return JobOutcome(
            job_id=job.id,
            state=JobState.DONE,
            elapsed=elapsed,
            resolution=target.label,
            output_key=job.output_key,
        )

    def _fail(self, run: _JobRun, error: JobError) -> JobOutcome:
        failed_in = run.state
        run.advance(JobState.FAILED)
        elapsed = run.elapsed
        self.metrics.record_failure(error.kind.value, error.operation, elapsed)
        run.log.error(f"Job processing failed during {failed_in.value} after {elapsed:.2f}s: {error}")
        if error.output:
            run.log.error(f"Encoder output (last lines):\n{tail(error.output)}")
        return JobOutcome(job_id=run.job.id, state=JobState.FAILED, elapsed=elapsed, error=error)

    def process_job(self, run: _JobRun) -> CanonicalResolution:
        """
        Acquires a workspace, runs all stages in it and always releases it.

        Returns:
            The resolution of the produced video.

        Raises:
            JobError: For any classified failure.
        """
        job = run.job
        workspace = Workspace(self.work_dir, job.id, log=run.log)
        try:
            workspace.create()
        except OSError as e:
            raise JobError(ErrorKind.SYSTEM, job.id, "create_workspace", e) from e

        try:
            return self._run_stages(run, workspace)
        finally:
            workspace.release()

    def _run_stages(self, run: _JobRun, workspace: Workspace) -> CanonicalResolution:
        job = run.job

        # Local names are fixed so that two inputs with the same base name
        # cannot collide; the extension is kept for media kind detection.
        media_local = workspace.path_for("visual" + Path(job.visual_asset_key).suffix.lower())
        audio_local = workspace.path_for("audio" + Path(job.audio_key).suffix.lower())
        output_local = workspace.path_for(OUTPUT_OBJECT_NAME)

        run.advance(JobState.FETCHING_INPUTS)
        media_size = self._download(run, job.visual_asset_key, media_local, "download_visual")
        audio_size = self._download(run, job.audio_key, audio_local, "download_audio")
        self.metrics.audio_size_bytes.observe(audio_size)

        run.advance(JobState.PROBING)
        try:
            media_info = self.prober.probe_media(media_local)
        except ProbeError as e:
            raise JobError(ErrorKind.PROBE, job.id, "probe_media", e) from e
        if media_info.kind is MediaKind.IMAGE:
            self.metrics.image_size_bytes.observe(media_size)
        run.log.debug(
            f"Media analyzed: type={media_info.kind.value} {media_info.width}x{media_info.height} "
            f"duration={media_info.duration:.2f}s has_audio={media_info.has_audio}"
        )

        run.advance(JobState.PLANNING)
        try:
            audio_duration = self.prober.probe_audio_duration(audio_local)
        except ProbeError as e:
            raise JobError(ErrorKind.PROBE, job.id, "probe_audio", e) from e
        if audio_duration <= 0:
            raise JobError(
                ErrorKind.PROBE,
                job.id,
                "probe_audio",
                ProbeError(f"Audio track {job.audio_key} has no usable duration"),
            )
        plan = self.planner.plan(media_local, audio_local, output_local, media_info, audio_duration)
        run.log.debug(
            f"Target resolution {plan.target.label} ({plan.target.width}x{plan.target.height}), "
            f"duration={plan.duration:.2f}s, loops={plan.loops}"
        )

        run.advance(JobState.ENCODING)
        self._encode(run, plan.command, output_local)

        run.advance(JobState.PUBLISHING)
        start = time.monotonic()
        try:
            video_size = self.storage.upload_file(
                job.bucket, job.output_key, output_local, OUTPUT_CONTENT_TYPE
            )
        except StorageError as e:
            raise JobError(ErrorKind.STORAGE, job.id, "upload_video", e) from e
        self.metrics.upload_duration.observe(time.monotonic() - start)
        self.metrics.video_size_bytes.observe(video_size)
        run.log.debug(f"Video uploaded to {job.bucket}/{job.output_key} ({formatted_size(video_size)})")

        return plan.target

    def _download(self, run: _JobRun, key: str, local_path: Path, operation: str) -> int:
        start = time.monotonic()
        try:
            size = self.storage.download_file(run.job.bucket, key, local_path)
        except StorageError as e:
            raise JobError(ErrorKind.STORAGE, run.job.id, operation, e) from e
        self.metrics.download_duration.observe(time.monotonic() - start)
        run.log.debug(f"Downloaded {key} ({formatted_size(size)})")
        return size

    def _encode(self, run: _JobRun, command: List[str], output_local: Path) -> None:
        job_id = run.job.id
        start = time.monotonic()
        try:
            result = self.run(command)
        except OSError as e:
            raise JobError(ErrorKind.ENCODE, job_id, "encode_video", e) from e
        finally:
            self.metrics.encode_duration.observe(time.monotonic() - start)

        if result.returncode != 0:
            cause = subprocess.CalledProcessError(result.returncode, command, output=result.stdout)
            raise JobError(ErrorKind.ENCODE, job_id, "encode_video", cause, output=result.stdout)
        if not output_local.is_file():
            raise JobError(
                ErrorKind.ENCODE,
                job_id,
                "encode_video",
                FileNotFoundError(f"Encoder exited 0 but produced no {output_local.name}"),
                output=result.stdout,
            )
