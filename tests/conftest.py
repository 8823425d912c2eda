import subprocess
from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry

from avcompose.domain.exceptions import ObjectNotFoundError, ProbeError, StorageError
from avcompose.domain.media import MediaInfo, MediaKind
from avcompose.services.metrics import Metrics


class FakeObjectStore:
    """In-memory object store with the same contract as `ObjectStore`."""

    def __init__(self, objects=None):
        self.objects = dict(objects or {})
        self.uploads = {}
        self.fail_upload = False
        self.downloaded_to = []

    def download_file(self, bucket, key, local_path):
        if (bucket, key) not in self.objects:
            raise ObjectNotFoundError(f"Object not found (bucket={bucket}, key={key})")
        local_path = Path(local_path)
        local_path.write_bytes(self.objects[(bucket, key)])
        self.downloaded_to.append(local_path)
        return local_path.stat().st_size

    def upload_file(self, bucket, key, local_path, content_type):
        if self.fail_upload:
            raise StorageError("connection reset")
        data = Path(local_path).read_bytes()
        self.uploads[(bucket, key)] = (data, content_type)
        return len(data)


class FakeProber:
    def __init__(self, media_info=None, audio_duration=10.0, media_error=None, audio_error=None):
        self.media_info = media_info or MediaInfo(MediaKind.IMAGE, 1920, 1080)
        self.audio_duration = audio_duration
        self.media_error = media_error
        self.audio_error = audio_error
        self.probed = []

    def probe_media(self, path):
        self.probed.append(path)
        if self.media_error:
            raise ProbeError(self.media_error)
        return self.media_info

    def probe_audio_duration(self, path):
        if self.audio_error:
            raise ProbeError(self.audio_error)
        return self.audio_duration


class RecordingRunner:
    """Stands in for `run_cmd`; writes the output file named by the last argument."""

    def __init__(self, returncode=0, output="", write_output=True):
        self.returncode = returncode
        self.output = output
        self.write_output = write_output
        self.calls = []

    def __call__(self, cmd):
        self.calls.append(list(cmd))
        if self.returncode == 0 and self.write_output:
            Path(cmd[-1]).write_bytes(b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64)
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=self.output)


@pytest.fixture()
def metrics():
    return Metrics(CollectorRegistry())


@pytest.fixture()
def store():
    return FakeObjectStore(
        {
            ("media", "uploads/cover.png"): b"png-bytes",
            ("media", "uploads/clip.mp4"): b"mp4-bytes",
            ("media", "uploads/voice.mp3"): b"mp3-bytes",
        }
    )


@pytest.fixture()
def work_dir(tmp_path):
    return tmp_path / "work"


def sample(metrics, name, labels=None):
    """Reads one sample from the metrics registry, 0.0 if it was never set."""
    value = metrics.registry.get_sample_value(f"avcompose_{name}", labels or {})
    return value or 0.0
