import pytest

from avcompose.services import workspace as workspace_module
from avcompose.services.workspace import Workspace


def test_workspace_is_created_and_removed(tmp_path):
    with Workspace(tmp_path / "jobs", "job-1") as ws:
        assert ws.exists
        assert ws.path.parent == tmp_path / "jobs"
        assert ws.path.name.startswith("job-1-")
        ws.path_for("audio.mp3").write_bytes(b"x")

    assert not ws.exists
    assert list((tmp_path / "jobs").iterdir()) == []


def test_workspaces_with_the_same_job_id_are_separate(tmp_path):
    first = Workspace(tmp_path, "job-1").create()
    second = Workspace(tmp_path, "job-1").create()

    assert first.path != second.path

    first.release()
    assert second.exists
    second.release()


def test_workspace_is_removed_when_the_body_raises(tmp_path):
    with pytest.raises(RuntimeError):
        with Workspace(tmp_path, "job-1") as ws:
            raise RuntimeError("boom")

    assert not ws.exists


def test_path_for_keeps_only_the_base_name(tmp_path):
    with Workspace(tmp_path, "job-1") as ws:
        assert ws.path_for("uploads/2024/cover.png") == ws.path / "cover.png"
        assert ws.path_for("../../etc/passwd") == ws.path / "passwd"
        with pytest.raises(ValueError):
            ws.path_for("..")
        with pytest.raises(ValueError):
            ws.path_for("")


def test_path_for_requires_a_created_workspace(tmp_path):
    with pytest.raises(RuntimeError):
        Workspace(tmp_path, "job-1").path_for("audio.mp3")


def test_release_is_idempotent_and_tolerates_missing_directory(tmp_path):
    ws = Workspace(tmp_path, "job-1").create()
    ws.path.rmdir()

    ws.release()
    ws.release()

    assert not ws.exists


def test_removal_failure_is_logged_not_raised(tmp_path, monkeypatch):
    def refuse(path):
        raise PermissionError("read-only")

    messages = []

    class Log:
        def debug(self, message):
            pass

        def warning(self, message):
            messages.append(message)

    monkeypatch.setattr(workspace_module.shutil, "rmtree", refuse)
    ws = Workspace(tmp_path, "job-1", log=Log()).create()

    ws.release()

    assert len(messages) == 1
    assert "read-only" in messages[0]
