"""
The per-job workspace: a private temporary directory that holds the
downloaded inputs and the produced output until the job ends.
"""
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from loguru import logger


class Workspace:
    """
    A temporary directory keyed by job id, removed when the context exits.

    The directory is created with `tempfile.mkdtemp`, so two runs never share
    one even if they carry the same job id. Removal happens on every exit
    path; a removal failure is logged and swallowed so it can never replace
    the job's real outcome.

    Example:
        with Workspace(root, job.id) as ws:
            audio = ws.path_for("audio.mp3")
    """

    def __init__(self, root: Path, job_id: str, log=logger):
        self.root = Path(root)
        self.job_id = job_id
        self.path: Optional[Path] = None
        self.log = log
        self._released = False

    def __enter__(self) -> "Workspace":
        return self.create()

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False

    def create(self) -> "Workspace":
        """
        Creates the directory.

        Raises:
            OSError: If the root or the workspace directory cannot be created.
        """
        self.root.mkdir(parents=True, exist_ok=True)
        self.path = Path(tempfile.mkdtemp(prefix=f"{self.job_id}-", dir=self.root))
        self.log.debug(f"Created workspace {self.path}")
        return self

    @property
    def exists(self) -> bool:
        return self.path is not None and self.path.exists()

    def path_for(self, name: str) -> Path:
        """Returns a path inside the workspace for the base name of `name`."""
        if self.path is None:
            raise RuntimeError("Workspace has not been created")
        base = Path(name).name
        if not base or base in (".", ".."):
            raise ValueError(f"Cannot derive a file name from {name!r}")
        return self.path / base

    def release(self) -> None:
        if self.path is None or self._released:
            return
        self._released = True
        try:
            shutil.rmtree(self.path)
            self.log.debug(f"Removed workspace {self.path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            self.log.warning(f"Failed to clean up workspace {self.path}: {e}")
