"""
This module provides the Tools class to verify, at start-up, that the external
programs the worker shells out to are installed and runnable.
"""
import subprocess
from typing import Optional

from loguru import logger


class Tools:
    """
    Start-up checks for ffmpeg and ffprobe.

    A failed check is logged but does not stop the worker: the first job that
    needs the missing tool will fail with a classified error instead.
    """

    @staticmethod
    def version(executable: str) -> Optional[str]:
        """
        Runs `<executable> -version` and returns the first line of its output.

        Returns:
            The version line, or None if the executable is missing or fails.
        """
        try:
            result = subprocess.run(
                [executable, "-version"],
                check=True,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"'{executable} -version' failed (return code {e.returncode}):\n{e.stderr}")
            return None
        except OSError as e:
            logger.error(
                f"'{executable}' could not be started: {e}. "
                "Install it or set its path in config.user.yaml / the environment."
            )
            return None

        lines = result.stdout.splitlines()
        return lines[0] if lines else ""

    @staticmethod
    def verify_all(ffmpeg_bin: str, ffprobe_bin: str) -> bool:
        """Checks both tools and returns True only if both are usable."""
        ok = True
        for executable in (ffmpeg_bin, ffprobe_bin):
            line = Tools.version(executable)
            if line is None:
                ok = False
            else:
                logger.info(f"{executable} version check successful: {line}")
        return ok
