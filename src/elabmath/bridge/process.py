"""Run the evaluator as a separate process on a whole document."""

import logging
import os
import subprocess
import tempfile
from typing import Optional

from ..config import Settings, settings as default_settings
from .notifications import MathEvaluationFailed

logger = logging.getLogger(__name__)


class EvaluatorProcessError(Exception):
    """Raised when the evaluator process cannot be run or exits with an error."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class EvalMathBridge:
    """
    Transform a document by running ``<evaluator command> <temp file>``.

    Failures never propagate: get_content() falls back to the original source
    and sets ``math_failed`` so the caller can notify the user.
    """

    def __init__(self, source: str, settings: Optional[Settings] = None):
        """
        Initialize the bridge.

        Args:
            source: HTML content to transform
            settings: Settings with the evaluator command, timeout and temp dir
        """
        self.source = source
        self.settings = settings or default_settings
        self.math_failed = False
        self._content = ""

    def get_content(self) -> str:
        """Return the transformed content, or the original source if evaluation failed."""
        try:
            self._content = self.run(self.source)
        except EvaluatorProcessError as e:
            logger.warning(f"Math evaluation failed, using original content: {e}")
            if e.stderr:
                logger.warning(f"Evaluator stderr: {e.stderr.strip()}")
            self.math_failed = True
            self._content = ""

        if self._content == "":
            return self.source
        return self._content

    def run(self, content: str) -> str:
        """
        Write content to a private temp file and run the evaluator on it.

        The temp file is removed whatever the outcome.

        Returns:
            The evaluator's stdout

        Raises:
            EvaluatorProcessError: If the process cannot start, times out or exits non-zero
        """
        temp_dir = str(self.settings.temp_dir) if self.settings.temp_dir else None
        fd, tmp_path = tempfile.mkstemp(prefix="elabmath-", suffix=".html", dir=temp_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)

            command = [*self.settings.evaluator_command, tmp_path]
            logger.debug(f"Running evaluator: {command}")
            try:
                process = subprocess.run(
                    command,
                    capture_output=True,
                    encoding="utf-8",
                    timeout=self.settings.evaluator_timeout,
                )
            except FileNotFoundError as e:
                raise EvaluatorProcessError(f"Evaluator not found: {command[0]}") from e
            except subprocess.TimeoutExpired as e:
                raise EvaluatorProcessError(
                    f"Evaluator timed out after {self.settings.evaluator_timeout}s"
                ) from e
            except OSError as e:
                raise EvaluatorProcessError(f"Could not run evaluator: {e}") from e
        finally:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass

        if process.returncode != 0:
            raise EvaluatorProcessError(
                f"Evaluator exited with code {process.returncode}",
                returncode=process.returncode,
                stderr=process.stderr or "",
            )
        return process.stdout

    def failure_notification(self, entity_id: int, entity_page: str) -> Optional[MathEvaluationFailed]:
        """Build the user notification for the last run, or None if it succeeded."""
        if not self.math_failed:
            return None
        return MathEvaluationFailed(entity_id=entity_id, entity_page=entity_page)
