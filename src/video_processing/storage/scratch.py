"""Local scratch directories for raw and processed videos.

Every job downloads into the intake directory and transcodes into the
output directory. Both directories are shared by all concurrently running
jobs; files are told apart only by their names.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from aws_lambda_powertools import Logger

from ..shared.exceptions import ScratchCleanupError

logger = Logger(service="scratch")


class ScratchDirectories:
    """Intake/output directory pair with deterministic path construction."""

    def __init__(self, intake_dir: str | Path, output_dir: str | Path) -> None:
        self.intake_dir = Path(intake_dir)
        self.output_dir = Path(output_dir)

    def setup(self) -> None:
        """Create both directories. Safe to call repeatedly."""
        for directory in (self.intake_dir, self.output_dir):
            if not directory.is_dir():
                directory.mkdir(parents=True, exist_ok=True)
                logger.info("Created scratch directory", extra={"path": str(directory)})

    def intake_path(self, filename: str) -> Path:
        return self.intake_dir / filename

    def output_path(self, filename: str) -> Path:
        return self.output_dir / filename

    async def delete(self, path: Path) -> None:
        """Delete a scratch file.

        Args:
            path: File to remove

        Raises:
            OSError: For failures other than the file already being absent
        """
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            logger.debug("Scratch file already absent", extra={"path": str(path)})
            return
        logger.info("Deleted scratch file", extra={"path": str(path)})

    async def cleanup(self, *paths: Path) -> None:
        """Delete every given file, attempting all of them before failing.

        Raises:
            ScratchCleanupError: If any file exists but could not be removed
        """
        results = await asyncio.gather(
            *(self.delete(path) for path in paths),
            return_exceptions=True,
        )
        failures: dict[str, OSError] = {}
        for path, result in zip(paths, results):
            if isinstance(result, OSError):
                failures[str(path)] = result
            elif isinstance(result, BaseException):
                raise result
        if failures:
            raise ScratchCleanupError(failures)

    @asynccontextmanager
    async def job_files(
        self, input_filename: str, output_filename: str
    ) -> AsyncIterator[tuple[Path, Path]]:
        """Scope the two scratch files of one job.

        Yields the intake and output paths and removes both on exit,
        whether the body returned or raised. When the body raised, a
        cleanup failure is logged and the original exception propagates
        unchanged; otherwise ScratchCleanupError is raised.
        """
        intake = self.intake_path(input_filename)
        output = self.output_path(output_filename)
        try:
            yield intake, output
        except BaseException:
            try:
                await self.cleanup(intake, output)
            except ScratchCleanupError as cleanup_error:
                logger.error(
                    "Scratch cleanup failed after job error",
                    extra={"error": cleanup_error.to_dict()},
                )
            raise
        else:
            await self.cleanup(intake, output)
