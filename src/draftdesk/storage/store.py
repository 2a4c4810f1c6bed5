"""One JSON document per UTC date holding that day's drafts and their input."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from draftdesk.errors import ErrorKind, Result, failure, success
from draftdesk.models import Batch, Draft, GenerationInput

logger = logging.getLogger(__name__)

_DATE_FILE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}\.json$")


class DraftStore:
    """File-backed batch store.

    A second save on the same UTC date replaces the earlier batch; concurrent
    writers resolve last-write-wins through the atomic rename.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def save(
        self,
        drafts: list[Draft],
        input_used: GenerationInput | None,
        *,
        now: datetime | None = None,
    ) -> Result[Path]:
        generated_at = now or datetime.now(tz=UTC)
        date = generated_at.astimezone(UTC).date().isoformat()
        batch = Batch(date=date, generated_at=generated_at, drafts=drafts, input=input_used)
        path = self._path_for(date)
        try:
            self._write_atomic(path, batch)
        except OSError as error:
            return failure(
                ErrorKind.UNKNOWN,
                f"Failed to save drafts to {path}: {error}",
                path=str(path),
            )
        logger.info("Saved %d drafts to %s", len(drafts), path)
        return success(path)

    def load_all(self) -> list[Batch]:
        """Every readable batch, newest date first."""

        if not self.directory.is_dir():
            return []
        batches: list[Batch] = []
        for path in sorted(self.directory.iterdir(), reverse=True):
            if not _DATE_FILE_RE.match(path.name):
                continue
            batch = self._read(path)
            if batch is not None:
                batches.append(batch)
        return batches

    def load(self, date: str) -> Result[Batch]:
        path = self._path_for(date)
        if not path.is_file():
            return failure(ErrorKind.NO_DATA_AVAILABLE, f"No drafts saved for {date}.")
        batch = self._read(path)
        if batch is None:
            return failure(ErrorKind.INVALID_DATA_FORMAT, f"Unreadable drafts file {path}.")
        return success(batch)

    def update_draft(self, draft_id: str, content: str) -> Result[Draft]:
        """Replace the content of a stored draft, keeping every other field."""

        for batch in self.load_all():
            for draft in batch.drafts:
                if draft.id != draft_id:
                    continue
                draft.content = content
                path = self._path_for(batch.date)
                try:
                    self._write_atomic(path, batch)
                except OSError as error:
                    return failure(
                        ErrorKind.UNKNOWN,
                        f"Failed to update draft {draft_id}: {error}",
                        path=str(path),
                    )
                logger.info("Updated draft %s in %s", draft_id, path)
                return success(draft)
        return failure(ErrorKind.NO_DATA_AVAILABLE, f"Draft not found: {draft_id}")

    def _path_for(self, date: str) -> Path:
        return self.directory / f"{date}.json"

    def _read(self, path: Path) -> Batch | None:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise TypeError("batch document is not an object")
            return Batch.from_dict(raw)
        except (
            AttributeError,
            OSError,
            json.JSONDecodeError,
            KeyError,
            TypeError,
            ValueError,
        ) as error:
            logger.warning("Skipping unreadable drafts file %s: %s", path, error)
            return None

    def _write_atomic(self, path: Path, batch: Batch) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(batch.to_dict(), ensure_ascii=False, indent=2) + "\n"
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.stem}-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
