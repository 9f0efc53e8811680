"""
JSON file credential store.

Keeps the collection as a pretty-printed JSON array, the same layout as a
hand-maintained ``users.json``.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import List, Sequence, Union

import pydantic

from unison.core.errors import StorageError
from unison.core.unison_logger import UnisonLogger
from unison.db.store import UserStore
from unison.schemas.user import UserRecord


class JsonFileUserStore(UserStore):
    """Whole-file read/replace store.

    Args:
        path: Location of the JSON file. A missing file is an empty store;
              parent directories are created on first save.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self.path = Path(path)

    def load(self) -> List[UserRecord]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            UnisonLogger.error(f"Failed to read users file {self.path}: {e}")
            raise StorageError() from e

        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            UnisonLogger.error(f"Users file {self.path} is not valid JSON: {e}")
            raise StorageError() from e

        if not isinstance(data, list):
            UnisonLogger.warning(
                f"Users file {self.path} does not hold a list, treating it as empty"
            )
            return []

        try:
            return [UserRecord.model_validate(item) for item in data]
        except pydantic.ValidationError as e:
            UnisonLogger.error(f"Users file {self.path} has an invalid record: {e}")
            raise StorageError() from e

    def save(self, users: Sequence[UserRecord]) -> None:
        payload = json.dumps([user.to_storage() for user in users], indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    tmp.write(payload)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            UnisonLogger.error(f"Failed to write users file {self.path}: {e}")
            raise StorageError() from e
