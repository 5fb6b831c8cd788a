from __future__ import annotations
import json
import logging
import os
import tempfile
from typing import Any, Dict, List

from .errors import InvalidNameError, StoreIOError
from .utils import new_token

logger = logging.getLogger(__name__)

TABLE_EXT = ".json"
CORRUPT_EXT = ".corrupt"


class CorruptTableError(ValueError):
    pass


def check_table_name(name: str) -> str:
    if not isinstance(name, str) or not name:
        raise InvalidNameError("table name must be a non-empty string")
    if name.startswith(".") or "\x00" in name or "/" in name or "\\" in name or name in (os.curdir, os.pardir):
        raise InvalidNameError(f"invalid table name: {name!r}")
    return name


class FileStorage:
    """
    One file per table under `data_dir`: `<table>.json` holds the whole table
    as a pretty-printed JSON array. Every save replaces the file atomically.
    """
    def __init__(self, data_dir: str) -> None:
        self.data_dir = data_dir

    def path_for(self, table: str) -> str:
        return os.path.join(self.data_dir, check_table_name(table) + TABLE_EXT)

    def ensure_dir(self) -> None:
        try:
            os.makedirs(self.data_dir, exist_ok=True)
        except OSError as e:
            raise StoreIOError(f"cannot create data directory {self.data_dir}: {e}") from e

    def table_names(self) -> List[str]:
        try:
            entries = sorted(os.listdir(self.data_dir))
        except OSError as e:
            logger.error("Cannot list data directory %s: %s", self.data_dir, e)
            return []
        names = []
        for fn in entries:
            if not fn.endswith(TABLE_EXT):
                continue
            name = fn[: -len(TABLE_EXT)]
            try:
                check_table_name(name)
            except InvalidNameError:
                continue
            names.append(name)
        return names

    def read_table(self, table: str) -> List[Dict[str, Any]]:
        path = self.path_for(table)
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except ValueError as e:
                raise CorruptTableError(f"{path}: {e}") from e
        if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
            raise CorruptTableError(f"{path}: expected a JSON array of objects")
        return data

    def load_table(self, table: str) -> List[Dict[str, Any]]:
        """
        Like read_table(), but an unreadable or corrupt file is moved aside
        and the table starts empty instead of raising.
        """
        try:
            return self.read_table(table)
        except (OSError, CorruptTableError) as e:
            logger.warning("Table %s could not be loaded, starting empty: %s", table, e)
            self._quarantine(table)
            return []

    def write_table(self, table: str, docs: List[Dict[str, Any]]) -> None:
        path = self.path_for(table)
        try:
            data = json.dumps(docs, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StoreIOError(f"table {table} is not JSON serializable: {e}") from e
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=f".{table}.", suffix=".tmp", dir=self.data_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            self.replace_file(tmp_path, path)
        except OSError as e:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            raise StoreIOError(f"cannot write {path}: {e}") from e

    def replace_file(self, tmp_path: str, path: str) -> None:
        os.replace(tmp_path, path)
        self._fsync_dir()

    def _fsync_dir(self) -> None:
        if os.name != "posix":
            return
        try:
            fd = os.open(self.data_dir, os.O_RDONLY)
        except OSError:
            return
        try:
            os.fsync(fd)
        except OSError:
            pass
        finally:
            os.close(fd)

    def _quarantine(self, table: str) -> None:
        path = self.path_for(table)
        if not os.path.exists(path):
            return
        # unique name: an earlier quarantined copy must survive
        target = f"{path}{CORRUPT_EXT}.{new_token()}"
        try:
            os.replace(path, target)
            logger.warning("Moved unreadable table file to %s", target)
        except OSError as e:
            logger.error("Cannot move aside %s: %s", path, e)
