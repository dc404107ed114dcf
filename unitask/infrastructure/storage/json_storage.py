"""JSON file storage with Result-based error handling.

Provides a thin wrapper around file I/O for JSON documents, returning
Result types instead of raising exceptions.
"""

import json
import os
from pathlib import Path
from typing import Any

from unitask.domain.shared.result import Err, Ok, Result


class JsonStorage:
    """Low-level JSON file I/O with Result-based error handling.

    Writes go to a sibling temp file that is then renamed over the target,
    so readers never see a half-written document.

    Example:
        storage = JsonStorage()
        result = storage.load_json(Path("store.json"))
        if isinstance(result, Ok):
            data = result.value
        else:
            print(f"Error: {result.error}")
    """

    def load_json(self, path: Path) -> Result[dict[str, Any], str]:
        """Load a JSON object from a file.

        Args:
            path: Path to the JSON file to read.

        Returns:
            Ok(dict) if successful, Err(str) with error message if failed.
        """
        try:
            if not path.exists():
                return Err(f"File not found: {path}")

            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                return Err(f"Expected a JSON object in {path}")
            return Ok(data)

        except json.JSONDecodeError as e:
            return Err(f"Invalid JSON in {path}: {e}")
        except PermissionError:
            return Err(f"Permission denied reading {path}")
        except OSError as e:
            return Err(f"Error reading {path}: {e}")

    def save_json(
        self,
        path: Path,
        data: dict[str, Any],
        indent: int = 2,
    ) -> Result[None, str]:
        """Atomically save a JSON object to a file.

        Args:
            path: Path to the JSON file to write.
            data: Dictionary to serialize as JSON.
            indent: JSON indentation level (default 2).

        Returns:
            Ok(None) if successful, Err(str) with error message if failed.
        """
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=indent), encoding="utf-8")
            os.replace(tmp_path, path)
            return Ok(None)

        except TypeError as e:
            return Err(f"Data not JSON serializable: {e}")
        except PermissionError:
            return Err(f"Permission denied writing {path}")
        except OSError as e:
            return Err(f"Error writing {path}: {e}")

    def read_revision(self, path: Path) -> Result[int, str]:
        """Read only the ``revision`` counter of a stored document.

        A missing file counts as revision 0.
        """
        if not path.exists():
            return Ok(0)
        result = self.load_json(path)
        if isinstance(result, Err):
            return result
        revision = result.value.get("revision", 0)
        if not isinstance(revision, int):
            return Err(f"Invalid revision in {path}: {revision!r}")
        return Ok(revision)
