"""Per-instance state records.

The host owns the state record and persists it between ``create`` and
``destroy``. The driver only reads and writes two keys. StateFile is the
JSON persistence used by the bundled CLI.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

from kitchen_oraclecloud.errors import StateError

type State = MutableMapping[str, Any]

ORCHESTRATION_ID = "orchestration_id"
HOSTNAME = "hostname"

DEFAULT_STATE_DIR = Path(".kitchen")


class StateFile:
    """JSON state record for one instance, stored as ``<dir>/<instance>.json``."""

    def __init__(self, instance_name: str, state_dir: Path = DEFAULT_STATE_DIR) -> None:
        self.path = state_dir / f"{''.join(instance_name.split())}.json"

    def read(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            with self.path.open() as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StateError(f"State file {self.path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise StateError(f"State file {self.path} does not contain an object")
        return data

    def write(self, state: State) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(dict(state), f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except Exception:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)


__all__ = ["DEFAULT_STATE_DIR", "HOSTNAME", "ORCHESTRATION_ID", "State", "StateFile"]
