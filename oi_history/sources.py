"""
Snapshot source interface and a read-only JSON file implementation.

Sources surface failures as an absent result (``None`` / empty history)
rather than a partial one.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Protocol

from .errors import InvalidSnapshot
from .models import Snapshot, chronological, parse_history

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_ENV_VAR = "OI_HISTORY_SOURCE_DIR"


class SnapshotSource(Protocol):
    """Upstream provider of snapshots for a symbol."""

    def latest(self, symbol: str) -> Optional[Snapshot]:
        ...

    def history(self, symbol: str) -> List[Snapshot]:
        """All stored snapshots for ``symbol``, oldest first."""
        ...


class JsonFileSnapshotSource:
    """
    Reads ``<directory>/<SYMBOL>.json``: a JSON list of upstream snapshot
    documents, as returned by the history endpoint.
    """

    def __init__(self, directory: Optional[os.PathLike] = None) -> None:
        if directory is None:
            directory = os.getenv(DEFAULT_SOURCE_ENV_VAR, ".")
        self.directory = Path(directory)

    def path_for(self, symbol: str) -> Path:
        return self.directory / f"{symbol.upper()}.json"

    def history(self, symbol: str) -> List[Snapshot]:
        path = self.path_for(symbol)
        if not path.exists():
            logger.warning(f"No history file for {symbol} at {path}")
            return []
        try:
            docs = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read history for {symbol} from {path}: {e}")
            return []
        if not isinstance(docs, list):
            logger.warning(f"History file {path} does not hold a list of snapshots")
            return []
        try:
            snapshots = parse_history(docs)
        except InvalidSnapshot as e:
            logger.warning(f"Discarding history for {symbol}: {e}")
            return []
        logger.info(f"Loaded {len(snapshots)} snapshots for {symbol} from {path}")
        return chronological(snapshots)

    def latest(self, symbol: str) -> Optional[Snapshot]:
        snapshots = self.history(symbol)
        return snapshots[-1] if snapshots else None
