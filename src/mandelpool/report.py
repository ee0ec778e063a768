"""What a finished render hands back: the pixels plus how long they took."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np


@dataclass(frozen=True)
class RenderReport:
    """Result of a completed :class:`~mandelpool.engine.RenderJob`.

    ``buffer`` is the caller's packed RGBA32 pixel buffer, now filled.
    ``timing`` carries the mode, wall and summed chunk compute time, pixel,
    chunk and worker counts. ``chunks`` holds one record per rendered index
    range (a single record for sequential renders).
    """

    buffer: np.ndarray
    timing: Dict[str, Any]
    chunks: Optional[List[Dict[str, Any]]]

    def copy_chunks(self) -> Optional[List[Dict[str, Any]]]:
        """Per-range records, copied so tracking code can annotate them freely."""
        if self.chunks is None:
            return None
        return [record.copy() for record in self.chunks]
