from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ProjectEntity:
    name: str  # file name, e.g. LUMIQ_1760000000000.jpg
    path: str  # storage path {prefix}/{name}
    mime_type: str
    created_at: datetime
    size: int | None = None  # bytes
    width: int | None = None
    height: int | None = None
