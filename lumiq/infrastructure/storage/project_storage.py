from __future__ import annotations

import os
import time
from datetime import UTC, datetime
from io import BytesIO
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError
from supabase import Client

from lumiq.domain.entities.project import ProjectEntity
from lumiq.infrastructure.database.supabase_client import supabase_disabled
from lumiq.utils.logging import logger


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes into an RGBA uint8 buffer."""
    img = Image.open(BytesIO(data))
    img.load()
    return np.asarray(img.convert("RGBA"), dtype=np.uint8).copy()


def encode_image(pixels: np.ndarray, ext: str, quality: int = 90) -> tuple[bytes, str]:
    arr = np.asarray(pixels, dtype=np.uint8)
    fmt = "PNG" if ext.lower() == "png" else "JPEG"
    img = Image.fromarray(arr)
    if fmt == "JPEG":
        # JPEG has no alpha channel
        img = img.convert("RGB")
    buf = BytesIO()
    img.save(buf, format=fmt, quality=quality)
    content_type = f"image/{'png' if fmt == 'PNG' else 'jpeg'}"
    return buf.getvalue(), content_type


def _mime_for(name: str) -> str:
    return "image/png" if name.lower().endswith(".png") else "image/jpeg"


class ProjectStorage:
    """Stores exported images as "projects" in Supabase Storage with a local fallback.

    Exports are written as ``{prefix}/{prefix}_{epoch millis}.{ext}``; any file
    in that folder whose name starts with ``{prefix}_`` is listed as a project.
    """

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.bucket = os.getenv("SUPABASE_STORAGE_BUCKET", "images")
        self.disabled = supabase_disabled()
        self.local_dir = Path(os.getenv("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage"))
        self.prefix = os.getenv("LUMIQ_PROJECT_PREFIX", "LUMIQ")
        self.quality = int(os.getenv("LUMIQ_EXPORT_QUALITY", "90"))
        if self.is_local:
            (self.local_dir / self.prefix).mkdir(parents=True, exist_ok=True)

    @property
    def is_local(self) -> bool:
        return self.disabled or self.client is None

    def _project_path(self, name: str) -> str:
        if "/" in name or "\\" in name or not name.startswith(f"{self.prefix}_"):
            raise ValueError("Project not found")
        return f"{self.prefix}/{name}"

    def _next_name(self, ext: str) -> str:
        millis = int(time.time() * 1000)
        name = f"{self.prefix}_{millis}.{ext}"
        if self.is_local:
            while (self.local_dir / self.prefix / name).exists():
                millis += 1
                name = f"{self.prefix}_{millis}.{ext}"
        return name

    def save_export(self, pixels: np.ndarray, ext: str = "jpg") -> ProjectEntity:
        ext = ext.lower().lstrip(".")
        image_bytes, content_type = encode_image(pixels, ext, quality=self.quality)
        height, width = pixels.shape[:2]
        name = self._next_name(ext)
        storage_path = self._project_path(name)
        if self.is_local:
            full_path = self.local_dir / storage_path
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(image_bytes)
        else:
            try:  # pragma: no cover - network
                self.client.storage.from_(self.bucket).upload(
                    path=storage_path,
                    file=image_bytes,
                    file_options={"content-type": content_type},
                )
            except Exception as exc:  # pragma: no cover
                raise RuntimeError(f"Storage upload failed: {exc}") from exc
        logger.info("Saved export %s (%dx%d, %d bytes)", storage_path, width, height, len(image_bytes))
        return ProjectEntity(
            name=name,
            path=storage_path,
            mime_type=content_type,
            created_at=datetime.now(UTC),
            size=len(image_bytes),
            width=width,
            height=height,
        )

    def list_projects(self) -> list[ProjectEntity]:
        """Exported projects, newest first."""
        if self.is_local:
            items = []
            for path in (self.local_dir / self.prefix).glob(f"{self.prefix}_*"):
                entity = self._local_entity(path)
                if entity is not None:
                    items.append(entity)
        else:  # pragma: no cover - network
            rows = self.client.storage.from_(self.bucket).list(self.prefix)
            items = [
                self._row_to_entity(row)
                for row in rows
                if str(row.get("name", "")).startswith(f"{self.prefix}_")
            ]
        items.sort(key=lambda p: (p.created_at, p.name), reverse=True)
        return items

    def _local_entity(self, path: Path) -> ProjectEntity | None:
        if not path.is_file():
            return None
        stat = path.stat()
        try:
            with Image.open(path) as img:
                width, height = img.size
        except UnidentifiedImageError:
            logger.warning("Skipping unreadable project file %s", path.name)
            return None
        return ProjectEntity(
            name=path.name,
            path=f"{self.prefix}/{path.name}",
            mime_type=_mime_for(path.name),
            created_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
            size=stat.st_size,
            width=width,
            height=height,
        )

    def _row_to_entity(self, row: dict) -> ProjectEntity:  # pragma: no cover - network
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        metadata = row.get("metadata") or {}
        return ProjectEntity(
            name=row["name"],
            path=f"{self.prefix}/{row['name']}",
            mime_type=metadata.get("mimetype", _mime_for(row["name"])),
            created_at=created_at or datetime.now(UTC),
            size=metadata.get("size"),
        )

    def download_bytes(self, name: str) -> bytes:
        path = self._project_path(name)
        if self.is_local:
            full_path = self.local_dir / path
            if not full_path.exists():
                raise ValueError("Project not found")
            return full_path.read_bytes()
        # pragma: no cover - network
        return self.client.storage.from_(self.bucket).download(path)

    def delete(self, name: str) -> None:
        path = self._project_path(name)
        if self.is_local:
            full_path = self.local_dir / path
            if not full_path.exists():
                raise ValueError("Project not found")
            full_path.unlink()
            logger.info("Deleted project %s", path)
            return
        try:  # pragma: no cover - network
            self.client.storage.from_(self.bucket).remove([path])
        except Exception as exc:
            raise RuntimeError(f"Storage delete failed: {exc}") from exc
