"""
Tests for exporting sessions to project storage.
"""
from __future__ import annotations

from unittest.mock import Mock

import numpy as np
import pytest
from PIL import Image

from lumiq.application.use_cases.export_session import ExportSessionUseCase
from lumiq.application.use_cases.list_projects import ListProjectsUseCase
from lumiq.application.use_cases.open_session import OpenSessionUseCase
from lumiq.domain.errors import PreconditionError
from lumiq.domain.services.editor_session import EditorSession
from lumiq.infrastructure.sessions.session_registry import SessionRegistry
from lumiq.infrastructure.storage.project_storage import ProjectStorage, decode_image, encode_image


@pytest.fixture()
def storage(tmp_path, monkeypatch) -> ProjectStorage:
    monkeypatch.setenv("SUPABASE_STORAGE_LOCAL_DIR", str(tmp_path))
    monkeypatch.setenv("LUMIQ_PROJECT_PREFIX", "LUMIQ")
    return ProjectStorage(None)


@pytest.fixture()
def registry() -> SessionRegistry:
    return SessionRegistry(store={})


class TestExportSessionUseCase:
    def test_flattened_pixels_are_handed_to_storage(self, registry, gradient_rgba):
        session = EditorSession()
        session.load_image(gradient_rgba)
        session.rotate_quarter_turn()
        session_id = registry.create(session)

        storage = Mock()
        storage.save_export.return_value = Mock(name="project")

        result = ExportSessionUseCase(registry, storage).execute(session_id)

        assert result is storage.save_export.return_value
        assert storage.save_export.call_count == 1
        pixels = storage.save_export.call_args[0][0]
        assert np.array_equal(pixels, session.export_flattened())
        assert storage.save_export.call_args[1]["ext"] == "jpg"

    def test_unknown_session(self, registry):
        with pytest.raises(ValueError, match="Session not found"):
            ExportSessionUseCase(registry, Mock()).execute("ses_missing")

    def test_session_without_image(self, registry):
        session_id = registry.create(EditorSession())
        storage = Mock()
        with pytest.raises(PreconditionError):
            ExportSessionUseCase(registry, storage).execute(session_id)
        storage.save_export.assert_not_called()

    def test_export_writes_lumiq_jpeg(self, registry, storage, gradient_rgba, tmp_path):
        session = EditorSession()
        session.load_image(gradient_rgba)
        session_id = registry.create(session)

        project = ExportSessionUseCase(registry, storage).execute(session_id)

        assert project.name.startswith("LUMIQ_") and project.name.endswith(".jpg")
        assert project.path == f"LUMIQ/{project.name}"
        assert project.mime_type == "image/jpeg"
        assert (project.width, project.height) == (4, 6)
        with Image.open(tmp_path / project.path) as img:
            assert img.format == "JPEG"
            assert img.size == (4, 6)


class TestProjectStorage:
    def test_list_projects_newest_first(self, storage, gradient_rgba):
        first = storage.save_export(gradient_rgba)
        second = storage.save_export(gradient_rgba[:3], ext="png")
        page, total = ListProjectsUseCase(storage).execute()
        assert total == 2
        assert [p.name for p in page] == [second.name, first.name]
        assert page[0].mime_type == "image/png"
        assert (page[0].width, page[0].height) == (4, 3)

    def test_listing_ignores_foreign_files(self, storage, tmp_path, gradient_rgba):
        storage.save_export(gradient_rgba)
        (tmp_path / "LUMIQ" / "holiday.jpg").write_bytes(b"not ours")
        assert len(storage.list_projects()) == 1

    def test_pagination(self, storage, gradient_rgba):
        for _ in range(3):
            storage.save_export(gradient_rgba)
        page, total = ListProjectsUseCase(storage).execute(limit=2, offset=2)
        assert total == 3
        assert len(page) == 1

    def test_download_and_delete(self, storage, gradient_rgba):
        project = storage.save_export(gradient_rgba, ext="png")
        data = storage.download_bytes(project.name)
        assert np.array_equal(decode_image(data), gradient_rgba)
        storage.delete(project.name)
        with pytest.raises(ValueError, match="Project not found"):
            storage.download_bytes(project.name)

    def test_delete_unknown_project(self, storage):
        with pytest.raises(ValueError, match="Project not found"):
            storage.delete("LUMIQ_0.jpg")

    def test_listing_skips_undecodable_project_files(self, storage, tmp_path, gradient_rgba):
        kept = storage.save_export(gradient_rgba)
        (tmp_path / "LUMIQ" / "LUMIQ_1.jpg").write_bytes(b"truncated upload")
        (tmp_path / "LUMIQ" / "LUMIQ_dir").mkdir()
        assert [p.name for p in storage.list_projects()] == [kept.name]

    @pytest.mark.parametrize("name", ["../secret.jpg", "other.jpg", "LUMIQ/../x.jpg"])
    def test_rejects_names_outside_project_folder(self, storage, name):
        with pytest.raises(ValueError):
            storage.download_bytes(name)


class TestOpenSessionUseCase:
    def test_opens_session_from_png_bytes(self, registry, gradient_rgba):
        data, _ = encode_image(gradient_rgba, "png")
        session_id, session = OpenSessionUseCase(registry).execute(data)
        assert registry.get(session_id) is session
        assert session.source_size == (4, 6)
        assert np.array_equal(session.export_flattened(), gradient_rgba)

    def test_rejects_garbage(self, registry):
        with pytest.raises(ValueError, match="Invalid image file"):
            OpenSessionUseCase(registry).execute(b"definitely not an image")
        assert len(registry) == 0


class TestSessionRegistry:
    def test_get_unknown_session(self, registry):
        with pytest.raises(ValueError, match="Session not found"):
            registry.get("ses_missing")

    def test_evicts_least_recently_used_when_full(self):
        registry = SessionRegistry(store={}, max_sessions=2)
        first = registry.create(EditorSession())
        second = registry.create(EditorSession())
        registry.get(first)
        third = registry.create(EditorSession())
        assert len(registry) == 2
        assert registry.get(first) is not None
        assert registry.get(third) is not None
        with pytest.raises(ValueError):
            registry.get(second)

    def test_max_sessions_from_env(self, monkeypatch):
        monkeypatch.setenv("LUMIQ_MAX_SESSIONS", "1")
        registry = SessionRegistry(store={})
        first = registry.create(EditorSession())
        registry.create(EditorSession())
        assert len(registry) == 1
        assert not registry.delete(first)

    def test_invalid_cap(self):
        with pytest.raises(ValueError):
            SessionRegistry(store={}, max_sessions=0)
