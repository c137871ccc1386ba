from __future__ import annotations

from lumiq.infrastructure.database.supabase_client import get_supabase_client
from lumiq.infrastructure.sessions.session_registry import SessionRegistry
from lumiq.infrastructure.storage.project_storage import ProjectStorage


def get_storage() -> ProjectStorage:
    client = get_supabase_client()
    return ProjectStorage(client)


def get_session_registry() -> SessionRegistry:
    return SessionRegistry()
