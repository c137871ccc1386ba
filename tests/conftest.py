import os
import sys
import tempfile
from pathlib import Path

import numpy as np
import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path so 'lumiq' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")
os.environ.setdefault("SUPABASE_STORAGE_LOCAL_DIR", tempfile.mkdtemp(prefix="lumiq-storage-"))


@pytest.fixture(scope="session")
def client() -> TestClient:
    # lazy import after env configured
    from lumiq.main import create_app

    app = create_app()
    return TestClient(app)


@pytest.fixture()
def gradient_rgba() -> np.ndarray:
    """A 6x4 (H x W) RGBA image where every pixel is distinct."""
    h, w = 6, 4
    ys, xs = np.indices((h, w))
    img = np.zeros((h, w, 4), dtype=np.uint8)
    img[..., 0] = (xs * 60).astype(np.uint8)
    img[..., 1] = (ys * 40).astype(np.uint8)
    img[..., 2] = ((xs + ys) * 20).astype(np.uint8)
    img[..., 3] = 255
    return img
