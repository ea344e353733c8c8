import sys
from pathlib import Path

import pytest


# Ensure `backend/` is on sys.path so tests can import local modules
# like `layers.*`, `selection.*`, and `main`.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))

from mapconfig.types import BaseMapConfig, BaseMapStyle  # noqa: E402
from renderer.memory import InMemoryRenderer  # noqa: E402


@pytest.fixture
def feeds() -> dict[str, dict]:
    """
    Feed location -> FeatureCollection, read lazily by the renderer fixture.
    """
    return {}


@pytest.fixture
def base_maps() -> BaseMapConfig:
    return BaseMapConfig(
        styles=[
            BaseMapStyle(id="dark", name="Dark", url="/styles/dark.json"),
            BaseMapStyle(id="satellite", name="Satellite", url="/styles/satellite.json"),
        ],
        default_style="dark",
    )


@pytest.fixture
def renderer(feeds) -> InMemoryRenderer:
    return InMemoryRenderer(
        style_url="/styles/dark.json",
        center=(0.0, 0.0),
        zoom=10.0,
        width=1024,
        height=768,
        data_loader=lambda location: feeds[location],
    )
