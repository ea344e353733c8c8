from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from mapconfig.registry import get_map_config
from mapconfig.settings import configure_logging, cors_origins
from mapconfig.types import BaseMapConfig, LayerConfig, MapConfig

configure_logging()

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

GEOJSON_ROOT = Path(__file__).resolve().parents[1] / "data" / "geojson"


@app.get("/api/map-config", response_model=MapConfig)
def map_config():
    return get_map_config()


@app.get("/api/layers", response_model=list[LayerConfig])
def layers():
    return get_map_config().layers


@app.get("/api/base-maps", response_model=BaseMapConfig)
def base_maps():
    return get_map_config().base_maps


@app.get("/api/geojson/{name}")
def geojson(name: str):
    # Flat directory only; no path components from the client.
    if "/" in name or "\\" in name or name.startswith("."):
        raise HTTPException(status_code=400, detail="Invalid feed name")
    path = GEOJSON_ROOT / name
    if path.suffix != ".geojson" or not path.is_file():
        raise HTTPException(status_code=404, detail=f"Unknown feed: {name}")
    return FileResponse(path, media_type="application/geo+json")
