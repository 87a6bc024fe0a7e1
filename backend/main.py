import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from api.placement import (
    ApiPlacementRequest,
    cache_stats_payload,
    clear_cache,
    clear_clicks,
    click_stats_payload,
    compute_placement,
    list_regions_payload,
)
from placement.config import log_level

logging.basicConfig(
    level=getattr(logging, log_level(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/regions")
def regions():
    return list_regions_payload()


@app.post("/popup/placement")
def popup_placement(body: ApiPlacementRequest):
    try:
        return compute_placement(body)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0] if exc.args else exc))


@app.get("/popup/cache/stats")
def popup_cache_stats():
    return cache_stats_payload()


@app.post("/popup/cache/clear")
def popup_cache_clear(selective: bool = False):
    return clear_cache(selective=selective)


@app.get("/popup/clicks/stats")
def popup_click_stats(clientId: str, regionId: str | None = None):
    return click_stats_payload(clientId, regionId)


@app.post("/popup/clicks/clear")
def popup_clicks_clear(clientId: str, regionId: str | None = None):
    return clear_clicks(clientId, regionId)
