"""FastAPI routes for browsing analysis results."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, PlainTextResponse
from pydantic import BaseModel

from safehandle_analyzer.models import CacheEntry
from safehandle_analyzer.provider.snapshot import parse_address
from safehandle_analyzer.web.state import ReportState

router = APIRouter(prefix="/api")


# --- Response models ---

class CacheEntryModel(BaseModel):
    address: str
    object_address: int
    type_name: str
    root_path_count: int
    analysis_date: datetime
    exported_files: list[str] | None = None

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> CacheEntryModel:
        return cls(
            address=f"0x{entry.object_address:x}",
            object_address=entry.object_address,
            type_name=entry.type_name,
            root_path_count=entry.root_path_count,
            analysis_date=entry.analysis_date,
            exported_files=entry.exported_files,
        )


class CacheListing(BaseModel):
    cache_file: str
    total: int
    entries: list[CacheEntryModel]


# --- Helpers ---

def get_reports(request: Request) -> ReportState:
    return request.app.state.reports


def _address(value: str) -> int:
    try:
        return parse_address(value)
    except ValueError:
        raise HTTPException(400, f"Invalid address: {value}")


# --- Endpoints ---

@router.get("/cache", response_model=CacheListing)
def list_cache(reports: ReportState = Depends(get_reports)):
    store = reports.load_cache()
    entries = sorted(store.entries(), key=lambda e: (e.type_name, e.object_address))
    return CacheListing(
        cache_file=str(reports.cache_file),
        total=len(entries),
        entries=[CacheEntryModel.from_entry(e) for e in entries],
    )


@router.get("/cache/{address}", response_model=CacheEntryModel)
def get_cache_entry(address: str, reports: ReportState = Depends(get_reports)):
    entry = reports.entry(_address(address))
    if entry is None:
        raise HTTPException(404, f"Object {address} has not been analyzed")
    return CacheEntryModel.from_entry(entry)


@router.get("/reports/{address}", response_class=PlainTextResponse)
def get_report(address: str, reports: ReportState = Depends(get_reports)):
    path = reports.exported_file(_address(address), ".txt")
    if path is None:
        raise HTTPException(404, f"No text report for {address}")
    return PlainTextResponse(path.read_text(encoding="utf-8"))


@router.get("/graphs/{address}")
def get_object_graph(address: str, reports: ReportState = Depends(get_reports)):
    path = reports.exported_file(_address(address), ".svg")
    if path is None:
        raise HTTPException(404, f"No graph for {address}")
    return FileResponse(path, media_type="image/svg+xml")


@router.get("/overlay")
def get_overlay(reports: ReportState = Depends(get_reports)):
    path = reports.overlay_path
    if not path.is_file():
        raise HTTPException(404, "No overlay graph has been generated")
    return FileResponse(path, media_type="image/svg+xml")
