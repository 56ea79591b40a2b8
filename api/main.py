from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import BrowseRequestModel, ExportRequestModel, ThcBatchRequestModel
from strain_core.browse import compute_browse, compute_strain_detail, compute_summary
from strain_core.data import filter_options, find_strain, load_catalog_data, prepare_context
from strain_core.exports import format_filename, generate_output, normalize_print_config
from strain_core.thc import ThcViewCache, get_view


app = FastAPI(title="Strain Catalog API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(status_code: int, message: str, kind: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "type": kind})


def _server_error(exc: Exception) -> JSONResponse:
    return _error(500, str(exc), type(exc).__name__)


@app.get("/thc/{name}")
def thc_view(name: str):
    try:
        return _json({"name": name, **get_view(name).to_dict()})
    except Exception as exc:
        logger.exception("thc_view failed")
        return _server_error(exc)


@app.post("/thc/batch")
def thc_batch(body: ThcBatchRequestModel):
    try:
        cache = ThcViewCache()
        views = [{"name": name, **get_view(name, cache).to_dict()} for name in body.names]
        return _json({"views": views, "distinct": len(cache)})
    except Exception as exc:
        logger.exception("thc_batch failed")
        return _server_error(exc)


@app.get("/meta/files")
def meta_files():
    try:
        data_ctx = load_catalog_data()
        return _json({"files": data_ctx.get("files", []) or []})
    except Exception as exc:
        logger.exception("meta_files failed")
        return _server_error(exc)


@app.get("/meta/filter-options")
def meta_filter_options():
    try:
        data_ctx = load_catalog_data()
        ctx = prepare_context(None, None, data_ctx)
        return _json(filter_options(ctx["catalog"], ctx["thc_cache"]))
    except Exception as exc:
        logger.exception("meta_filter_options failed")
        return _server_error(exc)


@app.get("/meta/summary")
def meta_summary():
    try:
        data_ctx = load_catalog_data()
        ctx = prepare_context(None, None, data_ctx)
        return _json(compute_summary(ctx))
    except Exception as exc:
        logger.exception("meta_summary failed")
        return _server_error(exc)


@app.post("/browse")
def browse(body: BrowseRequestModel, limit: Optional[int] = Query(default=None, ge=0)):
    try:
        data_ctx = load_catalog_data()
        ctx = prepare_context(body.filters.model_dump(), body.sort.model_dump(), data_ctx)
        return _json(compute_browse(ctx, limit=limit))
    except Exception as exc:
        logger.exception("browse failed")
        return _server_error(exc)


@app.get("/strains/{name}")
def strain_detail(name: str):
    try:
        data_ctx = load_catalog_data()
        ctx = prepare_context(None, None, data_ctx)
        detail = compute_strain_detail(name, ctx)
        if detail is None:
            return _error(404, f"Unknown strain: {name}", "NotFound")
        return _json(detail)
    except Exception as exc:
        logger.exception("strain_detail failed")
        return _server_error(exc)


@app.post("/export/{mode}")
def export_output(mode: str, body: ExportRequestModel):
    try:
        data_ctx = load_catalog_data()
        ctx = prepare_context(None, None, data_ctx)
        config = normalize_print_config(body.config.model_dump())

        strain = None
        if mode != "full-menu" and body.strain_name:
            strain = find_strain(ctx["catalog"], body.strain_name)
            if strain is None:
                return _error(404, f"Unknown strain: {body.strain_name}", "NotFound")

        try:
            content = generate_output(mode, config, strain=strain, catalog=ctx["catalog"], cache=ctx["thc_cache"])
        except ValueError as exc:
            return _error(400, str(exc), type(exc).__name__)

        label = "Full Menu" if strain is None else str(strain["name"])
        extension = "json" if mode == "json" else "txt"
        filename = f"{format_filename(config.default_filename, label)}.{extension}"
        return Response(
            content=content.encode("utf-8"),
            media_type="text/plain; charset=utf-8",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
    except Exception as exc:
        logger.exception("export_output failed")
        return _server_error(exc)
