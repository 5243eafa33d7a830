# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
API tests.
Runs the full FastAPI app with its lifespan. Model files are absent, so
startup leaves the engines unloaded; tests inject fake engines through
dependency overrides.
"""

import io
import os
from contextlib import asynccontextmanager

import numpy as np
import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient


# ─── Helpers ─────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan_client(encoder=None, decoder_engine=None):
    """
    Spin up the app including its lifespan (startup/shutdown), then
    yield an AsyncClient pointed at it. Engines are overridden only
    when given.
    """
    os.environ["LOG_LEVEL"] = "WARNING"
    os.environ["ENCODER_MODEL_PATH"] = "/nonexistent/encoder.onnx"
    os.environ["DECODER_MODEL_PATH"] = "/nonexistent/decoder.onnx"

    # Clear settings cache so env overrides above take effect
    from promptseg.config import get_settings
    get_settings.cache_clear()

    from promptseg import dependencies
    from promptseg.main import create_app
    test_app = create_app()
    if encoder is not None:
        test_app.dependency_overrides[dependencies.get_encoder] = lambda: encoder
    if decoder_engine is not None:
        test_app.dependency_overrides[dependencies.get_decoder_engine] = lambda: decoder_engine

    async with LifespanManager(test_app) as manager:
        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


def _png(image: np.ndarray) -> dict:
    from promptseg.utils.image_utils import bgr_to_png_bytes
    return {"image": ("image.png", bgr_to_png_bytes(image), "image/png")}


async def _create_session(client, image) -> str:
    resp = await client.post("/sessions", files=_png(image))
    assert resp.status_code == 201
    return resp.json()["session_id"]


# ─── Health / Errors ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health_endpoint():
    async with lifespan_client() as c:
        resp = await c.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["service"] == "promptseg"
    assert data["models_loaded"] is False


@pytest.mark.asyncio
async def test_missing_models_report_configuration_error(image):
    async with lifespan_client() as c:
        resp = await c.post("/sessions", files=_png(image))
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "CONFIGURATION_ERROR"


@pytest.mark.asyncio
async def test_session_not_found():
    async with lifespan_client() as c:
        resp = await c.post(
            "/sessions/nonexistent/labels/1/points", json={"x": 1, "y": 1}
        )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "SESSION_NOT_FOUND"


@pytest.mark.asyncio
async def test_invalid_upload_rejected(encoder, decoder_engine):
    async with lifespan_client(encoder, decoder_engine) as c:
        resp = await c.post(
            "/sessions", files={"image": ("notes.txt", b"hello", "text/plain")}
        )
        corrupt = await c.post(
            "/sessions", files={"image": ("broken.png", b"\x89PNG garbage", "image/png")}
        )
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "IMAGE_VALIDATION_ERROR"
    assert corrupt.status_code == 422


# ─── Interactive Sessions ────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_session_reports_size(encoder, decoder_engine, image):
    async with lifespan_client(encoder, decoder_engine) as c:
        resp = await c.post("/sessions", files=_png(image))
    assert resp.status_code == 201
    data = resp.json()
    assert (data["height"], data["width"]) == (96, 128)
    assert data["session_id"]


@pytest.mark.asyncio
async def test_point_add_and_remove(encoder, decoder_engine, image):
    async with lifespan_client(encoder, decoder_engine) as c:
        sid = await _create_session(c, image)
        added = await c.post(
            f"/sessions/{sid}/labels/1/points", json={"x": 32, "y": 24, "positive": True}
        )
        removed = await c.delete(
            f"/sessions/{sid}/labels/1/points", params={"x": 32, "y": 24}
        )

    assert added.status_code == 200
    label = added.json()["labels"][0]
    assert label["label_id"] == 1
    assert label["mask_size"] == [16, 16]
    assert label["area"] == 25
    assert label["scores"] == pytest.approx([0.95, 0.5, 0.3])

    empty = removed.json()["labels"][0]
    assert empty["area"] == 0
    assert empty["mask_size"] == [96, 128]
    assert empty["scores"] == []


@pytest.mark.asyncio
async def test_box_set_and_remove(encoder, decoder_engine, image):
    async with lifespan_client(encoder, decoder_engine) as c:
        sid = await _create_session(c, image)
        put = await c.put(
            f"/sessions/{sid}/labels/3/box", json={"x1": 0, "y1": 0, "x2": 64, "y2": 48}
        )
        deleted = await c.delete(f"/sessions/{sid}/labels/3/box")
        unknown = await c.delete(f"/sessions/{sid}/labels/42/box")

    assert put.status_code == 200
    # Fake decoder centres on the first corner (0, 0): square clipped to 3×3
    assert put.json()["labels"][0]["area"] == 9
    assert deleted.json()["labels"][0]["area"] == 0
    assert [l["label_id"] for l in unknown.json()["labels"]] == [3]
    assert decoder_engine.calls[-1]["point_labels"].tolist() == [[2.0, 3.0]]


@pytest.mark.asyncio
async def test_mask_png_download(encoder, decoder_engine, image):
    from PIL import Image

    async with lifespan_client(encoder, decoder_engine) as c:
        sid = await _create_session(c, image)
        await c.post(f"/sessions/{sid}/labels/1/points", json={"x": 32, "y": 24})
        resp = await c.get(f"/sessions/{sid}/labels/1/mask.png")
        blank = await c.get(f"/sessions/{sid}/labels/9/mask.png")

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    raster = Image.open(io.BytesIO(resp.content))
    assert raster.mode == "P"
    assert raster.size == (16, 16)
    assert int((np.array(raster) == 255).sum()) == 25

    blank_raster = Image.open(io.BytesIO(blank.content))
    assert blank_raster.size == (128, 96)
    assert not np.array(blank_raster).any()


@pytest.mark.asyncio
async def test_reset_and_delete_session(encoder, decoder_engine, image):
    async with lifespan_client(encoder, decoder_engine) as c:
        sid = await _create_session(c, image)
        await c.post(f"/sessions/{sid}/labels/1/points", json={"x": 32, "y": 24})
        reset = await c.post(f"/sessions/{sid}/reset")
        deleted = await c.delete(f"/sessions/{sid}")
        gone = await c.post(f"/sessions/{sid}/reset")

    assert reset.status_code == 200
    assert reset.json()["labels"] == []
    assert deleted.status_code == 204
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_reset_and_mask_download_leave_event_loop_thread(
    encoder, decoder_engine, image, monkeypatch
):
    import threading
    from promptseg.core.interactive_session import InteractiveSession

    seen: list[int] = []
    original_reset = InteractiveSession.reset_points
    original_masks = InteractiveSession.get_masks

    def reset_points(self):
        seen.append(threading.get_ident())
        return original_reset(self)

    def get_masks(self):
        seen.append(threading.get_ident())
        return original_masks(self)

    monkeypatch.setattr(InteractiveSession, "reset_points", reset_points)
    monkeypatch.setattr(InteractiveSession, "get_masks", get_masks)

    async with lifespan_client(encoder, decoder_engine) as c:
        sid = await _create_session(c, image)
        seen.clear()
        reset = await c.post(f"/sessions/{sid}/reset")
        png = await c.get(f"/sessions/{sid}/labels/1/mask.png")

    assert reset.status_code == 200
    assert png.status_code == 200
    assert len(seen) == 3
    assert threading.get_ident() not in seen


# ─── Automatic ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_automatic_endpoint(encoder, decoder_engine, image):
    async with lifespan_client(encoder, decoder_engine) as c:
        resp = await c.post("/automatic", files=_png(image), data={"points_per_side": "2"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["mask_size"] == [16, 16]
    assert len(data["results"]) == 4
    first = data["results"][0]
    assert first["bbox"] == [16, 12, 40, 30]
    assert first["point_coords"] == [[32.0, 24.0]]
    assert first["area"] == 25


@pytest.mark.asyncio
async def test_automatic_explicit_points(encoder, decoder_engine, image):
    async with lifespan_client(encoder, decoder_engine) as c:
        resp = await c.post(
            "/automatic",
            files=_png(image),
            data={"points": "[[32, 24], [96, 72]]"},
        )
        bad = await c.post("/automatic", files=_png(image), data={"points": "[[1]]"})
    assert resp.status_code == 200
    assert [r["point_index"] for r in resp.json()["results"]] == [0, 1]
    assert bad.status_code == 422
    assert bad.json()["error"]["code"] == "PROMPT_VALIDATION_ERROR"
    assert "points" in bad.json()["error"]["message"]


@pytest.mark.asyncio
async def test_automatic_overlay(encoder, decoder_engine, image):
    async with lifespan_client(encoder, decoder_engine) as c:
        resp = await c.post(
            "/automatic/overlay", files=_png(image), data={"points_per_side": "2"}
        )
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    from promptseg.utils.image_utils import bytes_to_bgr
    assert bytes_to_bgr(resp.content).shape == (96, 128, 3)
