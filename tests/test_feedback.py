"""Tests for POST /api/feedback (multipart form with optional screenshots)."""
import os

import pytest
from httpx import AsyncClient

from garden_catalog.config import settings
from tests.conftest import PNG_BYTES, create_user


def _image(name="shot.png", content=PNG_BYTES, content_type="image/png"):
    return ("images", (name, content, content_type))


@pytest.mark.asyncio
async def test_submit_feedback_with_images(client: AsyncClient):
    user_id = await create_user(client)
    resp = await client.post(
        "/api/feedback",
        data={"message": "The catalog page is great", "userId": user_id, "pageUrl": "/catalog"},
        files=[_image("a.png"), _image("b.png")],
        headers={"User-Agent": "pytest-browser/1.0"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True

    feedback = data["feedback"]
    assert feedback["message"] == "The catalog page is great"
    assert feedback["userId"] == user_id
    assert feedback["pageUrl"] == "/catalog"
    assert feedback["userAgent"] == "pytest-browser/1.0"
    assert len(feedback["imageUrls"]) == 2
    assert all(url.startswith("/uploads/") for url in feedback["imageUrls"])


@pytest.mark.asyncio
async def test_anonymous_feedback_without_images(client: AsyncClient):
    resp = await client.post("/api/feedback", data={"message": "Love it"})
    assert resp.status_code == 200
    feedback = resp.json()["feedback"]
    assert feedback["userId"] is None
    assert feedback["imageUrls"] == []


@pytest.mark.asyncio
async def test_unknown_user_id_is_dropped(client: AsyncClient):
    resp = await client.post("/api/feedback", data={"message": "hi", "userId": "ghost"})
    assert resp.status_code == 200
    assert resp.json()["feedback"]["userId"] is None


@pytest.mark.asyncio
async def test_blank_message_rejected(client: AsyncClient):
    resp = await client.post("/api/feedback", data={"message": "   "})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Feedback message is required"


@pytest.mark.asyncio
async def test_too_many_images_rejected(client: AsyncClient):
    files = [_image(f"{i}.png") for i in range(settings.MAX_FEEDBACK_IMAGES + 1)]
    resp = await client.post("/api/feedback", data={"message": "lots"}, files=files)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_non_image_attachment_rejected(client: AsyncClient):
    resp = await client.post(
        "/api/feedback",
        data={"message": "see log"},
        files=[_image("log.txt", b"error log", "text/plain")],
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_rejected_attachment_leaves_no_files(client: AsyncClient):
    before = set(os.listdir(settings.UPLOAD_DIR))
    resp = await client.post(
        "/api/feedback",
        data={"message": "screenshot and log"},
        files=[_image("a.png"), _image("log.txt", b"error log", "text/plain")],
    )
    assert resp.status_code == 400
    assert set(os.listdir(settings.UPLOAD_DIR)) == before


@pytest.mark.asyncio
async def test_oversized_attachment_removes_earlier_files(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 32)
    before = set(os.listdir(settings.UPLOAD_DIR))
    resp = await client.post(
        "/api/feedback",
        data={"message": "two shots"},
        files=[_image("small.png", b"\x89PNG" + b"\x00" * 8), _image("big.png")],
    )
    assert resp.status_code == 413
    assert set(os.listdir(settings.UPLOAD_DIR)) == before
