# ============================================================================
# FILE: tests/integration/test_api.py
# ============================================================================
"""
Integration tests for the HTTP surface
"""

import asyncio
import io
import time

import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient

from app.agent.nodes import IntakeDeps
from app.api.routes_prescriptions import upload_prescription
from app.main import create_app

SECRET = "test-secret"


@pytest.fixture
def client(memory_store, found_validator, fake_ocr, monkeypatch):
    monkeypatch.setenv("INTERNAL_SERVICE_SECRET", SECRET)
    app = create_app(
        store=memory_store,
        validator=found_validator,
        ocr=fake_ocr("Take Aspirin 75 mg daily"),
        enable_scanner=False,
    )
    with TestClient(app) as c:
        yield c


@pytest.fixture
def headers():
    return {"X-Internal-Key": SECRET, "X-User-Id": "u1"}


def test_health(client):
    assert client.get("/health").json() == {"ok": True}
    assert client.get("/").json()["service"] == "Medication Reminder Service"


# ============================================================================
# PRESCRIPTIONS
# ============================================================================

def test_upload(client, headers):
    r = client.post(
        "/prescriptions/upload",
        files={"prescription_image": ("rx.png", b"fake-png", "image/png")},
        data={"package_image_url": "pkg.png"},
        headers=headers,
    )

    assert r.status_code == 200
    body = r.json()
    assert body["ocr_text"] == "Take Aspirin 75 mg daily"
    assert body["prescription_id"]
    assert body["nlp_data"]["structured_medications"][0]["name"] == "Aspirin"
    assert body["image_urls"]["package_image_url"] == "pkg.png"


def test_upload_empty_file(client):
    r = client.post("/prescriptions/upload", files={"prescription_image": ("rx.png", b"", "image/png")})

    assert r.status_code == 400


def test_upload_ocr_reads_nothing(memory_store, found_validator, fake_ocr):
    app = create_app(store=memory_store, validator=found_validator, ocr=fake_ocr(""), enable_scanner=False)
    with TestClient(app) as c:
        r = c.post("/prescriptions/upload", files={"prescription_image": ("rx.png", b"img", "image/png")})

    assert r.status_code == 200
    assert r.json()["ocr_text"] == "No text detected or OCR failed."
    assert r.json()["prescription_id"] is None


def test_upload_without_ocr_engine(memory_store, found_validator):
    def missing(image_bytes):
        raise ImportError("pytesseract/Pillow not installed")

    app = create_app(store=memory_store, validator=found_validator, ocr=missing, enable_scanner=False)
    with TestClient(app) as c:
        r = c.post("/prescriptions/upload", files={"prescription_image": ("rx.png", b"img", "image/png")})

    assert r.status_code == 503


def test_upload_keeps_event_loop_responsive(memory_store, found_validator):
    def slow_ocr(image_bytes):
        time.sleep(0.5)
        return "Take Aspirin 75 mg daily"

    deps = IntakeDeps(store=memory_store, ocr=slow_ocr, validator=found_validator)

    async def _run():
        gaps = []
        done = asyncio.Event()

        async def ticker():
            last = time.monotonic()
            while not done.is_set():
                await asyncio.sleep(0.05)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        task = asyncio.create_task(ticker())
        response = await upload_prescription(
            prescription_image=UploadFile(file=io.BytesIO(b"img"), filename="rx.png"),
            package_image_url=None,
            medication_image_url=None,
            user_id="u1",
            deps=deps,
        )
        done.set()
        await task
        return response, max(gaps)

    response, max_gap = asyncio.run(_run())

    assert response.prescription_id
    assert max_gap < 0.2


def test_parse(client, metformin_text):
    r = client.post("/prescriptions/parse", json={"text": metformin_text})

    assert r.status_code == 200
    med = r.json()["structured_medications"][0]
    assert med["name"] == "Metformin"
    assert med["dosage"] == "500 mg"
    assert med["validation"]["status"] == "FOUND"


def test_parse_blank(client):
    assert client.post("/prescriptions/parse", json={"text": " "}).status_code == 400


# ============================================================================
# REMINDERS
# ============================================================================

def test_reminders_require_internal_key(client):
    assert client.get("/reminders", headers={"X-Internal-Key": "wrong"}).status_code == 401


def test_reminders_without_configured_secret(client, headers, monkeypatch):
    monkeypatch.delenv("INTERNAL_SERVICE_SECRET")

    assert client.get("/reminders", headers=headers).status_code == 500


def test_voice_reminder(client, headers, metformin_text):
    r = client.post("/reminders/voice", json={"text": metformin_text}, headers=headers)

    assert r.status_code == 201
    body = r.json()
    assert body["prescription_id"]
    assert body["reminder"]["medicine"] == "Metformin"
    assert body["reminder"]["dose"] == "500 mg"
    assert body["reminder"]["times"] == ["8:00 AM", "8:00 PM"]
    assert body["reminder"]["instructions"] == "Take with food"


def test_voice_reminder_rejected(client, headers):
    r = client.post("/reminders/voice", json={"text": "I feel fine today"}, headers=headers)

    assert r.status_code == 400
    detail = r.json()["detail"]
    assert detail["message"] == "Could not extract medication details from the provided text."
    assert detail["nlp_data"]["structured_medications"] == []
    assert detail["suggestion"]


def test_manual_reminder(client, headers):
    r = client.post(
        "/reminders/manual",
        json={"medication_name": "Zyrtec", "frequency": "once a day at night"},
        headers=headers,
    )

    assert r.status_code == 201
    pid = r.json()["prescription_id"]
    stored = client.get(f"/reminders/{pid}", headers=headers).json()
    assert stored["medication_schedules"][0]["reminder_times"] == ["20:00"]


def test_manual_reminder_missing_fields(client, headers):
    r = client.post("/reminders/manual", json={"medication_name": " ", "frequency": "daily"}, headers=headers)

    assert r.status_code == 400


def test_list_update_delete(client, headers):
    pid = client.post("/reminders/test", headers=headers).json()["prescription_id"]
    client.post("/reminders/test", headers={**headers, "X-User-Id": "u2"})

    listed = client.get("/reminders", headers=headers).json()
    assert [d["id"] for d in listed] == [pid]

    r = client.put(
        f"/reminders/{pid}",
        json={"medication_schedules": [{"name": "Aspirin", "reminder_times": ["9:00 PM"]}]},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json() == {"message": "Reminder updated successfully"}
    stored = client.get(f"/reminders/{pid}", headers=headers).json()
    assert stored["medication_schedules"][0]["reminder_times"] == ["21:00"]

    assert client.delete(f"/reminders/{pid}", headers={**headers, "X-User-Id": "u2"}).status_code == 404
    assert client.delete(f"/reminders/{pid}", headers=headers).status_code == 204
    assert client.get(f"/reminders/{pid}", headers=headers).status_code == 404


def test_get_missing_reminder(client, headers):
    r = client.get("/reminders/nope", headers=headers)

    assert r.status_code == 404
    assert r.json()["detail"] == "Reminder (Prescription) not found"


def test_due_now(client, headers):
    client.post("/reminders/test", headers=headers)

    r = client.get("/reminders/due/now", headers=headers)

    assert r.status_code == 200
    body = r.json()
    assert len(body["time"]) == 5
    assert isinstance(body["due"], list)


def test_get_foreign_reminder(client, headers):
    pid = client.post("/reminders/test", headers={**headers, "X-User-Id": "alice"}).json()["prescription_id"]

    r = client.get(f"/reminders/{pid}", headers={**headers, "X-User-Id": "mallory"})

    assert r.status_code == 404
    assert client.get(f"/reminders/{pid}", headers={**headers, "X-User-Id": "alice"}).json()["user_id"] == "alice"
