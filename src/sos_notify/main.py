from __future__ import annotations

from collections.abc import Generator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import BackgroundTasks, Body, Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .config import get_settings
from .db import SessionLocal, create_document, get_document, init_db
from .functions import ALERTS_COLLECTION
from .logging_config import setup_logging
from .triggers import registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: runs once before the app starts serving requests
    setup_logging()
    init_db()
    yield
    # Shutdown: runs once when the app is shutting down (nothing to do yet)


app = FastAPI(title="sos-notify", version="0.1.0", lifespan=lifespan)


# --- DB dependency ---


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# --- Routes ---


@app.get("/health")
def health() -> JSONResponse:
    return JSONResponse({"status": "ok", "sms_configured": get_settings().sms_configured})


@app.post("/alerts", status_code=201)
def create_alert(
    background_tasks: BackgroundTasks,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
) -> JSONResponse:
    """
    Store a new alert document and fire its create trigger.

    Accepts JSON like:

      {
        "type": "sos",
        "message": "Need help",
        "recipients": [{"name": "Mum", "phone": "+15551234567"}]
      }

    The SMS fan-out runs after the response is sent, so the caller never
    waits on Twilio and never sees a send failure.
    """
    doc = create_document(db, ALERTS_COLLECTION, payload)

    background_tasks.add_task(registry.fire_created, doc.path, doc.data)

    return JSONResponse({"status": "ok", "id": doc.id}, status_code=201)


@app.get("/alerts/{alert_id}")
def read_alert(alert_id: str, db: Session = Depends(get_db)) -> JSONResponse:
    doc = get_document(db, ALERTS_COLLECTION, alert_id)
    if doc is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return JSONResponse(
        {"id": doc.id, "created_at": doc.created_at.isoformat(), "data": doc.data}
    )
