# backend/stockdb/main.py
import os
from contextlib import asynccontextmanager
from typing import List

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .database import WriteSessionLocal, create_all
from .errors import StockDBError

from .apps.events.router import router as events_router
from .apps.inventory.router import router as inventory_router
from .apps.orders.router import router as orders_router


def _allowed_origins() -> List[str]:
    """
    Parse CORS_ALLOWED_ORIGINS from env.

    Accepts comma-separated origins. If unset, defaults to local dev ports.
    """
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if raw:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
        if origins:
            return origins
    return [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
    ]


ALEMBIC_INI = os.path.join(os.path.dirname(__file__), "alembic.ini")


def _schema_strict() -> bool:
    return os.getenv("SCHEMA_STRICT", "0").strip().lower() in {"1", "true", "yes", "on"}


def _enforce_schema_head_sync_if_configured() -> None:
    """
    With SCHEMA_STRICT set, refuse to start unless the database revision
    matches the migration head(s).
    """
    if not _schema_strict():
        return

    heads = set(ScriptDirectory.from_config(Config(ALEMBIC_INI)).get_heads())
    db = WriteSessionLocal()
    try:
        rows = db.execute(text("SELECT version_num FROM alembic_version")).fetchall()
    except SQLAlchemyError as exc:
        raise RuntimeError(
            "Database is not under migration control. Run `alembic -c stockdb/alembic.ini upgrade head`."
        ) from exc
    finally:
        db.close()
    current = {row[0] for row in rows}

    if current != heads:
        raise RuntimeError(
            f"Database schema revision {sorted(current)} does not match migration heads {sorted(heads)}. "
            "Run `alembic -c stockdb/alembic.ini upgrade head`."
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    if _schema_strict():
        _enforce_schema_head_sync_if_configured()
    else:
        create_all()
    yield


app = FastAPI(title="Stock & Orders API", version="1.0.0", lifespan=lifespan)
cors_origins = _allowed_origins()
allow_credentials = "*" not in cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StockDBError)
async def stockdb_error_handler(request: Request, exc: StockDBError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/", tags=["health"])
def read_root():
    return {"status": "ok", "message": "Stock & Orders backend is running"}


@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


app.include_router(inventory_router)
app.include_router(orders_router)
app.include_router(events_router)
