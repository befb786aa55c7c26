from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import asyncio

from sqlalchemy import text

from app.config import DB_SCHEMA
from app.database import Base, engine
from app.routes import episodes_routes, films_routes, ranking_routes, seasons_routes, series_routes, users_routes
from app.scoring.errors import DataInconsistencyError, ValidationError

# Register every table on Base.metadata before create_all
from app.models import film_model, rating_model, series_model, user_model  # noqa: F401

# 🔒 Rate limiting setup

from app.limiter import limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

app = FastAPI(title="MarvelReview API")

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please slow down."}
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(DataInconsistencyError)
async def data_inconsistency_handler(request: Request, exc: DataInconsistencyError):
    print(f"⚠️ Data inconsistency on {request.url.path}: {exc}")
    return JSONResponse(status_code=404, content={"detail": str(exc)})


# ✅ Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ✅ Include your routers
app.include_router(films_routes.router)
app.include_router(series_routes.router)
app.include_router(seasons_routes.router)
app.include_router(episodes_routes.router)
app.include_router(ranking_routes.router)
app.include_router(users_routes.router)


# ✅ Run DB init on startup
@app.on_event("startup")
async def on_startup():
    # Tiny retry so a momentary DB disconnect doesn't crash the app.
    for attempt in range(2):
        try:
            async with engine.begin() as conn:
                await conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{DB_SCHEMA}";'))
                await conn.run_sync(Base.metadata.create_all)
            break
        except Exception as e:
            if attempt == 0:
                print(f"[startup] DB init failed, retrying once: {e!r}")
                await asyncio.sleep(0.5)
            else:
                # Tables should already exist from previous runs.
                print(f"[startup] Skipping DB init due to error: {e!r}")
