# consistify/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import exc as sa_exc

from consistify.config import settings
from consistify.database import Base, engine
from consistify.errors import JourneyError
from consistify.models import activity, goal, task, user  # noqa: F401  register tables
from consistify.routers import activity as activity_router, auth, goals, tasks, users

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Consistify - Daily Skill Journeys", version="1.0")

# Include Routers
app.include_router(auth.router)
app.include_router(goals.router)
app.include_router(tasks.router)
app.include_router(activity_router.router)
app.include_router(users.router)


@app.exception_handler(JourneyError)
async def journey_error_handler(request: Request, exc: JourneyError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


# Create DB Tables (Alembic revisions describe the same schema for prod)
@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "duplicate key value violates unique constraint" in msg or "already exists" in msg:
                logging.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise

@app.get("/")
def read_root():
    return {"message": "Welcome to Consistify"}

@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("consistify.main:app", host="0.0.0.0", port=8000, reload=True)
