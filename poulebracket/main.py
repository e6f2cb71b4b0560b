import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from poulebracket.database import init_db
from poulebracket.routes import bracket, poules, teams

_default_level = "INFO" if os.getenv("ENV") == "production" else "DEBUG"
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", _default_level).upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Poule & Bracket Tournament API")

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(teams.router, prefix="/api", tags=["teams"])
app.include_router(poules.router, prefix="/api", tags=["poules"])
app.include_router(bracket.router, prefix="/api", tags=["bracket"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("Database initialized, %d routes registered", len(app.routes))


@app.get("/api/health")
def health_check():
    return {"app_name": "Poule & Bracket Tournament API", "status": "healthy"}
