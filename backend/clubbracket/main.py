import logging
import os
import subprocess
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clubbracket.database import init_db
from clubbracket.routes import brackets, draws, matches

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Club Bracket API")


# Get build info
def get_build_info():
    """Get git commit hash or build timestamp"""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=os.path.dirname(os.path.dirname(__file__)),
            capture_output=True,
            text=True,
            timeout=2,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (OSError, subprocess.SubprocessError):
        pass

    # Fallback to build timestamp
    return datetime.now().strftime("%Y%m%d-%H%M%S")


BUILD_HASH = get_build_info()

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

# Knockout brackets (generate / view / resolve)
app.include_router(brackets.router, prefix="/api", tags=["brackets"])
# Draw sessions (draft -> applied)
app.include_router(draws.router, prefix="/api", tags=["draws"])
# Match winner hook (re-runs resolution)
app.include_router(matches.router, prefix="/api", tags=["matches"])


@app.on_event("startup")
def on_startup():
    init_db()
    route_count = sum(1 for r in app.routes if getattr(r, "path", None))
    logger.info("Club Bracket API started: routes=%s build=%s", route_count, BUILD_HASH)


@app.get("/api/health")
def health_check():
    """Diagnostic endpoint to verify which code is running"""
    return {"app_name": "Club Bracket API", "build_hash": BUILD_HASH, "status": "healthy"}
