from fastapi import FastAPI, APIRouter, Query, Request
from fastapi.responses import PlainTextResponse, Response
from dotenv import load_dotenv
from starlette.middleware.cors import CORSMiddleware
import os
import logging
import asyncio
from pathlib import Path
from datetime import datetime, timezone
from typing import Dict, Optional

from badge_render import BadgeSpec, render_spec
from badge_sources import UNAVAILABLE, BadgeType, MissingParameter, build_source
from icons_common import IconSettings
from icons_pipeline import IconCache, IconPipeline

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

SVG_MEDIA_TYPE = "image/svg+xml"
NO_STORE = "max-age=0, no-cache, no-store, must-revalidate, proxy-revalidate"
DYNAMIC_DEFAULT_CACHE = "max-age=0, no-cache, no-store, must-revalidate"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


BADGE_AUTO_CONTRAST = _env_flag('BADGE_AUTO_CONTRAST')
BADGE_CACHE_SECONDS = int(os.getenv('BADGE_CACHE_SECONDS', '3600'))
BADGE_SOURCE_TIMEOUT = float(os.getenv('BADGE_SOURCE_TIMEOUT', '15'))

ICON_SETTINGS = IconSettings.from_env()
icon_pipeline = IconPipeline(
    ICON_SETTINGS,
    cache=IconCache(ICON_SETTINGS.cache_size, ICON_SETTINGS.cache_ttl),
)

# Create the main app without a prefix
app = FastAPI(title="Badge Service")

# Create a router with the /api prefix
api_router = APIRouter(prefix="/api")


def _positive_int(value: Optional[str]) -> Optional[int]:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def cache_headers(v: Optional[str], cache_seconds: Optional[str], default: str) -> Dict[str, str]:
    """Cache busting wins; then an explicit lifetime; then the route default."""
    if v:
        return {"Cache-Control": NO_STORE, "Pragma": "no-cache", "Expires": "0"}
    seconds = _positive_int(cache_seconds)
    if seconds:
        return {"Cache-Control": f"public, max-age={seconds}"}
    return {"Cache-Control": default}


async def build_badge(spec: BadgeSpec) -> str:
    icon = await icon_pipeline.generate(spec.icon, spec.icon_color) if spec.icon else None
    return render_spec(spec, icon, auto_contrast=BADGE_AUTO_CONTRAST)


@api_router.get("/")
async def root():
    return {"message": "Badge Service API"}


@api_router.get("/badge")
async def badge(
    text: Optional[str] = None,
    icon: Optional[str] = None,
    bg_color: str = Query("white", alias="bgColor"),
    icon_color: Optional[str] = Query(None, alias="iconColor"),
    text_color: str = Query("white", alias="textColor"),
    edges: str = "rounded",
    v: Optional[str] = None,
    cache_seconds: Optional[str] = Query(None, alias="cacheSeconds"),
):
    """Static badge: text, colors, edge style and an optional icon."""
    spec = BadgeSpec(
        text=text, icon=icon, bg_color=bg_color, icon_color=icon_color,
        text_color=text_color, edges=edges,
    )
    svg = await build_badge(spec)
    headers = cache_headers(v, cache_seconds, f"public, max-age={BADGE_CACHE_SECONDS}")
    return Response(content=svg, media_type=SVG_MEDIA_TYPE, headers=headers)


@api_router.get("/badge/dynamic/{badge_type}")
async def dynamic_badge(
    badge_type: str,
    repo: Optional[str] = None,
    package: Optional[str] = None,
    text: Optional[str] = None,
    icon: Optional[str] = None,
    bg_color: str = Query("blue", alias="bgColor"),
    icon_color: Optional[str] = Query(None, alias="iconColor"),
    text_color: str = Query("white", alias="textColor"),
    edges: str = "rounded",
    v: Optional[str] = None,
    cache_seconds: Optional[str] = Query(None, alias="cacheSeconds"),
):
    """Badge whose text is a live value: views, stars, downloads, last commit, open issues."""
    try:
        kind = BadgeType(badge_type)
    except ValueError:
        return PlainTextResponse("Invalid badge type", status_code=400)

    try:
        source = build_source(kind, repo=repo, package=package)
    except MissingParameter as exc:
        return PlainTextResponse(str(exc), status_code=400)

    try:
        value = await asyncio.wait_for(asyncio.to_thread(source.fetch_value), timeout=BADGE_SOURCE_TIMEOUT)
    except asyncio.TimeoutError:
        logging.warning("[badges] %s value timed out after %.1fs", kind.value, BADGE_SOURCE_TIMEOUT)
        value = UNAVAILABLE
    label = f"{text} {value}" if text else value
    logging.info("[badges] dynamic %s repo=%s package=%s -> %s", kind.value, repo, package, value)

    spec = BadgeSpec(
        text=label, icon=icon, bg_color=bg_color, icon_color=icon_color,
        text_color=text_color, edges=edges,
    )
    svg = await build_badge(spec)
    headers = cache_headers(v, cache_seconds, DYNAMIC_DEFAULT_CACHE)
    return Response(content=svg, media_type=SVG_MEDIA_TYPE, headers=headers)


@api_router.get("/health")
async def health():
    status = {
        "status": "ok",
        "icon_cache": len(icon_pipeline.cache) if icon_pipeline.cache is not None else "disabled",
        "time": datetime.now(timezone.utc).isoformat(),
    }
    return status


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    logging.error("Unhandled error on %s: %s", request.url.path, exc)
    return PlainTextResponse("Internal Server Error", status_code=500)


# Include the router in the main app
app.include_router(api_router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get('CORS_ORIGINS', '*').split(','),
    allow_methods=["*"],
    allow_headers=["*"],
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def log_icon_settings():
    logging.info(
        "[icons] target height %s, max width %s, stage budget %.1fs, cache %s entries / %.0fs",
        ICON_SETTINGS.target_height, ICON_SETTINGS.max_width, ICON_SETTINGS.stage_budget,
        ICON_SETTINGS.cache_size, ICON_SETTINGS.cache_ttl,
    )


@app.on_event("shutdown")
async def close_icon_session():
    if icon_pipeline.cache is not None:
        icon_pipeline.cache.clear()
    icon_pipeline.fetcher.session.close()
