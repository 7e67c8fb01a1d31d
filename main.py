import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from vaulted.core.config import settings
from vaulted.api.streams import router as streams_router
from vaulted.api.proxy import router as proxy_router
from vaulted.services.aggregator import build_aggregator
from vaulted.services.proxy import VideoProxy

logger.remove()
logger.add(sys.stderr, level=settings.LOG_LEVEL)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
)

# CORS (Allow all for development/mobile access)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.aggregator = build_aggregator(settings)
app.state.proxy = VideoProxy(settings.PROXY_ALLOWED_HOSTS)

@app.on_event("startup")
async def startup_event():
    providers = ", ".join(p.id for p in app.state.aggregator.registry.enabled())
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION} (providers: {providers or 'none'})")

@app.get("/")
async def root():
    return {"message": "Vaulted Resolver is running"}

app.include_router(streams_router, prefix="/api")
app.include_router(proxy_router, prefix="/api/proxy")
