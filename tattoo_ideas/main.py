# tattoo_ideas/main.py
# FastAPI uygulamasının giriş noktası

import logging
from datetime import datetime
from typing import Dict
from urllib.parse import quote

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .client import PredictionClient
from .config import Settings, settings
from .controller import JobController
from .download import DownloadBridge
from .errors import DownloadError
from .schemas import PromptIn, StateOut

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Oturumlar: her oturumun tek bir aktif işi vardır
# -------------------------------------------------------------------
class SessionRegistry:
    def __init__(self, client: PredictionClient, settings: Settings = settings):
        self.client = client
        self.settings = settings
        self.downloads = DownloadBridge(
            client, origin=settings.SITE_ORIGIN, allowed_hosts=settings.ARTIFACT_HOSTS.split(",")
        )
        self._controllers: Dict[str, JobController] = {}

    def controller(self, session_id: str) -> JobController:
        ctrl = self._controllers.pop(session_id, None)
        if ctrl is None:
            self._evict()
            ctrl = JobController(self.client, settings=self.settings)
        # en son kullanılan sona taşınır
        self._controllers[session_id] = ctrl
        return ctrl

    def _evict(self) -> None:
        """Drop least recently used idle sessions once MAX_SESSIONS is reached."""
        for session_id in list(self._controllers):
            if len(self._controllers) < self.settings.MAX_SESSIONS:
                return
            if not self._controllers[session_id].store.in_flight:
                del self._controllers[session_id]

    def __len__(self) -> int:
        return len(self._controllers)

    async def aclose(self) -> None:
        for ctrl in self._controllers.values():
            ctrl.cancel()
        await self.client.aclose()


# -------------------------------------------------------------------
# FastAPI & CORS
# -------------------------------------------------------------------
app = FastAPI(title="AI Tattoo Generator", version="1.0.0")

origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def on_startup():
    app.state.registry = SessionRegistry(PredictionClient())
    logger.info("[API] origin: %s  create: %s  status: %s",
                settings.SITE_ORIGIN, settings.CREATE_JOB_PATH, settings.JOB_STATUS_PATH)

@app.on_event("shutdown")
async def on_shutdown():
    registry = getattr(app.state, "registry", None)
    if registry is not None:
        await registry.aclose()

def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry

async def get_controller(
    x_session_id: str = Header("default"),
    registry: SessionRegistry = Depends(get_registry),
) -> JobController:
    return registry.controller(x_session_id)

@app.get("/health")
def health():
    return {"ok": True, "time": datetime.utcnow().isoformat()}

# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------

# Prompt gönderme: iş arka planda yürür, anlık durum döner
#*******************************************************************************************************
@app.post("/api/jobs", response_model=StateOut)
async def create_job(body: PromptIn, controller: JobController = Depends(get_controller)):
    controller.start(body.message)
    return controller.store.snapshot()

# Arayüzün render ettiği durum (hata, iş, in-flight, ilerleme, galeri)
#*******************************************************************************************************
@app.get("/api/state", response_model=StateOut)
async def get_state(controller: JobController = Depends(get_controller)):
    return controller.store.snapshot()

# Aktif işi bırakma (bekleyen sorgular durur)
#*******************************************************************************************************
@app.post("/api/cancel", response_model=StateOut)
async def cancel_job(controller: JobController = Depends(get_controller)):
    controller.cancel()
    return controller.store.snapshot()

# Görseli ek (attachment) olarak indirme
#*******************************************************************************************************
@app.get("/api/download")
async def download_image(src: str = Query(...), registry: SessionRegistry = Depends(get_registry)):
    try:
        artifact = await registry.downloads.fetch(src)
    except DownloadError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": content_disposition(artifact.filename)},
    )

def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and the RFC 5987 UTF-8 name."""
    fallback = filename.encode("ascii", "replace").decode("ascii")
    fallback = fallback.replace('"', "_").replace("\\", "_").replace("?", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"
