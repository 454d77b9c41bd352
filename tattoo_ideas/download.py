# Bitmiş görseli indirme (göreli yol ise site origin'ine göre çözülür)

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urljoin, urlparse
from uuid import uuid4

import httpx

from .client import PredictionClient
from .config import settings
from .errors import DownloadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Artifact:
    filename: str
    content: bytes
    media_type: str


def resolve_artifact_url(src: str, origin: str) -> str:
    """Absolute http(s) references are returned as-is, others join the origin."""
    if urlparse(src).scheme in ("http", "https"):
        return src
    return urljoin(origin.rstrip("/") + "/", src)


def _filename_for(url: str, media_type: str) -> str:
    name = Path(urlparse(url).path).name
    if name:
        return name
    suffix = mimetypes.guess_extension(media_type) or ".png"
    return f"{uuid4()}{suffix}"


class DownloadBridge:
    def __init__(self, client: PredictionClient, origin: str | None = None, allowed_hosts=None):
        self.client = client
        self.origin = origin or settings.SITE_ORIGIN
        if allowed_hosts is None:
            allowed_hosts = settings.ARTIFACT_HOSTS.split(",")
        self.allowed_hosts = {h.strip().lower() for h in allowed_hosts if h.strip()}

    def is_allowed(self, url: str) -> bool:
        # yalnızca site origin'i ve görsel CDN'leri; sunucu açık proxy olmamalı
        host = (urlparse(url).hostname or "").lower()
        return bool(host) and host in self.allowed_hosts | {urlparse(self.origin).hostname or ""}

    async def fetch(self, src: str) -> Artifact:
        if not src:
            raise DownloadError("No image selected.")
        try:
            url = resolve_artifact_url(src, self.origin)
            if not self.is_allowed(url):
                logger.warning("download of %s refused: host not allowed", url)
                raise DownloadError("This image host is not allowed.")
            r = await self.client.get_artifact(url)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.warning("download of %s failed: %r", src, e)
            raise DownloadError() from e

        media_type = r.headers.get("content-type", "").split(";")[0].strip()
        if not media_type:
            media_type = mimetypes.guess_type(url)[0] or "application/octet-stream"
        return Artifact(filename=_filename_for(url, media_type), content=r.content, media_type=media_type)

    async def save(self, src: str, directory: Path | None = None) -> Path:
        """Fetch `src` and write it under `directory` (DOWNLOAD_DIR by default)."""
        artifact = await self.fetch(src)
        out_dir = Path(directory or settings.DOWNLOAD_DIR)
        out_path = out_dir / artifact.filename
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
            with out_path.open("wb") as f:
                f.write(artifact.content)
        except OSError as e:
            logger.warning("could not write %s: %r", out_path, e)
            raise DownloadError() from e
        return out_path
