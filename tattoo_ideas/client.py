# Üretim servisine (job oluşturma + durum sorgulama) giden HTTP istemcisi

import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from .config import settings
from .errors import QuotaExceededError, ServiceError, TransportError
from .schemas import Job

logger = logging.getLogger(__name__)


class PredictionClient:
    """Thin async wrapper around the job-creation and job-status resources.

    Create:  POST {CREATE_JOB_PATH}          {"message": "..."}  -> 201 {id, status, output, detail?}
    Status:  GET  {JOB_STATUS_PATH}/{job_id}                     -> 200 same shape
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        create_path: str | None = None,
        status_path: str | None = None,
    ):
        self.create_path = create_path or settings.CREATE_JOB_PATH
        self.status_path = (status_path or settings.JOB_STATUS_PATH).rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.SITE_ORIGIN,
            timeout=timeout or settings.HTTP_TIMEOUT,
            transport=transport,
            headers={"accept": "application/json"},
        )

    async def __aenter__(self) -> "PredictionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def create_job(self, prompt: str) -> Job:
        try:
            r = await self._http.post(self.create_path, json={"message": prompt})
        except httpx.HTTPError as e:
            logger.warning("create request failed: %r", e)
            raise TransportError() from e

        if r.status_code == 429:
            raise QuotaExceededError()

        payload = _payload(r)
        if r.status_code != 201:
            logger.info("create rejected %s: %s", r.status_code, r.text[:300])
            raise ServiceError(_detail(payload))
        return _job(payload)

    async def get_job(self, job_id: str) -> Job:
        try:
            r = await self._http.get(f"{self.status_path}/{job_id}")
        except httpx.HTTPError as e:
            logger.warning("status request for %s failed: %r", job_id, e)
            raise TransportError() from e

        payload = _payload(r)
        if r.status_code != 200:
            logger.info("status %s for %s: %s", r.status_code, job_id, r.text[:300])
            raise ServiceError(_detail(payload))

        job = _job(payload)
        if job.id != job_id:
            raise ServiceError(f"Status response for {job_id} reported job {job.id}.")
        return job

    async def get_artifact(self, url: str) -> httpx.Response:
        """GET an absolute artifact URL; httpx errors propagate to the caller."""
        r = await self._http.get(url, headers={"accept": "*/*"}, follow_redirects=True)
        r.raise_for_status()
        return r


def _payload(r: httpx.Response) -> dict:
    try:
        data = r.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _detail(payload: dict) -> str | None:
    # FastAPI 422 gibi yanıtlarda detail bir liste olabilir
    detail = payload.get("detail")
    if detail is None or detail == "":
        return None
    return detail if isinstance(detail, str) else str(detail)


def _job(payload: dict) -> Job:
    try:
        return Job.model_validate(payload)
    except PydanticValidationError as e:
        logger.warning("unexpected job payload: %s", payload)
        raise ServiceError("The image service returned an unexpected response.") from e
