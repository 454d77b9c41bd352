# Servis ve API'nin kullandığı Pydantic şemaları

from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, field_validator

TERMINAL_STATUSES = ("succeeded", "failed")


# Uzak servisin döndürdüğü job (POST /api/prediction, GET /api/predictionState/{id})
class Job(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    status: str
    output: List[str] = []
    detail: Optional[str] = None

    @field_validator("output", mode="before")
    @classmethod
    def _null_output(cls, value):
        # servis henüz çıktı üretmediyse null döner
        return [] if value is None else value

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class JobPhase(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ERROR = "error"
    CANCELLED = "cancelled"


class PromptIn(BaseModel):
    message: str = ""


class GalleryItem(BaseModel):
    src: str
    title: str
    prompt: Optional[str] = None


# Arayüzün render ettiği anlık durum (GET /api/state)
class StateOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    phase: JobPhase
    job: Optional[Job] = None
    error: Optional[str] = None
    in_flight: bool = False
    progress: int = 0
    placeholders: int = 0
    gallery: List[GalleryItem] = []
