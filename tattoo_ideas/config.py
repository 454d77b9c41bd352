# tattoo_ideas/config.py
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent

class Settings(BaseSettings):
    # Site (göreli görsel yolları bu origin'e göre çözülür)
    SITE_ORIGIN: str = "http://localhost:3000"

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Generation service
    CREATE_JOB_PATH: str = "/api/prediction"
    JOB_STATUS_PATH: str = "/api/predictionState"
    PROMPT_TEMPLATE: str = "in the style of TOK,{message} as a tattoo"
    MAX_PROMPT_LENGTH: int = 2000
    HTTP_TIMEOUT: float = 30

    # Polling (fixed delay; POLL_MAX_WAIT saniye cinsinden üst sınır)
    POLL_INTERVAL: float = 2.0
    POLL_MAX_WAIT: float = 600
    POLL_MAX_ATTEMPTS: int | None = None

    # Cosmetic progress bar
    PROGRESS_TICK: float = 0.75

    # Downloads (SITE_ORIGIN host her zaman izinlidir)
    ARTIFACT_HOSTS: str = "replicate.delivery,pbxt.replicate.delivery"
    DOWNLOAD_DIR: Path = BASE_DIR / "downloads"

    # Oturum sayısı üst sınırı (biten işler önce atılır)
    MAX_SESSIONS: int = 1000

    LOG_LEVEL: str = "INFO"

    # pydantic v2 settings
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        extra="ignore",         # fazladan anahtar gelirse görmezden gelir
        case_sensitive=False,   # .env'de büyük/küçük farkı önemsemez
    )

settings = Settings()
