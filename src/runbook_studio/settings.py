import os
from datetime import timedelta

from pydantic import BaseModel, ConfigDict, SecretStr

DEFAULT_SERVICE_URL = "http://localhost:9090/00000000-0000-0000-0000-000000000000"


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str = ""
    password: SecretStr = SecretStr("")
    domain: str = ""
    impersonate: bool = False

    @property
    def login(self) -> str:
        return f"{self.domain}\\{self.username}" if self.domain else self.username


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    service_url: str = DEFAULT_SERVICE_URL
    credentials: Credentials = Credentials()
    timeout: float = 30.0
    freshness_minutes: float = 30.0

    @property
    def freshness_window(self) -> timedelta:
        return timedelta(minutes=self.freshness_minutes)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    return Settings(
        service_url=os.getenv("RUNBOOK_STUDIO_URL", DEFAULT_SERVICE_URL),
        credentials=Credentials(
            username=os.getenv("RUNBOOK_STUDIO_USERNAME", ""),
            password=SecretStr(os.getenv("RUNBOOK_STUDIO_PASSWORD", "")),
            domain=os.getenv("RUNBOOK_STUDIO_DOMAIN", ""),
            impersonate=_env_flag("RUNBOOK_STUDIO_IMPERSONATE"),
        ),
        timeout=float(os.getenv("RUNBOOK_STUDIO_TIMEOUT", "30")),
        freshness_minutes=float(os.getenv("RUNBOOK_STUDIO_FRESHNESS_MINUTES", "30")),
    )
