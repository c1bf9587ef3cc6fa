import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_UPSTREAM_BASE_URL = "https://agent-gpt-based.onrender.com"


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3001
    upstream_base_url: str = DEFAULT_UPSTREAM_BASE_URL
    upstream_timeout_s: float = 30.0
    upload_dir: Path = Path("uploads")
    public_dir: Path = Path("public")
    cors_allow_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    log_json: bool = True
    enable_metrics: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3001")),
            upstream_base_url=os.getenv("UPSTREAM_BASE_URL", DEFAULT_UPSTREAM_BASE_URL).rstrip("/"),
            upstream_timeout_s=float(os.getenv("UPSTREAM_TIMEOUT_S", "30.0")),
            upload_dir=Path(os.getenv("UPLOAD_DIR", "uploads")).resolve(),
            public_dir=Path(os.getenv("PUBLIC_DIR", "public")).resolve(),
            cors_allow_origins=_split_csv(os.getenv("CORS_ALLOW_ORIGINS", "*")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=os.getenv("LOG_JSON", "true").lower() == "true",
            enable_metrics=os.getenv("ENABLE_METRICS", "true").lower() == "true",
        )


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())
