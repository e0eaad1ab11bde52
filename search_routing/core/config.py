"""Configuration from environment variables (.env)."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "1") -> bool:
    return os.getenv(name, default).strip().lower() not in ("0", "false", "no", "off", "")


@dataclass
class Settings:
    project_root: Path
    routing_config_path: Path
    logs_dir: Path
    event_log_enabled: bool
    log_level: str
    health_interval_sec: float
    probe_timeout_ms: int
    credential_env_prefix: str
    contact_email: str

    @classmethod
    def load(cls) -> "Settings":
        project_root = Path(__file__).parent.parent.parent
        return cls(
            project_root=project_root,
            routing_config_path=Path(
                os.getenv("SEARCH_ROUTING_CONFIG", str(project_root / "config" / "routing.yaml"))
            ),
            logs_dir=Path(os.getenv("SEARCH_ROUTING_LOGS_DIR", str(project_root / "logs"))),
            event_log_enabled=_env_flag("SEARCH_ROUTING_EVENT_LOG"),
            log_level=os.getenv("SEARCH_ROUTING_LOG_LEVEL", "INFO").upper(),
            health_interval_sec=float(os.getenv("SEARCH_ROUTING_HEALTH_INTERVAL_SEC", "300")),
            probe_timeout_ms=int(os.getenv("SEARCH_ROUTING_PROBE_TIMEOUT_MS", "5000")),
            credential_env_prefix=os.getenv("SEARCH_ROUTING_KEY_PREFIX", "SEARCH_KEY_"),
            contact_email=os.getenv("SEARCH_ROUTING_CONTACT_EMAIL", "ops@example.com"),
        )

    def validate(self) -> list[str]:
        errors = []
        if not self.routing_config_path.exists():
            errors.append(f"Routing config not found: {self.routing_config_path}")
        if self.health_interval_sec <= 0:
            errors.append("SEARCH_ROUTING_HEALTH_INTERVAL_SEC must be positive")
        if self.probe_timeout_ms <= 0:
            errors.append("SEARCH_ROUTING_PROBE_TIMEOUT_MS must be positive")
        return errors


settings = Settings.load()
