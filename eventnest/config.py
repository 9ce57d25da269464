"""EventNest Server Configuration."""

import secrets
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    server_name: str = "EventNest Server"
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    log_level: str = "INFO"

    # Paths
    data_dir: Path = Path.home() / "eventnest" / "data"
    storage_dir: Path = Path.home() / "eventnest" / "blobs"

    # Database
    db_path: Path = Path.home() / "eventnest" / "data" / "eventnest.db"

    # JWT
    jwt_secret: str = ""
    jwt_refresh_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 30

    # Events
    invitation_token_attempts: int = 5
    join_access_level: int = 1  # contributor

    # Photos
    max_upload_bytes: int = 10 * 1024 * 1024
    blob_base_url: str = "http://localhost:8080/blobs"

    model_config = {"env_prefix": "EVENTNEST_"}

    def ensure_dirs(self) -> None:
        """Create all required directories."""
        for d in [self.data_dir, self.storage_dir, self.db_path.parent]:
            d.mkdir(parents=True, exist_ok=True)

    def ensure_secrets(self) -> None:
        """Generate secrets if not set, persist to file so they survive restarts."""
        secrets_file = self.data_dir / ".secrets"
        saved = {}
        if secrets_file.exists():
            for line in secrets_file.read_text().strip().splitlines():
                if "=" in line:
                    k, v = line.split("=", 1)
                    saved[k.strip()] = v.strip()

        if not self.jwt_secret:
            self.jwt_secret = saved.get("jwt_secret", "") or secrets.token_urlsafe(32)
        if not self.jwt_refresh_secret:
            self.jwt_refresh_secret = saved.get("jwt_refresh_secret", "") or secrets.token_urlsafe(32)
        # A leaked access secret must not be usable to forge refresh tokens
        if self.jwt_refresh_secret == self.jwt_secret:
            raise ValueError("EVENTNEST_JWT_REFRESH_SECRET must differ from EVENTNEST_JWT_SECRET")

        # Persist for next restart
        secrets_file.write_text(
            f"jwt_secret={self.jwt_secret}\njwt_refresh_secret={self.jwt_refresh_secret}\n"
        )


settings = Settings()
settings.ensure_dirs()
settings.ensure_secrets()
