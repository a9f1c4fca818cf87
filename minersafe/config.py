"""
Application Configuration.

Pydantic Settings model for the MinerSafe identity core.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import SecretStr, model_validator


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")
    # Server-side only.  Never ship this key to a client process.
    SUPABASE_SERVICE_ROLE_KEY: SecretStr = SecretStr("")

    # --- Privileged sign-up endpoint ---
    SIGNUP_ENDPOINT_URL: str = "http://127.0.0.1:5050/api/auth/sign-up"
    SIGNUP_API_HOST: str = "127.0.0.1"
    SIGNUP_API_PORT: int = 5050

    # --- Audit trail ---
    CLIENT_USER_AGENT: str = "minersafe-client/0.1"
    AUDIT_BACKGROUND_WRITES: bool = True

    # --- Logging ---
    LOG_FILE: str = "minersafe.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty.

        Pydantic silently falls back to defaults when ``.env`` is missing,
        so operators get a log line telling them which features are off.
        """
        _log = logging.getLogger("minersafe.config")

        if not self.SUPABASE_URL or not self.SUPABASE_ANON_KEY.get_secret_value():
            _log.warning(
                "SUPABASE_URL / SUPABASE_ANON_KEY are empty; "
                "sign-in and profile storage are unavailable."
            )

        if not self.SUPABASE_SERVICE_ROLE_KEY.get_secret_value():
            _log.warning(
                "SUPABASE_SERVICE_ROLE_KEY is empty; the sign-up endpoint "
                "will reject every request."
            )

        return self


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    Uses a check-lock-check pattern so the fast path never takes the lock.
    Prefer constructor injection of ``AppConfig`` in new code.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
