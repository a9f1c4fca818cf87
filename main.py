"""
MinerSafe Sign-up Server Entry Point.

Bootstraps the server-side half of the identity core: the privileged
``POST /api/auth/sign-up`` endpoint that creates accounts with the
Supabase service-role key.  Client processes never run this file and
never receive the service-role key.

Usage::

    python main.py
"""

from __future__ import annotations

import sys

from minersafe.api.signup_endpoint import create_app
from minersafe.config import get_config
from minersafe.database import DatabaseManager
from minersafe.logger import StructuredLogger, get_logger
from minersafe.services import create_provisioning_service


def main() -> None:
    """Wire dependencies and serve the sign-up endpoint."""
    logger: StructuredLogger = get_logger("main")
    logger.info("Starting MinerSafe sign-up server...")

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()

    # ------------------------------------------------------------------
    # 2. Supabase clients (anon + service-role)
    # ------------------------------------------------------------------
    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
        service_role_key=config.SUPABASE_SERVICE_ROLE_KEY.get_secret_value(),
    )
    if not db.has_admin:
        logger.critical(
            "No service-role client; every sign-up request will be rejected."
        )

    # ------------------------------------------------------------------
    # 3. Provisioning service + HTTP app
    # ------------------------------------------------------------------
    app = create_app(
        service=create_provisioning_service(db),
        logger=get_logger("api"),
    )

    logger.info(
        "Serving sign-up endpoint on %s:%d", config.SIGNUP_API_HOST, config.SIGNUP_API_PORT,
    )
    app.run(host=config.SIGNUP_API_HOST, port=config.SIGNUP_API_PORT)
    logger.info("MinerSafe sign-up server shut down.")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        sys.stderr.write(f"FATAL: {type(exc).__name__}: {exc}\n")
        sys.exit(1)
