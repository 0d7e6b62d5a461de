import logging
import os

import uvicorn


def _configure_logging(level: str) -> None:
    # uvicorn only configures its own loggers; route stockdb.* through the root handler.
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload_enabled = os.getenv("RELOAD", "false").lower() in {"1", "true", "yes", "on"}
    log_level = os.getenv("LOG_LEVEL", "info")
    forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "*")

    _configure_logging(log_level)
    uvicorn.run(
        "stockdb.main:app",
        host=host,
        port=port,
        reload=reload_enabled,
        log_level=log_level,
        proxy_headers=True,
        forwarded_allow_ips=forwarded_allow_ips,
    )


if __name__ == "__main__":
    main()
