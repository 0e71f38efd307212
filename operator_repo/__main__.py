from __future__ import annotations

import uvicorn

from operator_repo.config import settings


def main() -> None:
    uvicorn.run(
        "operator_repo.main:app",
        host=settings.bind_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=5,
    )


if __name__ == "__main__":
    main()
