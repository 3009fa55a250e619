"""bkm entrypoint.

Run with:
  python -m bkm
"""

import logging
import os

import uvicorn


def main() -> None:
    host = os.getenv("BKM_HOST", "0.0.0.0")
    port = int(os.getenv("BKM_PORT", "8000"))
    reload = os.getenv("BKM_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    logging.basicConfig(
        level=os.getenv("BKM_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("bkm.app:app", host=host, port=port, reload=reload)

if __name__ == "__main__":
    main()
