"""
Development server for the content lifecycle API.

Usage:
    python run.py                      # 127.0.0.1:8000
    python run.py --reload             # restart on code changes
    python run.py --host 0.0.0.0 --port 9000

On Windows uvicorn builds a ProactorEventLoop, which asyncpg cannot use, so
the loop factory is swapped for SelectorEventLoop before startup.
"""
import argparse
import sys

import uvicorn

from contentflow.config import settings


def _use_selector_loop_on_windows() -> None:
    if sys.platform != "win32":
        return
    import asyncio

    import uvicorn.loops.asyncio as uvicorn_loops

    uvicorn_loops.asyncio_loop_factory = lambda use_subprocess=False: asyncio.SelectorEventLoop


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run the contentflow API")
    parser.add_argument("--reload", action="store_true", default=False)
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default=settings.LOG_LEVEL.lower())
    args = parser.parse_args(argv)

    _use_selector_loop_on_windows()
    uvicorn.run(
        "contentflow.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        loop="asyncio",  # the patched factory only applies to the asyncio loop
    )


if __name__ == "__main__":
    main()
