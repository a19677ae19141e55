from __future__ import annotations

import argparse
from typing import List, Optional

import uvicorn

from ..config import EngineConfig


def main(argv: Optional[List[str]] = None) -> None:
    config = EngineConfig.from_env()
    parser = argparse.ArgumentParser(description="Serve the chesscore HTTP API")
    parser.add_argument("--host", default=config.host)
    parser.add_argument("--port", type=int, default=config.port)
    args = parser.parse_args(argv)
    uvicorn.run(
        "chesscore.protocol.http.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
