"""Avvio del backend CRM senza auto-reload (deploy / servizio)."""
from __future__ import annotations

import argparse

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(description="Start the CRM reconciliation API server.")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address for the server.")
    parser.add_argument("--port", default=8000, type=int, help="Listening port (default: 8000).")
    parser.add_argument("--workers", default=1, type=int, help="Number of worker processes.")
    parser.add_argument("--log-level", default="info", help="Uvicorn log level.")
    args = parser.parse_args()

    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        workers=args.workers,
        log_level=args.log_level,
        reload=False,
    )


if __name__ == "__main__":
    main()
