#!/usr/bin/env python3
"""
ECOAGRIS Statistics Dashboard: launch the web app.

Usage:
    python main.py                          # http://localhost:8000
    python main.py --port 9000              # http://localhost:9000
    python main.py --host 127.0.0.1         # bind to localhost only
    python main.py --data /srv/ecoagris/data
    python main.py --db /srv/ecoagris/admin.sqlite
    python main.py --reload                 # auto-reload on code changes
"""

from __future__ import annotations

import argparse
import os
import sys
import webbrowser
from pathlib import Path


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Launch the ECOAGRIS statistics dashboard.",
    )
    parser.add_argument(
        "--host", default=os.getenv("APP_HOST", "0.0.0.0"),
        help="Bind address (default: 0.0.0.0 or APP_HOST env var)",
    )
    parser.add_argument(
        "--port", type=int, default=int(os.getenv("APP_PORT", "8000")),
        help="Port to listen on (default: 8000 or APP_PORT env var)",
    )
    parser.add_argument(
        "--data", type=Path, default=None,
        help="Dataset directory (default: data/ or APP_DATA_DIR env var)",
    )
    parser.add_argument(
        "--db", type=Path, default=None,
        help="Admin store path (default: ecoagris_admin.sqlite or APP_DB_PATH env var)",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    parser.add_argument(
        "--no-browser", action="store_true",
        help="Don't open a browser window automatically",
    )
    args = parser.parse_args()

    # Paths given on the command line reach api.database through the env
    if args.data is not None:
        os.environ["APP_DATA_DIR"] = str(args.data)
    if args.db is not None:
        os.environ["APP_DB_PATH"] = str(args.db)

    data_dir = Path(os.getenv("APP_DATA_DIR", "data"))
    if not data_dir.is_dir():
        print(f"Warning: dataset directory not found at {data_dir}")
        print("  Pass --data /path/to/data or upload datasets from /admin/upload")
        print()

    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is not installed.")
        print("  pip install uvicorn[standard]")
        sys.exit(1)

    url = f"http://{'localhost' if args.host == '0.0.0.0' else args.host}:{args.port}"
    print(f"Starting ECOAGRIS dashboard at {url}")
    print(f"Datasets: {data_dir}")
    print(f"Admin store: {os.getenv('APP_DB_PATH', 'ecoagris_admin.sqlite')}")
    print()

    if not args.no_browser:
        # Open browser after a short delay to let the server start
        import threading
        threading.Timer(1.5, webbrowser.open, args=(url,)).start()

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
