#!/usr/bin/env python
"""
Run the quote API with uvicorn.

Usage:
    python scripts/run_api.py [--host HOST] [--port PORT] [--reload]
"""
import argparse
import os
import sys
from pathlib import Path

import uvicorn

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from lawn_quote.config.settings import configure_logging, get_settings


def main():
    parser = argparse.ArgumentParser(description="Run the Lawn Quote API")
    parser.add_argument('--host', default=os.getenv('LAWN_QUOTE_HOST', '0.0.0.0'))
    parser.add_argument('--port', type=int, default=int(os.getenv('LAWN_QUOTE_PORT', '8000')))
    parser.add_argument('--reload', action='store_true', help="Restart on code changes")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)

    print(f"Starting Lawn Quote API on {args.host}:{args.port} (data: {settings.data_dir})")
    uvicorn.run(
        "lawn_quote.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        reload_dirs=[str(src_path)] if args.reload else None,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
