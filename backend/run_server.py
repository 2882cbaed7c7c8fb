#!/usr/bin/env python3
"""
Start the GPS Track Engine API with uvicorn.

    python run_server.py [data_folder] [--host HOST] [--port PORT] [--sample] [--debug]

``--sample`` writes one GPX, one NMEA and one FlightCell log pair into the
data folder before starting, which is handy for trying the API out.
"""

import argparse
import os
from pathlib import Path

import uvicorn

from gpstrack.main import DATA_FOLDER_ENV, DEFAULT_DATA_FOLDER


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="GPS Track Engine server")
    parser.add_argument("data_folder", nargs="?", type=Path, default=DEFAULT_DATA_FOLDER)
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--sample", action="store_true", help="write sample logs first")
    parser.add_argument("--debug", action="store_true", help="auto-reload on changes")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    if args.sample:
        from gpstrack.utils.sample_data import generate_test_data_set

        paths = generate_test_data_set(args.data_folder)
        print(f"Wrote {len(paths)} sample logs to {args.data_folder}")

    if args.data_folder.is_dir():
        os.environ[DATA_FOLDER_ENV] = str(args.data_folder)
    else:
        print(f"No data folder at {args.data_folder}; use POST /folder or POST /tracks")

    uvicorn.run(
        "gpstrack.main:app",
        host=args.host,
        port=args.port,
        reload=args.debug,
        log_level="debug" if args.debug else "info",
    )


if __name__ == "__main__":
    main()
