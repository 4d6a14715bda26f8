#!/usr/bin/env python3
"""Convenience runner for the trail attempt verifier.

Usage:
    python run.py --runner RUNNER_ID --route data/route_official.gpx attempt.gpx
"""
import logging
from attempt_verifier.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
