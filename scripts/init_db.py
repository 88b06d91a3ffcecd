#!/usr/bin/env python3
"""Create all database tables."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from taskmanager.db import engine, init_db
from taskmanager.logging_setup import setup_logging

if __name__ == "__main__":
    setup_logging()
    init_db()
    print(f"Database created at {engine.url}")
