"""
Initialize Database
Run this script to create database tables, seed the mental model catalog
and optionally register a user for the game theory tutor.

    python init_db.py
    python init_db.py --create-user someone@example.com
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from app.database import init_db, SessionLocal
from app.services.auth import create_user
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create tables and seed the catalog")
    parser.add_argument("--create-user", metavar="EMAIL", help="register a user and print its bearer token")
    args = parser.parse_args()

    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized successfully!")

    if args.create_user:
        db = SessionLocal()
        try:
            user, token = create_user(db, args.create_user)
        finally:
            db.close()
        print(f"User {user.id} ({args.create_user})")
        print(f"Bearer token: {token}")
