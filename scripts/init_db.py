# scripts/init_db.py

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database import init_db, get_db_path
from core.logging_setup import setup_logging


def main():
    setup_logging()
    print("Creating database tables...")

    # Create all SQLAlchemy tables
    init_db()

    print(f"Database initialized successfully at {get_db_path()}.")


if __name__ == "__main__":
    main()
