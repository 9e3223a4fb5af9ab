"""Create a checklist session for a set from the command line."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from brick_tally.config import Config
from brick_tally.database.connection import DatabaseConnection
from brick_tally.database.repository import Repository
from brick_tally.database.schema import initialize_database
from brick_tally.errors import BrickTallyError
from brick_tally.provider.rebrickable import RebrickableClient
from brick_tally.sync.session_client import create_session
from brick_tally.utils.qr_generator import build_share_url


def main():
    if len(sys.argv) < 2:
        print("Usage: python create_session.py <set_num>")
        sys.exit(1)

    db = DatabaseConnection(Config.DATABASE_PATH)
    initialize_database(db)
    repo = Repository(db)

    try:
        session = create_session(RebrickableClient(), repo, sys.argv[1])
    except BrickTallyError as e:
        print(f"Could not create session: {e}")
        sys.exit(1)

    print(f"Created session for {session.set_name} ({session.set_num})")
    print(f"Share link: {build_share_url(session.slug)}")


if __name__ == "__main__":
    main()
