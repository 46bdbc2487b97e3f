import logging
import os
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.docledger.modules.access_control.service import add_verifier, initialize  # noqa: E402
from scripts._db_utils import script_session  # noqa: E402

logger = logging.getLogger(__name__)


def seed_only(*, database_url: str | None = None) -> str:
    """
    Initialize the ledger owner and authorize the initial verifiers, idempotently.
    Refuses to change an existing owner (AlreadyInitialized propagates).
    """
    owner = (os.environ.get("OWNER_IDENTITY") or "").strip()
    if not owner:
        raise RuntimeError("OWNER_IDENTITY is required to initialize the ledger.")
    verifiers = [v.strip() for v in (os.environ.get("INITIAL_VERIFIERS") or "").split(",") if v.strip()]

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///docledger.db").strip()

    # Direct engine/session so this can run in release without importing app.wsgi.
    with script_session(db_url) as s:
        state = initialize(s, deployer=owner)
        for v in verifiers:
            if add_verifier(s, caller=state.owner_identity, target=v):
                logger.info("Authorized initial verifier %s", v)

    print("Initialized ledger (seed_only).")
    print(f"Ledger owner and first authorized verifier: {owner}")
    if verifiers:
        print(f"Initial verifiers: {', '.join(verifiers)}")
    return owner


def main() -> None:
    logging.basicConfig(level=(os.environ.get("LOG_LEVEL") or "INFO").strip().upper())
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
