import sys
import os
import logging
from dotenv import load_dotenv

load_dotenv()

# Add the parent directory to sys.path to allow imports from backend
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import distinct
from database import SessionLocal
from ledger_validation import check_balance
from models.transaction_entry import LedgerEntry

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger("verify_ledger")


def verify(db):
    """
    Runs the double-entry check on every transaction that has entry lines.

    The session has no principal bound, so every company is scanned.
    Returns the list of violations found.
    """
    header_ids = [row[0] for row in db.query(distinct(LedgerEntry.transaction_id)).order_by(LedgerEntry.transaction_id)]
    logger.info(f"Checking {len(header_ids)} transaction(s)")

    violations = []
    for header_id in header_ids:
        violation = check_balance(db, header_id)
        if violation is not None:
            logger.error(f"[{violation.code}] {violation.message}")
            violations.append(violation)
    return violations


def main(session_factory=SessionLocal):
    db = session_factory()
    try:
        violations = verify(db)
    finally:
        db.rollback()
        db.close()

    if violations:
        logger.error(f"{len(violations)} transaction(s) violate the double-entry rule")
        return 1
    logger.info("All transactions are balanced")
    return 0


if __name__ == "__main__":
    sys.exit(main())
