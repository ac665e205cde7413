"""
Recount every denormalized counter from its backing records.

Usage:
    python scripts/reconcile_counters.py            # fix drift
    python scripts/reconcile_counters.py --dry-run  # report only
"""
import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from kinship.db.session import SessionLocal
from kinship.modules.counters.services.counters import reconcile_all

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("reconcile-counters")

def main():
    parser = argparse.ArgumentParser(description="Reconcile denormalized counters")
    parser.add_argument("--dry-run", action="store_true", help="Report drift without saving corrections")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        report = reconcile_all(db, commit=not args.dry_run)
    finally:
        db.close()

    for table, ids in report.items():
        logger.info(f"{table}: {len(ids)} corrected")
        for row_id in ids:
            logger.info(f"  {row_id}")

    total = sum(len(ids) for ids in report.values())
    if args.dry_run and total:
        sys.exit(1)

if __name__ == "__main__":
    main()
