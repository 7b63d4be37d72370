#!/usr/bin/env python3
"""
Reorder Scan Runner
Runs the reorder engine for one or more tenants; meant to be called by cron
or any other scheduler.
"""
import argparse
import json
import sys

from sqlalchemy import distinct

from stockcore.core.database import SessionLocal
from stockcore.core.logging import get_logger, setup_logging
from stockcore.models.product import Product
from stockcore.services.purchasing import ReorderEngine

logger = get_logger("business.reorder.runner")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Raise purchase orders for products at or below reorder level")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--tenant", action="append", dest="tenants", help="Tenant id (repeatable)")
    group.add_argument("--all-tenants", action="store_true", help="Scan every tenant with products")
    parser.add_argument("--dry-run", action="store_true", help="List candidates without creating orders")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()

    db = SessionLocal()
    try:
        tenants = args.tenants
        if args.all_tenants:
            tenants = [row[0] for row in db.query(distinct(Product.tenant_id)).order_by(Product.tenant_id).all()]

        failures = 0
        for tenant_id in tenants:
            engine = ReorderEngine(db, tenant_id)
            if args.dry_run:
                result = {"tenant_id": tenant_id, "candidates": engine.candidates()}
            else:
                result = engine.scan()
                result["tenant_id"] = tenant_id
                failures += len(result["errors"])
            print(json.dumps(result, default=str, indent=2))
    finally:
        db.close()

    if failures:
        logger.error(f"Reorder scan finished with {failures} product errors")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
