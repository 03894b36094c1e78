#!/usr/bin/env python3
"""
Script: create_schema.py
Purpose: Create the storefront tables in one or more tenant databases

Usage:
    cd backend && source venv/bin/activate
    python scripts/create_schema.py shop1 shop2 [--dry-run]

Options:
    --dry-run    Print the DDL instead of executing it
"""

import sys
import argparse
from pathlib import Path

# Add backend to path
BACKEND_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BACKEND_DIR))

from dotenv import load_dotenv

load_dotenv(BACKEND_DIR / '.env')

from sqlalchemy import create_engine
from sqlalchemy.schema import CreateTable

from app.core.config import settings
from app.core.database import build_tenant_database_url
from app.models import Base


def sqlalchemy_url(tenant_id: str) -> str:
    """Tenant URL with the psycopg 3 driver selected for SQLAlchemy"""
    url = build_tenant_database_url(tenant_id)
    if url.startswith("postgresql://"):
        url = "postgresql+psycopg://" + url[len("postgresql://"):]
    return url


def create_schema(tenant_id: str, dry_run: bool = False):
    url = sqlalchemy_url(tenant_id)
    print(f"\n[{tenant_id}] {url}")

    if dry_run:
        for table in Base.metadata.sorted_tables:
            print(str(CreateTable(table)).strip() + ";")
        return

    connect_args = {"password": settings.DATABASE_PASSWORD} if settings.DATABASE_PASSWORD else {}
    engine = create_engine(url, connect_args=connect_args)
    try:
        Base.metadata.create_all(engine)
    finally:
        engine.dispose()

    print(f"✅ {len(Base.metadata.sorted_tables)} tables ready")


def main():
    parser = argparse.ArgumentParser(description='Create storefront tables for tenant databases')
    parser.add_argument('tenants', nargs='+', help='Tenant ids (first host label of the shop domain)')
    parser.add_argument('--dry-run', action='store_true', help='Print DDL without executing it')
    args = parser.parse_args()

    for tenant_id in args.tenants:
        try:
            create_schema(tenant_id, dry_run=args.dry_run)
        except Exception as e:
            print(f"❌ Error creating schema for {tenant_id}: {e}")
            sys.exit(1)


if __name__ == '__main__':
    main()
