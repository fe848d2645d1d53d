#!/usr/bin/env python3
"""
Seed a demo catalogue and an admin account.

Usage:
    python scripts/seed_items.py --file items.json --admin-email admin@example.com --admin-password secret

The JSON file is a list of {title, description, price, image, large_image}
entries; ``price`` is in cents. Without --file a few demo items are created.
"""
import argparse
import json
import os
import sys

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from storefront.auth.passwords import hash_password
from storefront.auth.permissions import Permission
from storefront.config import settings
from storefront.db import SessionLocal, init_db
from storefront.repositories.item_repo import ItemRepository
from storefront.repositories.user_repo import UserRepository

DEMO_ITEMS = [
    {"title": "Blue Jacket", "description": "Warm and blue", "price": 5000},
    {"title": "Wool Socks", "description": "Two pairs", "price": 1200},
    {"title": "Canvas Tote", "description": "Carries things", "price": 1800},
]


def _load(path):
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("items", [])
    return [
        {
            "title": e.get("title") or e.get("name") or "",
            "description": e.get("description") or "",
            "price": int(e.get("price", 0)),
            "image": e.get("image"),
            "large_image": e.get("large_image") or e.get("largeImage"),
        }
        for e in data
    ]


def seed(entries, admin_email=None, admin_password=None):
    init_db()
    db = SessionLocal()
    try:
        owner_id = None
        if admin_email and admin_password:
            users = UserRepository(db)
            admin = users.get_by_email(admin_email)
            if not admin:
                admin = users.create(
                    email=admin_email.lower(),
                    password_hash=hash_password(admin_password, rounds=settings.BCRYPT_ROUNDS),
                    name="Admin",
                    permissions=[p.value for p in Permission],
                )
            owner_id = admin.id

        repo = ItemRepository(db)
        for entry in entries:
            repo.create(user_id=owner_id, **entry)
        db.commit()
        print("Seeded items:", len(entries))
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", default=None, help="Path to a JSON list of items")
    parser.add_argument("--admin-email", default=None)
    parser.add_argument("--admin-password", default=None)
    args = parser.parse_args()
    if args.file and not os.path.exists(args.file):
        print("File not found:", args.file)
        sys.exit(1)
    seed(_load(args.file) if args.file else DEMO_ITEMS, args.admin_email, args.admin_password)
