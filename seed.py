"""
Bootstraps the 9 Tierras database: collections, unique indexes, demo beers
and the admin account. Safe to run repeatedly.

    python seed.py
"""

import logging
import sys

from pymongo.errors import PyMongoError

import config
import database
import schemas
from database import create_document, find_document
from passwords import hash_password

logger = logging.getLogger("seed")

DEMO_BEERS = [
    {"nombre": "Rubia 9 Tierras", "estilo": "Golden Ale", "precio": 12000,
     "img": "https://via.placeholder.com/400x300?text=Rubia+9+Tierras"},
    {"nombre": "Roja 9 Tierras", "estilo": "Red Ale", "precio": 13000,
     "img": "https://via.placeholder.com/400x300?text=Roja+9+Tierras"},
    {"nombre": "Negra 9 Tierras", "estilo": "Stout", "precio": 14000,
     "img": "https://via.placeholder.com/400x300?text=Negra+9+Tierras"},
]


def ensure_collections(db):
    existing = db.list_collection_names()
    for name in schemas.COLLECTIONS:
        if name in existing:
            logger.info("Collection already exists: %s", name)
        else:
            db.create_collection(name)
            logger.info("Collection created: %s", name)

    db[schemas.USERS].create_index("email", unique=True)
    db[schemas.NEWSLETTER].create_index("correo", unique=True)


def seed_beers(db) -> int:
    count = db[schemas.BEERS].count_documents({})
    if count:
        logger.info("beers already has %d documents", count)
        return 0
    for beer in DEMO_BEERS:
        create_document(schemas.BEERS, schemas.Beer(**beer).model_dump())
    logger.info("Inserted %d demo beers", len(DEMO_BEERS))
    return len(DEMO_BEERS)


def seed_admin(email: str = config.ADMIN_EMAIL, password: str = config.ADMIN_PASSWORD) -> bool:
    email = email.strip().lower()
    if find_document(schemas.USERS, {"email": email}):
        logger.info("Admin user already exists: %s", email)
        return False
    pwd_hash, salt = hash_password(password)
    user = schemas.User(email=email, password_hash=pwd_hash, salt=salt, role="admin")
    create_document(schemas.USERS, user.model_dump())
    logger.info("Admin user created: %s", email)
    return True


def run():
    if database.db is None:
        logger.error("DATABASE_URL is missing from the environment")
        return 1
    logger.info("Seeding database %s", config.DATABASE_NAME)
    try:
        ensure_collections(database.db)
        seed_beers(database.db)
        seed_admin()
    except PyMongoError:
        logger.exception("Seeding failed")
        return 1
    logger.info("Seed finished")
    return 0


if __name__ == "__main__":
    sys.exit(run())
