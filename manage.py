#!/usr/bin/env python3
"""
Database management script.
Creates and drops tables, seeds demo data and creates admin accounts.
"""

import asyncio
import argparse
import io
import logging
import random
import sys
from decimal import Decimal
from typing import List

from PIL import Image
from sqlalchemy import select

from realty.config import settings
from realty.database import AsyncSessionLocal, create_tables, drop_tables, close_db_connection
from realty.models.user import User, UserRole
from realty.models.listing import Listing, ListingStatus
from realty.repositories.user import UserRepository
from realty.repositories.image import ImageRepository
from realty.services.image import ImageStorage, ImageUpload

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

CITIES = {
    "Casablanca": ["Maarif", "Gauthier", "Anfa", "Ain Diab", "Racine"],
    "Rabat": ["Agdal", "Hassan", "Souissi", "Hay Riad"],
    "Marrakech": ["Gueliz", "Hivernage", "Medina", "Palmeraie"],
    "Tangier": ["Malabata", "Marshan", "Iberia"],
}

TITLES = [
    "Bright apartment close to the tram",
    "Family villa with garden",
    "Renovated flat with sea view",
    "Modern studio in the city centre",
    "Spacious duplex with terrace",
    "Quiet house near the park",
    "Penthouse with panoramic view",
    "Charming riad with patio",
]


def demo_image(color: tuple) -> ImageUpload:
    """A small solid-color JPEG used as a placeholder listing picture."""
    buffer = io.BytesIO()
    Image.new("RGB", (640, 480), color).save(buffer, format="JPEG")
    return ImageUpload("demo.jpg", buffer.getvalue(), "image/jpeg")


class DatabaseManager:
    """Runs maintenance commands against the configured database."""

    async def create_tables(self) -> None:
        await create_tables()

    async def drop_tables(self) -> None:
        await drop_tables()

    async def create_admin(self, email: str, password: str, full_name: str) -> None:
        async with AsyncSessionLocal() as session:
            repo = UserRepository(session)
            if await repo.get_by_email(email):
                logger.info(f"User {email} already exists, skipping")
                return

            await repo.create_user({
                "email": email,
                "password": password,
                "full_name": full_name,
                "role": UserRole.ADMIN,
            })
            logger.info(f"Admin user created: {email}")

    async def seed(self, listings_count: int = 30) -> None:
        """
        Seed an admin, three agents, six clients, a test client and demo listings
        with one to four placeholder images each.
        """
        rng = random.Random(42)

        async with AsyncSessionLocal() as session:
            result = await session.execute(select(User).where(User.email == "admin@example.com"))
            if result.scalar_one_or_none():
                logger.info("Admin user already exists, skipping seed")
                return

            users = UserRepository(session)
            await users.create_user({
                "email": "admin@example.com",
                "password": DEMO_PASSWORD,
                "full_name": "Admin User",
                "role": UserRole.ADMIN,
            })

            agents: List[User] = []
            for n in range(1, 4):
                agents.append(await users.create_user({
                    "email": f"agent{n}@example.com",
                    "password": DEMO_PASSWORD,
                    "full_name": f"Agent {n}",
                    "role": UserRole.AGENT,
                }))

            for n in range(1, 7):
                await users.create_user({
                    "email": f"client{n}@example.com",
                    "password": DEMO_PASSWORD,
                    "full_name": f"Client {n}",
                    "role": UserRole.CLIENT,
                })

            await users.create_user({
                "email": "test@example.com",
                "password": DEMO_PASSWORD,
                "full_name": "Test User",
                "role": UserRole.CLIENT,
            })

            storage = ImageStorage()
            images = ImageRepository(session)

            for _ in range(listings_count):
                city = rng.choice(list(CITIES))
                listing = Listing(
                    title=rng.choice(TITLES),
                    description="A well kept property in a sought-after neighborhood. " * 3,
                    price=Decimal(rng.randrange(100000, 2000000, 500)),
                    surface_area=rng.randint(50, 500),
                    bedrooms=rng.randint(1, 6),
                    city=city,
                    neighborhood=rng.choice(CITIES[city]),
                    status=rng.choice(list(ListingStatus)),
                    user_id=rng.choice(agents).id,
                )
                session.add(listing)
                await session.commit()

                records = []
                for position in range(rng.randint(1, 4)):
                    color = (rng.randint(0, 255), rng.randint(0, 255), rng.randint(0, 255))
                    path = await storage.store(demo_image(color))
                    records.append({
                        "listing_id": listing.id,
                        "path": path,
                        "alt_text": f"{listing.title} - Image {position + 1}",
                        "sort_order": position,
                    })
                await images.add_many(records)

            logger.info(f"Database seeded with {listings_count} listings")
            logger.info(f"All demo accounts use the password: {DEMO_PASSWORD}")
            logger.warning("Do not seed demo accounts in production!")


async def run(args: argparse.Namespace) -> None:
    manager = DatabaseManager()
    try:
        if args.command == "create-tables":
            await manager.create_tables()
        elif args.command == "drop-tables":
            await manager.drop_tables()
        elif args.command == "seed":
            await manager.create_tables()
            await manager.seed(args.listings)
        elif args.command == "create-admin":
            await manager.create_admin(args.email, args.password, args.name)
    finally:
        await close_db_connection()


def main():
    """Command line interface for database management."""
    parser = argparse.ArgumentParser(description=f"{settings.app_name} database management")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("create-tables", help="Create all tables")

    drop_parser = subparsers.add_parser("drop-tables", help="Drop all tables (not in production)")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm dropping all data")

    seed_parser = subparsers.add_parser("seed", help="Seed demo users and listings")
    seed_parser.add_argument("--listings", type=int, default=30, help="Number of demo listings")

    admin_parser = subparsers.add_parser("create-admin", help="Create an admin account")
    admin_parser.add_argument("email")
    admin_parser.add_argument("password")
    admin_parser.add_argument("--name", default="Administrator", help="Full name")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    if args.command == "drop-tables" and not args.confirm:
        print("Dropping tables requires the --confirm flag")
        return

    try:
        asyncio.run(run(args))
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
