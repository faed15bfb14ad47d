#!/usr/bin/env python3
"""
Database initialization script

    python scripts/db_init.py init          create tables and demo data
    python scripts/db_init.py check         test the connection
    python scripts/db_init.py seed          demo users and a first post
    python scripts/db_init.py drop --confirm
    python scripts/db_init.py reset --confirm
"""
import asyncio
import sys
from pathlib import Path

# Add the project root to the Python path
current_dir = Path(__file__).parent
root_dir = current_dir.parent
sys.path.insert(0, str(root_dir))

DEMO_PASSWORD = "Password123"

DEMO_USERS = [
    {
        "first_name": "Ana",
        "paternal_surname": "Lopez",
        "username": "ana_lopez",
        "email": "ana@example.com",
    },
    {
        "first_name": "Bruno",
        "paternal_surname": "Garcia",
        "maternal_surname": "Ruiz",
        "username": "bruno_garcia",
        "email": "bruno@example.com",
    },
    {
        "first_name": "Carla",
        "paternal_surname": "Mendez",
        "username": "carla_mendez",
        "email": "carla@example.com",
    },
]

async def init_database() -> None:
    """Initialize database with tables"""
    from app.db.session import init_db
    from app.config import settings

    print(f"🚀 Initializing database: {settings.database_url}")

    try:
        await init_db()
        print("✅ Database initialized successfully")

        await create_initial_data()

    except Exception as e:
        print(f"❌ Error initializing database: {e}")
        sys.exit(1)

async def create_initial_data() -> None:
    """Create demo users and one post for development"""
    from sqlalchemy import select
    from app.db.session import AsyncSessionLocal
    from app.models.user import User
    from app.schemas.user_schema import UserCreate
    from app.schemas.post_schema import PostCreate
    from app.services.auth_service import AuthService
    from app.services.post_service import PostService

    print("👤 Creating initial data...")

    async with AsyncSessionLocal() as db:
        try:
            auth_service = AuthService(db)
            created = []
            for fields in DEMO_USERS:
                result = await db.execute(select(User.id).where(User.username == fields["username"]))
                if result.scalar_one_or_none() is not None:
                    continue
                user = await auth_service.create_user(UserCreate(password=DEMO_PASSWORD, **fields))
                created.append(user)

            if created:
                print(f"✅ Created {len(created)} demo users (password: {DEMO_PASSWORD})")
                await PostService(db).create_post(PostCreate(
                    user_id=created[0].id,
                    title="Welcome to the feed",
                    description="Like, save and comment on this post to try things out"
                ))
                print("✅ Created welcome post")
            else:
                print("ℹ️  Demo data already present")

        except Exception as e:
            await db.rollback()
            print(f"⚠️  Error creating initial data: {e}")

async def check_database_connection() -> bool:
    """Check if database is accessible"""
    from app.db.session import engine
    from sqlalchemy import text

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        print("✅ Database connection successful")
        return True
    except Exception as e:
        print(f"❌ Database connection failed: {e}")
        return False

async def drop_database(confirm: bool = False) -> None:
    """Drop all database tables"""
    if not confirm:
        print("⚠️  WARNING: This will drop ALL tables and data!")
        print("   Use --confirm flag to proceed")
        return

    from app.db.session import drop_db

    try:
        await drop_db()
        print("✅ Database dropped successfully")
    except Exception as e:
        print(f"❌ Error dropping database: {e}")

async def reset_database() -> None:
    await drop_database(True)
    await init_database()

def main() -> None:
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description="Database Initialization")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="Create tables and demo data")
    subparsers.add_parser("check", help="Check database connection")
    subparsers.add_parser("seed", help="Create demo data")

    drop_parser = subparsers.add_parser("drop", help="Drop database (DANGEROUS!)")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm drop")

    reset_parser = subparsers.add_parser("reset", help="Drop and reinitialize")
    reset_parser.add_argument("--confirm", action="store_true", help="Confirm reset")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "init":
            asyncio.run(init_database())

        elif args.command == "check":
            success = asyncio.run(check_database_connection())
            sys.exit(0 if success else 1)

        elif args.command == "seed":
            asyncio.run(create_initial_data())

        elif args.command == "drop":
            asyncio.run(drop_database(args.confirm))

        elif args.command == "reset":
            if not args.confirm:
                print("⚠️  WARNING: This will drop ALL tables and data!")
                print("   Use --confirm flag to proceed")
                return
            asyncio.run(reset_database())

    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user")
        sys.exit(1)

if __name__ == "__main__":
    main()
