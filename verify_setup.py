"""
Setup verification script for the Garden Catalog backend.
Checks dependencies, configuration and the database before first run.
"""
import asyncio
import sys
import os
from typing import Awaitable, Callable, List, Tuple

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"


def print_status(message: str, status: bool):
    """Print colored status message."""
    symbol = f"{GREEN}✓{RESET}" if status else f"{RED}✗{RESET}"
    print(f"{symbol} {message}")


def print_warning(message: str):
    print(f"{YELLOW}⚠{RESET} {message}")


async def check_python_version() -> bool:
    """Check Python version is 3.11+."""
    version = sys.version_info
    if version.major == 3 and version.minor >= 11:
        print_status(f"Python version: {version.major}.{version.minor}.{version.micro}", True)
        return True
    print_status(f"Python version {version.major}.{version.minor} (requires 3.11+)", False)
    return False


async def check_dependencies() -> bool:
    """Check if required packages are installed."""
    required_packages = [
        "fastapi",
        "uvicorn",
        "sqlalchemy",
        "asyncpg",
        "alembic",
        "pydantic_settings",
        "httpx",
        "aiofiles",
        "multipart",
        "google.genai",
    ]

    all_installed = True
    for package in required_packages:
        try:
            __import__(package)
            print_status(f"Package '{package}' installed", True)
        except ImportError:
            print_status(f"Package '{package}' missing", False)
            all_installed = False

    return all_installed


async def check_env_file() -> bool:
    """Check if .env file exists."""
    if os.path.exists(".env"):
        print_status(".env file exists", True)
        return True
    print_status(".env file missing (copy from .env.example)", False)
    return False


async def check_upload_dir() -> bool:
    """Check if upload directory exists."""
    from garden_catalog.config import settings

    if os.path.isdir(settings.UPLOAD_DIR):
        print_status(f"Upload directory exists: {settings.UPLOAD_DIR}", True)
    else:
        # Created on startup, so this is not a failure
        print_warning(f"Upload directory {settings.UPLOAD_DIR} missing (will be created on startup)")
    return True


async def check_integrations() -> bool:
    """Report which hosted AI services have keys.  Missing keys only degrade features."""
    from garden_catalog.config import settings

    if settings.gemini_configured:
        print_status(f"GEMINI_API_KEY set (model {settings.GEMINI_MODEL})", True)
    else:
        print_warning("GEMINI_API_KEY not set: chat replies with a canned notice")

    if settings.plantid_configured:
        print_status("PLANTID_API_KEY set", True)
    else:
        print_warning("PLANTID_API_KEY not set: /api/identify-plant returns 503")
    return True


async def check_database() -> bool:
    """Check the database named by DATABASE_URL accepts connections."""
    try:
        from sqlalchemy import text
        from sqlalchemy.ext.asyncio import create_async_engine
        from sqlalchemy.pool import NullPool

        from garden_catalog.config import settings

        engine = create_async_engine(settings.DATABASE_URL, poolclass=NullPool)
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        finally:
            await engine.dispose()

        print_status("Database connection successful", True)
        return True

    except Exception as e:
        print_status(f"Database connection failed: {str(e)}", False)
        print(f"  {YELLOW}Check DATABASE_URL in .env and that PostgreSQL is running{RESET}")
        return False


CHECKS: List[Tuple[str, Callable[[], Awaitable[bool]]]] = [
    ("Python version", check_python_version),
    ("Packages", check_dependencies),
    (".env file", check_env_file),
    ("Upload directory", check_upload_dir),
    ("Gemini / Plant.id keys", check_integrations),
    ("Database", check_database),
]


async def main():
    print(f"\n{BLUE}Garden Catalog backend: setup check{RESET}\n")

    failed: List[str] = []
    for name, check in CHECKS:
        print(f"{BLUE}[{name}]{RESET}")
        try:
            ok = await check()
        except Exception as e:
            print_status(f"check crashed: {e}", False)
            ok = False
        if not ok:
            failed.append(name)
        print()

    if failed:
        print(f"{RED}✗ {len(failed)} of {len(CHECKS)} checks failed: {', '.join(failed)}{RESET}")
        sys.exit(1)

    print(f"{GREEN}✓ All {len(CHECKS)} checks passed. Start the backend with:{RESET}")
    print("  alembic upgrade head")
    print("  uvicorn garden_catalog.main:app --reload\n")


if __name__ == "__main__":
    asyncio.run(main())
