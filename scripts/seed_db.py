import asyncio
import sys
from pathlib import Path

# Add project root to sys.path
project_root = Path(__file__).resolve().parent.parent
sys.path.append(str(project_root))

from app.api.deps import build_backend  # noqa: E402
from app.config import Settings  # noqa: E402
from app.infrastructure.db.tables import metadata  # noqa: E402
from app.main import seed_backend  # noqa: E402


async def seed(reset: bool = False):
    settings = Settings(use_in_memory=False)
    backend = build_backend(settings)
    database = backend.database
    try:
        if reset:
            async with database.engine.begin() as conn:
                await conn.run_sync(metadata.drop_all)
            print("Dropped all tables.")

        await database.create_schema()
        print("Created missing tables.")

        await seed_backend(backend)
        print("Seeded demo catalog and coupons.")
    finally:
        await backend.dispose()


if __name__ == "__main__":
    asyncio.run(seed(reset="--reset" in sys.argv))
