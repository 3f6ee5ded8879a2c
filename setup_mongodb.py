"""
MongoDB Setup Script
Checks connectivity and creates the signal log indexes before switching
SIGNAL_STORE_BACKEND to mongodb.
"""
import asyncio
from intent_engine.config import settings
from intent_engine.repositories import db_manager
from intent_engine.repositories.connection import SIGNALS_COLLECTION


async def setup_mongodb():
    print(f"Connecting to {settings.mongodb_uri} (database: {settings.mongodb_database})")

    try:
        await db_manager.connect()
        if not await db_manager.ping():
            raise RuntimeError("MongoDB did not answer ping")
        print("Connection successful")

        db = db_manager.database
        existing = await db.list_collection_names()
        print(f"Existing collections: {existing or 'None'}")

        await db_manager.create_indexes()

        indexes = await db[SIGNALS_COLLECTION].index_information()
        print(f"{SIGNALS_COLLECTION}: {len(indexes)} indexes")
        for name in indexes:
            print(f"   - {name}")

        identities = await db[SIGNALS_COLLECTION].distinct("identity_id")
        print(f"Tracked identities: {len(identities)}")
        print("Setup complete. Set SIGNAL_STORE_BACKEND=mongodb to use it.")

    except Exception as e:
        print(f"Error: {e}")
        print("Check MONGODB_URI, network access and credentials.")
        raise

    finally:
        await db_manager.disconnect()


if __name__ == "__main__":
    asyncio.run(setup_mongodb())
