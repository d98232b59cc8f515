"""Initialize database tables"""
import asyncio
from aligned_execution.database import engine, create_tables


async def init():
    await create_tables()
    await engine.dispose()
    print("Database tables created successfully.")


if __name__ == "__main__":
    asyncio.run(init())
