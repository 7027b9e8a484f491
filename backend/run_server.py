#!/usr/bin/env python3
"""Standalone entry point for the school admin settings backend.

Accepts --port, --host and --data-dir and sets environment variables
BEFORE importing any schooladmin modules (so pydantic-settings picks them
up). --teardown drops the settings table instead of serving.
"""

import argparse
import asyncio
import os


async def _teardown():
    from schooladmin.database import close_database
    from schooladmin.services.setting_store import drop_settings_table

    try:
        return await drop_settings_table()
    finally:
        await close_database()


def main():
    parser = argparse.ArgumentParser(description="School Admin Settings Server")
    parser.add_argument("--port", type=int, default=3000, help="Port to listen on")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory for the SQLite database (ignored when DATABASE_URL is set)",
    )
    parser.add_argument(
        "--teardown",
        action="store_true",
        help="Drop the settings table and exit",
    )
    args = parser.parse_args()

    os.environ["API_PORT"] = str(args.port)
    os.environ["API_HOST"] = args.host
    if args.data_dir and "DATABASE_URL" not in os.environ:
        os.makedirs(args.data_dir, exist_ok=True)
        os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(args.data_dir, 'schooladmin.db')}"

    if args.teardown:
        dropped = asyncio.run(_teardown())
        print("Settings table dropped" if dropped else "Settings table does not exist")
        return

    import uvicorn

    uvicorn.run(
        "schooladmin.main:app",
        host=args.host,
        port=args.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
