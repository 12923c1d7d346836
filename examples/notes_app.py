#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Per-user notes databases using the edge-replica Python API.

This script demonstrates:
1. Acquiring a replica (the remote database is created on first use)
2. Writing and reading through the local copy
3. Waiting for background pushes before the process exits

Set TURSO_ORG and TURSO_API_TOKEN before running it.
"""

import asyncio

from edge_replica import acquire_database, get_runtime


async def write_notes(user_id: int):
    """Create the notes table and add a note for one user."""
    print(f"=== Notes for user {user_id} ===")

    db = await acquire_database(f"user-{user_id}-notes")

    await db.execute(
        "CREATE TABLE IF NOT EXISTS notes (id INTEGER PRIMARY KEY, body TEXT)"
    )
    await db.execute("INSERT INTO notes (body) VALUES (?)", ["Buy milk"])

    # Served from the local replica, the push happens in the background
    result = await db.query("SELECT id, body FROM notes ORDER BY id")
    print(f"Columns: {result.columns}")
    for row in result.rows:
        print(f"  {row}")

    return db


async def read_with_partial_sync():
    """Open a large database lazily and read only the first rows."""
    print("\n=== Partial Sync ===")

    db = await acquire_database(
        "catalog",
        partial_sync=True,
        bootstrap_strategy={"kind": "query", "query": "SELECT * FROM items LIMIT 10"},
    )
    await db.execute("CREATE TABLE IF NOT EXISTS items (sku TEXT, title TEXT)")
    result = await db.query("SELECT sku, title FROM items LIMIT 10")
    print(f"Fetched {len(result.rows)} items")


async def main():
    """Run all examples."""
    print("edge-replica - Notes Examples")
    print("=" * 50)

    runtime = get_runtime()
    try:
        first = await write_notes(1)
        await write_notes(2)
        await read_with_partial_sync()

        # Wait for every background push to finish
        await runtime.flush()
        print(f"\nUser 1 replica dirty after flush: {first.is_dirty()}")
    finally:
        await runtime.aclose()


if __name__ == "__main__":
    asyncio.run(main())
