#!/usr/bin/env python3
"""
Session Cache - Expiring entries, change notifications and backups.

This example demonstrates:
1. Namespaced sessions with a time-to-live
2. Listening for "set", "expired" and "clear" events
3. Lazy expiry on read vs. the background sweeper
4. Taking a named backup and restoring it

Run: python examples/session_cache.py
"""

import time

from dotkv import connect


def print_header(title: str):
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)


def watch(db):
    """Print every change the store announces."""
    db.on("set", lambda e: print(f"    [set]     {e.key} = {e.value!r}"))
    db.on("expired", lambda e: print(f"    [expired] {e.key}"))
    db.on("clear", lambda e: print("    [clear]   store replaced"))


def sessions_demo(db):
    print_header("SESSIONS WITH A TTL")
    sessions = db.collection("session")

    sessions.set("alice", {"token": "a1", "cart": []}, ttl=200)
    sessions.set("bob", {"token": "b2", "cart": []}, ttl=2_000)
    sessions.push("alice.cart", "book")

    print(f"\n  Live sessions: {sessions.keys()}")
    print("  Waiting 300 ms...")
    time.sleep(0.3)

    # Evicted by the sweeper or by this read, whichever comes first
    print(f"  alice: {sessions.get('alice')}")
    print(f"  Live sessions: {sessions.keys()}")


def backup_demo(db):
    print_header("BACKUP AND RESTORE")

    db.set("config.theme", "dark")
    location = db.backup("before-reset")
    print(f"\n  Backup written to {location}")

    db.set("config.theme", "light")
    db.restore("before-reset")
    print(f"  Theme after restore: {db.get('config.theme')}")
    print(f"  Available backups:   {db.list_backups()}")


def main():
    print("\n" + "=" * 60)
    print("  DOTKV SESSION CACHE")
    print("=" * 60)

    with connect("json:///data/session_cache.json", autoCleanInterval=100) as db:
        watch(db)
        sessions_demo(db)
        backup_demo(db)

        stats = db.stats()
        print_header("STATS")
        for name, value in stats.as_dict().items():
            print(f"    {name:<14} {value}")


if __name__ == "__main__":
    main()
