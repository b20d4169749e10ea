#!/usr/bin/env python3
"""
Quick Start - Store, read and query a few values.

Usage:
    python examples/quick_start.py
"""

from dotkv import connect


def main():
    # Writes land in data/quick_start.json a few ms after each change
    db = connect("json:///data/quick_start.json")

    db.set("user.name", "Ada")
    db.set("user.role", "admin")
    db.add("stats.visits", 1)
    db.push("tags", "math")

    print(f"User:   {db.get('user')}")
    print(f"Visits: {db.get('stats.visits')}")
    print(f"Tags:   {db.get('tags')}")
    print(f"Admins: {[r.key for r in db.find({'role': 'admin'})]}")

    db.close()


if __name__ == "__main__":
    main()
