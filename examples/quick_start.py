#!/usr/bin/env python3
"""
Quick Start - Store users and animals in nested buckets.

Usage:
    python examples/quick_start.py [path/to/store.db]
"""

from dataclasses import dataclass
import sys

import rod


@dataclass
class Animal:
    type: str
    name: str


def main():
    url = f"sqlite:///{sys.argv[1]}" if len(sys.argv) > 1 else "memory://"

    with rod.connect(url) as db:
        # Writes create every bucket in the location
        with db.transaction() as tx:
            rod.put(tx, "users.chilts", "email", b"andychilton@gmail.com")
            rod.put_json(tx, "animal", "dog", Animal("dog", "rover"))
            rod.put_json(tx, "animal", "cat", Animal("cat", "willow"))
            rod.put_json(tx, "animal", "horse", Animal("horse", "ed"))

        # Reads never create anything
        with db.transaction(writable=False) as tx:
            print("email:", rod.get(tx, "users.chilts", "email").decode())
            print("dog:", rod.get_json(tx, "animal", "dog", Animal))
            print("missing:", rod.get(tx, "users.nobody", "email"))

            for animal in rod.get_all(tx, "animal", Animal):
                print(f"  {animal.type:<6} {animal.name}")


if __name__ == "__main__":
    main()
