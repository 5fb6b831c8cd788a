#!/usr/bin/env python3
# Example usage of fallback_docdb
# Without MONGODB_URI (or with an unreachable one) the selector falls back to
# JSON files under DOCDB_DATA_DIR (default ./data).

import logging

from rich.logging import RichHandler

from fallback_docdb import StoreSelector

logging.basicConfig(level=logging.INFO, format="%(message)s", handlers=[RichHandler()])


def main() -> None:
    selector = StoreSelector.from_env()
    store = selector.connect()
    print("Active store:", store.name, f"({selector.fallback_reason})" if selector.fallback_reason else "")

    staff = store.collection("staff")
    staff.insert_many([
        {"department": "science", "name": "A"},
        {"department": "math", "name": "B"},
    ])
    print("Departments:", staff.distinct("department"))

    fees = store.collection("fees")
    res = fees.update_one(
        {"department": "default"},
        {"$set": {"fees": {"term1": 150}}},
        upsert=True,
    )
    print("Upserted" if res.upserted else "Modified" if res.modified else "Unchanged")
    print("Fees:", fees.find_one({"department": "default"}))

    # Array operators on a nested list of board members
    board = store.collection("board")
    board.update_one({"year": 2024}, {"$push": {"members": {"id": "m1", "name": "Chair"}}}, upsert=True)
    board.update_one({"year": 2024}, {"$pull": {"members": {"id": "m1"}}})
    print("Board:", board.find({"year": 2024}).to_array())

    selector.close()


if __name__ == "__main__":
    main()
