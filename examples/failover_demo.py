#!/usr/bin/env python3
# Shows the failover decision: an unreachable MongoDB URI and a short timeout
# make the selector open the local JSON store instead.

import logging
import tempfile

from rich.logging import RichHandler

from fallback_docdb import SelectorState, StoreConfig, StoreSelector

logging.basicConfig(level=logging.INFO, format="%(message)s", handlers=[RichHandler()])


def main() -> None:
    with tempfile.TemporaryDirectory() as data_dir:
        cfg = StoreConfig(
            mongodb_uri="mongodb://127.0.0.1:1/?directConnection=true",
            connect_timeout_ms=300,
            data_dir=data_dir,
        )
        selector = StoreSelector(cfg)
        store = selector.connect()
        assert selector.state is SelectorState.CONNECTED_LOCAL
        print("Fell back because:", selector.fallback_reason)

        enrollment = store["enrollment"]
        enrollment.insert_one({"year": 2025, "count": 412})
        print(enrollment.find_one({"year": 2025}))


if __name__ == "__main__":
    main()
