from __future__ import annotations

from surgilog.main import bootstrap


def main() -> None:
    container = bootstrap()
    if container is None:
        raise SystemExit(1)
    store = container.record_store
    for record in store.records():
        store.remove(record.id)


if __name__ == "__main__":
    main()
