from __future__ import annotations

import sys

from surgilog.main import bootstrap


def main(fmt: str = "csv") -> int:
    container = bootstrap()
    if container is None:
        return 1
    exporters = {
        "csv": container.export_service.export_csv_file,
        "xlsx": container.export_service.export_xlsx_file,
        "pdf": container.export_service.export_pdf_file,
    }
    if fmt not in exporters:
        print(f"Unknown format {fmt!r}; expected one of: {', '.join(exporters)}", file=sys.stderr)
        return 2
    try:
        result = exporters[fmt]()
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1
    print(f"{result['count']} records -> {result['path']}")
    return 0


if __name__ == "__main__":
    sys.exit(main(*sys.argv[1:2]))
