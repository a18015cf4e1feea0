#!/usr/bin/env python3

"""Write the gateway's OpenAPI document to disk.

Used to publish the HTTP contract for clients without starting a server.
Building the app does not contact the object store.
"""

import argparse
import json
from pathlib import Path

from s3_gateway.main import create_app

DEFAULT_FILENAME = "openapi.json"


def export_openapi(target_dir: Path, filename: str = DEFAULT_FILENAME) -> Path:
    schema = create_app().openapi()

    target_dir.mkdir(parents=True, exist_ok=True)
    output_path = target_dir / filename
    output_path.write_text(
        json.dumps(schema, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="Export the S3 gateway OpenAPI document."
    )
    parser.add_argument("target_dir", type=Path, help="Output directory, created if missing.")
    parser.add_argument(
        "--filename",
        default=DEFAULT_FILENAME,
        help=f"Name of the written file (default: {DEFAULT_FILENAME}).",
    )
    args = parser.parse_args(argv)

    output_path = export_openapi(args.target_dir.resolve(), args.filename)
    print(f"OpenAPI schema exported to {output_path}")


if __name__ == "__main__":
    main()
