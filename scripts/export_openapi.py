#!/usr/bin/env python3
"""
OpenAPI schema export for the personal data server.

Builds the application in-process and writes its OpenAPI schema as JSON;
no server, database or document store is touched.

Usage:
    # Default output: docs/openapi.json
    python scripts/export_openapi.py

    # Custom output path
    python scripts/export_openapi.py --output ../client/openapi.json

    # Print to stdout
    python scripts/export_openapi.py --stdout
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_OUTPUT = PROJECT_ROOT / "docs" / "openapi.json"

sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / os.environ.get("ENV_FILE", ".env"))

from pds.core.config import Settings
from pds.main import create_app

# Signing key is irrelevant to the schema
EXPORT_SECRET_KEY = "openapi-export-only-not-a-real-signing-key"


def build_schema() -> dict:
    """Build the application and return its OpenAPI schema."""
    overrides = {}
    if not os.environ.get("JWT_SECRET_KEY"):
        overrides["JWT_SECRET_KEY"] = EXPORT_SECRET_KEY
    app = create_app(Settings(**overrides))
    return app.openapi()


def main() -> int:
    parser = argparse.ArgumentParser(description="Export the OpenAPI schema")
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=DEFAULT_OUTPUT,
        help=f"Output file (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the schema instead of writing a file",
    )
    args = parser.parse_args()

    schema = build_schema()
    content = json.dumps(schema, indent=2, ensure_ascii=False) + "\n"

    if args.stdout:
        sys.stdout.write(content)
        return 0

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(content, encoding="utf-8")
    logger.info(
        f"OpenAPI schema written to {args.output} ({len(schema.get('paths', {}))} paths)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
