"""stagescript CLI entry point."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path


def main() -> None:
    from stagescript.config import database_path, load_env

    load_env()
    parser = argparse.ArgumentParser(
        prog="stagescript",
        description="stagescript — theatrical script content engine",
    )
    parser.add_argument(
        "--db", default=None, metavar="PATH",
        help="SQLite database file (default: $STAGESCRIPT_DB or ~/.stagescript/stagescript.db)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    create_parser = sub.add_parser("create-script", help="Create an empty script")
    create_parser.add_argument("--name", required=True)
    create_parser.add_argument("--description", default=None)

    sub.add_parser("list-scripts", help="List scripts, most recently updated first")

    export_parser = sub.add_parser("export", help="Export a script to a JSON document")
    export_parser.add_argument("--script-id", required=True)
    export_parser.add_argument(
        "--output", required=True, metavar="document.json",
        help="Destination path for the export document",
    )

    import_parser = sub.add_parser(
        "import",
        help="Replace a script's characters and items with a JSON document",
    )
    import_parser.add_argument("--script-id", required=True)
    import_parser.add_argument("--input", required=True, metavar="document.json")

    validate_parser = sub.add_parser(
        "validate-document", help="Validate an export document without importing it",
    )
    validate_parser.add_argument("--document", required=True, metavar="document.json")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "validate-document":
        sys.exit(validate_document_file(Path(args.document)))
    if args.command is None:
        parser.print_help()
        sys.exit(1)

    from scriptstore.db import Database
    from stagescript import api

    with Database(args.db or database_path()) as db:
        if args.command == "create-script":
            result = api.create_script(db, {"name": args.name, "description": args.description})
            if result.success:
                print(result.data.id)
        elif args.command == "list-scripts":
            result = api.list_scripts(db)
            for script in result.data or []:
                print(f"{script.id}\t{script.name}")
        elif args.command == "export":
            result = api.export_script(db, args.script_id)
            if result.success:
                from stagescript.schemas.document_v1 import dump_document
                Path(args.output).write_text(dump_document(result.data), encoding="utf-8")
                print(f"OK: exported {len(result.data['script'])} item(s) to {args.output}")
        else:
            result = _import_file(db, args.script_id, Path(args.input))

    if not result.success:
        print(f"ERROR: {result.error.code}: {result.error.message}")
        sys.exit(1)
    sys.exit(0)


def _import_file(db, script_id: str, input_path: Path):
    from stagescript import api
    from stagescript.api import ErrorInfo, Result
    from stagescript.schemas.document_v1 import load_document

    try:
        document = load_document(input_path)
    except (OSError, json.JSONDecodeError) as exc:
        return Result(success=False, error=ErrorInfo(code="ImportError", message=str(exc)))
    result = api.import_script(db, script_id, document)
    if result.success:
        print(f"OK: imported {len(result.data.characters)} character(s), {len(result.data.items)} item(s)")
    return result


def validate_document_file(document_path: Path) -> int:
    """Print OK/ERROR for *document_path* and return the process exit code."""
    from stagescript.schemas.document_v1 import load_document, validate_document

    try:
        errors = validate_document(load_document(document_path))
    except (OSError, json.JSONDecodeError):
        print("ERROR: invalid document")
        return 1
    if errors:
        print("ERROR: invalid document")
        for err in errors:
            print(f"  {err}")
        return 1
    print("OK: document is valid")
    return 0


if __name__ == "__main__":
    main()
