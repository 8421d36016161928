from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, List

from .database import VectorDatabase
from .types import VectorRecord


def _positive_int(value: str) -> int:
    ivalue = int(value)
    if ivalue <= 0:
        raise argparse.ArgumentTypeError("value must be a positive integer")
    return ivalue


def _add_collection_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument(
        "--collection",
        "-c",
        required=True,
        help="Collection name.",
    )
    cmd.add_argument(
        "--dim",
        "-d",
        type=_positive_int,
        required=True,
        help="Fixed vector dimension of the collection.",
    )
    cmd.add_argument(
        "--db",
        type=Path,
        default=None,
        help="SQLite file to use (overrides vecdb.storage in config.toml).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vecdb",
        description="Local vector store with exact cosine top-k search.",
    )
    subparsers = parser.add_subparsers(
        dest="command", metavar="<command>", required=True
    )

    add_cmd = subparsers.add_parser(
        "add",
        help="Upsert vectors from a JSON file holding a list of {id, vector} objects.",
    )
    _add_collection_args(add_cmd)
    add_cmd.add_argument(
        "--file",
        "-f",
        type=Path,
        required=True,
        help="JSON file with the records to upsert.",
    )

    remove_cmd = subparsers.add_parser("remove", help="Delete vectors by id.")
    _add_collection_args(remove_cmd)
    remove_cmd.add_argument("ids", nargs="+", help="Record ids to delete.")

    search_cmd = subparsers.add_parser(
        "search",
        help="Print the k most similar records to the query vector as JSON.",
    )
    _add_collection_args(search_cmd)
    search_cmd.add_argument(
        "--k",
        "-k",
        type=_positive_int,
        default=5,
        help="Maximum number of results (default: 5).",
    )
    search_cmd.add_argument("query", nargs="+", type=float, help="Query vector values.")

    clear_cmd = subparsers.add_parser("clear", help="Delete every record in the collection.")
    _add_collection_args(clear_cmd)

    count_cmd = subparsers.add_parser("count", help="Print the number of stored records.")
    _add_collection_args(count_cmd)

    return parser


def _load_records(path: Path, parser: argparse.ArgumentParser) -> List[VectorRecord]:
    if not path.is_file():
        parser.error(f"Records file {path} does not exist.")
    with path.open("r", encoding="utf-8") as handle:
        data: Any = json.load(handle)
    if not isinstance(data, list):
        parser.error("Records file must contain a JSON list of {id, vector} objects.")
    try:
        return [VectorRecord.coerce(item) for item in data]
    except (KeyError, TypeError) as exc:
        parser.error(f"Invalid record in {path}: {exc}")


async def _run(args: argparse.Namespace, records: List[VectorRecord]) -> None:
    db = VectorDatabase(
        args.collection,
        args.dim,
        path=str(args.db) if args.db is not None else None,
    )
    try:
        if args.command == "add":
            await db.add_vectors(records)
            print(f"Upserted {len(records)} vectors into {db.store_name}")
        elif args.command == "remove":
            await db.remove_vectors(args.ids)
            print(f"Removed {len(args.ids)} ids from {db.store_name}")
        elif args.command == "search":
            results = await db.search(args.query, args.k)
            print(json.dumps([r.to_dict() for r in results], indent=2))
        elif args.command == "clear":
            await db.clear()
            print(f"Cleared {db.store_name}")
        elif args.command == "count":
            print(await db.count())
    finally:
        await db.close()


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    records = _load_records(args.file, parser) if args.command == "add" else []
    asyncio.run(_run(args, records))


__all__ = ["main", "build_parser"]
