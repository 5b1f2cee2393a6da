"""
Command line front end for docmapper.

    docmapper diff ORIGINAL.json CURRENT.json
        Print the update operations an entity going from ORIGINAL to CURRENT
        would be persisted with.

    docmapper find COLLECTION [FILTER] [--projection a,-b] [--limit N]
        Run a normalized query against the configured database
        (see docmapper.data.mongo_setup for the environment variables).

JSON arguments are MongoDB extended JSON, so {"$oid": "..."} and
{"$date": "..."} values keep their BSON types.
"""
import argparse
import logging
import sys

from bson import json_util
from colorama import Fore, Style, init

from docmapper.data.entity import Entity
from docmapper.data.mongo_setup import MongoSettings
from docmapper.data.schema import Schema
from docmapper.errors import DocMapperError
from docmapper.infrastructure.context import Context
from docmapper.services.diff import calculate_changes


def main(argv=None) -> int:
    init(autoreset=True)  # colorama: translate ANSI codes on Windows terminals

    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)  # -v shows every store round-trip.

    try:
        return args.handler(args)  # Each subcommand registers its handler with set_defaults.
    except DocMapperError as error:
        error_msg(str(error))  # Configuration problems are reported, never retried.
        return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docmapper", description="Object-document mapper for MongoDB")
    parser.add_argument("-v", "--verbose", action="store_true", help="log store traffic")
    commands = parser.add_subparsers(dest="command", required=True)

    diff = commands.add_parser("diff", help="show the update operations between two documents")
    diff.add_argument("original", help="extended JSON file with the stored document")
    diff.add_argument("current", help="extended JSON file with the new document")
    diff.set_defaults(handler=run_diff)

    find = commands.add_parser("find", help="query a collection")
    find.add_argument("collection")
    find.add_argument("filter", nargs="?", default="{}", help="extended JSON filter or an identity")
    find.add_argument("--projection", default="", help="comma separated fields, '-field' excludes")
    find.add_argument("--limit", type=int, default=20)
    find.set_defaults(handler=run_find)

    return parser


"""Print the $set/$unset update and the follow-up $pull, if any."""
def run_diff(args) -> int:
    original = load_json(args.original)
    current = load_json(args.current)

    diff = calculate_changes(current, original)  # Same walk the mapper runs on update.
    if not diff:
        success_msg("Documents are equal, nothing to update.")
        return 0

    print(Fore.WHITE + "update:")
    print(json_util.dumps(diff.update_document(), indent=2))
    if diff.pull:
        print(Fore.WHITE + "then:")
        print(json_util.dumps(diff.pull_document(), indent=2))

    return 0


def run_find(args) -> int:
    class RawSchema(Schema):
        collection = args.collection

    class RawDocument(Entity):
        schema = RawSchema  # Only _id is declared; every other field passes through.

    context = Context.from_settings(MongoSettings.from_env())  # Connection settings come from DOCMAPPER_* variables.
    mapper = context.mapper(RawDocument)

    filter = args.filter
    if filter.lstrip().startswith("{"):
        filter = json_util.loads(filter)  # Extended JSON keeps $oid and $date typed.
    projection = [name.strip() for name in args.projection.split(",") if name.strip()]

    count = 0
    for entity in mapper.where(filter, projection).limit(args.limit):
        print(json_util.dumps(entity.to_dict()))
        count += 1

    success_msg(f"{count} document(s) from {args.collection}.")
    return 0


def load_json(path: str):
    with open(path, encoding="utf-8") as fin:
        return json_util.loads(fin.read())


def success_msg(text):
    print(Fore.LIGHTGREEN_EX + text + Style.RESET_ALL)


def error_msg(text):
    print(Fore.LIGHTRED_EX + text + Style.RESET_ALL, file=sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
