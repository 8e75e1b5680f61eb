import argparse
import logging
import sys

from .config import DB_PATH, LOG_LEVEL
from .errors import NotFoundError, SchemaError
from .migrator import Migrator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grinder", description="Manage the grinder SQLite store schema."
    )
    parser.add_argument("--db", default=DB_PATH, help="path to the store file")
    sub = parser.add_subparsers(dest="command", required=True)

    migrate = sub.add_parser("migrate", help="apply pending migrations")
    migrate.add_argument("target", nargs="?", help="stop after this migration")

    revert = sub.add_parser("revert", help="revert applied migrations")
    revert.add_argument(
        "target", nargs="?", help="keep this migration and everything before it"
    )

    sub.add_parser("status", help="list migrations and whether they are applied")
    sub.add_parser("verify", help="compare the store against the latest schema")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=LOG_LEVEL,
    )
    migrator = Migrator(args.db)

    try:
        if args.command == "migrate":
            migrator.migrate(args.target)
        elif args.command == "revert":
            migrator.revert(args.target)
        elif args.command == "status":
            applied = set(migrator.applied())
            for step in migrator.steps:
                state = "applied" if step.identifier in applied else "pending"
                print(f"{step.identifier}  {state}")
        elif args.command == "verify":
            diffs = migrator.verify()
            for diff in diffs:
                print(diff)
            if diffs:
                logger.error("Store %s does not match the latest schema", args.db)
                return 1
    except (SchemaError, NotFoundError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
