import argparse
import json
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from . import __version__
from .database import SqlAlchemyStore, init_database
from .env import Settings, load_env
from .errors import JoblyError, ValidationError
from .filters import JobFilters
from .repositories import JobRepository

FIELD_TYPES = {"title": str, "salary": int, "equity": float}


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


@contextmanager
def _repository(args: argparse.Namespace) -> Iterator[JobRepository]:
    """Repository over a fresh store; the engine is disposed when the command ends."""
    store = SqlAlchemyStore.from_url(args.db)
    try:
        yield JobRepository(store)
    finally:
        store.dispose()


def parse_assignments(pairs: List[str]) -> Dict[str, Any]:
    """Turn ["salary=90000", "title=Dev"] into {"salary": 90000, "title": "Dev"}."""
    data: Dict[str, Any] = {}
    for pair in pairs:
        field, sep, raw = pair.partition("=")
        field = field.strip()
        if not sep or not field:
            raise ValidationError(f"Expected field=value, got: {pair}")
        if field not in FIELD_TYPES:
            raise ValidationError(f"Cannot update field(s): {field}")
        try:
            data[field] = FIELD_TYPES[field](raw)
        except ValueError as e:
            raise ValidationError(f"Field '{field}' has an invalid value: {raw}") from e
    return data


def cmd_init_db(args: argparse.Namespace) -> None:
    init_database(args.db).dispose()
    print(f"Initialized {args.db}")


def cmd_create(args: argparse.Namespace) -> None:
    with _repository(args) as repo:
        job = repo.create(
            title=args.title,
            salary=args.salary,
            equity=args.equity,
            company_handle=args.company_handle,
        )
    _print_json(job)


def cmd_list(args: argparse.Namespace) -> None:
    filters = JobFilters(
        min_salary=args.min_salary,
        has_equity=True if args.has_equity else None,
        title=args.title,
    )
    with _repository(args) as repo:
        jobs = repo.find_all(filters)
    if not jobs:
        print("No jobs found.")
        return
    _print_json(jobs)


def cmd_get(args: argparse.Namespace) -> None:
    with _repository(args) as repo:
        _print_json(repo.get(args.title))


def cmd_update(args: argparse.Namespace) -> None:
    data = parse_assignments(args.set or [])
    with _repository(args) as repo:
        _print_json(repo.update(args.id, data))


def cmd_remove(args: argparse.Namespace) -> None:
    with _repository(args) as repo:
        repo.remove(args.title)
    print(f"Removed: {args.title}")


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobly", description="Jobly job store CLI")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument(
        "--db",
        default=settings.database_url,
        help=f"Database URL (default: JOBLY_DATABASE_URL or {settings.database_url})",
    )

    subparsers = parser.add_subparsers(dest="command")
    ini = subparsers.add_parser("init-db", help="Create the companies and jobs tables")
    ini.set_defaults(func=cmd_init_db)

    crt = subparsers.add_parser("create", help="Create a job")
    crt.add_argument("--title", required=True, help="Job title")
    crt.add_argument("--company-handle", required=True, help="Handle of the posting company")
    crt.add_argument("--salary", type=int, help="Yearly salary")
    crt.add_argument("--equity", type=float, help="Equity share between 0 and 1")
    crt.set_defaults(func=cmd_create)

    lst = subparsers.add_parser("list", help="List jobs ordered by title")
    lst.add_argument("--min-salary", type=int, help="Only jobs paying at least this much")
    lst.add_argument("--has-equity", action="store_true", help="Only jobs offering equity")
    lst.add_argument("--title", help="Case-insensitive title substring")
    lst.set_defaults(func=cmd_list)

    get = subparsers.add_parser("get", help="Show a job by title")
    get.add_argument("--title", required=True, help="Exact job title")
    get.set_defaults(func=cmd_get)

    upd = subparsers.add_parser("update", help="Change some fields of a job")
    upd.add_argument("--id", type=int, required=True, help="Job id")
    upd.add_argument(
        "--set",
        action="append",
        metavar="FIELD=VALUE",
        help="Field to change (title, salary, equity). Repeatable.",
    )
    upd.set_defaults(func=cmd_update)

    rem = subparsers.add_parser("remove", help="Delete jobs by title")
    rem.add_argument("--title", required=True, help="Exact job title")
    rem.set_defaults(func=cmd_remove)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    # Load .env if present (JOBLY_DATABASE_URL, JOBLY_LOG_LEVEL, ...)
    load_env()
    parser = build_parser(Settings.from_env())
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    try:
        args.func(args)
    except JoblyError as e:
        print(f"error: {e.message}")
        return 2 if e.kind == ValidationError.kind else 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
