from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from ats_resume_store.errors import ConfigurationError
from ats_resume_store.models import ResumeRecord
from ats_resume_store.store import ResumeStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ats-resume-store", description="Store and inspect resumes."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Check whether the backend is reachable")
    sub.add_parser("list", help="List stored resumes, newest first")

    show = sub.add_parser("show", help="Print one resume as JSON")
    show.add_argument("resume_id")

    save = sub.add_parser("save", help="Save a resume from a JSON file")
    save.add_argument("path", type=Path)

    delete = sub.add_parser("delete", help="Delete a resume")
    delete.add_argument("resume_id")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


async def _status(store: ResumeStore) -> int:
    reachable = await store.monitor.probe_now()
    current = store.monitor.status
    if reachable:
        print(f"✅ Database ready ({store.settings.backend} backend)")
        return 0
    print(f"❌ Connection lost: {current.error}")
    return 1


async def _list(store: ResumeStore) -> int:
    result = await store.repository.get_all()
    if result.error is not None:
        print(f"❌ Error: {result.error}")
        return 1
    if not result.resumes:
        print("No resumes stored.")
        return 0
    for resume in result.resumes:
        print(f"{resume.id}  {resume.name or '(unnamed)'}")
    return 0


async def _show(store: ResumeStore, resume_id: str) -> int:
    result = await store.repository.get(resume_id)
    if result.error is not None:
        print(f"❌ Error: {result.error}")
        return 1
    print(result.resume.model_dump_json(indent=2))
    return 0


async def _save(store: ResumeStore, path: Path) -> int:
    try:
        record = ResumeRecord.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, ValidationError) as exc:
        print(f"❌ Could not read {path}: {exc}")
        return 1
    result = await store.repository.save(record)
    if result.error is not None:
        print(f"❌ Error: {result.error}")
        return 1
    print(result.id)
    return 0


async def _delete(store: ResumeStore, resume_id: str) -> int:
    error = await store.repository.delete(resume_id)
    if error is not None:
        print(f"❌ Error: {error}")
        return 1
    print(f"Deleted {resume_id}")
    return 0


async def _run(args: argparse.Namespace) -> int:
    # Single commands use the store without its background tasks.
    store = ResumeStore.from_env()
    try:
        if args.command == "status":
            return await _status(store)
        if args.command == "list":
            return await _list(store)
        if args.command == "show":
            return await _show(store, args.resume_id)
        if args.command == "save":
            return await _save(store, args.path)
        return await _delete(store, args.resume_id)
    finally:
        await store.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line interface.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        from ats_resume_store.api.main import main as serve

        serve(host=args.host, port=args.port)
        return 0

    try:
        return asyncio.run(_run(args))
    except ConfigurationError as exc:
        print(f"❌ Configuration error: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
