#!/usr/bin/env python3
"""
CLI tool for interacting with the RFC service.

Usage:
    rfc-svc submit rfc.json
    rfc-svc update 1700000000 rfc.json
    rfc-svc review 1700000000 --type APPROVE --load-on-approval
    rfc-svc review 1700000000 --type COMMENT --inline <signature>="looks wrong"
    rfc-svc status 1700000000
    rfc-svc list --state open --count 10
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

import httpx

DEFAULT_URL = "http://localhost:8080"


def print_json(data: Any, indent: int = 2) -> None:
    """Print JSON response bodies."""
    print(json.dumps(data, indent=indent, default=str))


def _read_rfc(path: str) -> dict[str, Any]:
    """Read an RFC body ({"actions": [...]}) from a file, or stdin for '-'."""
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r") as f:
        return json.load(f)


def _parse_inline(values: list[str] | None) -> dict[str, list[str]]:
    """Group ``SIGNATURE=TEXT`` arguments by signature, keeping order."""
    comments: dict[str, list[str]] = {}
    for value in values or []:
        signature, sep, text = value.partition("=")
        if not sep or not signature:
            raise ValueError(f"Inline comment must look like SIGNATURE=TEXT: {value!r}")
        comments.setdefault(signature, []).append(text)
    return comments


async def _post(args, endpoint: str, body: dict[str, Any]) -> int:
    """POST a body to the service and print the JSON reply."""
    url = f"{args.url.rstrip('/')}/{endpoint}"

    async with httpx.AsyncClient(timeout=args.timeout) as client:
        try:
            response = await client.post(url, json=body)
        except httpx.HTTPError as e:
            print(f"Error: unable to reach {url}: {e}", file=sys.stderr)
            return 1

    try:
        print_json(response.json())
    except ValueError:
        print(response.text)

    if not response.is_success:
        print(f"Error: {response.status_code}", file=sys.stderr)
        return 1
    return 0


async def cmd_submit(args):
    """Submit a new RFC."""
    return await _post(args, "submitRequest", _read_rfc(args.file))


async def cmd_update(args):
    """Replace the actions of an RFC."""
    return await _post(args, "updateRequest", {
        "rfcIdentifier": args.identifier,
        "rfc": _read_rfc(args.file),
    })


async def cmd_review(args):
    """Review an RFC."""
    body: dict[str, Any] = {
        "rfcIdentifier": args.identifier,
        "type": args.type,
        "loadOnApproval": args.load_on_approval,
    }
    if args.comment:
        body["topLevelComment"] = args.comment
    comments = _parse_inline(args.inline)
    if comments:
        body["comments"] = comments
    return await _post(args, "reviewRequest", body)


async def cmd_merge(args):
    return await _post(args, "mergeRequest", {"rfcIdentifier": args.identifier})


async def cmd_load(args):
    return await _post(args, "loadRequest", {"rfcIdentifier": args.identifier})


async def cmd_status(args):
    return await _post(args, "status", {"rfcIdentifier": args.identifier})


async def cmd_list(args):
    """List RFCs as identifier -> title."""
    body: dict[str, Any] = {"count": args.count, "state": args.state}
    if args.owner:
        body["owner"] = args.owner
    if args.merged is not None:
        body["merged"] = args.merged
    return await _post(args, "getRfcs", body)


async def cmd_contents(args):
    return await _post(args, "getRfcContents", {"rfcIdentifier": args.identifier})


COMMANDS = {
    "submit": cmd_submit,
    "update": cmd_update,
    "review": cmd_review,
    "merge": cmd_merge,
    "load": cmd_load,
    "status": cmd_status,
    "list": cmd_list,
    "contents": cmd_contents,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rfc-svc",
        description="CLI tool for the RFC workflow service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--url",
        default=DEFAULT_URL,
        help="Base URL of the RFC service",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Request timeout in seconds",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    submit_parser = subparsers.add_parser("submit", help="Submit a new RFC")
    submit_parser.add_argument("file", help="RFC JSON file ('-' for stdin)")

    update_parser = subparsers.add_parser("update", help="Replace the actions of an RFC")
    update_parser.add_argument("identifier", help="RFC identifier")
    update_parser.add_argument("file", help="RFC JSON file ('-' for stdin)")

    review_parser = subparsers.add_parser("review", help="Review an RFC")
    review_parser.add_argument("identifier", help="RFC identifier")
    review_parser.add_argument(
        "--type",
        required=True,
        choices=["APPROVE", "REQUEST_CHANGES", "COMMENT"],
        help="Review type",
    )
    review_parser.add_argument("--comment", help="Top level review comment")
    review_parser.add_argument(
        "--inline",
        action="append",
        metavar="SIGNATURE=TEXT",
        help="Comment on the action (or RFC) with this signature; repeatable",
    )
    review_parser.add_argument(
        "--load-on-approval",
        action="store_true",
        help="Load and merge the RFC once approved",
    )

    for name, help_text in [
        ("merge", "Merge and tag an RFC"),
        ("load", "Request a load of an RFC"),
        ("status", "Get the load status of an RFC"),
        ("contents", "Get the stored contents of an RFC"),
    ]:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("identifier", help="RFC identifier")

    list_parser = subparsers.add_parser("list", help="List RFCs")
    list_parser.add_argument("--state", default="all", choices=["open", "closed", "all"])
    list_parser.add_argument("--count", type=int, default=-1, help="Maximum results (-1 for all)")
    list_parser.add_argument("--owner", help="Only RFCs opened by this login")
    merged_group = list_parser.add_mutually_exclusive_group()
    merged_group.add_argument("--merged", dest="merged", action="store_true", default=None)
    merged_group.add_argument("--not-merged", dest="merged", action="store_false")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return asyncio.run(COMMANDS[args.command](args))
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
