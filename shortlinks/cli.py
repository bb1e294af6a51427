"""
Command-line interface for the link store.

Usage:
    shortlinks init-db
    shortlinks create <url> [--slug SLUG] [--expires-in SECONDS]
    shortlinks get <slug>
    shortlinks list
    shortlinks delete <slug>
    shortlinks clicks <slug>
    shortlinks sweep
    shortlinks health
"""

import argparse
import asyncio
import json
import os
import sys
from typing import List, Optional

from .common.logging_config import setup_logging
from .database import create_store
from .errors import LinkError
from .service import LinkService
from .sweeper import ExpirySweeper

DEFAULT_DATABASE_URL = "sqlite:///db/links.db"


def _print_json(payload: dict, error: bool = False) -> None:
    print(json.dumps(payload, indent=2), file=sys.stderr if error else sys.stdout)


class LinksCLI:
    """Command-line interface for link management."""

    def __init__(self, database_url: str, verbose: bool = False):
        """Initialize CLI."""
        self.database_url = database_url
        self.verbose = verbose
        # Logs go to stderr; stdout carries the JSON result
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING", stream=sys.stderr)
        self.store = None
        self.service = None

    async def initialize(self, create_tables: bool = False):
        """Open the store and build the service."""
        self.store = create_store(self.database_url, logger=self.logger)
        await self.store.initialize(create_tables=create_tables)
        self.service = LinkService(store=self.store, logger=self.logger)

    async def cleanup(self):
        """Cleanup resources."""
        if self.store:
            await self.store.close()

    async def init_db(self):
        """Tables are created by initialize(create_tables=True)."""
        healthy = await self.store.health_check()
        _print_json({"success": healthy, "database_url": self.database_url})
        return 0 if healthy else 1

    async def create(self, url: str, slug: Optional[str], expires_in: Optional[int]):
        """Create a link."""
        link = await self.service.create_link(url, slug=slug, expires_in_secs=expires_in)
        _print_json({"success": True, "link": link.to_dict()})
        return 0

    async def get(self, slug: str):
        """Show one link."""
        link = await self.service.get_link(slug)
        _print_json({"success": True, "link": link.to_dict()})
        return 0

    async def list_links(self):
        """List all links."""
        links = await self.service.list_links()
        _print_json({
            "success": True,
            "count": len(links),
            "links": [link.to_dict() for link in links],
        })
        return 0

    async def delete(self, slug: str):
        """Delete a link."""
        await self.service.delete_link(slug)
        _print_json({"success": True, "message": f"Deleted link '{slug}'"})
        return 0

    async def clicks(self, slug: str):
        """List click events of a link."""
        clicks = await self.service.list_clicks(slug)
        _print_json({
            "success": True,
            "count": len(clicks),
            "clicks": [click.to_dict() for click in clicks],
        })
        return 0

    async def sweep(self):
        """Run one expiry sweep now."""
        result = await ExpirySweeper(self.store, logger=self.logger).run_once()
        _print_json({
            "success": True,
            "links_deleted": result.links_deleted,
            "clicks_deleted": result.clicks_deleted,
        })
        return 0

    async def health(self):
        """Check store health."""
        health_status = await self.service.health_check()
        _print_json({"success": health_status["overall"], "health": health_status})
        return 0 if health_status["overall"] else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shortlinks",
        description="Link shortener management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create a link with a generated slug that expires in one hour
  %(prog)s create https://example.org --expires-in 3600

  # Create a link with a chosen slug
  %(prog)s create https://github.com/user/repo --slug repo

  # Show clicks recorded for a link
  %(prog)s clicks repo
        """
    )

    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        help=f"Store URL (default: from DATABASE_URL env or {DEFAULT_DATABASE_URL})"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("init-db", help="Create tables if missing")

    create_parser = subparsers.add_parser("create", help="Create a link")
    create_parser.add_argument("url", help="Target URL")
    create_parser.add_argument("--slug", help="Slug to use (generated if omitted)")
    create_parser.add_argument("--expires-in", type=int, help="Lifetime in seconds")

    get_parser = subparsers.add_parser("get", help="Show a link")
    get_parser.add_argument("slug")

    subparsers.add_parser("list", help="List links with click counts")

    delete_parser = subparsers.add_parser("delete", help="Delete a link and its clicks")
    delete_parser.add_argument("slug")

    clicks_parser = subparsers.add_parser("clicks", help="List clicks of a link")
    clicks_parser.add_argument("slug")

    subparsers.add_parser("sweep", help="Delete expired links and clicks now")
    subparsers.add_parser("health", help="Check store health")

    return parser


async def run(argv: Optional[List[str]] = None) -> int:
    """Parse ``argv`` and execute the command. Returns the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    cli = LinksCLI(database_url=args.database_url, verbose=args.verbose)

    try:
        await cli.initialize(create_tables=args.command == "init-db")

        if args.command == "init-db":
            return await cli.init_db()
        elif args.command == "create":
            return await cli.create(args.url, args.slug, args.expires_in)
        elif args.command == "get":
            return await cli.get(args.slug)
        elif args.command == "list":
            return await cli.list_links()
        elif args.command == "delete":
            return await cli.delete(args.slug)
        elif args.command == "clicks":
            return await cli.clicks(args.slug)
        elif args.command == "sweep":
            return await cli.sweep()
        elif args.command == "health":
            return await cli.health()
        else:
            parser.print_help()
            return 1

    except LinkError as e:
        _print_json({"success": False, "error": str(e)}, error=True)
        return 1
    finally:
        await cli.cleanup()


def main():
    """Console script entry point."""
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
