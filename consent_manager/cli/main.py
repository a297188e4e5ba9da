#!/usr/bin/env python3
"""
consent-manager command line interface.

Commands:
    serve         Run the API server
    migrate       Apply pending database migrations
    scan          Scan a website and print cookies and category suggestions
    submit        Deliver a consent choice set (queued locally on failure)
    drain-queue   Re-deliver locally queued consent submissions
    resolve-site  Resolve the site id of an embed page URL
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from consent_manager.core.config import init_config
from consent_manager.services.consent_delivery import ConsentDeliveryManager
from consent_manager.services.local_storage import create_storage
from consent_manager.services.retry import RetryPolicy
from consent_manager.services.scan_service import scan_website
from consent_manager.services.site_resolver import InvalidSiteIdError, build_resolvers, resolve_site_id
from consent_manager.services.suggestions import generate_category_suggestions

logger = logging.getLogger(__name__)


def parse_choices(values: List[str]) -> Dict[str, bool]:
    """Parse ``key=true|false`` pairs into a choice set."""
    choices = {}
    for value in values:
        key, sep, flag = value.partition('=')
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Invalid choice {value!r}, expected key=true|false")
        flag = flag.strip().lower()
        if flag not in ('true', 'false', '1', '0', 'yes', 'no'):
            raise argparse.ArgumentTypeError(f"Invalid flag for {key!r}: {flag!r}")
        choices[key.strip()] = flag in ('true', '1', 'yes')
    return choices


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='consent-manager', description='Consent management platform')
    parser.add_argument('--env-file', help='Path to .env file')
    parser.add_argument('--config', help='Path to YAML config file (hostname mapping)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('serve', help='Run the API server')

    migrate = subparsers.add_parser('migrate', help='Apply pending database migrations')
    migrate.add_argument('--url', help='Database URL (overrides DATABASE_URL)')
    migrate.add_argument('--dir', help='Migrations directory path')

    scan = subparsers.add_parser('scan', help='Scan a website for cookies')
    scan.add_argument('url', help='URL to scan (must include protocol)')

    submit = subparsers.add_parser('submit', help='Deliver a consent choice set')
    submit.add_argument('--site-id', required=True, help='Site UUID')
    submit.add_argument('--user-id', help='User identifier (omit for anonymous)')
    submit.add_argument('--endpoint', help='API base URL (defaults to DELIVERY_API_URL)')
    submit.add_argument('choices', nargs='+', help='Choices as key=true|false')

    drain = subparsers.add_parser('drain-queue', help='Re-deliver queued consent submissions')
    drain.add_argument('--endpoint', help='API base URL (defaults to DELIVERY_API_URL)')

    resolve = subparsers.add_parser('resolve-site', help='Resolve the site id of a page URL')
    resolve.add_argument('url', help='Embed page URL')

    return parser


def cmd_serve(config) -> int:
    import uvicorn

    logger.info(f"Starting API server on {config.api.host}:{config.api.port}")
    uvicorn.run(
        "consent_manager.api.main:create_app",
        factory=True,
        host=config.api.host,
        port=config.api.port,
        reload=config.api.reload,
        workers=1 if config.api.reload else config.api.workers,
        log_level=config.monitoring.log_level.lower()
    )
    return 0


def cmd_migrate(args) -> int:
    from consent_manager.database.migrate import MigrationError, run_migrations

    try:
        applied = run_migrations(database_url=args.url, migrations_dir=args.dir)
    except (MigrationError, ValueError) as e:
        logger.error(f"Migration failed: {e}")
        return 1
    print(f"Applied {len(applied)} migration(s)")
    return 0


async def _scan(config, url: str) -> int:
    result = await scan_website(
        url,
        timeout_ms=config.scan.timeout_ms,
        wait_until=config.scan.wait_until,
        settle_seconds=config.scan.settle_seconds,
        user_agent=config.scan.user_agent,
        headless=config.scan.headless,
    )
    output = result.model_dump(mode='json', by_alias=True)
    output['categorySuggestions'] = [
        s.model_dump(mode='json', by_alias=True) for s in generate_category_suggestions(result)
    ]
    print(json.dumps(output, indent=2))
    return 0 if result.success else 1


def _delivery_manager(config) -> ConsentDeliveryManager:
    return ConsentDeliveryManager(
        storage=create_storage(config.delivery),
        policy=RetryPolicy.from_config(config.delivery),
    )


async def _submit(config, args) -> int:
    endpoint = args.endpoint or config.delivery.api_url
    async with _delivery_manager(config) as manager:
        # Previously queued consents go out alongside the new one
        drain = manager.start(endpoint)
        try:
            outcome = await manager.submit(endpoint, args.site_id, args.user_id, parse_choices(args.choices))
        except ValidationError as e:
            logger.error(f"Invalid consent submission: {e}")
            return 2
        finally:
            await asyncio.wait([drain])
    print(outcome.model_dump_json(by_alias=True, indent=2))
    return 0 if outcome.success else 1


async def _drain(config, args) -> int:
    endpoint = args.endpoint or config.delivery.api_url
    async with _delivery_manager(config) as manager:
        summary = await manager.drain_queue(endpoint)
    print(json.dumps(summary))
    return 0 if summary['remaining'] == 0 else 1


def cmd_resolve_site(config, url: str) -> int:
    resolvers = build_resolvers(url, config.sites.hostname_map, config.sites.default_site_id)
    try:
        site_id = resolve_site_id(resolvers)
    except InvalidSiteIdError as e:
        logger.error(str(e))
        return 2
    if not site_id:
        print("No site id found", file=sys.stderr)
        return 1
    print(site_id)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = init_config(env_file=args.env_file, yaml_config_path=args.config)
    except ValueError as e:
        print(f"Failed to initialize configuration: {e}", file=sys.stderr)
        print("Ensure DATABASE_URL is set, or create a .env file.", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, config.monitoring.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.command == 'serve':
        return cmd_serve(config)
    if args.command == 'migrate':
        return cmd_migrate(args)
    if args.command == 'scan':
        return asyncio.run(_scan(config, args.url))
    if args.command == 'submit':
        try:
            parse_choices(args.choices)
        except argparse.ArgumentTypeError as e:
            parser.error(str(e))
        return asyncio.run(_submit(config, args))
    if args.command == 'drain-queue':
        return asyncio.run(_drain(config, args))
    if args.command == 'resolve-site':
        return cmd_resolve_site(config, args.url)

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
