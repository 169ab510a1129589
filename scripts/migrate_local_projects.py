"""
Migrate locally stored projects into Cosmos DB for a user.

Usage:
    python scripts/migrate_local_projects.py <user_id>
    python scripts/migrate_local_projects.py <user_id> --local-path ./projects.json
    python scripts/migrate_local_projects.py <user_id> --settings ~/.smello/settings.yaml

Cosmos settings come from the settings file when given, otherwise from
environment variables:
    SMELLO_COSMOS_ENDPOINT - Cosmos DB endpoint URL
    SMELLO_COSMOS_DATABASE - Database name
    SMELLO_COSMOS_AUTH_METHOD - key | default_credential | managed_identity | service_principal
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from smello_project_storage import HybridProjectStore, StorageConfig, configure_structured_logging

logger = logging.getLogger(__name__)


async def migrate(config: StorageConfig, user_id: str, dry_run: bool = False) -> int:
    """Copy local projects to the cloud store; returns the number migrated."""
    async with HybridProjectStore.create(config) as store:
        projects = await store.local.all_projects()
        logger.info(f"Found {len(projects)} local projects in {config.resolved_local_path()}")

        if dry_run:
            for project in projects:
                print(f"  {project.id}  {project.name}")
            return 0

        return await store.migrate_to_cloud(user_id)


async def main() -> int:
    parser = argparse.ArgumentParser(
        description="Migrate local projects into Cosmos DB",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Preview what would be migrated
    python scripts/migrate_local_projects.py user-123 --dry-run

    # Migrate using environment configuration
    SMELLO_COSMOS_ENDPOINT="https://...test..." \\
    python scripts/migrate_local_projects.py user-123
        """,
    )
    parser.add_argument("user_id", help="Identity the migrated projects will belong to")
    parser.add_argument("--settings", type=Path, help="YAML settings file with a storage section")
    parser.add_argument("--local-path", type=Path, help="Local projects file to migrate from")
    parser.add_argument("--dry-run", action="store_true", help="List local projects only")
    parser.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")

    args = parser.parse_args()

    if args.json_logs:
        configure_structured_logging(logging.INFO, logger_name=None)
    else:
        logging.basicConfig(level=logging.INFO)

    if args.settings:
        config = StorageConfig.from_file(args.settings)
    else:
        config = StorageConfig.from_environment()
    if args.local_path:
        config = replace(config, local_path=str(args.local_path))

    if not config.cloud_enabled and not args.dry_run:
        parser.error("No Cosmos endpoint configured (set SMELLO_COSMOS_ENDPOINT or --settings)")

    migrated = await migrate(config, args.user_id, dry_run=args.dry_run)

    if not args.dry_run:
        print(f"Migrated {migrated} project(s) for {args.user_id}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
