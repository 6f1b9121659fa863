import argparse
import json
import logging
import sys

import yaml

from schema_loader.config import load_config
from schema_loader.django_setup import setup_django
from schema_loader.exceptions import SchemaLoaderError
from schema_loader.loader import SchemaLoader, load_schema

from schema_loader.colored_logging import (
    setup_colored_logging,
    log_success,
    log_progress,
    log_section,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schema-loader",
        description="Introspect an existing database and derive one class per table, "
        "with relationships inferred from foreign keys.",
    )
    parser.add_argument(
        "-c",
        "--config",
        required=True,
        help="Path to the YAML configuration file (containing Django DATABASES dict).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose DEBUG logging.",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output (useful for CI/CD environments).",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=("yaml", "json"),
        help="Format of the printed summary. Overrides config file setting.",
    )
    parser.add_argument(
        "--db-alias",
        dest="db_alias",
        help="Alias of the database to introspect. Overrides config file setting.",
    )
    return parser


def summarize(loader: SchemaLoader) -> dict:
    """Summary of the derived classes, keyed by moniker."""
    return {
        moniker: definition.to_dict()
        for moniker, definition in sorted(loader.definitions.items())
    }


def render_summary(summary: dict, output_format: str) -> str:
    if output_format == "json":
        return json.dumps(summary, indent=2, default=str)
    return yaml.safe_dump(summary, sort_keys=False, default_flow_style=False)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_colored_logging(level=log_level, use_colors=not args.no_color)
    if args.verbose:
        logger.debug("Verbose mode enabled. DEBUG level logging activated.")

    try:
        log_progress(logger, "Loading configuration...")
        config = load_config(args.config, args)
        log_success(logger, "Configuration loaded and validated successfully.")
        logger.debug(f"Effective configuration: {config}")

        setup_django(config.databases, config.SECRET_KEY)

        log_section(logger, "Schema Introspection")
        log_progress(logger, f"Loading schema from database alias '{config.db_alias}'...")
        loader = load_schema(config.loader, db_alias=config.db_alias)
        log_success(logger, f"Loaded {len(loader.tables)} tables.")

        print(render_summary(summarize(loader), config.output_format))

    except SchemaLoaderError as e:
        logger.error(str(e), exc_info=args.verbose)
        return 1
    except ImportError as e:
        logger.error(
            f"Import Error: {e}. Ensure Django and necessary database drivers are installed.",
            exc_info=args.verbose,
        )
        logger.error("Example: pip install 'schema-loader[postgresql]'")
        return 1
    except Exception as e:
        logger.error(f"An unexpected error occurred while loading the schema: {e}", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
