"""Command line entry point of the AI gateway.

The configuration is validated here before Uvicorn starts the application,
so that configuration errors are reported before the server binds its port.
"""

import logging
import os
from argparse import ArgumentParser

from rich.logging import RichHandler

import constants
from configuration import configuration
from log import get_logger
from runners.uvicorn import start_uvicorn

logging.basicConfig(
    level="INFO", format="%(message)s", datefmt="[%X]", handlers=[RichHandler()]
)

logger = get_logger(__name__)


def create_argument_parser() -> ArgumentParser:
    """Create parser for gateway command line options."""
    parser = ArgumentParser(description="AI gateway with GitHub credential rotation")
    parser.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        action="store_true",
        default=False,
        help="log debug messages, SQL statements included",
    )
    parser.add_argument(
        "-d",
        "--dump-configuration",
        dest="dump_configuration",
        action="store_true",
        default=False,
        help="write validated configuration into configuration.json and quit",
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config_file",
        default="ai-gateway.yaml",
        help="path to configuration file (default: ai-gateway.yaml)",
    )
    return parser


def dump_configuration() -> None:
    """Write loaded configuration to JSON file, exit with error on failure."""
    try:
        configuration.configuration.dump()
    except OSError as e:
        logger.error("Failed to dump configuration: %s", e)
        raise SystemExit(1) from e
    logger.info("Configuration dumped to configuration.json")


def main() -> None:
    """Load configuration and serve the gateway."""
    args = create_argument_parser().parse_args()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    logger.info("Loading configuration from %s", args.config_file)
    configuration.load_configuration(args.config_file)

    if args.dump_configuration:
        dump_configuration()
        return

    # the application loads the configuration again in its lifespan
    os.environ[constants.CONFIG_PATH_ENV_VARIABLE] = args.config_file

    start_uvicorn(configuration.service_configuration, args.verbose)
    logger.info("AI gateway finished")


if __name__ == "__main__":
    main()
