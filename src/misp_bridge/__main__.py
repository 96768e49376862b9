# MISP Bridge: Main Entry Point
#
# Loads configuration, configures logging, and serves the tool API.
# Missing MISP_URL / MISP_API_KEY is fatal at startup.

import argparse
import sys

from . import __version__
from .config import ConfigError, load_config
from .core import configure_logging, get_logger


def main(argv=None):
    """Main entry point for MISP Bridge."""
    parser = argparse.ArgumentParser(
        description="MISP Bridge - MISP threat intelligence as agent tools",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to listen on (default: 8000)",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file with MISP_* settings",
    )
    parser.add_argument(
        "--list-tools",
        action="store_true",
        help="Print the available tool names and exit",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"MISP Bridge v{__version__}",
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(dotenv_path=args.env_file)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    configure_logging(config.log_level, config.log_format)
    log = get_logger("misp_bridge")

    from .client import MispClient
    from .tools import build_registry

    if args.list_tools:
        for name in build_registry(MispClient(config)).names():
            print(name)
        return 0

    log.info(
        "startup",
        version=__version__,
        misp_url=config.url,
        verify_ssl=config.verify_ssl,
        timeout=config.timeout,
    )

    from .api.main import start_api_server
    from .api.tool_routes import set_client

    set_client(MispClient(config))
    start_api_server(args.host, args.port, log_level=config.log_level)
    return 0


if __name__ == "__main__":
    sys.exit(main())
