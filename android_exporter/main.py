"""CLI entrypoint for launching the exporter with Uvicorn."""
from __future__ import annotations

import logging
import sys

from .api import create_app
from .config import get_settings
from .errors import BindError, ConfigError
from .host import SystemHost
from .providers import build_providers
from .registry import ProviderRegistry
from .server import ExporterServer

logger = logging.getLogger(__name__)


def main() -> None:
    try:
        settings = get_settings()
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        sys.exit(2)

    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(message)s")

    try:
        registry = ProviderRegistry(build_providers(SystemHost(), settings))
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(2)
    logger.info("Active providers: %s", ", ".join(provider.name for provider in registry.providers))

    server = ExporterServer(create_app(registry, settings), settings)
    try:
        server.bind()
    except BindError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    server.run()


if __name__ == "__main__":
    main()
