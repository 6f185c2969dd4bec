"""gym-stats — collect gym occupancy samples and build chart snapshots."""

import logging
import sys
from argparse import ArgumentParser

from gymstats.config import Config

LOG_FORMAT = "%(asctime)s [gym-stats] %(levelname)s %(message)s"

logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="gym-stats",
        description="Collect gym occupancy samples and build chart snapshots.",
    )
    parser.add_argument(
        "--config",
        help="Path to YAML config (default: $CONFIG_PATH or config.yaml)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", help="Bind address (overrides server.host)")
    serve.add_argument("--port", type=int, help="Port (overrides server.port)")

    generate = sub.add_parser("generate", help="Regenerate the snapshot once")
    generate.add_argument("--from", dest="from_date", help="First day, YYYY-MM-DD")
    generate.add_argument("--to", dest="to_date", help="Last day, YYYY-MM-DD")

    collect = sub.add_parser("collect", help="Run the occupancy sampler")
    collect.add_argument(
        "--once",
        action="store_true",
        help="Run a single collection cycle and exit",
    )
    return parser


def configure_logging(config: Config) -> None:
    level = str(config["logging"]["level"]).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def run_generate(config: Config, from_date, to_date) -> int:
    from gymstats.service import SnapshotService

    if bool(from_date) != bool(to_date):
        print("Error: --from and --to must be given together", file=sys.stderr)
        return 2

    service = SnapshotService(config)
    if from_date:
        result = service.generate_range(from_date, to_date)
    else:
        result = service.generate_latest()

    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    print(result.output)
    return 0


def run_serve(config: Config, host=None, port=None) -> int:
    from gymstats.app import create_app

    server = config["server"]
    host = host or server["host"]
    port = port or server["port"]

    app = create_app(config)
    logger.info("Server running at http://localhost:%d/", port)
    logger.info("Dashboard: http://localhost:%d/%s", port, server["index_page"])
    logger.info("Generate data: POST to http://localhost:%d/generate-data", port)
    logger.info("Generate data range: POST to http://localhost:%d/generate-data-range", port)
    app.run(host=host, port=port, debug=server["debug"])
    return 0


def run_collect(config: Config, once=False) -> int:
    from gymstats.collector import run_collector

    try:
        run_collector(config, once=once)
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        logger.error("Create it with PHPSESSID, XSRF_TOKEN, LARAVEL_SESSION and API_KEY")
        return 1
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = Config.from_env(args.config)
    configure_logging(config)

    if args.command == "serve":
        return run_serve(config, args.host, args.port)
    if args.command == "generate":
        return run_generate(config, args.from_date, args.to_date)
    return run_collect(config, args.once)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(0)
