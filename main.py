import argparse
import asyncio
import logging
import platform
import signal
import sys

from incident_watch.orchestrator import IncidentMonitor

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
    handlers=[logging.StreamHandler(sys.stdout)],
)
log = logging.getLogger("main")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Alert on status page incidents that persist across two consecutive checks.",
    )
    parser.add_argument("--once", action="store_true", help="Run a single check cycle and exit (for cron)")
    parser.add_argument("--dry-run", action="store_true", help="In-memory snapshot, print alerts to stdout")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def main(args: argparse.Namespace) -> int:
    monitor = IncidentMonitor.from_config(dry_run=args.dry_run)

    if args.once:
        result = await monitor.run_once()
        return 0 if result is not None else 1

    loop = asyncio.get_running_loop()

    if platform.system() != "Windows":

        def _shutdown(sig: signal.Signals) -> None:
            log.info("Received %s, shutting down gracefully...", sig.name)
            monitor.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _shutdown, sig)

        await monitor.run()

    else:
        try:
            await monitor.run()
        except (asyncio.CancelledError, KeyboardInterrupt):
            log.info("Shutting down...")
            monitor.stop()
            log.info("Monitor stopped.")

    return 0


if __name__ == "__main__":
    args = parse_args()
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    sys.exit(asyncio.run(main(args)))
