import argparse
import logging

from .commands.interactions import COMMANDS
from .config import Settings
from .discord_utils import register_commands
from .log import configure_logging
from .version import VERSION

log = logging.getLogger("progressbot.register")


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Register the Progress Report Bot slash commands with Discord.",
    )
    parser.add_argument(
        "--global",
        dest="global_scope",
        action="store_true",
        help="Register application-wide commands instead of guild commands.",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    settings = Settings.load()
    configure_logging(level_name=settings.log_level)

    log.info("Progress Report Bot version: %s", VERSION)
    status = register_commands(COMMANDS, settings, global_scope=args.global_scope)
    if status in (200, 201):
        log.info("✅ Commands successfully re-registered.")
        return 0
    log.error("❌ Command registration failed.")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
