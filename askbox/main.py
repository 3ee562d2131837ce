"""askbox console application."""
import argparse
import logging
import sys

from askbox.cli import Console
from askbox.config import Settings, get_settings
from askbox.services.question_service import QuestionService
from askbox.storage import ensure_writable_dir
from askbox.utils.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ask other users questions and answer theirs.")
    parser.add_argument("--data-dir", help="Directory holding questions.txt and users.txt")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with command line overrides applied."""
    overrides = {}
    if args.data_dir:
        overrides["data_dir"] = args.data_dir
    if args.log_level:
        overrides["log_level"] = args.log_level
    return Settings(**overrides) if overrides else get_settings()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args)

    # Configure logging
    logging.basicConfig(
        level=settings.logging_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Starting {settings.app_name} with data in {settings.data_dir}")

    try:
        ensure_writable_dir(settings.data_dir)
        console = Console(QuestionService(settings))
        console.run()
    except StorageUnavailable as e:
        logger.error(f"Storage failure: {e.detail}")
        print(f"\nERROR: {e.detail}", file=sys.stderr)
        return 1
    except (EOFError, KeyboardInterrupt):
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
