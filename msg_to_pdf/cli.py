"""Command line entry point that converts Outlook .msg files into PDFs."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from .config import Settings
from .converter import MessageConverter
from .exceptions import InputPathError

logger = logging.getLogger(__name__)

EXAMPLES = """\
Examples:
  msg-to-pdf -d ./msgs              # Convert all .msg files in ./msgs/
  msg-to-pdf -f "email.msg"         # Convert single file to same directory
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="msg-to-pdf",
        description="Convert Outlook .msg files into PDF documents.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-d", "--directory", help="Convert all .msg files in directory")
    parser.add_argument("-f", "--file", help="Convert a single .msg file")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def resolve_file(value: str) -> Path:
    path = Path.cwd() / value
    if not path.exists():
        raise InputPathError(f"{value} does not exist")
    if not path.is_file():
        raise InputPathError(f"{value} is not a file")
    return path.resolve()


def list_messages(directory: Path, extension: str) -> list[Path]:
    """Immediate entries of ``directory`` whose name ends with ``extension`` (case-sensitive)."""
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise InputPathError(f"Error reading directory {directory}: {exc}") from exc
    return [entry for entry in entries if entry.name.endswith(extension)]


def convert_file(converter: MessageConverter, value: str) -> int:
    try:
        msg_path = resolve_file(value)
        converter.convert(msg_path)
    except Exception as exc:
        logger.error("Error processing %s: %s", value, exc)
        return 1
    return 0


def convert_directory(converter: MessageConverter, value: str, extension: str) -> int:
    input_dir = (Path.cwd() / value).resolve()
    try:
        msg_files = list_messages(input_dir, extension)
    except InputPathError as exc:
        logger.error("%s", exc)
        return 1

    if not msg_files:
        logger.info("No %s files found in %s", extension, input_dir)
        return 0

    stats = {"converted": 0, "failed": 0}
    for msg_path in msg_files:
        try:
            converter.convert(msg_path)
        except Exception as exc:
            logger.error("Error processing %s: %s", msg_path.name, exc)
            stats["failed"] += 1
            continue
        stats["converted"] += 1

    logger.info(
        "Run complete: converted=%s failed=%s", stats["converted"], stats["failed"]
    )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.file and not args.directory:
        parser.error("Please provide either -d <directory> or -f <file>")

    settings = Settings()
    configure_logging(settings.log_level)
    converter = MessageConverter(settings)

    if args.file:
        if args.directory:
            logger.warning(
                "Both --file and --directory given; ignoring directory %s", args.directory
            )
        return convert_file(converter, args.file)

    return convert_directory(converter, args.directory, settings.input_extension)


if __name__ == "__main__":
    raise SystemExit(main())
