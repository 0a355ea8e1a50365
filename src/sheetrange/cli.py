from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any, Literal, get_args

from pydantic import BaseModel, Field

from .a1 import REMOVE, parse_a1_notation
from .errors import A1SyntaxError, InvalidArgumentError, SheetDataError
from .sheet import Sheet
from .workbook import openpyxl_workbook

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID = 2

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_LEVELS: tuple[str, ...] = get_args(LogLevel)


class CliConfig(BaseModel):
    """Configuration for one sheetrange CLI invocation."""

    command: Literal["parse", "read"]
    references: list[str] = Field(
        default_factory=list, description="A1 references to parse."
    )
    fields: list[str] = Field(
        default_factory=list, description="Descriptor keys to keep in parse output."
    )
    book: Path | None = Field(default=None, description="Workbook path for read.")
    range: str | None = Field(default=None, description="A1 range for read.")
    sheet: str | None = Field(default=None, description="Sheet name for read.")
    display: bool = Field(default=False, description="Read display strings.")
    log_level: LogLevel = Field(default="WARNING", description="Logging level.")
    log_file: Path | None = Field(default=None, description="Optional log file path.")


def main(argv: list[str] | None = None) -> int:
    """Run the sheetrange command line.

    Args:
        argv: Optional CLI arguments for testing.

    Returns:
        Exit code (0 success, 2 invalid input, 1 other failure).
    """
    config = _parse_args(argv)
    _configure_logging(config)
    try:
        if config.command == "parse":
            _run_parse(config)
        else:
            _run_read(config)
    except (A1SyntaxError, InvalidArgumentError, SheetDataError) as exc:
        logger.error("Invalid input: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INVALID
    except Exception as exc:  # pragma: no cover - surface runtime errors
        logger.error("sheetrange failed: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    return EXIT_OK


def _parse_args(argv: list[str] | None) -> CliConfig:
    """Parse CLI arguments into a config.

    Args:
        argv: Optional CLI argument list.

    Returns:
        Parsed configuration.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    )
    common.add_argument("--log-file", type=Path, help="Optional log file path.")

    parser = argparse.ArgumentParser(
        prog="sheetrange", description="Parse and read A1 spreadsheet ranges."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    parse_cmd = commands.add_parser(
        "parse", parents=[common], help="Print normalized range descriptors."
    )
    parse_cmd.add_argument("references", nargs="+", help="A1 references.")
    parse_cmd.add_argument(
        "--field",
        action="append",
        default=[],
        help="Descriptor key to keep (can be specified multiple times).",
    )

    read_cmd = commands.add_parser(
        "read", parents=[common], help="Print the values of a range as JSON."
    )
    read_cmd.add_argument("book", type=Path, help="Workbook path (.xlsx).")
    read_cmd.add_argument("range", help="A1 range to read.")
    read_cmd.add_argument("--sheet", help="Sheet name (defaults to the first).")
    read_cmd.add_argument(
        "--display", action="store_true", help="Read display strings."
    )

    args = parser.parse_args(argv)
    if args.command == "parse":
        return CliConfig(
            command="parse",
            references=list(args.references),
            fields=list(args.field),
            log_level=args.log_level,
            log_file=args.log_file,
        )
    return CliConfig(
        command="read",
        book=args.book,
        range=args.range,
        sheet=args.sheet,
        display=bool(args.display),
        log_level=args.log_level,
        log_file=args.log_file,
    )


def _configure_logging(config: CliConfig) -> None:
    """Configure logging for the CLI process.

    Args:
        config: CLI configuration.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.log_file is not None:
        handlers.append(logging.FileHandler(config.log_file))
    logging.basicConfig(
        level=config.log_level,
        handlers=handlers,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run_parse(config: CliConfig) -> None:
    wanted = set(config.fields)

    def _keep_wanted(key: str, value: Any) -> Any:
        if key == "" or key in wanted:
            return value
        return REMOVE

    for reference in config.references:
        if wanted:
            result = parse_a1_notation(reference, _keep_wanted)
        else:
            result = parse_a1_notation(reference).to_dict()
        logger.debug("Parsed %r -> %s", reference, result)
        print(json.dumps(result, ensure_ascii=False))


def _run_read(config: CliConfig) -> None:
    if config.book is None or config.range is None:
        raise InvalidArgumentError("read requires a workbook and a range.")
    with openpyxl_workbook(config.book) as wb:
        if config.sheet is not None:
            sheet = Sheet.open(wb, name=config.sheet, create=False)
        else:
            sheet = Sheet.open(wb, index=0)
        values = sheet.get_range_values(config.range, display_values=config.display)
    logger.info("Read %d row(s) from %s!%s.", len(values), sheet.name, config.range)
    print(json.dumps(values, ensure_ascii=False, default=str))
