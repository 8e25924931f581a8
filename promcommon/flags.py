"""Command-line flags for the logging settings."""

from __future__ import annotations

import argparse

from promcommon.logsetup import (
    FORMAT_FLAG_OPTIONS,
    LEVEL_FLAG_OPTIONS,
    AllowedFormat,
    AllowedLevel,
    LoggerConfig,
)

LEVEL_FLAG_NAME = "log.level"
LEVEL_FLAG_HELP = (
    "Only log messages with the given severity or above. One of: ["
    + ", ".join(LEVEL_FLAG_OPTIONS)
    + "]"
)
FORMAT_FLAG_NAME = "log.format"
FORMAT_FLAG_HELP = (
    "Output format of log messages. One of: [" + ", ".join(FORMAT_FLAG_OPTIONS) + "]"
)


def add_flags(parser: argparse.ArgumentParser, config: LoggerConfig) -> None:
    """Add --log.level and --log.format to the parser, bound to the configuration."""
    level = AllowedLevel()
    config.level = level
    fmt = AllowedFormat()
    config.format = fmt

    def parse_level(s: str) -> AllowedLevel:
        try:
            level.set(s)
        except ValueError as err:
            raise argparse.ArgumentTypeError(str(err)) from err
        return level

    def parse_format(s: str) -> AllowedFormat:
        try:
            fmt.set(s)
        except ValueError as err:
            raise argparse.ArgumentTypeError(str(err)) from err
        return fmt

    parser.add_argument(
        f"--{LEVEL_FLAG_NAME}",
        dest="log_level",
        default="info",
        type=parse_level,
        metavar="LEVEL",
        help=LEVEL_FLAG_HELP,
    )
    parser.add_argument(
        f"--{FORMAT_FLAG_NAME}",
        dest="log_format",
        default="logfmt",
        type=parse_format,
        metavar="FORMAT",
        help=FORMAT_FLAG_HELP,
    )