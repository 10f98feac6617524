"""
Channel report parsers.
"""

from parsers.channel_csv_parser import (
    parse_channel_csv,
    ChannelCsvParseResult,
    CsvLayout,
    CSV_LAYOUTS,
)

__all__ = [
    "parse_channel_csv",
    "ChannelCsvParseResult",
    "CsvLayout",
    "CSV_LAYOUTS",
]
