"""
Channel sales report parser.

Each channel exports its own CSV layout. Amazon's business report has a
header row that names its columns; the others are read by fixed column
position, sometimes after a block of preamble lines (Rakuten).
"""

import re
from dataclasses import dataclass, field
from io import StringIO
from typing import Optional, Union
import structlog

import pandas as pd

from models.channel import Channel
from models.matching import SaleRow
from utils.text_utils import parse_quantity
from exceptions import ChannelCsvParseError

logger = structlog.get_logger(__name__)

_AMOUNT_CHARS = re.compile(r"[^0-9０-９.,，]")


@dataclass(frozen=True)
class CsvLayout:
    """Where title and quantity live in a channel's report."""
    skip_rows: int = 0
    has_header: bool = True
    title_index: Optional[int] = None
    quantity_index: Optional[int] = None
    title_header: Optional[str] = None     # Substring of the title column header
    quantity_header: Optional[str] = None  # Substring of the quantity column header
    default_quantity: int = 0              # Used when the quantity cell is blank or 0
    min_columns: int = 0                   # Shorter rows are skipped
    amount_index: Optional[int] = None     # Order amount; rows without one are free samples


CSV_LAYOUTS: dict[Channel, CsvLayout] = {
    Channel.AMAZON: CsvLayout(title_header="タイトル", quantity_header="注文された商品点数"),
    Channel.RAKUTEN: CsvLayout(skip_rows=7, has_header=False, title_index=0, quantity_index=4),
    Channel.YAHOO: CsvLayout(title_index=0, quantity_index=5),
    Channel.MERCARI: CsvLayout(title_index=8, quantity_index=9, default_quantity=1),
    Channel.BASE: CsvLayout(title_index=17, quantity_index=21),
    Channel.QOO10: CsvLayout(title_index=13, quantity_index=14),
    Channel.TIKTOK: CsvLayout(title_index=7, quantity_index=9, min_columns=25, amount_index=21),
}


@dataclass
class ChannelCsvParseResult:
    """Result of parsing a channel report."""
    rows: list[SaleRow] = field(default_factory=list)
    blank_title_rows: list[int] = field(default_factory=list)  # Source line numbers
    skipped_rows: int = 0


def parse_channel_csv(
    content: Union[bytes, str],
    channel: Channel,
    encoding: str = "utf-8-sig",
) -> ChannelCsvParseResult:
    """
    Parse a channel sales report into (title, quantity) rows.

    Rows with quantity <= 0 or too few columns are skipped, as are TikTok
    free samples (order amount blank or 0). Rows with a quantity but a
    blank title are kept (title None) so the batch summary can report them,
    and their line numbers are recorded.

    Args:
        content: Raw file bytes or decoded text
        channel: Channel whose layout applies
        encoding: Encoding for byte content

    Returns:
        ChannelCsvParseResult

    Raises:
        ChannelCsvParseError: If the file cannot be read or required
            columns are missing
    """
    layout = CSV_LAYOUTS[channel]
    logger.info("parsing_channel_csv", channel=channel.value)

    try:
        text = content.decode(encoding) if isinstance(content, bytes) else content
    except UnicodeDecodeError as e:
        raise ChannelCsvParseError(
            message=f"File is not valid {encoding}",
            details={"channel": channel.value, "original_error": str(e)}
        )

    lines = text.splitlines()
    if len(lines) <= layout.skip_rows:
        raise ChannelCsvParseError(
            message="CSV has no data rows",
            details={"channel": channel.value}
        )

    # Rows vary in width; name enough columns up front so none are dropped
    width = max(line.count(",") + 1 for line in lines)

    try:
        df = pd.read_csv(
            StringIO(text),
            header=None,
            names=list(range(width)),
            dtype=str,
            skiprows=layout.skip_rows,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="skip",
            engine="python",
        )
    except pd.errors.EmptyDataError:
        raise ChannelCsvParseError(
            message="CSV has no data rows",
            details={"channel": channel.value}
        )
    except Exception as e:
        logger.error("channel_csv_read_failed", channel=channel.value, error=str(e))
        raise ChannelCsvParseError(
            message="Failed to read CSV file",
            details={"channel": channel.value, "original_error": str(e)}
        )

    first_data_line = layout.skip_rows + 1
    if layout.has_header:
        if df.empty:
            raise ChannelCsvParseError(
                message="CSV has no header row",
                details={"channel": channel.value}
            )
        header = [_cell(h).strip() for h in df.iloc[0]]
        df = df.iloc[1:]
        first_data_line += 1
        title_index = _column_index(header, layout.title_header, layout.title_index)
        quantity_index = _column_index(header, layout.quantity_header, layout.quantity_index)
    else:
        title_index = layout.title_index
        quantity_index = layout.quantity_index

    if title_index is None or quantity_index is None:
        raise ChannelCsvParseError(
            message="Title or quantity column not found",
            details={
                "channel": channel.value,
                "title_header": layout.title_header,
                "quantity_header": layout.quantity_header,
            }
        )

    result = ChannelCsvParseResult()
    needed_columns = max(title_index, quantity_index, layout.amount_index or 0) + 1
    min_columns = max(needed_columns, layout.min_columns)

    for offset, values in enumerate(df.itertuples(index=False, name=None)):
        line_number = first_data_line + offset
        cells = [_cell(v) for v in values]

        # Missing trailing fields come back as NaN, present ones as strings
        row_width = max((i + 1 for i, v in enumerate(values) if isinstance(v, str)), default=0)
        if row_width < min_columns or not any(cells[:needed_columns]):
            result.skipped_rows += 1
            continue

        if layout.amount_index is not None and _is_free_sample(cells[layout.amount_index]):
            result.skipped_rows += 1
            continue

        quantity = (
            parse_quantity(cells[quantity_index], default=layout.default_quantity)
            or layout.default_quantity
        )
        if quantity <= 0:
            result.skipped_rows += 1
            continue

        title = cells[title_index].strip()
        if not title:
            result.blank_title_rows.append(line_number)
            result.rows.append(SaleRow(title=None, quantity=quantity))
            continue

        result.rows.append(SaleRow(title=title, quantity=quantity))

    logger.info(
        "channel_csv_parsed",
        channel=channel.value,
        rows=len(result.rows),
        blank_titles=len(result.blank_title_rows),
        skipped=result.skipped_rows
    )

    return result


def _column_index(
    header: list[str],
    keyword: Optional[str],
    fallback: Optional[int],
) -> Optional[int]:
    """Find a column by header substring, else use the fixed position."""
    if keyword:
        for index, name in enumerate(header):
            if keyword in name:
                return index
        return None
    return fallback


def _cell(value) -> str:
    """Cell text; NaN padding reads as an empty cell."""
    return value if isinstance(value, str) else ""


def _is_free_sample(amount: str) -> bool:
    """True for blank or zero order amounts ("", "0", "0 JPY")."""
    digits = _AMOUNT_CHARS.sub("", amount or "")
    return parse_quantity(digits) <= 0
