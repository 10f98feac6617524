"""
Unit tests for the channel sales report parser.

Run: pytest tests/unit/test_channel_csv_parser.py -v
"""

import pytest

from parsers.channel_csv_parser import (
    parse_channel_csv,
    CSV_LAYOUTS,
    _column_index,
)
from models.channel import Channel
from exceptions import ChannelCsvParseError


AMAZON_CSV = "\n".join([
    "（親）ASIN,（子）ASIN,タイトル,セッション数,注文された商品点数,注文商品売上",
    'B01,B01,【P】チャーシューたれ（大）,10,3,"¥2,040"',
    'B02,B02,餃子のたれ,5,"1,234",¥380',
    "B03,B03,,4,2,¥0",
    "B04,B04,味噌ラーメンスープ,8,0,¥0",
])

RAKUTEN_CSV = "\n".join(
    [f"プレビュー行{i}" for i in range(1, 8)]
    + [
        "チャーシューたれ,1001,680,680,2",
        "醤油ラーメンスープ,1002,450,450,1",
    ]
)


def _fixed_index_row(channel: Channel, title: str, quantity: str, amount: str = "1000 JPY") -> str:
    """One data row for a fixed-position layout."""
    layout = CSV_LAYOUTS[channel]
    width = max(layout.title_index, layout.quantity_index, layout.min_columns) + 1
    cells = [""] * width
    cells[layout.title_index] = title
    cells[layout.quantity_index] = quantity
    if layout.amount_index is not None:
        cells[layout.amount_index] = amount
    return ",".join(cells)


def _fixed_index_csv(channel: Channel, title: str, quantity: str) -> str:
    """One header row plus one data row for a fixed-position layout."""
    row = _fixed_index_row(channel, title, quantity)
    header = ",".join(f"col{i}" for i in range(row.count(",") + 1))
    return header + "\n" + row


# ===================
# AMAZON (HEADER KEYWORDS)
# ===================

class TestAmazonReport:
    """Tests for the Amazon business report layout."""

    def test_reads_title_and_quantity_columns(self):
        """Should find columns by header and keep titles verbatim."""
        result = parse_channel_csv(AMAZON_CSV, Channel.AMAZON)

        titled = [r for r in result.rows if r.title]
        assert [(r.title, r.quantity) for r in titled] == [
            ("【P】チャーシューたれ（大）", 3),
            ("餃子のたれ", 1234),
        ]

    def test_blank_titles_are_kept_with_line_numbers(self):
        """Should keep blank-title rows (title None) and record their lines."""
        result = parse_channel_csv(AMAZON_CSV, Channel.AMAZON)

        assert result.blank_title_rows == [4]
        assert any(r.title is None and r.quantity == 2 for r in result.rows)

    def test_zero_quantity_rows_are_skipped(self):
        """Should skip rows with nothing sold."""
        result = parse_channel_csv(AMAZON_CSV, Channel.AMAZON)

        assert result.skipped_rows == 1
        assert all(r.title != "味噌ラーメンスープ" for r in result.rows)

    def test_bytes_with_bom(self):
        """Should decode utf-8 bytes with a byte order mark."""
        result = parse_channel_csv(AMAZON_CSV.encode("utf-8-sig"), Channel.AMAZON)

        assert result.rows[0].title == "【P】チャーシューたれ（大）"

    def test_shift_jis_with_explicit_encoding(self):
        """Should decode other encodings when told to."""
        csv = "ASIN,タイトル,注文された商品点数\nB02,餃子のたれ,2"

        result = parse_channel_csv(csv.encode("cp932"), Channel.AMAZON, encoding="cp932")

        assert [(r.title, r.quantity) for r in result.rows] == [("餃子のたれ", 2)]

    def test_missing_title_header_raises(self):
        """Should fail when the title column cannot be found."""
        csv = "商品名,注文された商品点数\nたれ,1"

        with pytest.raises(ChannelCsvParseError) as exc_info:
            parse_channel_csv(csv, Channel.AMAZON)

        assert exc_info.value.status_code == 422
        assert exc_info.value.code == "CHANNEL_CSV_PARSE_ERROR"

    def test_header_only_has_no_data(self):
        """Should parse a header-only file to an empty result."""
        result = parse_channel_csv(AMAZON_CSV.splitlines()[0], Channel.AMAZON)

        assert result.rows == []


# ===================
# RAKUTEN (PREAMBLE, NO HEADER)
# ===================

class TestRakutenReport:
    """Tests for the Rakuten report layout."""

    def test_skips_preamble_lines(self):
        """Should ignore the first seven lines and read fixed columns."""
        result = parse_channel_csv(RAKUTEN_CSV, Channel.RAKUTEN)

        assert [(r.title, r.quantity) for r in result.rows] == [
            ("チャーシューたれ", 2),
            ("醤油ラーメンスープ", 1),
        ]

    def test_preamble_only_raises(self):
        """Should fail when the file ends inside the preamble."""
        preamble = "\n".join(RAKUTEN_CSV.splitlines()[:7])

        with pytest.raises(ChannelCsvParseError):
            parse_channel_csv(preamble, Channel.RAKUTEN)


# ===================
# FIXED-POSITION LAYOUTS
# ===================

class TestFixedIndexReports:
    """Tests for channels read by column position."""

    @pytest.mark.parametrize("channel", [
        Channel.YAHOO,
        Channel.MERCARI,
        Channel.BASE,
        Channel.QOO10,
        Channel.TIKTOK,
    ])
    def test_reads_configured_columns(self, channel):
        """Should read title and quantity from the configured positions."""
        csv = _fixed_index_csv(channel, "チャーシューたれ", "4")

        result = parse_channel_csv(csv, channel)

        assert [(r.title, r.quantity) for r in result.rows] == [("チャーシューたれ", 4)]

    def test_mercari_blank_quantity_counts_as_one(self):
        """Each Mercari row is one sale when the quantity is blank."""
        csv = _fixed_index_csv(Channel.MERCARI, "チャーシューたれ", "")

        result = parse_channel_csv(csv, Channel.MERCARI)

        assert result.rows[0].quantity == 1

    def test_yahoo_blank_quantity_is_skipped(self):
        """Other channels skip rows with a blank quantity."""
        csv = _fixed_index_csv(Channel.YAHOO, "チャーシューたれ", "")

        result = parse_channel_csv(csv, Channel.YAHOO)

        assert result.rows == []
        assert result.skipped_rows == 1

    def test_mercari_zero_quantity_counts_as_one(self):
        """A Mercari row with quantity 0 is still one sale."""
        csv = _fixed_index_csv(Channel.MERCARI, "チャーシューたれ", "0")

        result = parse_channel_csv(csv, Channel.MERCARI)

        assert result.rows[0].quantity == 1


class TestTikTokReport:
    """Tests for TikTok free-sample and short-row filtering."""

    @pytest.mark.parametrize("amount", ["0 JPY", "0", ""])
    def test_free_samples_are_skipped(self, amount):
        """Rows with a blank or zero order amount should not count as sales."""
        # Arrange
        rows = [
            _fixed_index_row(Channel.TIKTOK, "チャーシューたれ", "2", amount='"1,000 JPY"'),
            _fixed_index_row(Channel.TIKTOK, "チャーシューたれ", "1", amount=amount),
        ]
        header = ",".join(f"col{i}" for i in range(rows[0].count(",") + 1))

        # Act
        result = parse_channel_csv("\n".join([header, *rows]), Channel.TIKTOK)

        # Assert
        assert [(r.title, r.quantity) for r in result.rows] == [("チャーシューたれ", 2)]
        assert sum(r.quantity for r in result.rows) == 2
        assert result.skipped_rows == 1

    def test_short_rows_are_skipped(self):
        """Rows with fewer than 25 columns should be skipped."""
        full = _fixed_index_row(Channel.TIKTOK, "餃子のたれ", "3")
        short = ",".join(full.split(",")[:24])
        header = ",".join(f"col{i}" for i in range(full.count(",") + 1))

        result = parse_channel_csv("\n".join([header, full, short]), Channel.TIKTOK)

        assert [(r.title, r.quantity) for r in result.rows] == [("餃子のたれ", 3)]
        assert result.skipped_rows == 1


# ===================
# ERRORS AND HELPERS
# ===================

class TestParserErrors:
    """Tests for unreadable input."""

    def test_empty_file_raises(self):
        """Should fail on an empty file."""
        with pytest.raises(ChannelCsvParseError):
            parse_channel_csv(b"", Channel.AMAZON)

    def test_undecodable_bytes_raise(self):
        """Should fail on bytes that are not valid in the encoding."""
        with pytest.raises(ChannelCsvParseError) as exc_info:
            parse_channel_csv(b"\xff\xfe\xfa", Channel.YAHOO)

        assert "utf-8-sig" in exc_info.value.message


class TestColumnIndex:
    """Tests for _column_index()"""

    def test_keyword_substring_match(self):
        """Should match headers containing the keyword."""
        assert _column_index(["ASIN", "商品タイトル"], "タイトル", None) == 1

    def test_keyword_missing_returns_none(self):
        """Should not fall back when a keyword is configured."""
        assert _column_index(["ASIN"], "タイトル", 0) is None

    def test_no_keyword_uses_fallback(self):
        """Should use the fixed position without a keyword."""
        assert _column_index(["a", "b"], None, 1) == 1
