"""
Sales channel definitions.

Each external channel keeps its learned title mappings in its own table and
its monthly sales in its own web_sales_summary column. The naming differs per
channel (TikTok stores product names, not titles), so the layout lives here
as data rather than in per-channel code.
"""

from dataclasses import dataclass
from enum import Enum


class Channel(str, Enum):
    """External sales channels."""
    AMAZON = "amazon"
    RAKUTEN = "rakuten"
    YAHOO = "yahoo"
    MERCARI = "mercari"
    BASE = "base"
    QOO10 = "qoo10"
    TIKTOK = "tiktok"

    @property
    def config(self) -> "ChannelConfig":
        return CHANNEL_CONFIGS[self]


@dataclass(frozen=True)
class ChannelConfig:
    """Storage layout for one channel."""
    display_name: str
    mapping_table: str
    title_column: str
    sales_column: str

    @property
    def request_title_key(self) -> str:
        """Body key the frontend uses for titles, e.g. 'amazonTitle'."""
        return self.title_column.split("_")[0] + "Title"


CHANNEL_CONFIGS: dict[Channel, ChannelConfig] = {
    Channel.AMAZON: ChannelConfig(
        display_name="Amazon",
        mapping_table="amazon_product_mapping",
        title_column="amazon_title",
        sales_column="amazon_count",
    ),
    Channel.RAKUTEN: ChannelConfig(
        display_name="Rakuten",
        mapping_table="rakuten_product_mapping",
        title_column="rakuten_title",
        sales_column="rakuten_count",
    ),
    Channel.YAHOO: ChannelConfig(
        display_name="Yahoo",
        mapping_table="yahoo_product_mapping",
        title_column="yahoo_title",
        sales_column="yahoo_count",
    ),
    Channel.MERCARI: ChannelConfig(
        display_name="Mercari",
        mapping_table="mercari_product_mapping",
        title_column="mercari_title",
        sales_column="mercari_count",
    ),
    Channel.BASE: ChannelConfig(
        display_name="BASE",
        mapping_table="base_product_mapping",
        title_column="base_title",
        sales_column="base_count",
    ),
    Channel.QOO10: ChannelConfig(
        display_name="Qoo10",
        mapping_table="qoo10_product_mapping",
        title_column="qoo10_title",
        sales_column="qoo10_count",
    ),
    Channel.TIKTOK: ChannelConfig(
        display_name="TikTok",
        mapping_table="tiktok_product_mapping",
        title_column="tiktok_product_name",
        sales_column="tiktok_count",
    ),
}
