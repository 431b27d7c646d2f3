"""Example token catalog used to seed demo registries."""

from datetime import datetime, timedelta
from typing import List, Optional

from .state import MusicToken, SocialLinks, SongMetadata, TokenStatus, TradeRecord, TradeSide


def _days_ago(now: datetime, days: float) -> datetime:
    return now - timedelta(days=days)


def _buy(now: datetime, days: float, price: float, volume: float) -> TradeRecord:
    return TradeRecord(timestamp=_days_ago(now, days), price=price, volume=volume, side=TradeSide.BUY)


def example_tokens(now: Optional[datetime] = None) -> List[MusicToken]:
    """The three launch-day demo tokens, dated relative to ``now``."""
    now = now or datetime.now()
    return [
        MusicToken(
            id="1",
            name="Midnight Dreams",
            symbol="DREAM",
            artist="Luna Echo",
            description="A haunting electronic ballad about lost love and redemption.",
            isrc="USRC12345678",
            initial_price=0.25,
            current_price=0.32,
            total_supply=500_000,
            circulating_supply=450_000,
            volume_24h=12_500,
            price_change_24h=8.5,
            price_change_7d=28.0,
            publishing_rights=80,
            projected_revenue=85_000,  # Established artist
            projected_dividends=12_750,
            roi=0.28,
            status="trading",
            launch_date=_days_ago(now, 14),
            song_metadata=SongMetadata(
                title="Midnight Dreams", artist="Luna Echo", isrc="USRC12345678",
                genre="Electronic", duration="3:45", bpm=128, key="Am",
                release_date="2024-01-15", composition_date="2023-11-20",
                publishing_revenue=85_000, artist_allocation=80,
            ),
            social_links=SocialLinks(
                spotify="https://open.spotify.com/track/example1",
                apple_music="https://music.apple.com/track/example1",
            ),
            trading_history=[_buy(now, 5, 0.25, 3_000), _buy(now, 2, 0.30, 5_000)],
            transaction_hash="mock-tx-hash-1",
            mint_address="mock-mint-1",
        ),
        MusicToken(
            id="2",
            name="Ocean Waves",
            symbol="WAVES",
            artist="Marina Blue",
            description="A soothing ambient track inspired by the ocean.",
            isrc="USRC87654321",
            initial_price=0.15,
            current_price=0.18,
            total_supply=750_000,
            circulating_supply=700_000,
            volume_24h=8_900,
            price_change_24h=5.2,
            price_change_7d=20.0,
            publishing_rights=75,
            projected_revenue=45_000,  # Mid-level artist
            projected_dividends=6_750,
            roi=0.20,
            status="trading",
            launch_date=_days_ago(now, 21),
            song_metadata=SongMetadata(
                title="Ocean Waves", artist="Marina Blue", isrc="USRC87654321",
                genre="Ambient", duration="4:20", bpm=85, key="C",
                release_date="2024-01-10", composition_date="2023-12-05",
                publishing_revenue=45_000, artist_allocation=75,
            ),
            social_links=SocialLinks(
                spotify="https://open.spotify.com/track/example2",
                youtube="https://youtube.com/watch?v=example2",
            ),
            trading_history=[_buy(now, 10, 0.15, 2_000), _buy(now, 3, 0.17, 4_000)],
            transaction_hash="mock-tx-hash-2",
            mint_address="mock-mint-2",
        ),
        MusicToken(
            id="3",
            name="Urban Rhythm",
            symbol="RHYTHM",
            artist="Beat Master",
            description="High-energy hip-hop track with infectious beats.",
            isrc="USRC11223344",
            initial_price=0.10,
            current_price=0.12,
            total_supply=1_000_000,
            circulating_supply=950_000,
            volume_24h=15_600,
            price_change_24h=12.0,
            price_change_7d=35.0,
            publishing_rights=70,
            projected_revenue=12_000,  # Emerging artist
            projected_dividends=1_800,
            roi=0.35,
            status="launching",
            launch_date=_days_ago(now, 3),
            song_metadata=SongMetadata(
                title="Urban Rhythm", artist="Beat Master", isrc="USRC11223344",
                genre="Hip-Hop", duration="3:15", bpm=95, key="F",
                release_date="2024-01-20", composition_date="2024-01-05",
                publishing_revenue=12_000, artist_allocation=70,
            ),
            social_links=SocialLinks(
                spotify="https://open.spotify.com/track/example3",
                apple_music="https://music.apple.com/track/example3",
            ),
            trading_history=[_buy(now, 2, 0.10, 6_000), _buy(now, 1, 0.11, 8_000)],
            transaction_hash="mock-tx-hash-3",
            mint_address="mock-mint-3",
        ),
    ]


def touring_tokens(now: Optional[datetime] = None) -> List[MusicToken]:
    """The demo tokens after a strong touring season (higher prices, volume and ROI)."""
    now = now or datetime.now()
    tokens = example_tokens(now)

    # symbol -> (price, volume_24h, change_24h, change_7d, revenue, dividends, roi, history prices)
    touring = {
        "DREAM": (0.42, 28_500, 12.5, 68.0, 45_000, 6_750, 0.48, (0.25, 0.35)),
        "WAVES": (0.28, 22_400, 8.2, 86.7, 32_000, 4_800, 0.41, (0.15, 0.22)),
        "RHYTHM": (0.18, 34_200, 15.0, 80.0, 28_000, 4_200, 0.49, (0.10, 0.15)),
    }

    for token in tokens:
        price, volume, change_24h, change_7d, revenue, dividends, roi, history_prices = touring[token.symbol]
        token.current_price = price
        token.refresh_market_cap()
        token.volume_24h = volume
        token.price_change_24h = change_24h
        token.price_change_7d = change_7d
        token.projected_revenue = revenue
        token.projected_dividends = dividends
        token.roi = roi
        token.status = TokenStatus.TRADING
        token.song_metadata.publishing_revenue = revenue
        token.trading_history.records = [
            TradeRecord(timestamp=record.timestamp, price=history_price, volume=record.volume, side=record.side)
            for record, history_price in zip(token.trading_history.records, history_prices)
        ]

    return tokens
