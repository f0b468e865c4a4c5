# coding: utf-8
"""
Degraded-mode datasets

Hardcoded substitutes served when an upstream is unconfigured or down and no
cached copy exists. Shapes match the live responses exactly; callers tell
them apart by the `source: "fallback"` marker. None of this is ever written
to the caches.
"""
import time
from typing import Dict, Iterable, List, Optional

from src.core.enums import DataSource
from src.services.schemas import ExchangeRates, NewsArticle, NewsResult, PriceMap


# ============================================================================
# STATIC FALLBACK PRICES (Last resort when live fetch and stale cache fail)
# ============================================================================
# Approximate but realistic values for major coins, USD only.

STATIC_FALLBACK_PRICES: Dict[str, Dict[str, float]] = {
    "bitcoin": {
        "usd": 43000,
        "usd_24h_change": 2.5,
        "usd_market_cap": 840000000000,
        "usd_24h_vol": 28000000000,
    },
    "ethereum": {
        "usd": 2300,
        "usd_24h_change": 1.8,
        "usd_market_cap": 275000000000,
        "usd_24h_vol": 15000000000,
    },
    "binancecoin": {
        "usd": 310,
        "usd_24h_change": 1.5,
        "usd_market_cap": 47000000000,
        "usd_24h_vol": 1200000000,
    },
    "solana": {
        "usd": 105,
        "usd_24h_change": 4.2,
        "usd_market_cap": 45000000000,
        "usd_24h_vol": 2500000000,
    },
    "ripple": {
        "usd": 0.52,
        "usd_24h_change": -0.8,
        "usd_market_cap": 28000000000,
        "usd_24h_vol": 1100000000,
    },
    "cardano": {
        "usd": 0.48,
        "usd_24h_change": 1.2,
        "usd_market_cap": 17000000000,
        "usd_24h_vol": 450000000,
    },
    "dogecoin": {
        "usd": 0.085,
        "usd_24h_change": -1.5,
        "usd_market_cap": 12000000000,
        "usd_24h_vol": 600000000,
    },
    "polkadot": {
        "usd": 7.2,
        "usd_24h_change": 2.1,
        "usd_market_cap": 9000000000,
        "usd_24h_vol": 280000000,
    },
    "chainlink": {
        "usd": 15.5,
        "usd_24h_change": 3.5,
        "usd_market_cap": 8500000000,
        "usd_24h_vol": 450000000,
    },
    "litecoin": {
        "usd": 72,
        "usd_24h_change": 0.9,
        "usd_market_cap": 5300000000,
        "usd_24h_vol": 350000000,
    },
}


def get_static_prices(coin_ids: Iterable[str], currency: str = "usd") -> Optional[PriceMap]:
    """
    Static prices for the requested coins

    Returns:
        PriceMap with the known coins, or None if the currency is not USD or
        none of the coins are known
    """
    if currency.lower() != "usd":
        return None

    result = {
        coin_id: dict(STATIC_FALLBACK_PRICES[coin_id])
        for coin_id in coin_ids
        if coin_id in STATIC_FALLBACK_PRICES
    }
    return PriceMap(result) if result else None


# ============================================================================
# MOCK NEWS
# ============================================================================
# (id, title, body, url, imageurl, source, age_seconds, tags, full_content)

_MOCK_NEWS = [
    (
        "mock-001",
        "Bitcoin Surges Past $100,000 as Institutional Adoption Accelerates",
        "Bitcoin has broken through the $100,000 mark for the first time in history as major "
        "financial institutions continue to add the cryptocurrency to their balance sheets.",
        "https://example.com/bitcoin-100k",
        "https://images.unsplash.com/photo-1518546305927-5a555bb7020d?ixlib=rb-4.0.3",
        "Crypto Daily",
        3600,
        ["Bitcoin", "Market", "Institutions"],
        "This milestone comes after months of steady growth and increased adoption from "
        "traditional finance players.",
    ),
    (
        "mock-002",
        "Ethereum Roadmap Update Promises Major Scalability Improvements",
        "Ethereum core developers have published the next stage of the network roadmap, "
        "targeting higher transaction throughput and lower fees.",
        "https://example.com/ethereum-roadmap",
        "https://images.unsplash.com/photo-1622630998477-20aa696ecb05?ixlib=rb-4.0.3",
        "ETH News",
        7200,
        ["Ethereum", "Technology", "Scaling"],
        "The upgrade aims to address ongoing scalability challenges while keeping the "
        "network decentralized.",
    ),
    (
        "mock-003",
        "Central Banks Pilot Digital Currencies with Blockchain Firms",
        "Several central banks have announced coordinated pilots of central bank digital "
        "currencies (CBDCs) built with blockchain technology partners.",
        "https://example.com/cbdc-pilot",
        "https://images.unsplash.com/photo-1621761191319-c6fb62004040?ixlib=rb-4.0.3",
        "Global Finance Review",
        10800,
        ["CBDC", "Regulation", "Banks"],
        "The collaboration signals a growing acceptance of digital currency technology in "
        "traditional finance.",
    ),
    (
        "mock-004",
        "NFT Market Rebounds as Gaming Projects Gain Traction",
        "The NFT market is seeing renewed activity led by gaming and metaverse projects, "
        "with trading volumes climbing again.",
        "https://example.com/nft-gaming",
        "https://images.unsplash.com/photo-1635003913011-95971ed70a9a?ixlib=rb-4.0.3",
        "NFT Insider",
        14400,
        ["NFT", "Gaming", "Metaverse"],
        "Utility-focused collections kept building through the downturn and now lead the "
        "recovery.",
    ),
    (
        "mock-005",
        "DeFi Protocols Hit Record Total Value Locked",
        "Decentralized finance protocols have reached a new high in total value locked, "
        "highlighting the sector's continued growth.",
        "https://example.com/defi-tvl",
        "https://images.unsplash.com/photo-1620321023374-d1a68fbc720d?ixlib=rb-4.0.3",
        "DeFi Pulse",
        18000,
        ["DeFi", "Finance", "Growth"],
        "Analysts attribute the increase to rising trust in decentralized financial "
        "infrastructure.",
    ),
    (
        "mock-006",
        "Major Retailer Adds Bitcoin Payments for Online Shopping",
        "A large online retailer plans to accept Bitcoin and other cryptocurrencies as "
        "payment options for all purchases.",
        "https://example.com/retail-crypto",
        "https://images.unsplash.com/photo-1556742502-ec7c0e9f34b1?ixlib=rb-4.0.3",
        "Retail Tech News",
        21600,
        ["Adoption", "Retail", "Payments"],
        "A third-party processor will convert crypto payments to fiat at checkout.",
    ),
    (
        "mock-007",
        "Study Finds Most Bitcoin Mining Now Uses Renewable Energy",
        "A new study of cryptocurrency mining reports that a majority of global operations "
        "now run on renewable energy sources.",
        "https://example.com/crypto-renewable",
        "https://images.unsplash.com/photo-1473341304170-971dccb5ac1e?ixlib=rb-4.0.3",
        "Green Tech Report",
        25200,
        ["Environment", "Mining", "Renewable"],
        "The shift has been driven by both energy prices and industry sustainability "
        "initiatives.",
    ),
    (
        "mock-008",
        "G20 Nations Agree on Global Crypto Regulatory Framework",
        "A coalition of G20 nations has agreed on a common regulatory framework for "
        "cryptocurrencies, giving businesses and investors clearer rules.",
        "https://example.com/crypto-regulation",
        "https://images.unsplash.com/photo-1607863680198-23d4b2565df0?ixlib=rb-4.0.3",
        "Regulatory Affairs",
        28800,
        ["Regulation", "Policy", "Global"],
        "The framework covers taxation, custody requirements, consumer protection and "
        "anti-money laundering.",
    ),
    (
        "mock-009",
        "Layer 2 Networks See Record Adoption",
        "Layer 2 scaling networks have seen unprecedented adoption in recent months, cutting "
        "fees and speeding up transactions.",
        "https://example.com/layer2-scaling",
        "https://images.unsplash.com/photo-1639322537228-f710d846310a?ixlib=rb-4.0.3",
        "Blockchain Insider",
        32400,
        ["Layer 2", "Scaling", "Technology"],
        "These networks process transactions off the main chain while inheriting its "
        "security.",
    ),
    (
        "mock-010",
        "Universities Launch Standardized Blockchain Courses",
        "A consortium of blockchain companies and universities has launched a program to "
        "bring standardized crypto education to campuses worldwide.",
        "https://example.com/crypto-education",
        "https://images.unsplash.com/photo-1532619675605-1ede6c2ed2b0?ixlib=rb-4.0.3",
        "Education Technology",
        36000,
        ["Education", "University", "Blockchain"],
        "The initiative targets growing demand for blockchain expertise across industries.",
    ),
]


def get_mock_news(limit: int = 10, now: Optional[float] = None) -> List[NewsArticle]:
    """
    Mock news articles, newest first

    Args:
        limit: Number of articles (capped at the dataset size)
        now: Reference unix time for published_on (default: current time)
    """
    reference = int(now if now is not None else time.time())
    articles = []
    for (
        article_id, title, body, url, imageurl, source, age, tags, full_content
    ) in _MOCK_NEWS[: max(0, limit)]:
        articles.append(
            NewsArticle(
                id=article_id,
                title=title,
                body=body,
                url=url,
                imageurl=imageurl,
                source=source,
                published_on=reference - age,
                tags=list(tags),
                full_content=f"{body} {full_content}",
            )
        )
    return articles


def fallback_news_result(
    limit: int = 10, message: Optional[str] = None, now: Optional[float] = None
) -> NewsResult:
    """Mock news wrapped as a degraded-mode result"""
    return NewsResult(
        results=get_mock_news(limit, now=now),
        source=DataSource.FALLBACK,
        message=message,
    )


# ============================================================================
# MOCK EXCHANGE RATES (USD base)
# ============================================================================

MOCK_EXCHANGE_RATES: Dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.85,
    "GBP": 0.73,
    "JPY": 110.25,
    "CNY": 6.45,
    "INR": 74.5,
    "CAD": 1.25,
    "AUD": 1.35,
    "CHF": 0.92,
    "HKD": 7.78,
    "SGD": 1.35,
}


def mock_exchange_rates() -> ExchangeRates:
    return ExchangeRates(rates=dict(MOCK_EXCHANGE_RATES), source=DataSource.FALLBACK)
