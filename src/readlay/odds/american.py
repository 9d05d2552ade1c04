"""American odds conversion and payout helpers."""

from typing import Optional


def parse_american_odds(odds: Optional[str]) -> Optional[int]:
    """Parse an odds string such as "+150" or "-120".

    Returns:
        The signed integer price, or None if the string is not a price
    """
    if odds is None:
        return None
    text = odds.strip()
    if not text:
        return None
    try:
        return int(text.replace("+", "", 1) if text.startswith("+") else text)
    except ValueError:
        return None


def format_american_odds(price: int) -> str:
    """Format an integer price with an explicit sign ("+450", "-120")."""
    return f"+{price}" if price >= 0 else str(price)


def american_to_decimal(price: Optional[int]) -> Optional[float]:
    """Convert American odds to decimal odds."""
    if price is None:
        return None
    if price > 0:
        return 1.0 + (price / 100.0)
    if price < 0:
        return 1.0 + (100.0 / abs(price))
    return None


def decimal_to_american(decimal_odds: Optional[float]) -> Optional[int]:
    """Convert decimal odds to American odds."""
    if decimal_odds is None or decimal_odds <= 1.0:
        return None
    if decimal_odds >= 2.0:
        return int(round((decimal_odds - 1.0) * 100.0))
    return int(round(-100.0 / (decimal_odds - 1.0)))


def combine_parlay_odds(leg_odds: list[str]) -> Optional[str]:
    """Combine leg prices into a parlay price.

    Each leg is converted to decimal odds, the decimals are multiplied and
    the product is converted back to American format.

    Args:
        leg_odds: Odds strings for every leg

    Returns:
        Combined odds string, or None with fewer than two legs or an
        unparseable leg
    """
    if len(leg_odds) < 2:
        return None

    product = 1.0
    for odds in leg_odds:
        decimal_odds = american_to_decimal(parse_american_odds(odds))
        if decimal_odds is None:
            return None
        product *= decimal_odds

    price = decimal_to_american(product)
    if price is None:
        return None
    return format_american_odds(price)


def potential_win_for(wager: float, odds: str, fallback: int = 150) -> float:
    """Profit on a winning wager, excluding the returned stake."""
    price = parse_american_odds(odds)
    if price is None:
        price = fallback
    decimal_odds = american_to_decimal(price)
    if decimal_odds is None:
        return 0.0
    return wager * (decimal_odds - 1.0)


def payout_for(wager: float, odds: str, fallback: int = 150) -> float:
    """Total returned on a winning wager: stake plus profit."""
    return wager + potential_win_for(wager, odds, fallback)
