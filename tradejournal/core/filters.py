from tradejournal.models.trade import Trade, TradeFilter


def _matches(trade: Trade, f: TradeFilter) -> bool:
    term = f.search_term.lower()
    match_search = term in trade.pair.lower() or term in trade.notes.lower()
    match_pair = trade.pair == f.pair if f.pair else True
    match_result = trade.result.value == f.result if f.result else True
    return match_search and match_pair and match_result


def apply_filters(trades: list[Trade], trade_filter: TradeFilter) -> list[Trade]:
    """Journal search: substring on pair/notes AND exact pair AND exact result.

    An empty filter value matches everything. Returns a new list.
    """
    return [t for t in trades if _matches(t, trade_filter)]
