"""Risk/heat aggregation across open positions."""

from journal_core.risk.heat import (
    PortfolioSizeResolver,
    calc_cumm_pf,
    calc_open_heat,
    calc_pf_impact,
    calc_trade_open_heat,
    effective_stop,
    risk_per_share,
)

__all__ = [
    "PortfolioSizeResolver",
    "calc_cumm_pf",
    "calc_open_heat",
    "calc_pf_impact",
    "calc_trade_open_heat",
    "effective_stop",
    "risk_per_share",
]
