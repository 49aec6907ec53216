# app/utils/code_table.py
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping

# Canonical codes are the IMF DataMapper ones the dashboard already speaks.
# These tables translate them for the World Bank WDI API.

INDICATOR_CODES: Mapping[str, str] = MappingProxyType({
    "NGDP_RPCH": "NY.GDP.MKTP.KD.ZG",   # GDP growth (annual %)
    "PCPIPCH":   "FP.CPI.TOTL.ZG",      # CPI inflation (annual %)
    "LUR":       "SL.UEM.TOTL.ZS",      # Unemployment (% of labor force)
    "NGDPD":     "NY.GDP.MKTP.CD",      # GDP (current USD)
    "GDP_PCAP":  "NY.GDP.PCAP.CD",      # GDP per capita (current USD)
    "BCA":       "BN.CAB.XOKA.GD.ZS",   # Current account (% GDP)
})

COUNTRY_CODES: Mapping[str, str] = MappingProxyType({
    "US": "USA",
    "CN": "CHN",
    "JP": "JPN",
    "DE": "DEU",
    "GB": "GBR",
    "FR": "FRA",
    "KR": "KOR",
    "IN": "IND",
    "BR": "BRA",
    "RU": "RUS",
    "CZ": "CZE",
    "SK": "SVK",
})

_DOMAINS: Dict[str, Mapping[str, str]] = {
    "indicator": INDICATOR_CODES,
    "country": COUNTRY_CODES,
}


def translate(domain: str, code: str) -> str:
    """
    Map a canonical code to the World Bank code for `domain`.

    Unmapped codes are returned unchanged. WDI accepts most ISO2/ISO3 country
    codes and raw WDI indicator ids, so callers may send those directly
    without a table entry. The flip side is that a bad code reaches the
    upstream as-is and fails there.
    """
    table = _DOMAINS.get(domain)
    if table is None:
        raise ValueError(f"unknown code domain: {domain!r}")
    return table.get(code, code)


__all__ = ["INDICATOR_CODES", "COUNTRY_CODES", "translate"]
