"""
Deep Link Module
Reads verification parameters from a page URL and builds shareable links.

Supported parameters:
    ?id=AWS-17-JAN-26-CC-001 (also ``certid`` or ``certificate``)
    &auto=true (or ``verify=true``) to verify without a manual submit
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, quote, urlsplit, urlunsplit

PREFILL_PARAMS = ("id", "certid", "certificate")
AUTO_PARAMS = ("auto", "verify")

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class StartupParameters:
    prefill_id: Optional[str] = None
    auto_trigger: bool = False


def parse_startup_parameters(url: str) -> StartupParameters:
    """
    Extract the prefill ID and auto-verify flag from a page URL

    Args:
        url: Full page URL as loaded by the browser

    Returns:
        StartupParameters; auto_trigger is only set when a prefill ID exists
    """
    params = parse_qs(urlsplit(url or "").query)

    prefill_id = None
    for name in PREFILL_PARAMS:
        value = params.get(name, [""])[0]
        if value:
            prefill_id = value.upper()
            break

    if prefill_id is None:
        return StartupParameters()

    auto_trigger = any(params.get(name, [""])[0] == "true" for name in AUTO_PARAMS)
    return StartupParameters(prefill_id=prefill_id, auto_trigger=auto_trigger)


def canonical_url(url: str) -> str:
    """Origin and path of ``url`` with the query string and fragment removed."""
    parts = urlsplit(url or "")
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", "", ""))


def build_share_url(page_url: str, certificate_id: str) -> str:
    """Shareable verification link for a certificate ID."""
    return f"{canonical_url(page_url)}?id={quote(certificate_id, safe=_URI_COMPONENT_SAFE)}"
