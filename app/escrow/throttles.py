"""
Rate limiting for buyer-facing confirmation.

OTPs have only a million possible values, so confirm-delivery is limited
per client IP. The IP comes from DRF's get_ident, which only reads
X-Forwarded-For behind NUM_PROXIES trusted proxies, so rotating that
header does not reset the count. Rates accept a multiplier on the period,
e.g. "8/15m" is 8 requests per 15 minutes.
"""

from __future__ import annotations

import re

from rest_framework.throttling import AnonRateThrottle

PERIOD_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}
RATE_PERIOD = re.compile(r"^(\d*)([smhd])")


class DeliveryConfirmationThrottle(AnonRateThrottle):
    """Per-IP limit on delivery confirmation attempts, authenticated or not."""

    scope = "delivery_confirmation"

    def get_cache_key(self, request, view):
        return self.cache_format % {
            "scope": self.scope,
            "ident": self.get_ident(request),
        }

    def parse_rate(self, rate):
        if rate is None:
            return (None, None)

        num, period = rate.split("/")
        match = RATE_PERIOD.match(period.strip().lower())
        if match is None:
            raise ValueError(f"Invalid throttle rate: {rate!r}")

        multiplier = int(match.group(1) or 1)
        return (int(num), multiplier * PERIOD_SECONDS[match.group(2)])
