import ipaddress
import logging
import re
from typing import Optional
from urllib.parse import quote

import httpx

from ai_pulse.errors import GeoResolutionFailure
from ai_pulse.models.vote_model import UNKNOWN_COUNTRY

logger = logging.getLogger(__name__)

_COUNTRY_CODE = re.compile(r"^[A-Za-z]{2}$")

_PRIVATE_NETWORKS = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
)


def is_local_origin(ip) -> bool:
    """Loopback or RFC1918. ``ip`` is an ipaddress object."""
    if ip.is_loopback:
        return True
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
        if ip.is_loopback:
            return True
    return any(ip in net for net in _PRIVATE_NETWORKS if ip.version == net.version)


class GeoResolver:
    """
    Best-effort origin -> country code.

    ``resolve`` returns an upper-case two letter code, ``"Unknown"`` when the
    service answered with something we can't use, or ``None`` when the service
    could not be reached (transport error, timeout, non-2xx). It never raises.

    There is no cache and no retry: one request per call.
    """

    def __init__(self, client: Optional[httpx.AsyncClient], lookup_url: str, fallback_country: str = "US"):
        self.client = client
        self.lookup_url = lookup_url.rstrip("/")
        self.fallback_country = fallback_country

    async def resolve(self, origin: Optional[str]) -> Optional[str]:
        origin = (origin or "").strip()
        if not origin:
            return None

        try:
            ip = ipaddress.ip_address(origin)
        except ValueError:
            # e.g. "ip:port" from some proxies; the service decides what it is
            ip = None

        if ip is not None and is_local_origin(ip):
            return await self._resolve_local()

        target = str(ip) if ip is not None else quote(origin, safe=":")
        try:
            country = await self._lookup(f"{self.lookup_url}/{target}")
        except GeoResolutionFailure as e:
            logger.warning("Country lookup failed for %s: %s", origin, e)
            return UNKNOWN_COUNTRY if e.reached else None

        logger.info("Country lookup for IP %s: %s", origin, country)
        return country

    async def _resolve_local(self) -> str:
        # Local/dev request: ask the service about our own public address
        try:
            country = await self._lookup(self.lookup_url)
        except GeoResolutionFailure as e:
            logger.warning(
                "Development mode - public origin lookup failed (%s), using %s",
                e, self.fallback_country,
            )
            return self.fallback_country

        logger.info("Development mode - detected country: %s", country)
        return country

    async def _lookup(self, url: str) -> str:
        try:
            res = await self.client.get(url)
            res.raise_for_status()
        except httpx.HTTPError as e:
            raise GeoResolutionFailure(f"lookup request failed: {e!r}", reached=False)

        try:
            data = res.json()
        except ValueError:
            raise GeoResolutionFailure("lookup returned non-JSON payload", reached=True)

        code = data.get("countryCode") if isinstance(data, dict) else None
        if not isinstance(code, str) or not _COUNTRY_CODE.match(code.strip()):
            raise GeoResolutionFailure(f"no usable countryCode in payload: {data!r}", reached=True)
        return code.strip().upper()
