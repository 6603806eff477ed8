# --- Standard library imports ---
import ipaddress
from ipaddress import IPv4Address, IPv6Address
from urllib.parse import urlsplit

# --- Third-party imports ---
import requests

# --- Project imports ---
from .errors import ResolutionError
from .logger import get_logger


# Define the logger once for the entire module
logger = get_logger("resolver")

DOH_URL = "https://cloudflare-dns.com/dns-query"
DOH_TIMEOUT = 8   # seconds

RECORD_TYPES = {
    "A": IPv4Address,
    "AAAA": IPv6Address,
}

def is_ip_literal(value: str) -> bool:
    """Return True if `value` is an IPv4 or IPv6 address (brackets allowed)."""
    try:
        ipaddress.ip_address(value.strip("[]"))
        return True
    except ValueError:
        return False

def extract_hostname(value: str) -> str:
    """
    Accept either a URL ("https://youtube.com") or a bare domain
    ("youtube.com") and return the domain to resolve.

    Raises:
        ResolutionError: the URL has no host, or its host is an IP address.
    """
    value = value.strip()
    if "://" not in value:
        return value

    parts = urlsplit(value)
    if not parts.hostname:
        raise ResolutionError("The provided URL does not have a domain")
    if is_ip_literal(parts.hostname):
        raise ResolutionError("The provided URL must have a domain, not an IP address")
    return parts.hostname

def doh_lookup(hostname: str, record_type: str, session=None):
    """
    Resolve one record type for `hostname` using Cloudflare DNS-over-HTTPS.

    Returns:
        The first IPv4Address/IPv6Address answer of that type, or None
        when the name has no such record.

    Raises:
        requests.RequestException: transport or HTTP failure.
    """
    http = session or requests
    address_type = RECORD_TYPES[record_type]

    resp = http.get(
        DOH_URL,
        params={"name": hostname, "type": record_type},
        headers={"Accept": "application/dns-json"},
        timeout=DOH_TIMEOUT,
    )
    resp.raise_for_status()

    # CNAME chains come back in the same Answer list; keep only our type
    for answer in resp.json().get("Answer", []):
        data = answer.get("data")
        try:
            address = ipaddress.ip_address(data)
        except (TypeError, ValueError):
            continue
        if isinstance(address, address_type):
            logger.debug(f"DoH resolved {hostname} {record_type} → {address}")
            return address

    logger.debug(f"No {record_type}-record returned for {hostname}")
    return None

def resolve_targets(value: str, session=None) -> tuple[IPv4Address, IPv6Address]:
    """
    Look up the A and AAAA records of the given URL or domain.

    Both records must exist; a dual-stack monitor has nothing to
    compare against otherwise.
    """
    hostname = extract_hostname(value)
    if not hostname:
        raise ResolutionError("The provided domain is invalid")

    try:
        v4 = doh_lookup(hostname, "A", session=session)
        v6 = doh_lookup(hostname, "AAAA", session=session)
    except (requests.RequestException, ValueError) as e:
        logger.debug(f"DoH request failed for {hostname}: {e.__class__.__name__}")
        raise ResolutionError(
            "There was an error while trying to resolve the hostname"
        ) from e

    match (v4, v6):
        case (None, None):
            raise ResolutionError("The provided domain is invalid")
        case (None, _):
            raise ResolutionError("The provided domain does not support IPv4")
        case (_, None):
            raise ResolutionError("The provided domain does not support IPv6")

    return v4, v6
