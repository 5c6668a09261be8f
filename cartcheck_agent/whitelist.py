"""
Manufacturer-direct domains that skip scoring entirely.

The registry is built once at startup and never mutated afterwards.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_WHITELIST_PATH = Path(__file__).resolve().parent / "whitelist_domains.json"


def _clean_domain(raw: str) -> str:
    d = (raw or "").strip().lower().rstrip(".")
    if d.startswith("www."):
        d = d[4:]
    return d


def _hostname_of(url: str) -> str | None:
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    host = host.lower().rstrip(".")
    if host.startswith("www."):
        host = host[4:]
    return host or None


class WhitelistRegistry:
    def __init__(self, domains):
        cleaned = {_clean_domain(d) for d in domains}
        self._domains: frozenset[str] = frozenset(d for d in cleaned if d)

    @property
    def domains(self) -> frozenset[str]:
        return self._domains

    def __len__(self) -> int:
        return len(self._domains)

    def is_whitelisted(self, url: str) -> bool:
        host = _hostname_of(url)
        if host is None:
            return False
        if host in self._domains:
            return True
        # shop.apple.com matches apple.com, but notapple.com does not.
        return any(host.endswith("." + d) for d in self._domains)

    @classmethod
    def from_file(cls, path: Path) -> WhitelistRegistry:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"Whitelist file {path} must contain a JSON array of domains")
        return cls(str(d) for d in data if isinstance(d, str))


def load_whitelist(domains_csv: str | None = None, path: str | None = None) -> WhitelistRegistry:
    """Build the registry from config.

    Priority: explicit comma-separated domains, then a JSON file path, then the
    bundled default list.
    """
    if domains_csv and domains_csv.strip():
        registry = WhitelistRegistry(d for d in domains_csv.split(",") if d.strip())
        logger.info("Whitelist loaded from environment (%d domains)", len(registry))
        return registry

    file_path = Path(path) if path and path.strip() else DEFAULT_WHITELIST_PATH
    registry = WhitelistRegistry.from_file(file_path)
    logger.info("Whitelist loaded from %s (%d domains)", file_path, len(registry))
    return registry
