"""
Tests for manufacturer-direct whitelist matching and loading.
"""

from __future__ import annotations

import json

import pytest

from cartcheck_agent.whitelist import DEFAULT_WHITELIST_PATH, WhitelistRegistry, load_whitelist


@pytest.mark.parametrize(
    "url",
    [
        "https://apple.com/iphone",
        "https://www.apple.com/",
        "https://shop.apple.com/buy",
        "HTTPS://WWW.Samsung.COM/in/smartphones",
        "http://apple.com.",
    ],
)
def test_whitelisted_hosts(whitelist, url):
    assert whitelist.is_whitelisted(url) is True


@pytest.mark.parametrize(
    "url",
    [
        "https://notapple.com/iphone",
        "https://apple.com.scam-site.xyz/",
        "https://amazon.com/apple-iphone",
        "apple.com",  # no scheme: urlparse sees no hostname
        "",
        "http://[::1",  # invalid IPv6 literal makes urlparse raise
    ],
)
def test_non_whitelisted_or_malformed(whitelist, url):
    assert whitelist.is_whitelisted(url) is False


def test_registry_normalizes_entries():
    registry = WhitelistRegistry([" WWW.Nike.com ", "", "sony.com."])
    assert registry.domains == frozenset({"nike.com", "sony.com"})


def test_load_from_env_domains_takes_priority(tmp_path):
    path = tmp_path / "domains.json"
    path.write_text(json.dumps(["dell.com"]), encoding="utf-8")

    registry = load_whitelist("lenovo.com, hp.com", str(path))
    assert registry.domains == frozenset({"lenovo.com", "hp.com"})


def test_load_from_file(tmp_path):
    path = tmp_path / "domains.json"
    path.write_text(json.dumps(["dell.com", "bose.com"]), encoding="utf-8")

    registry = load_whitelist(None, str(path))
    assert registry.is_whitelisted("https://www.dell.com/en-us")
    assert not registry.is_whitelisted("https://apple.com")


def test_load_rejects_non_array_file(tmp_path):
    path = tmp_path / "domains.json"
    path.write_text(json.dumps({"domains": ["dell.com"]}), encoding="utf-8")

    with pytest.raises(ValueError):
        load_whitelist(None, str(path))


def test_default_list_is_bundled():
    assert DEFAULT_WHITELIST_PATH.is_file()
    registry = load_whitelist()
    assert "apple.com" in registry.domains
    assert len(registry) > 5
