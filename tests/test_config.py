# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from site_health.config import CrawlerConfig, load_config


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,loader,expect_exc",
    [
        ("domains: [example.com]", load_config, None),
        (json.dumps({"domains": ["example.com"]}), load_config, None),
        ("{}", load_config, ValidationError),
        ("domains: []", load_config, ValidationError),
        ("not: a: mapping", load_config, ValueError),
        ("- just\n- a list", load_config, TypeError),
    ],
)
def test_load_config_variants(tmp_path, content, loader, expect_exc):
    suffix = ".yaml" if not content.strip().startswith("{") else ".json"
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            loader(cfg_path)
    else:
        cfg = loader(cfg_path)
        assert isinstance(cfg, CrawlerConfig)
        assert cfg.domains == ("example.com",)


def test_defaults():
    cfg = CrawlerConfig(domains=["example.com"])
    assert cfg.scheme == "https"
    assert cfg.timeout == 8.0
    assert cfg.max_pages == 150
    assert cfg.max_errors_listed == 50
    assert cfg.strip_query is True
    assert ".pdf" in cfg.skip_extensions
    assert "/wp-admin/" in cfg.skip_prefixes
    assert cfg.max_concurrent_sites is None


def test_domains_are_normalized():
    cfg = CrawlerConfig(
        domains=["https://Example.com/", "example.com", "www.bordeaux.fr", "localhost:8080"],
        skip_extensions=["PDF", ".zip"],
    )
    assert cfg.domains == ("example.com", "www.bordeaux.fr", "localhost:8080")
    assert cfg.skip_extensions == (".pdf", ".zip")


@pytest.mark.parametrize("domain", ["example.com/blog", "", "https://"])
def test_domain_must_be_bare_host(domain):
    with pytest.raises(ValidationError):
        CrawlerConfig(domains=[domain])


@pytest.mark.parametrize(
    "field,value",
    [("timeout", 0), ("max_pages", 0), ("scheme", "ftp"), ("unknown", 1), ("max_concurrent_sites", 0)],
)
def test_invalid_values(field, value):
    with pytest.raises(ValidationError):
        CrawlerConfig(domains=["example.com"], **{field: value})


def test_config_is_frozen():
    cfg = CrawlerConfig(domains=["example.com"])
    with pytest.raises(ValidationError):
        cfg.max_pages = 10


def test_load_config_default_missing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        load_config(None)


def test_load_config_unsupported_suffix(tmp_path):
    with pytest.raises(ValueError):
        load_config(write_file(tmp_path, "domains = ['x']", ".toml"))


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")
