"""Elasticsearch client construction from configuration."""

from __future__ import annotations

import os
from typing import Any

from elasticsearch import Elasticsearch

from indexsync.config.models import ServerConfig


def create_client(config: ServerConfig) -> Elasticsearch:
    """Build a client, resolving credentials from the configured env vars."""
    kwargs: dict[str, Any] = {
        "verify_certs": config.verify_certs,
        "request_timeout": config.request_timeout,
    }
    if config.api_key_env:
        api_key = os.environ.get(config.api_key_env)
        if not api_key:
            raise ValueError(
                f"Missing API key: set environment variable {config.api_key_env!r}"
            )
        kwargs["api_key"] = api_key
    elif config.username:
        kwargs["basic_auth"] = (config.username, os.environ.get(config.password_env, ""))
    return Elasticsearch(config.hosts, **kwargs)
