"""Global settings for the plugin configuration service, read from the environment."""

import os
from typing import Dict

from configapi.binding.types import Duration


def _parse_tags(text: str) -> Dict[str, str]:
    """Parse ``k=v,k=v`` into a dict; entries without ``=`` are ignored."""
    tags = {}
    for item in text.split(","):
        key, sep, value = item.partition("=")
        if sep and key.strip():
            tags[key.strip()] = value.strip()
    return tags


# How long update waits for the old plugin to stop before giving up
UPDATE_TIMEOUT = Duration.parse(os.getenv("CONFIGAPI_UPDATE_TIMEOUT", "30s"))
# How often update polls the old plugin's status
POLL_INTERVAL = Duration.parse(os.getenv("CONFIGAPI_POLL_INTERVAL", "100ms"))

# Agent defaults applied to new plugins
AGENT_INTERVAL = Duration.parse(os.getenv("AGENT_INTERVAL", "10s"))
AGENT_FLUSH_INTERVAL = Duration.parse(os.getenv("AGENT_FLUSH_INTERVAL", "10s"))
AGENT_METRIC_BATCH_SIZE = int(os.getenv("AGENT_METRIC_BATCH_SIZE", "1000"))
AGENT_METRIC_BUFFER_LIMIT = int(os.getenv("AGENT_METRIC_BUFFER_LIMIT", "10000"))
AGENT_TAGS = _parse_tags(os.getenv("AGENT_TAGS", ""))
