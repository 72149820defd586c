from __future__ import annotations

import json
import logging
from pathlib import Path

from supertx.config import settings

logger = logging.getLogger(__name__)

_REGISTRY_PATH = Path(__file__).parent / "explorers.json"
_registry: dict[int, str] = {}


def _load_registry() -> dict[int, str]:
    global _registry
    if not _registry:
        with open(_REGISTRY_PATH) as f:
            _registry = {int(chain_id): url for chain_id, url in json.load(f).items()}
    return _registry


def get_explorer_url(chain_id: int | str) -> str | None:
    chain_id = int(chain_id)
    if chain_id in settings.explorer_url_overrides:
        return settings.explorer_url_overrides[chain_id].rstrip("/")
    return _load_registry().get(chain_id)


def get_explorer_tx_link(tx_hash: str, chain_id: int | str) -> str | None:
    base_url = get_explorer_url(chain_id)
    if base_url is None:
        logger.warning("No block explorer known for chain %s", chain_id)
        return None
    return f"{base_url}/tx/{tx_hash}"


def get_jiffyscan_link(user_op_hash: str) -> str:
    return f"{settings.jiffyscan_url.rstrip('/')}/tx/{user_op_hash}"


def get_meescan_link(hash: str) -> str:
    return f"{settings.meescan_url.rstrip('/')}/details/{hash}"
