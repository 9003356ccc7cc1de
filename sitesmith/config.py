# python
"""
sitesmith/config.py
Configuration defaults, environment overrides and the LLM client factory.
"""
import copy
import logging
import os
from typing import Any, Dict, Optional

from .env import load_env
from .llm import BaseLLMClient, create_llm_client

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "history": {"limit": 20},
    "paths": {"events_file": None},
    "llm": {"provider": None, "gemini_model": "gemini-2.5-flash", "openai_model": None, "openai_base_url": None},
    "defaults": {"framework": "HTML/JS", "styling": "CSS", "language": "en"},
}


def _env_int(name: str, fallback: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return fallback
    try:
        return int(raw)
    except ValueError:
        logger.warning("ignoring %s=%r: not an integer", name, raw)
        return fallback


def load_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    DEFAULT_CONFIG, then environment (.env included), then ``overrides``.
    Overrides are merged one section deep.
    """
    load_env()
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["history"]["limit"] = _env_int("SITESMITH_HISTORY_LIMIT", config["history"]["limit"])
    config["paths"]["events_file"] = os.getenv("SITESMITH_EVENTS_FILE") or config["paths"]["events_file"]
    config["llm"]["provider"] = os.getenv("SITESMITH_PROVIDER") or config["llm"]["provider"]
    config["llm"]["gemini_model"] = os.getenv("GEMINI_MODEL") or config["llm"]["gemini_model"]
    config["llm"]["openai_model"] = os.getenv("OPENAI_MODEL") or config["llm"]["openai_model"]
    config["llm"]["openai_base_url"] = os.getenv("OPENAI_BASE_URL") or config["llm"]["openai_base_url"]
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section] = {**config[section], **values}
        else:
            config[section] = values
    return config


def create_configured_llm_client(config: Optional[Dict[str, Any]] = None) -> Optional[BaseLLMClient]:
    """
    Pick a provider: the explicit SITESMITH_PROVIDER when set, otherwise an
    OpenAI-compatible endpoint when key and model are present, then Gemini.
    Returns None when nothing is configured.
    """
    config = config or load_config()
    llm = config["llm"]
    provider = (llm.get("provider") or "").lower()
    openai_api_key = os.getenv("OPENAI_API_KEY")
    gemini_api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")

    if provider in ("", "openai", "openai-compat") and openai_api_key and llm.get("openai_model"):
        try:
            client = create_llm_client(
                "openai-compat",
                base_url=llm.get("openai_base_url"),
                api_key=openai_api_key,
                model=llm["openai_model"],
            )
            logger.info("Using OpenAI-compatible LLM model %s", llm["openai_model"])
            return client
        except Exception as exc:
            logger.warning("Failed to initialize OpenAI LLM client: %s", exc)

    if provider in ("", "gemini", "google") and gemini_api_key:
        try:
            client = create_llm_client("gemini", api_key=gemini_api_key, model=llm.get("gemini_model"))
            logger.info("Using Gemini LLM model %s", client.model)
            return client
        except Exception as exc:
            logger.warning("Failed to initialize Gemini LLM client: %s", exc)
    logger.debug("No LLM provider configured")
    return None
