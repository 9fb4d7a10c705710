"""Three-tier lookup of the API key and system prompt.

Each lookup returns ``None`` when a source is absent or blank, and the callers
walk the sources in order: user setting, then system setting, then the process
environment. Nothing is cached; each call reads the store again.
"""
from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from core.config import API_KEY_ENV, SYSTEM_PROMPT_ENV
from core.errors import CredentialMissing
from domains.config.models import DEFAULT_LANGUAGE, LANGUAGES
from domains.config.store import ConfigStore

LOGGER = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "你是一位编程学习助手，请用简明易懂的方式帮助用户学习编程。"

LANGUAGE_DIRECTIVES = {
    "zh": "请始终使用简体中文回答用户的问题。",
    "en": "Always answer the user in English.",
}


def _present(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


class ConfigResolver:
    def __init__(self, store: ConfigStore, environ: Optional[Mapping[str, str]] = None) -> None:
        self.store = store
        self.environ = os.environ if environ is None else environ

    def user_credential(self) -> Optional[str]:
        config = self.store.user_config()
        return _present(config.openai_key) if config is not None else None

    def system_credential(self) -> Optional[str]:
        config = self.store.system_config()
        return _present(config.openai_key) if config is not None else None

    def env_credential(self) -> Optional[str]:
        return _present(self.environ.get(API_KEY_ENV))

    def resolve_credential(self) -> str:
        key = self.user_credential()
        if key is not None:
            LOGGER.debug("Using the user-configured API key.")
            return key

        key = self.system_credential()
        if key is not None:
            LOGGER.debug("Using the system-configured API key.")
            return key

        key = self.env_credential()
        if key is not None:
            LOGGER.debug("Using the API key from %s.", API_KEY_ENV)
            return key

        raise CredentialMissing("No OpenAI API key configured; set one in settings or via OPENAI_API_KEY.")

    def base_system_prompt(self) -> str:
        config = self.store.system_config()
        prompt = _present(config.system_prompt) if config is not None else None
        if prompt is not None:
            return prompt

        prompt = _present(self.environ.get(SYSTEM_PROMPT_ENV))
        if prompt is not None:
            return prompt

        return DEFAULT_SYSTEM_PROMPT

    def resolve_system_prompt(self, language: Optional[str] = None) -> str:
        if language not in LANGUAGE_DIRECTIVES:
            language = DEFAULT_LANGUAGE
        return f"{self.base_system_prompt()}\n\n{LANGUAGE_DIRECTIVES[language]}"

    def resolve_language(self) -> str:
        config = self.store.user_config()
        if config is not None and config.language in LANGUAGES:
            return config.language
        return DEFAULT_LANGUAGE

    def use_streaming(self) -> bool:
        config = self.store.user_config()
        return True if config is None else bool(config.use_streaming)
