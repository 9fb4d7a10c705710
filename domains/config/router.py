from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from core.config import API_KEY_ENV, SYSTEM_PROMPT_ENV
from core.errors import CredentialMissing, ValidationError
from domains.config.models import LANGUAGES
from domains.config.resolver import DEFAULT_SYSTEM_PROMPT, ConfigResolver
from domains.config.schemas import CredentialPayload, LanguagePayload, StreamingPayload
from domains.config.store import ConfigStore
from domains.deps import get_config_store, get_resolver

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["config"])


def _has_key(value) -> bool:
    return bool(value and value.strip())


def mask_secret(value: str) -> str:
    if len(value) <= 14:
        return "***"
    return f"{value[:10]}...{value[-4:]}"


@router.get("/config")
def get_credential_config(store: ConfigStore = Depends(get_config_store)):
    config = store.user_config()
    return {"hasApiKey": config is not None and _has_key(config.openai_key)}


@router.post("/config")
def update_credential_config(payload: CredentialPayload, store: ConfigStore = Depends(get_config_store)):
    # an absent field leaves the stored key alone; an explicit empty string clears it
    changes = payload.model_dump(include={"openai_key"}, exclude_unset=True)
    config = store.save_user_config(**changes)
    LOGGER.info("User API key updated (present=%s).", _has_key(config.openai_key))
    return {"hasApiKey": _has_key(config.openai_key)}


@router.get("/config/language")
def get_language(resolver: ConfigResolver = Depends(get_resolver)):
    return {"language": resolver.resolve_language()}


@router.post("/config/language")
def update_language(payload: LanguagePayload, store: ConfigStore = Depends(get_config_store)):
    if payload.language not in LANGUAGES:
        raise ValidationError(f"Invalid language; expected one of {', '.join(LANGUAGES)}.")
    config = store.save_user_config(language=payload.language)
    return {"language": config.language}


@router.get("/config/streaming")
def get_streaming(resolver: ConfigResolver = Depends(get_resolver)):
    return {"useStreaming": resolver.use_streaming()}


@router.post("/config/streaming")
def update_streaming(payload: StreamingPayload, store: ConfigStore = Depends(get_config_store)):
    if not isinstance(payload.use_streaming, bool):
        raise ValidationError("'useStreaming' must be a boolean.")
    config = store.save_user_config(use_streaming=payload.use_streaming)
    return {"useStreaming": config.use_streaming}


@router.post("/config/system/sync-key")
def sync_system_key(request: Request, store: ConfigStore = Depends(get_config_store)):
    """Copy the environment API key into the system configuration row."""

    env_key = (request.app.state.environ.get(API_KEY_ENV) or "").strip()
    if not env_key:
        raise CredentialMissing(f"{API_KEY_ENV} is not set in the environment.")
    config = store.save_system_config(openai_key=env_key)
    return {"success": True, "key_length": len(config.openai_key)}


@router.post("/config/system/sync-prompt")
def sync_system_prompt(request: Request, store: ConfigStore = Depends(get_config_store)):
    """Copy the environment (or built-in) system prompt into the system configuration row."""

    env_prompt = (request.app.state.environ.get(SYSTEM_PROMPT_ENV) or "").strip()
    config = store.save_system_config(system_prompt=env_prompt or DEFAULT_SYSTEM_PROMPT)
    return {"success": True, "prompt": config.system_prompt}


@router.post("/init")
def init_defaults(request: Request, store: ConfigStore = Depends(get_config_store)):
    """Seed the system row from the environment and make sure a user row exists."""

    environ = request.app.state.environ
    env_key = (environ.get(API_KEY_ENV) or "").strip()
    env_prompt = (environ.get(SYSTEM_PROMPT_ENV) or "").strip()

    if store.system_config() is None:
        store.save_system_config(openai_key=env_key, system_prompt=env_prompt or DEFAULT_SYSTEM_PROMPT)
        LOGGER.info("Created default system configuration.")
    else:
        changes = {}
        if env_key:
            changes["openai_key"] = env_key
        if env_prompt:
            changes["system_prompt"] = env_prompt
        if changes:
            store.save_system_config(**changes)
            LOGGER.info("Refreshed system configuration from the environment.")

    if store.user_config() is None:
        store.save_user_config()
        LOGGER.info("Created default user configuration.")

    return {"success": True, "message": "Database initialised."}


@router.get("/debug-env")
def debug_env(request: Request):
    environ = request.app.state.environ
    api_key = environ.get(API_KEY_ENV) or ""
    prompt = environ.get(SYSTEM_PROMPT_ENV) or ""
    return {
        "apiKey": {
            "exists": bool(api_key),
            "value": mask_secret(api_key) if api_key else None,
            "length": len(api_key),
        },
        "systemPrompt": {"exists": bool(prompt), "value": prompt or None, "length": len(prompt)},
        "environment": request.app.state.settings.environment,
    }
