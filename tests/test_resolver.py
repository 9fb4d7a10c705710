import pytest

from core.errors import CredentialMissing
from domains.config.resolver import DEFAULT_SYSTEM_PROMPT, LANGUAGE_DIRECTIVES, ConfigResolver


def test_credential_precedence_user_system_env(config_store):
    environ = {"OPENAI_API_KEY": "E"}
    resolver = ConfigResolver(config_store, environ=environ)
    config_store.save_user_config(openai_key="U")
    config_store.save_system_config(openai_key="S")

    assert resolver.resolve_credential() == "U"

    config_store.save_user_config(openai_key=None)
    assert resolver.resolve_credential() == "S"

    config_store.save_system_config(openai_key="")
    assert resolver.resolve_credential() == "E"

    environ.pop("OPENAI_API_KEY")
    with pytest.raises(CredentialMissing):
        resolver.resolve_credential()


def test_blank_credentials_are_treated_as_unset(config_store):
    config_store.save_user_config(openai_key="   ")
    config_store.save_system_config(openai_key="\t")
    resolver = ConfigResolver(config_store, environ={"OPENAI_API_KEY": "  "})

    with pytest.raises(CredentialMissing):
        resolver.resolve_credential()


def test_resolver_tolerates_empty_tables(config_store):
    resolver = ConfigResolver(config_store, environ={})

    assert resolver.resolve_language() == "zh"
    assert resolver.use_streaming() is True
    assert resolver.user_credential() is None
    assert resolver.resolve_system_prompt("zh").startswith(DEFAULT_SYSTEM_PROMPT)


def test_system_prompt_falls_back_from_store_to_env_to_builtin(config_store):
    environ = {"DEFAULT_SYSTEM_PROMPT": "env prompt"}
    resolver = ConfigResolver(config_store, environ=environ)

    config_store.save_system_config(system_prompt="stored prompt")
    assert resolver.resolve_system_prompt("en") == f"stored prompt\n\n{LANGUAGE_DIRECTIVES['en']}"

    config_store.save_system_config(system_prompt=" ")
    assert resolver.resolve_system_prompt("en").startswith("env prompt\n\n")

    environ.clear()
    assert resolver.resolve_system_prompt("en").startswith(DEFAULT_SYSTEM_PROMPT)


def test_unknown_language_uses_default_directive(resolver):
    assert resolver.resolve_system_prompt("fr").endswith(LANGUAGE_DIRECTIVES["zh"])
    assert resolver.resolve_system_prompt(None).endswith(LANGUAGE_DIRECTIVES["zh"])


def test_every_call_rereads_the_store(config_store, resolver):
    assert resolver.resolve_language() == "zh"
    config_store.save_user_config(language="en", use_streaming=False)

    assert resolver.resolve_language() == "en"
    assert resolver.use_streaming() is False


def test_config_rows_are_updated_not_duplicated(config_store):
    first = config_store.save_user_config(language="en")
    second = config_store.save_user_config(openai_key="k")

    assert first.id == second.id
    assert second.language == "en"
    assert second.openai_key == "k"
