"""Tests for credential resolution and the credentials file."""

import json
import stat

import pytest

from bcasync.config import Sink
from bcasync.credentials import (
    StoredCredentials,
    delete_credentials,
    load_credentials,
    resolve_credentials,
    save_credentials,
)
from bcasync.exceptions import MissingCredentialError


def _no_prompt(label: str) -> str:
    raise AssertionError(f"unexpected prompt: {label}")


def _answers(**values: str):
    def prompt(label: str) -> str:
        for key, value in values.items():
            if key in label:
                return value
        raise AssertionError(f"unexpected prompt: {label}")

    return prompt


def test_file_uses_camel_case_keys(tmp_path):
    path = tmp_path / "credentials"
    save_credentials(path, StoredCredentials(bca_username="u", bca_password="p", ynab_token="t"))

    assert json.loads(path.read_text()) == {"bcaUser": "u", "bcaPassword": "p", "ynabToken": "t"}
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert load_credentials(path).ynab_token == "t"


def test_load_missing_and_unreadable(tmp_path):
    path = tmp_path / "credentials"
    assert load_credentials(path) is None

    path.write_text("not json")
    assert load_credentials(path) is None


def test_delete_credentials(tmp_path):
    path = tmp_path / "credentials"
    assert delete_credentials(path) is False
    path.write_text("{}")
    assert delete_credentials(path) is True
    assert not path.exists()


def test_delete_flag_ends_run(settings):
    save_credentials(settings.credentials_path, StoredCredentials(bca_username="u"))

    result = resolve_credentials(settings.model_copy(update={"delete": True}))

    assert result is None
    assert not settings.credentials_path.exists()


def test_flags_complete_skip_prompt_and_store(settings):
    resolved = resolve_credentials(settings, prompt_text=_no_prompt, prompt_secret=_no_prompt)

    assert resolved.bca_username == "user"
    saved = load_credentials(settings.credentials_path)
    assert saved.bca_password == "secret"


def test_stored_file_fills_missing_values(settings):
    save_credentials(
        settings.credentials_path,
        StoredCredentials(bca_username="stored-user", bca_password="stored-pass", ynab_token="stored-token"),
    )
    partial = settings.model_copy(update={"bca_password": None, "ynab_token": None})

    resolved = resolve_credentials(partial, prompt_text=_no_prompt, prompt_secret=_no_prompt)

    # explicit values win over the file
    assert resolved.bca_username == "user"
    assert resolved.bca_password == "stored-pass"
    assert resolved.ynab_token == "stored-token"


def test_prompted_value_is_added_to_existing_file(settings):
    """GIVEN: a file written by a YNAB run
    WHEN: a Firefly run prompts for its token
    THEN: the token joins the file and the YNAB values stay"""
    save_credentials(
        settings.credentials_path,
        StoredCredentials(bca_username="u", bca_password="p", ynab_token="y"),
    )
    firefly = settings.model_copy(
        update={"sink": Sink.FIREFLY, "bca_username": None, "bca_password": None, "ynab_token": None}
    )

    resolved = resolve_credentials(firefly, prompt_text=_no_prompt, prompt_secret=_answers(Firefly="ff-token"))

    assert resolved.firefly_token == "ff-token"
    assert json.loads(settings.credentials_path.read_text()) == {
        "bcaUser": "u",
        "bcaPassword": "p",
        "ynabToken": "y",
        "fireflyToken": "ff-token",
    }

    # the next run finds everything on disk
    again = resolve_credentials(firefly, prompt_text=_no_prompt, prompt_secret=_no_prompt)
    assert again.firefly_token == "ff-token"


def test_existing_file_untouched_when_nothing_prompted(settings):
    save_credentials(settings.credentials_path, StoredCredentials(bca_username="stored-user"))

    resolve_credentials(settings, prompt_text=_no_prompt, prompt_secret=_no_prompt)

    assert json.loads(settings.credentials_path.read_text()) == {"bcaUser": "stored-user"}


def test_prompts_for_missing_and_stores(settings):
    empty = settings.model_copy(update={"bca_username": None, "bca_password": None, "ynab_token": None})

    resolved = resolve_credentials(
        empty,
        prompt_text=_answers(Username="typed-user"),
        prompt_secret=_answers(Password="typed-pass", Token="typed-token"),
    )

    assert (resolved.bca_username, resolved.bca_password, resolved.ynab_token) == (
        "typed-user",
        "typed-pass",
        "typed-token",
    )
    assert load_credentials(settings.credentials_path).bca_username == "typed-user"


def test_no_store_keeps_file_absent(settings):
    empty = settings.model_copy(update={"ynab_token": None, "no_store": True})

    resolve_credentials(empty, prompt_text=_no_prompt, prompt_secret=_answers(Token="t"))

    assert not settings.credentials_path.exists()


def test_reset_ignores_stored_file(settings):
    save_credentials(settings.credentials_path, StoredCredentials(ynab_token="old"))
    reset = settings.model_copy(update={"ynab_token": None, "reset": True})

    resolved = resolve_credentials(reset, prompt_text=_no_prompt, prompt_secret=_answers(Token="new"))

    assert resolved.ynab_token == "new"
    assert load_credentials(settings.credentials_path).ynab_token == "new"


def test_non_interactive_missing_credential(settings):
    save_credentials(settings.credentials_path, StoredCredentials(ynab_token="stored"))
    strict = settings.model_copy(update={"ynab_token": None, "non_interactive": True})

    with pytest.raises(MissingCredentialError) as excinfo:
        resolve_credentials(strict, prompt_text=_no_prompt, prompt_secret=_no_prompt)

    assert excinfo.value.field == "ynab_token"


def test_empty_answer_is_an_error(settings):
    empty = settings.model_copy(update={"bca_username": None})

    with pytest.raises(MissingCredentialError, match="bca_username"):
        resolve_credentials(empty, prompt_text=lambda label: "  ", prompt_secret=_no_prompt)


def test_csv_sink_needs_no_ledger_token(settings):
    csv = settings.model_copy(update={"sink": Sink.CSV, "ynab_token": None, "no_store": True})

    resolved = resolve_credentials(csv, prompt_text=_no_prompt, prompt_secret=_no_prompt)

    assert resolved.ynab_token is None


def test_firefly_sink_prompts_for_firefly_token(settings):
    firefly = settings.model_copy(update={"sink": Sink.FIREFLY, "no_store": True})

    resolved = resolve_credentials(firefly, prompt_text=_no_prompt, prompt_secret=_answers(Firefly="ff"))

    assert resolved.firefly_token == "ff"
