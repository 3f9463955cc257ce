"""Credential resolution and the on-disk credentials file.

Precedence: CLI flags and environment, then the credentials file, then an
interactive prompt. Prompted values are stored for the next run unless
``--no-store`` or ``--non-interactive`` is set.
"""

import getpass
import os
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bcasync.config import Settings, Sink
from bcasync.exceptions import MissingCredentialError
from bcasync.logger import get_logger

logger = get_logger(__name__)

Prompt = Callable[[str], str]

NON_INTERACTIVE_HINT = "non-interactive runs need -u, -p and -t or their environment variables"


class StoredCredentials(BaseModel):
    """JSON layout of the credentials file."""

    model_config = ConfigDict(populate_by_name=True)

    bca_username: str | None = Field(default=None, alias="bcaUser")
    bca_password: str | None = Field(default=None, alias="bcaPassword")
    ynab_token: str | None = Field(default=None, alias="ynabToken")
    firefly_token: str | None = Field(default=None, alias="fireflyToken")

    @classmethod
    def from_settings(cls, settings: Settings) -> "StoredCredentials":
        return cls(
            bca_username=settings.bca_username,
            bca_password=settings.bca_password,
            ynab_token=settings.ynab_token,
            firefly_token=settings.firefly_token,
        )


def required_fields(sink: Sink) -> list[tuple[str, str, bool]]:
    """(field, prompt, secret) for every credential ``sink`` needs."""
    fields = [
        ("bca_username", "Enter KlikBCA Username: ", False),
        ("bca_password", "Enter KlikBCA Password: ", True),
    ]
    if sink is Sink.YNAB:
        fields.append(("ynab_token", "Enter YNAB Personal Access Token: ", True))
    elif sink is Sink.FIREFLY:
        fields.append(("firefly_token", "Enter Firefly III Personal Access Token: ", True))
    return fields


def load_credentials(path: Path) -> StoredCredentials | None:
    if not path.exists():
        return None
    try:
        return StoredCredentials.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        logger.warning("Ignoring unreadable credentials file", path=str(path), error=str(exc))
        return None


def save_credentials(path: Path, credentials: StoredCredentials) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = credentials.model_dump_json(by_alias=True, exclude_none=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(payload)
    logger.info("Saved credentials; use -d to delete or -r to reset anew", path=str(path))


def delete_credentials(path: Path) -> bool:
    """Remove the credentials file; False when there was nothing to remove."""
    if not path.exists():
        return False
    path.unlink()
    return True


def resolve_credentials(
    settings: Settings,
    *,
    prompt_text: Prompt = input,
    prompt_secret: Prompt = getpass.getpass,
) -> Settings | None:
    """Return ``settings`` with every credential the sink needs filled in.

    Returns None after ``--delete``, which ends the run.

    Raises:
        MissingCredentialError: a credential is missing in non-interactive
            mode, or the prompt was answered with nothing.
    """
    path = settings.credentials_path

    if settings.delete:
        if delete_credentials(path):
            logger.info("Credentials file deleted", path=str(path))
        else:
            logger.info("Credentials file already absent", path=str(path))
        return None

    stored = None
    if not (settings.non_interactive or settings.reset):
        stored = load_credentials(path)

    if stored is not None:
        fill = {
            name: value
            for name, value in stored.model_dump().items()
            if value and getattr(settings, name) is None
        }
        settings = settings.model_copy(update=fill)

    prompted: dict[str, str] = {}
    for name, label, secret in required_fields(settings.sink):
        if getattr(settings, name) is not None:
            continue
        if settings.non_interactive:
            raise MissingCredentialError(name, hint=NON_INTERACTIVE_HINT)
        answer = (prompt_secret if secret else prompt_text)(label).strip()
        if not answer:
            raise MissingCredentialError(name, hint="empty input")
        prompted[name] = answer

    settings = settings.model_copy(update=prompted)

    if not (settings.non_interactive or settings.no_store):
        if stored is None:
            save_credentials(path, StoredCredentials.from_settings(settings))
        elif prompted:
            # keep what the file already holds, add what was just typed
            save_credentials(path, stored.model_copy(update=prompted))

    return settings
