"""
Credential storage for Telldus Live.

This module provides YAML file persistence for the consumer key pair and
the OAuth access token pair. Writes go to a temporary file in the same
directory which is then renamed over the target, so an interrupted save
never leaves a half-written credential file behind.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Callable, List, Optional

import click
import yaml

from .exceptions import ConfigurationError, CredentialStorageError

logger = logging.getLogger(__name__)

MANDATORY_FIELDS = ("public_key", "private_key")

FIELD_PROMPTS = {
    "public_key": "Public API key",
    "private_key": "Private API key",
}


def _clean(value) -> Optional[str]:
    """Normalize a loaded value: blank or missing becomes None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Credentials:
    """
    Telldus Live credentials.

    Attributes:
        public_key: Consumer (public) key from the Telldus API portal
        private_key: Consumer (private) secret from the Telldus API portal
        access_token: OAuth access token (absent until a handshake succeeds)
        access_token_secret: OAuth access token secret
    """

    public_key: Optional[str] = None
    private_key: Optional[str] = None
    access_token: Optional[str] = None
    access_token_secret: Optional[str] = None

    def missing_fields(self) -> List[str]:
        """
        Mandatory fields that are absent or blank.

        Returns:
            Field names in file order (public_key before private_key)
        """
        return [name for name in MANDATORY_FIELDS if not _clean(getattr(self, name))]

    @property
    def is_complete(self) -> bool:
        """True when both consumer keys are present."""
        return not self.missing_fields()

    @property
    def has_token(self) -> bool:
        """True when both access token fields are present."""
        return bool(_clean(self.access_token) and _clean(self.access_token_secret))

    def merge(self, **updates: Optional[str]) -> "Credentials":
        """
        Overlay supplied fields on these credentials.

        Fields passed as None keep their current value.

        Returns:
            New Credentials instance
        """
        unknown = set(updates) - {f.name for f in fields(self)}
        if unknown:
            raise ValueError(f"Unknown credential fields: {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in updates.items() if v is not None})

    def with_token(self, access_token: str, access_token_secret: str) -> "Credentials":
        """Replace both token fields together."""
        return replace(
            self, access_token=access_token, access_token_secret=access_token_secret
        )

    def to_dict(self) -> dict:
        """
        Convert to dictionary for YAML serialization.

        Absent fields are omitted rather than written as null.
        """
        data = {}
        for f in fields(self):
            value = _clean(getattr(self, f.name))
            if value is not None:
                data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Credentials":
        """Create Credentials from a dictionary, ignoring unknown keys."""
        return cls(**{f.name: _clean(data.get(f.name)) for f in fields(cls)})


class CredentialStore:
    """
    File-based credential storage (YAML).

    The file lives at a fixed per-user path and is bound to a single
    Telldus Live account.
    """

    def __init__(self, credentials_file: str):
        """
        Initialize credential storage.

        Args:
            credentials_file: Path to the YAML credential file
        """
        self.path = Path(credentials_file).expanduser()

    def exists(self) -> bool:
        """Check if the credential file exists."""
        return self.path.exists()

    def load(self) -> Credentials:
        """
        Load credentials from file.

        A missing file is not an error: it yields empty credentials so the
        caller can prompt for the keys.

        Returns:
            Credentials (fields absent from the file are None)

        Raises:
            CredentialStorageError: If the file cannot be read or parsed
        """
        if not self.path.exists():
            logger.debug(f"No credential file found at {self.path}")
            return Credentials()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CredentialStorageError(
                f"Failed to parse credential file {self.path}: {e}"
            ) from e
        except OSError as e:
            raise CredentialStorageError(
                f"Failed to read credential file {self.path}: {e}"
            ) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise CredentialStorageError(
                f"Credential file {self.path} must contain a mapping of fields"
            )

        credentials = Credentials.from_dict(data)
        logger.debug(f"Credentials loaded from {self.path}")
        return credentials

    def save(self, credentials: Credentials) -> None:
        """
        Save credentials atomically.

        The YAML document is written and fsynced to a temporary file next to
        the target, restricted to user-only permissions and renamed over
        the target. On failure the previous file is left intact.

        Args:
            credentials: Credentials to save

        Raises:
            CredentialStorageError: If the save fails
        """
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                yaml.safe_dump(credentials.to_dict(), f, default_flow_style=False)
                f.flush()
                os.fsync(f.fileno())

            self._set_secure_permissions(Path(tmp_name))
            os.replace(tmp_name, self.path)
            tmp_name = None
            logger.info(f"Credentials saved to {self.path}")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to save credentials: {e}")
            raise CredentialStorageError(
                f"Failed to write credential file {self.path}: {e}"
            ) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError as e:
                    logger.warning(f"Could not remove temporary file {tmp_name}: {e}")

    @staticmethod
    def _set_secure_permissions(path: Path) -> None:
        """Set file permissions to user-only read/write (600)."""
        try:
            path.chmod(0o600)
        except OSError as e:
            logger.warning(f"Could not set secure permissions: {e}")


def prompt_for_missing(
    credentials: Credentials,
    prompt: Callable[..., str] = click.prompt,
) -> Credentials:
    """
    Prompt the operator for the missing consumer keys.

    Only absent fields are asked for; present values are kept as they are.
    The private key is read without echo and must be confirmed.

    Args:
        credentials: Loaded credentials
        prompt: Prompt function (click.prompt compatible)

    Returns:
        Credentials with the supplied fields merged in

    Raises:
        ConfigurationError: If the operator aborts the prompt
    """
    updates = {}
    for name in credentials.missing_fields():
        hidden = name == "private_key"
        value = None
        while not value:
            try:
                value = _clean(
                    prompt(
                        FIELD_PROMPTS[name],
                        hide_input=hidden,
                        confirmation_prompt=hidden,
                    )
                )
            except (click.Abort, EOFError, KeyboardInterrupt) as e:
                raise ConfigurationError(
                    "Telldus Live consumer keys are required; input aborted"
                ) from e
            if not value:
                click.echo(f"A value is required for {FIELD_PROMPTS[name]}.")
        updates[name] = value

    return credentials.merge(**updates)
