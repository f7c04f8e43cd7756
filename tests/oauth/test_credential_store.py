"""Tests for credential storage module."""

import stat
from unittest import mock

import click
import pytest
import yaml

from telltales.oauth.credential_store import (
    CredentialStore,
    Credentials,
    prompt_for_missing,
)
from telltales.oauth.exceptions import ConfigurationError, CredentialStorageError


class TestCredentials:
    """Tests for Credentials dataclass."""

    def test_empty_credentials(self):
        """Empty credentials are incomplete and carry no token."""
        credentials = Credentials()

        assert credentials.missing_fields() == ["public_key", "private_key"]
        assert credentials.is_complete is False
        assert credentials.has_token is False

    def test_blank_values_count_as_missing(self):
        """Whitespace-only keys are treated as absent."""
        credentials = Credentials(public_key="  ", private_key="secret")

        assert credentials.missing_fields() == ["public_key"]

    def test_complete_with_token(self):
        """Both keys and both token fields make a complete, tokened set."""
        credentials = Credentials("pub", "priv", "tok", "sec")

        assert credentials.is_complete is True
        assert credentials.has_token is True

    def test_has_token_requires_both_fields(self):
        """A token without its secret is not a usable token."""
        assert Credentials("pub", "priv", access_token="tok").has_token is False

    def test_merge_keeps_fields_not_supplied(self):
        """merge overlays only the supplied, non-None fields."""
        credentials = Credentials("pub", None, "tok", "sec")

        merged = credentials.merge(private_key="priv", public_key=None)

        assert merged == Credentials("pub", "priv", "tok", "sec")
        assert credentials.private_key is None

    def test_merge_rejects_unknown_fields(self):
        """merge raises on field names it does not know."""
        with pytest.raises(ValueError, match="Unknown credential fields: token"):
            Credentials().merge(token="x")

    def test_with_token_replaces_both_fields(self):
        """with_token replaces token and secret together."""
        credentials = Credentials("pub", "priv", "old", "old_secret")

        updated = credentials.with_token("new", "new_secret")

        assert updated.access_token == "new"
        assert updated.access_token_secret == "new_secret"
        assert updated.public_key == "pub"

    def test_to_dict_omits_absent_fields(self):
        """to_dict leaves out absent fields instead of writing nulls."""
        data = Credentials("pub", "priv").to_dict()

        assert data == {"public_key": "pub", "private_key": "priv"}

    def test_from_dict_ignores_unknown_keys(self):
        """from_dict normalizes values and ignores unknown keys."""
        credentials = Credentials.from_dict(
            {"public_key": " pub ", "private_key": 12345, "comment": "mine"}
        )

        assert credentials.public_key == "pub"
        assert credentials.private_key == "12345"
        assert credentials.access_token is None


class TestCredentialStore:
    """Tests for CredentialStore class."""

    @pytest.fixture
    def store(self, tmp_path):
        """Create store in a temporary directory."""
        return CredentialStore(str(tmp_path / "telltales" / "credentials.yaml"))

    def test_load_missing_file_returns_empty(self, store):
        """A missing file yields empty credentials."""
        assert store.exists() is False
        assert store.load() == Credentials()

    def test_load_empty_file(self, store):
        """An empty file yields empty credentials."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text("")

        assert store.load() == Credentials()

    def test_save_and_load(self, store):
        """Credentials survive a save/load cycle."""
        credentials = Credentials("pub", "priv", "tok", "sec")

        store.save(credentials)

        assert store.exists()
        assert store.load() == credentials

    def test_save_writes_only_present_fields(self, store):
        """Saved YAML holds the present fields and no null values."""
        store.save(Credentials("pub", "priv"))

        data = yaml.safe_load(store.path.read_text())
        assert data == {"public_key": "pub", "private_key": "priv"}
        assert "null" not in store.path.read_text()

    def test_save_sets_secure_permissions(self, store):
        """Credential file is readable by the owner only."""
        store.save(Credentials("pub", "priv"))

        mode = stat.S_IMODE(store.path.stat().st_mode)
        assert mode == 0o600

    def test_save_creates_parent_directory(self, store):
        """save creates the configuration directory when needed."""
        assert not store.path.parent.exists()

        store.save(Credentials("pub", "priv"))

        assert store.path.parent.is_dir()

    def test_failed_save_keeps_previous_file(self, store):
        """A failed rename leaves the old file intact and no temp files."""
        store.save(Credentials("pub", "priv", "old", "old_secret"))
        before = store.path.read_text()

        with mock.patch(
            "telltales.oauth.credential_store.os.replace",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(CredentialStorageError, match="disk full"):
                store.save(Credentials("pub", "priv", "new", "new_secret"))

        assert store.path.read_text() == before
        assert sorted(p.name for p in store.path.parent.iterdir()) == ["credentials.yaml"]

    def test_load_invalid_yaml(self, store):
        """Malformed YAML raises CredentialStorageError."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text("public_key: [unclosed\n")

        with pytest.raises(CredentialStorageError, match="Failed to parse"):
            store.load()

    def test_load_non_mapping(self, store):
        """A YAML document that is not a mapping is rejected."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text("- public_key\n- private_key\n")

        with pytest.raises(CredentialStorageError, match="must contain a mapping"):
            store.load()

    def test_path_expands_user(self):
        """Store path expands ~."""
        store = CredentialStore("~/telltales.yaml")

        assert "~" not in str(store.path)


class TestPromptForMissing:
    """Tests for prompt_for_missing."""

    def test_prompts_only_for_missing_fields(self):
        """Present keys are not asked for again."""
        prompt = mock.Mock(return_value="new_private")

        result = prompt_for_missing(Credentials(public_key="pub"), prompt=prompt)

        assert result == Credentials("pub", "new_private")
        prompt.assert_called_once_with(
            "Private API key", hide_input=True, confirmation_prompt=True
        )

    def test_prompts_for_both_keys_in_order(self):
        """Both keys are requested, public key first and echoed."""
        prompt = mock.Mock(side_effect=["pub", "priv"])

        result = prompt_for_missing(Credentials(), prompt=prompt)

        assert result.public_key == "pub"
        assert result.private_key == "priv"
        assert prompt.call_args_list[0] == mock.call(
            "Public API key", hide_input=False, confirmation_prompt=False
        )

    def test_keeps_existing_token(self):
        """Prompting keeps token fields already present."""
        prompt = mock.Mock(return_value="priv")

        result = prompt_for_missing(
            Credentials("pub", None, "tok", "sec"), prompt=prompt
        )

        assert result.access_token == "tok"
        assert result.access_token_secret == "sec"

    def test_complete_credentials_are_not_prompted(self):
        """No prompt happens when nothing is missing."""
        prompt = mock.Mock()
        credentials = Credentials("pub", "priv")

        assert prompt_for_missing(credentials, prompt=prompt) == credentials
        prompt.assert_not_called()

    def test_blank_answer_asks_again(self, capsys):
        """A blank answer re-prompts for the same field."""
        prompt = mock.Mock(side_effect=["   ", "pub"])

        result = prompt_for_missing(Credentials(private_key="priv"), prompt=prompt)

        assert result.public_key == "pub"
        assert prompt.call_count == 2
        assert "A value is required" in capsys.readouterr().out

    @pytest.mark.parametrize("error", [click.Abort(), EOFError(), KeyboardInterrupt()])
    def test_abort_raises_configuration_error(self, error):
        """Aborting the prompt is reported as missing configuration."""
        prompt = mock.Mock(side_effect=error)

        with pytest.raises(ConfigurationError, match="input aborted"):
            prompt_for_missing(Credentials(), prompt=prompt)
