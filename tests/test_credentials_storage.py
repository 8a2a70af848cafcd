import pytest

from ctxsync.exceptions import ConfigNotFoundError, ConfigParseError, UnknownProfileError
from ctxsync.storage.credentials_storage import CredentialsStorage


@pytest.fixture
def credentials(credentials_path):
    return CredentialsStorage.load(credentials_path)


def test_list_profile_names(credentials):
    """Profiles are sorted and exclude the default section"""
    assert credentials.list_profile_names() == ['anotherprofile', 'dev', 'live']


def test_get_active_profile(credentials):
    assert credentials.get_active_profile() == ('live', 2)


def test_set_active_profile_persists(credentials, credentials_path):
    credentials.set_active_profile('dev')
    reloaded = CredentialsStorage.load(credentials_path)
    assert reloaded.get_active_profile() == ('dev', 1)
    assert reloaded._config['default']['aws_access_key_id'] == 'DEVKEY'


def test_set_unknown_profile(credentials, credentials_path):
    """Unknown profiles are rejected without touching the file"""
    before = credentials_path.read_text()
    with pytest.raises(UnknownProfileError):
        credentials.set_active_profile('nope')
    assert credentials_path.read_text() == before


def test_clear_active_profile(credentials, credentials_path):
    credentials.clear_active_profile()
    reloaded = CredentialsStorage.load(credentials_path)
    assert reloaded.get_active_profile() == (None, -1)
    assert 'default' not in reloaded._config.sections()
    assert reloaded.list_profile_names() == ['anotherprofile', 'dev', 'live']


def test_default_matching_no_profile(tmp_path):
    path = tmp_path / "credentials"
    path.write_text("[a]\naws_access_key_id = A\n\n[default]\naws_access_key_id = Z\n")
    assert CredentialsStorage.load(path).get_active_profile() == (None, -1)


def test_keys_keep_case_and_percent(tmp_path):
    """Secrets with '%' and mixed-case keys are written back verbatim"""
    path = tmp_path / "credentials"
    path.write_text("[p]\naws_secret_access_key = ab%cd\nRegion = eu-west-1\n")
    storage = CredentialsStorage.load(path)
    storage.set_active_profile('p')
    text = path.read_text()
    assert "aws_secret_access_key = ab%cd" in text
    assert "Region = eu-west-1" in text


def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigNotFoundError):
        CredentialsStorage.load(tmp_path / "missing")


def test_load_malformed_file(tmp_path):
    path = tmp_path / "credentials"
    path.write_text("aws_access_key_id = no section header\n")
    with pytest.raises(ConfigParseError):
        CredentialsStorage.load(path)


def test_switch_keeps_comments(credentials_path):
    """Comments in the credentials file survive a profile switch"""
    credentials_path.write_text("# managed by sso\n" + credentials_path.read_text())
    CredentialsStorage.load(credentials_path).set_active_profile('dev')
    text = credentials_path.read_text()
    assert text.startswith("# managed by sso\n[live]\n")
    assert CredentialsStorage.load(credentials_path).get_active_profile() == ('dev', 1)


def test_switch_keeps_section_order(tmp_path):
    """[default] is refilled where it is, comments of the next section stay put"""
    path = tmp_path / "credentials"
    path.write_text(
        "[default]\naws_access_key_id = A\naws_secret_access_key = SA\n"
        "\n; second account\n[b]\naws_access_key_id = B\naws_secret_access_key = SB\n"
        "\n[a]\naws_access_key_id = A\naws_secret_access_key = SA\n"
    )
    CredentialsStorage.load(path).set_active_profile('b')
    assert path.read_text() == (
        "[default]\naws_access_key_id = B\naws_secret_access_key = SB\n"
        "\n; second account\n[b]\naws_access_key_id = B\naws_secret_access_key = SB\n"
        "\n[a]\naws_access_key_id = A\naws_secret_access_key = SA\n"
    )


def test_switch_adds_missing_default(tmp_path):
    path = tmp_path / "credentials"
    path.write_text("# keep me\n[a]\naws_access_key_id = A\naws_secret_access_key = SA\n")
    CredentialsStorage.load(path).set_active_profile('a')
    assert path.read_text() == (
        "# keep me\n[a]\naws_access_key_id = A\naws_secret_access_key = SA\n"
        "\n[default]\naws_access_key_id = A\naws_secret_access_key = SA\n"
    )


def test_clear_keeps_comments(tmp_path):
    path = tmp_path / "credentials"
    path.write_text(
        "[default]\naws_access_key_id = A\n"
        "\n# first account\n[a]\naws_access_key_id = A\n"
    )
    CredentialsStorage.load(path).clear_active_profile()
    assert path.read_text() == "\n# first account\n[a]\naws_access_key_id = A\n"
