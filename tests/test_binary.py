import hashlib

import pytest

from reminders_bridge.binary import (
    BinarySecurityConfig,
    candidate_binary_paths,
    ensure_binary_usable,
    find_project_root,
    find_secure_binary_path,
    get_environment_binary_config,
    resolve_binary_path,
    validate_binary_security,
)
from reminders_bridge.errors import BinaryValidationError

from conftest import make_helper, make_settings

PYPROJECT = '[project]\nname = "reminders-bridge"\nversion = "0.1.0"\n'


def _codes(result):
    return [error.split(":", 1)[0] for error in result.errors]


class TestValidateBinarySecurity:
    def test_valid_binary_passes_with_hash(self, helper):
        result = validate_binary_security(str(helper), BinarySecurityConfig())
        assert result.is_valid
        assert result.errors == []
        assert result.hash == hashlib.sha256(helper.read_bytes()).hexdigest()

    def test_relative_path_rejected(self):
        result = validate_binary_security("dist/swift/bin/GetReminders", BinarySecurityConfig())
        assert not result.is_valid
        assert _codes(result) == ["INVALID_PATH"]

    def test_path_traversal_rejected(self, helper):
        sneaky = str(helper.parent / ".." / "bin" / "GetReminders")
        result = validate_binary_security(sneaky, BinarySecurityConfig())
        assert _codes(result) == ["PATH_TRAVERSAL"]

    def test_forbidden_directory_rejected(self, tmp_path):
        outside = tmp_path / "usr" / "local" / "GetReminders"
        outside.parent.mkdir(parents=True)
        outside.write_bytes(b"x")
        outside.chmod(0o755)
        result = validate_binary_security(str(outside), BinarySecurityConfig())
        assert _codes(result) == ["FORBIDDEN_PATH"]

    def test_missing_file(self, tmp_path):
        missing = tmp_path / "dist" / "swift" / "bin" / "GetReminders"
        result = validate_binary_security(str(missing), BinarySecurityConfig())
        assert _codes(result) == ["FILE_NOT_FOUND"]

    def test_directory_is_not_a_file(self, tmp_path):
        directory = tmp_path / "dist" / "swift" / "bin" / "GetReminders"
        directory.mkdir(parents=True)
        result = validate_binary_security(str(directory), BinarySecurityConfig())
        assert _codes(result) == ["NOT_A_FILE"]

    def test_too_large(self, tmp_path):
        helper = make_helper(tmp_path, content=b"x" * 64)
        result = validate_binary_security(str(helper), BinarySecurityConfig(max_file_size=16))
        assert _codes(result) == ["FILE_TOO_LARGE"]

    def test_not_executable(self, tmp_path):
        helper = make_helper(tmp_path, mode=0o644)
        result = validate_binary_security(str(helper), BinarySecurityConfig())
        assert _codes(result) == ["NOT_EXECUTABLE"]

    def test_hash_mismatch(self, helper):
        result = validate_binary_security(str(helper), BinarySecurityConfig(expected_hash="0" * 64))
        assert not result.is_valid
        assert _codes(result) == ["HASH_MISMATCH"]

    def test_hash_match_is_case_insensitive(self, helper):
        digest = hashlib.sha256(helper.read_bytes()).hexdigest().upper()
        assert validate_binary_security(str(helper), BinarySecurityConfig(expected_hash=digest)).is_valid


class TestEnvironmentConfig:
    def test_test_posture_relaxes_path_rules(self):
        config = get_environment_binary_config(make_settings(environment="test"))
        assert config.require_absolute_path is False
        assert config.max_file_size == 100 * 1024 * 1024
        assert config.expected_hash is None

    def test_development(self):
        config = get_environment_binary_config(make_settings(environment="development", helper_sha256="ab"))
        assert config.require_absolute_path is True
        assert config.max_file_size == 100 * 1024 * 1024
        assert config.expected_hash is None

    def test_production_enforces_digest(self):
        config = get_environment_binary_config(make_settings(environment="production", helper_sha256="ab"))
        assert config.max_file_size == 50 * 1024 * 1024
        assert config.expected_hash == "ab"


class TestLocation:
    def test_project_root_found_by_name(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text(PYPROJECT)
        start = tmp_path / "src" / "pkg"
        start.mkdir(parents=True)
        assert find_project_root(start) == tmp_path.resolve()

    def test_other_projects_are_skipped(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text(PYPROJECT)
        nested = tmp_path / "vendor" / "other"
        nested.mkdir(parents=True)
        (nested / "pyproject.toml").write_text('[project]\nname = "something-else"\n')
        assert find_project_root(nested) == tmp_path.resolve()

    def test_non_table_project_key_is_skipped(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text(PYPROJECT)
        nested = tmp_path / "tools"
        nested.mkdir()
        (nested / "pyproject.toml").write_text('project = "reminders-bridge"\n')
        assert find_project_root(nested) == tmp_path.resolve()

    def test_candidates_prefer_explicit_path(self, tmp_path):
        paths = candidate_binary_paths(tmp_path, "/opt/dist/swift/bin/GetReminders")
        assert paths[0] == "/opt/dist/swift/bin/GetReminders"
        assert paths[1:] == [
            str(tmp_path / "dist/swift/bin/GetReminders"),
            str(tmp_path / "src/swift/bin/GetReminders"),
            str(tmp_path / "swift/bin/GetReminders"),
        ]

    def test_first_valid_candidate_wins(self, tmp_path):
        valid = make_helper(tmp_path / "b")
        path, result = find_secure_binary_path(
            [str(tmp_path / "a" / "dist" / "swift" / "bin" / "GetReminders"), str(valid)],
            BinarySecurityConfig(),
        )
        assert path == str(valid)
        assert result.is_valid

    def test_resolve_finds_helper_under_project_root(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text(PYPROJECT)
        helper = make_helper(tmp_path)
        assert resolve_binary_path(make_settings(), start=tmp_path) == str(helper.resolve())

    def test_resolve_falls_back_to_dist_path(self, tmp_path, caplog):
        (tmp_path / "pyproject.toml").write_text(PYPROJECT)
        path = resolve_binary_path(make_settings(), start=tmp_path)
        assert path == str(tmp_path.resolve() / "dist" / "swift" / "bin" / "GetReminders")
        assert "SECURITY WARNING" in caplog.text


class TestEnsureBinaryUsable:
    def test_missing(self, tmp_path):
        with pytest.raises(BinaryValidationError) as exc_info:
            ensure_binary_usable(str(tmp_path / "GetReminders"))
        assert exc_info.value.code == "BINARY_NOT_FOUND"

    def test_not_executable(self, tmp_path):
        helper = make_helper(tmp_path, mode=0o644)
        with pytest.raises(BinaryValidationError) as exc_info:
            ensure_binary_usable(str(helper))
        assert exc_info.value.code == "BINARY_NOT_EXECUTABLE"
        assert "chmod +x" in str(exc_info.value)

    def test_usable(self, helper):
        ensure_binary_usable(str(helper))
