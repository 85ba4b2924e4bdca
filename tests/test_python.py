import pytest

from trustacks.rules.python import (
    PIP_REQUIREMENTS_EXISTS,
    PYPROJECT_TOML_EXISTS,
    PYTEST_DEPENDENCY_EXISTS,
    TOX_INI_EXISTS,
    check_pip_requirements,
    check_poetry_dependencies,
    pip_requirements_exists,
    pyproject_toml_exists,
    pytest_dependency_exists,
    tox_ini_exists,
)


class RecordingCollector:
    def __init__(self, results):
        self.results = list(results)
        self.pattern = None

    def search(self, pattern):
        self.pattern = pattern
        return self.results


def test_pyproject_toml_exists_true(tmp_path):
    (tmp_path / "pyproject.toml").write_text("")
    assert pyproject_toml_exists(str(tmp_path), None, None) == PYPROJECT_TOML_EXISTS


def test_pyproject_toml_exists_false(tmp_path):
    assert pyproject_toml_exists(str(tmp_path), None, None) is None


def test_pip_requirements_exists_true(tmp_path):
    (tmp_path / "requirements.txt").write_text("")
    assert pip_requirements_exists(str(tmp_path), None, None) == PIP_REQUIREMENTS_EXISTS


def test_pip_requirements_exists_false(tmp_path):
    assert pip_requirements_exists(str(tmp_path), None, None) is None


def test_pytest_dependency_exists_true(tmp_path):
    test_file = tmp_path / "test_my.py"
    test_file.write_text("import pytest")
    collector = RecordingCollector([str(test_file)])
    fact = pytest_dependency_exists(str(tmp_path), collector, None)
    assert collector.pattern == "test_.*.py"
    assert fact == PYTEST_DEPENDENCY_EXISTS


def test_pytest_dependency_exists_false(tmp_path):
    test_file = tmp_path / "test_my.py"
    test_file.write_text("import unittest")
    collector = RecordingCollector([str(test_file)])
    fact = pytest_dependency_exists(str(tmp_path), collector, None)
    assert collector.pattern == "test_.*.py"
    assert fact is None


def test_pytest_dependency_without_tests(tmp_path):
    (tmp_path / "pytest.ini").write_text("")
    assert pytest_dependency_exists(str(tmp_path), RecordingCollector([]), None) is None


def test_pytest_dependency_from_config(tmp_path):
    test_file = tmp_path / "test_my.py"
    test_file.write_text("import unittest")
    (tmp_path / "pytest.ini").write_text("[pytest]\n")
    fact = pytest_dependency_exists(str(tmp_path), RecordingCollector([str(test_file)]), None)
    assert fact == PYTEST_DEPENDENCY_EXISTS


def test_pytest_dependency_from_requirements(tmp_path):
    test_file = tmp_path / "test_my.py"
    test_file.write_text("import unittest")
    (tmp_path / "requirements.txt").write_text("pytest==7.4.0\n")
    fact = pytest_dependency_exists(str(tmp_path), RecordingCollector([str(test_file)]), None)
    assert fact == PYTEST_DEPENDENCY_EXISTS


def test_pytest_dependency_from_poetry_lock(tmp_path):
    test_file = tmp_path / "test_my.py"
    test_file.write_text("import unittest")
    (tmp_path / "poetry.lock").write_text('[[package]]\nname = "pytest"\n')
    fact = pytest_dependency_exists(str(tmp_path), RecordingCollector([str(test_file)]), None)
    assert fact == PYTEST_DEPENDENCY_EXISTS


def test_requirements_result_overrides_poetry_lock(tmp_path):
    test_file = tmp_path / "test_my.py"
    test_file.write_text("import unittest")
    (tmp_path / "poetry.lock").write_text('[[package]]\nname = "pytest"\n')
    (tmp_path / "requirements.txt").write_text("requests==2.0\n")
    fact = pytest_dependency_exists(str(tmp_path), RecordingCollector([str(test_file)]), None)
    assert fact is None


def test_check_poetry_dependencies(tmp_path):
    lock = tmp_path / "poetry.lock"
    lock.write_text('[[package]]\nname = "requests"\n\n[[package]]\nname = "pytest"\n')
    assert check_poetry_dependencies(str(lock), "pytest") is True
    assert check_poetry_dependencies(str(lock), "tox") is False


def test_check_poetry_dependencies_empty_lock(tmp_path):
    lock = tmp_path / "poetry.lock"
    lock.write_text("")
    assert check_poetry_dependencies(str(lock), "pytest") is False


def test_check_poetry_dependencies_invalid_toml(tmp_path):
    lock = tmp_path / "poetry.lock"
    lock.write_text("[[package\n")
    with pytest.raises(ValueError):
        check_poetry_dependencies(str(lock), "pytest")


def test_check_pip_requirements(tmp_path):
    requirements = tmp_path / "requirements.txt"
    requirements.write_text("pytest==7.4.0\nrequests==2.31.0\n")
    assert check_pip_requirements(str(requirements), "pytest") is True
    assert check_pip_requirements(str(requirements), "tox") is False


def test_check_pip_requirements_unpinned(tmp_path):
    requirements = tmp_path / "requirements.txt"
    requirements.write_text("pytest\n")
    assert check_pip_requirements(str(requirements), "pytest") is False


def test_check_pip_requirements_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        check_pip_requirements(str(tmp_path / "requirements.txt"), "pytest")


def test_tox_ini_exists_true(tmp_path):
    (tmp_path / "tox.ini").write_text("")
    assert tox_ini_exists(str(tmp_path), None, None) == TOX_INI_EXISTS


def test_tox_ini_exists_false(tmp_path):
    assert tox_ini_exists(str(tmp_path), None, None) is None