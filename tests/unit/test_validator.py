"""
Unit tests for DeploymentValidator.
"""

from unittest.mock import Mock

import pytest

from dockship.core.validator import PROBE_COMMAND, DeploymentValidator
from dockship.exceptions import ValidationError


def make_ssh(stdout="", returncode=0):
    ssh = Mock()
    ssh.execute_remote.return_value = Mock(returncode=returncode, stdout=stdout, stderr="")
    return ssh


def test_probe_command():
    assert PROBE_COMMAND == "curl -s -o /dev/null -w '%{http_code}' http://localhost"


def test_200_passes():
    ssh = make_ssh("200")

    assert DeploymentValidator(ssh).validate() == "200"
    ssh.execute_remote.assert_called_once_with(PROBE_COMMAND)


@pytest.mark.parametrize("code", ["502", "301", "404", "204"])
def test_other_codes_fail(code):
    with pytest.raises(ValidationError, match="app is not responding") as exc_info:
        DeploymentValidator(make_ssh(code)).validate()
    assert exc_info.value.status_code == code


def test_connection_failure_fails():
    with pytest.raises(ValidationError) as exc_info:
        DeploymentValidator(make_ssh("000", returncode=7)).validate()
    assert exc_info.value.status_code == "000"


def test_garbage_output_fails():
    with pytest.raises(ValidationError):
        DeploymentValidator(make_ssh("")).validate()


def test_configurable_accept_status():
    validator = DeploymentValidator(make_ssh("301"), accept_status=(200, 301))
    assert validator.validate() == "301"
