# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from unittest import mock

import pytest
from botocore.exceptions import ClientError

import ssm_parameter

PROPERTIES = {"ParameterName": "/demo", "Value": "v1"}


@pytest.fixture(name="ssm")
def fixture_ssm(monkeypatch) -> mock.MagicMock:
    client = mock.MagicMock()
    monkeypatch.setattr(ssm_parameter, "ssm_client", lambda: client)
    return client


def not_found(operation: str) -> ClientError:
    return ClientError({"Error": {"Code": "ParameterNotFound", "Message": "missing"}}, operation)


def test_on_event_create_puts_parameter(ssm):
    result = ssm_parameter.on_event({"RequestType": "Create", "ResourceProperties": PROPERTIES})

    assert result == {"PhysicalResourceId": "/demo", "Data": {"ParameterName": "/demo"}}
    ssm.put_parameter.assert_called_once_with(Name="/demo", Value="v1", Type="String", Overwrite=True)


def test_on_event_delete_tolerates_missing_parameter(ssm):
    ssm.delete_parameter.side_effect = not_found("DeleteParameter")

    result = ssm_parameter.on_event(
        {"RequestType": "Delete", "PhysicalResourceId": "/demo", "ResourceProperties": PROPERTIES}
    )

    assert result == {}
    ssm.delete_parameter.assert_called_once_with(Name="/demo")


def test_on_event_delete_propagates_other_errors(ssm):
    ssm.delete_parameter.side_effect = ClientError(
        {"Error": {"Code": "AccessDeniedException", "Message": "no"}}, "DeleteParameter"
    )

    with pytest.raises(ClientError):
        ssm_parameter.on_event(
            {"RequestType": "Delete", "PhysicalResourceId": "/demo", "ResourceProperties": {}}
        )


def test_is_complete_waits_for_parameter(ssm):
    ssm.get_parameter.side_effect = not_found("GetParameter")
    event = {"RequestType": "Create", "PhysicalResourceId": "/demo", "ResourceProperties": PROPERTIES}

    assert ssm_parameter.is_complete(event) == {"IsComplete": False}


def test_is_complete_waits_for_new_value(ssm):
    ssm.get_parameter.return_value = {"Parameter": {"Value": "v0", "Version": 1}}
    event = {"RequestType": "Update", "PhysicalResourceId": "/demo", "ResourceProperties": PROPERTIES}

    assert ssm_parameter.is_complete(event) == {"IsComplete": False}


def test_is_complete_returns_version(ssm):
    ssm.get_parameter.return_value = {"Parameter": {"Value": "v1", "Version": 2}}
    event = {"RequestType": "Update", "PhysicalResourceId": "/demo", "ResourceProperties": PROPERTIES}

    assert ssm_parameter.is_complete(event) == {"IsComplete": True, "Data": {"Version": "2"}}


def test_is_complete_delete_is_immediate(ssm):
    assert ssm_parameter.is_complete({"RequestType": "Delete", "PhysicalResourceId": "/demo"}) == {
        "IsComplete": True
    }
    ssm.get_parameter.assert_not_called()
