# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from functools import cache
from typing import TYPE_CHECKING, Any

import boto3
from botocore.exceptions import ClientError

if TYPE_CHECKING:
    from aws_lambda_powertools.utilities.typing import LambdaContext
    from mypy_boto3_ssm import SSMClient

PARAMETER_NAME_PROPERTY = "ParameterName"
VALUE_PROPERTY = "Value"
PARAMETER_NOT_FOUND_ERROR_CODE = "ParameterNotFound"


@cache
def ssm_client() -> "SSMClient":
    return boto3.client("ssm")


# pylint: disable=unused-argument
def on_event(event: dict[str, Any], context: "LambdaContext | None" = None) -> dict[str, Any]:
    properties = event["ResourceProperties"]

    match event["RequestType"]:
        case "Create" | "Update":
            name = properties[PARAMETER_NAME_PROPERTY]
            ssm_client().put_parameter(
                Name=name,
                Value=properties[VALUE_PROPERTY],
                Type="String",
                Overwrite=True,
            )
            # A new name yields a new physical id, CloudFormation then deletes the old parameter
            return {"PhysicalResourceId": name, "Data": {PARAMETER_NAME_PROPERTY: name}}
        case "Delete":
            delete_parameter(event["PhysicalResourceId"])
            return {}
        case request_type:
            raise ValueError(f"Unsupported RequestType {request_type}")


# pylint: disable=unused-argument
def is_complete(event: dict[str, Any], context: "LambdaContext | None" = None) -> dict[str, Any]:
    if event["RequestType"] == "Delete":
        return {"IsComplete": True}

    try:
        parameter = ssm_client().get_parameter(Name=event["PhysicalResourceId"])["Parameter"]
    except ClientError as error:
        if error.response.get("Error", {}).get("Code") == PARAMETER_NOT_FOUND_ERROR_CODE:
            return {"IsComplete": False}
        raise

    if parameter.get("Value") != event["ResourceProperties"][VALUE_PROPERTY]:
        return {"IsComplete": False}

    return {"IsComplete": True, "Data": {"Version": str(parameter.get("Version"))}}


def delete_parameter(name: str) -> None:
    try:
        ssm_client().delete_parameter(Name=name)
    except ClientError as error:
        if error.response.get("Error", {}).get("Code") != PARAMETER_NOT_FOUND_ERROR_CODE:
            raise
