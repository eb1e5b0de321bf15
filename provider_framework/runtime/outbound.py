# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import json
from functools import cache
from typing import Any

import boto3
import requests
from botocore.exceptions import ClientError
from mypy_boto3_lambda import LambdaClient
from mypy_boto3_stepfunctions import SFNClient
from util import LOGGER

RESOURCE_NOT_READY_ERROR_CODE = "ResourceNotReadyException"


@cache
def lambda_client() -> LambdaClient:
    return boto3.client("lambda")


@cache
def stepfunctions_client() -> SFNClient:
    return boto3.client("stepfunctions")


def http_put(url: str, body: str, headers: dict[str, str], timeout: float) -> None:
    response = requests.put(url, data=body.encode("utf-8"), headers=headers, timeout=timeout)
    response.raise_for_status()


def invoke_function(function_name: str, payload: dict[str, Any]) -> dict[str, Any]:
    """
    Synchronously invokes a Lambda function and returns the invoke response with
    the `Payload` stream decoded from JSON.

    A function that is still being created or updated answers with
    ResourceNotReadyException, in which case we wait for it to become active and
    invoke it again.
    """

    request = {
        "FunctionName": function_name,
        "InvocationType": "RequestResponse",
        "Payload": json.dumps(payload),
    }

    try:
        response = lambda_client().invoke(**request)  # type: ignore[arg-type]
    except ClientError as error:
        if error.response.get("Error", {}).get("Code") != RESOURCE_NOT_READY_ERROR_CODE:
            raise
        LOGGER.info(
            "function is not ready yet, waiting for it to become active",
            extra={"function": function_name},
        )
        lambda_client().get_waiter("function_active_v2").wait(FunctionName=function_name)
        response = lambda_client().invoke(**request)  # type: ignore[arg-type]

    raw_payload = response["Payload"].read()
    decoded = dict(response)
    decoded["Payload"] = json.loads(raw_payload) if raw_payload else None
    return decoded


def start_execution(state_machine_arn: str, name: str, execution_input: dict[str, Any]) -> dict[str, Any]:
    response = stepfunctions_client().start_execution(
        stateMachineArn=state_machine_arn,
        name=name,
        input=json.dumps(execution_input),
    )
    return dict(response)
