# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import json
import os
from typing import Any

from aws_lambda_powertools.utilities.typing import LambdaContext
from cfn_response import CompletionStatus
from cfn_response import ProvisioningEvent
from cfn_response import Retry
from cfn_response import safe_handler
from cfn_response import submit_response
from constants import SANITIZED_RESPONSE_URL
from constants import TIMEOUT_REASON
from constants import EnvVarsNames
from constants import EventKeys
from constants import RequestType
from outbound import invoke_function
from outbound import start_execution
from util import LOGGER

USER_ON_EVENT_FUNCTION_ARN = os.getenv(EnvVarsNames.USER_ON_EVENT_FUNCTION_ARN)
USER_IS_COMPLETE_FUNCTION_ARN = os.getenv(EnvVarsNames.USER_IS_COMPLETE_FUNCTION_ARN)
WAITER_STATE_MACHINE_ARN = os.getenv(EnvVarsNames.WAITER_STATE_MACHINE_ARN)


class UserFunctionError(RuntimeError):
    pass


@safe_handler
def on_event(event: ProvisioningEvent) -> None:
    sanitized_request = sanitize(event)
    LOGGER.info("onEvent", extra={"event": sanitized_request})

    user_function_arn = required(USER_ON_EVENT_FUNCTION_ARN, EnvVarsNames.USER_ON_EVENT_FUNCTION_ARN)
    on_event_result = invoke_user_function(user_function_arn, sanitized_request) or {}
    validate_on_event_result(on_event_result)

    response_event = create_response_event(event, on_event_result)
    LOGGER.info("response event", extra={"event": sanitize(response_event)})

    # Without an isComplete handler the operation is done as soon as onEvent returns
    if not USER_IS_COMPLETE_FUNCTION_ARN:
        submit_response(
            CompletionStatus.SUCCESS,
            response_event,
            no_echo=response_event.get(EventKeys.NoEcho),
        )
        return

    execution = start_execution(
        required(WAITER_STATE_MACHINE_ARN, EnvVarsNames.WAITER_STATE_MACHINE_ARN),
        name=event[EventKeys.RequestId],
        execution_input=response_event,
    )
    LOGGER.info("waiter execution started", extra={"execution_arn": execution.get("executionArn")})


@safe_handler
def is_complete(event: ProvisioningEvent) -> None:
    sanitized_request = sanitize(event)
    LOGGER.info("isComplete", extra={"event": sanitized_request})

    user_function_arn = required(USER_IS_COMPLETE_FUNCTION_ARN, EnvVarsNames.USER_IS_COMPLETE_FUNCTION_ARN)
    is_complete_result = invoke_user_function(user_function_arn, sanitized_request) or {}
    validate_is_complete_result(is_complete_result)

    if not is_complete_result[EventKeys.IsComplete]:
        if is_complete_result.get(EventKeys.Data):
            raise ValueError('isComplete: "Data" is not allowed if "IsComplete" is "False"')
        # The waiter hands this message to onTimeout once it runs out of attempts
        raise Retry(json.dumps(event))

    response = {
        **event,
        **is_complete_result,
        EventKeys.Data: {
            **(event.get(EventKeys.Data) or {}),
            **(is_complete_result.get(EventKeys.Data) or {}),
        },
    }
    submit_response(CompletionStatus.SUCCESS, response, no_echo=event.get(EventKeys.NoEcho))


# pylint: disable=unused-argument
def on_timeout(event: dict[str, Any], context: LambdaContext | None = None) -> None:
    LOGGER.info("timeout event", extra={"event": event})

    is_complete_request = json.loads(json.loads(event["Cause"])["errorMessage"])
    submit_response(CompletionStatus.FAILED, is_complete_request, reason=TIMEOUT_REASON)


def invoke_user_function(function_arn: str, payload: dict[str, Any]) -> Any:
    LOGGER.info("user function request", extra={"function": function_arn, "payload": payload})

    response = invoke_function(function_arn, payload)
    result = response.get("Payload")
    LOGGER.info(
        "user function response",
        extra={
            "status_code": response.get("StatusCode"),
            "function_error": response.get("FunctionError"),
            "payload": result,
        },
    )

    if response.get("FunctionError"):
        message = response["FunctionError"]
        trace = None
        if isinstance(result, dict):
            message = result.get("errorMessage") or message
            trace = result.get("stackTrace")

        error = UserFunctionError(message)
        if trace:
            error.add_note("".join(trace) if isinstance(trace, list) else str(trace))
        raise error

    return result


def create_response_event(
    cfn_request: ProvisioningEvent,
    on_event_result: dict[str, Any],
) -> ProvisioningEvent:
    physical_resource_id = on_event_result.get(EventKeys.PhysicalResourceId) or default_physical_resource_id(
        cfn_request
    )
    old_physical_resource_id = cfn_request.get(EventKeys.PhysicalResourceId)
    request_type = cfn_request[EventKeys.RequestType]

    if request_type == RequestType.DELETE and physical_resource_id != old_physical_resource_id:
        raise ValueError(
            f'DELETE: cannot change the physical resource ID from "{old_physical_resource_id}" '
            f'to "{physical_resource_id}" during deletion'
        )

    if request_type == RequestType.UPDATE and physical_resource_id != old_physical_resource_id:
        LOGGER.info(
            "UPDATE: changing physical resource ID, CloudFormation will issue a DELETE for the old resource",
            extra={"old": old_physical_resource_id, "new": physical_resource_id},
        )

    return {
        **cfn_request,
        **on_event_result,
        EventKeys.PhysicalResourceId: physical_resource_id,
    }


def default_physical_resource_id(request: ProvisioningEvent) -> str | None:
    match request.get(EventKeys.RequestType):
        case RequestType.CREATE:
            return request[EventKeys.RequestId]
        case RequestType.UPDATE | RequestType.DELETE:
            return request.get(EventKeys.PhysicalResourceId)
        case _:
            raise ValueError(f'Invalid "RequestType" in request "{json.dumps(sanitize(request))}"')


def validate_on_event_result(result: Any) -> None:
    if not isinstance(result, dict):
        raise ValueError(f"onEvent must return an object, got {type(result).__name__}")

    data = result.get(EventKeys.Data)
    if data is not None and not isinstance(data, dict):
        raise ValueError(f'onEvent: "Data" must be an object, got {type(data).__name__}')


def validate_is_complete_result(result: Any) -> None:
    if not isinstance(result, dict):
        raise ValueError(f"isComplete must return an object, got {type(result).__name__}")

    if not isinstance(result.get(EventKeys.IsComplete), bool):
        raise ValueError('isComplete response must include a boolean "IsComplete" field')


def sanitize(event: ProvisioningEvent) -> ProvisioningEvent:
    return {**event, EventKeys.ResponseURL: SANITIZED_RESPONSE_URL}


def required(value: str | None, env_var_name: str) -> str:
    if not value:
        raise ValueError(f"{env_var_name} is not set")
    return value
