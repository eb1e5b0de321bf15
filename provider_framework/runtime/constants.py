# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0


# pylint: disable=too-few-public-methods
class EnvVarsNames:
    USER_ON_EVENT_FUNCTION_ARN = "USER_ON_EVENT_FUNCTION_ARN"
    USER_IS_COMPLETE_FUNCTION_ARN = "USER_IS_COMPLETE_FUNCTION_ARN"
    WAITER_STATE_MACHINE_ARN = "WAITER_STATE_MACHINE_ARN"
    INCLUDE_STACK_TRACES = "INCLUDE_STACK_TRACES"


# pylint: disable=too-few-public-methods
class RequestType:
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"


# pylint: disable=too-few-public-methods
class EventKeys:
    RequestType = "RequestType"
    StackId = "StackId"
    RequestId = "RequestId"
    LogicalResourceId = "LogicalResourceId"
    PhysicalResourceId = "PhysicalResourceId"
    ResponseURL = "ResponseURL"
    Data = "Data"
    NoEcho = "NoEcho"
    IsComplete = "IsComplete"


# Read by CloudFormation on the follow-up DELETE, do not change.
CREATE_FAILED_PHYSICAL_ID_MARKER = "AWSCDK::CustomResourceProviderFramework::CREATE_FAILED"
MISSING_PHYSICAL_ID_MARKER = "AWSCDK::CustomResourceProviderFramework::MISSING_PHYSICAL_ID"

REDACTED_VALUE = "*****"
SANITIZED_RESPONSE_URL = "..."

RESPONSE_ATTEMPTS = 5
RESPONSE_SLEEP_SECONDS = 1.0
RESPONSE_TIMEOUT_SECONDS = 30.0

TIMEOUT_REASON = "Operation timed out"
