# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import aws_cdk as cdk
import aws_cdk.assertions as assertions
import pytest
from aws_cdk import aws_lambda as _lambda

from provider_framework.provider import MAX_WAITER_ATTEMPTS
from provider_framework.provider import Provider
from provider_framework.provider import calculate_retry_policy


def create_stack() -> cdk.Stack:
    app = cdk.App()
    return cdk.Stack(app, "TestStack")


def create_user_function(stack: cdk.Stack, _id: str) -> _lambda.Function:
    return _lambda.Function(
        stack,
        _id,
        runtime=_lambda.Runtime.PYTHON_3_12,
        code=_lambda.Code.from_inline("def handler(event, context):\n    return {}\n"),
        handler="index.handler",
    )


def test_provider_without_is_complete_handler():
    stack = create_stack()
    on_event = create_user_function(stack, "OnEvent")

    Provider(stack, "Provider", on_event_handler=on_event)
    template = assertions.Template.from_stack(stack)

    template.resource_count_is("AWS::Lambda::Function", 2)
    template.resource_count_is("AWS::StepFunctions::StateMachine", 0)
    template.has_resource_properties(
        "AWS::Lambda::Function",
        {
            "Handler": "framework.on_event",
            "Runtime": "python3.12",
            "Timeout": 900,
            "Environment": {
                "Variables": {
                    "USER_ON_EVENT_FUNCTION_ARN": assertions.Match.any_value(),
                    "INCLUDE_STACK_TRACES": "true",
                }
            },
        },
    )
    template.resource_count_is("AWS::Lambda::LayerVersion", 1)


def test_provider_with_is_complete_handler():
    stack = create_stack()
    on_event = create_user_function(stack, "OnEvent")
    is_complete = create_user_function(stack, "IsComplete")

    provider = Provider(stack, "Provider", on_event_handler=on_event, is_complete_handler=is_complete)
    template = assertions.Template.from_stack(stack)

    assert provider.waiter is not None
    template.resource_count_is("AWS::Lambda::Function", 5)
    template.resource_count_is("AWS::StepFunctions::StateMachine", 1)
    for handler in ("framework.on_event", "framework.is_complete", "framework.on_timeout"):
        template.has_resource_properties("AWS::Lambda::Function", {"Handler": handler})

    template.has_resource_properties(
        "AWS::Lambda::Function",
        {
            "Handler": "framework.on_event",
            "Environment": {
                "Variables": {
                    "USER_IS_COMPLETE_FUNCTION_ARN": assertions.Match.any_value(),
                    "WAITER_STATE_MACHINE_ARN": assertions.Match.any_value(),
                }
            },
        },
    )
    template.has_resource_properties(
        "AWS::IAM::Policy",
        {
            "PolicyDocument": {
                "Statement": assertions.Match.array_with(
                    [assertions.Match.object_like({"Action": "states:StartExecution", "Effect": "Allow"})]
                )
            }
        },
    )


def test_provider_can_disable_stack_traces():
    stack = create_stack()

    Provider(
        stack,
        "Provider",
        on_event_handler=create_user_function(stack, "OnEvent"),
        include_stack_traces=False,
    )

    assertions.Template.from_stack(stack).has_resource_properties(
        "AWS::Lambda::Function",
        {"Environment": {"Variables": assertions.Match.object_like({"INCLUDE_STACK_TRACES": "false"})}},
    )


def test_provider_rejects_polling_options_without_is_complete_handler():
    stack = create_stack()

    with pytest.raises(ValueError, match="isCompleteHandler"):
        Provider(
            stack,
            "Provider",
            on_event_handler=create_user_function(stack, "OnEvent"),
            query_interval=cdk.Duration.seconds(10),
        )


def test_calculate_retry_policy_defaults():
    retry_policy = calculate_retry_policy()

    assert retry_policy.interval.to_seconds() == 5
    assert retry_policy.max_attempts == 360
    assert retry_policy.backoff_rate == 1


def test_calculate_retry_policy_rounds_up():
    retry_policy = calculate_retry_policy(cdk.Duration.seconds(7), cdk.Duration.minutes(1))

    assert retry_policy.max_attempts == 9


def test_calculate_retry_policy_rejects_timeout_shorter_than_interval():
    with pytest.raises(ValueError, match="totalTimeout"):
        calculate_retry_policy(cdk.Duration.minutes(2), cdk.Duration.minutes(1))


def test_calculate_retry_policy_rejects_too_many_attempts():
    with pytest.raises(ValueError, match=str(MAX_WAITER_ATTEMPTS)):
        calculate_retry_policy(cdk.Duration.seconds(1), cdk.Duration.hours(1))
