# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import math
import os
from dataclasses import dataclass
from typing import Any

import aws_cdk as cdk
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_logs as logs
from constructs import Construct

from provider_framework.runtime.constants import EnvVarsNames
from provider_framework.waiter import WaiterStateMachine

RUNTIME_PATH = os.path.join(os.path.dirname(os.path.realpath(__file__)), "runtime")
PYTHON_REQUIREMENTS_PATH = os.path.join(RUNTIME_PATH, "python_packages")
RUNTIME_ASSET_EXCLUDES = ["python_packages", "requirements.txt", "__pycache__"]

FRAMEWORK_RUNTIME = _lambda.Runtime.PYTHON_3_12
FRAMEWORK_FUNCTION_TIMEOUT = cdk.Duration.minutes(15)

ON_EVENT_LAMBDA_FUNCTION_HANDLER = "framework.on_event"
IS_COMPLETE_LAMBDA_FUNCTION_HANDLER = "framework.is_complete"
ON_TIMEOUT_LAMBDA_FUNCTION_HANDLER = "framework.on_timeout"

DEFAULT_TOTAL_TIMEOUT = cdk.Duration.minutes(30)
DEFAULT_QUERY_INTERVAL = cdk.Duration.seconds(5)
DEFAULT_LOG_RETENTION = logs.RetentionDays.ONE_MONTH
MAX_WAITER_ATTEMPTS = 1000


@dataclass
class RetryPolicy:
    interval: cdk.Duration
    max_attempts: int
    backoff_rate: float = 1


def calculate_retry_policy(
    query_interval: cdk.Duration | None = None,
    total_timeout: cdk.Duration | None = None,
) -> RetryPolicy:
    total_timeout = total_timeout or DEFAULT_TOTAL_TIMEOUT
    query_interval = query_interval or DEFAULT_QUERY_INTERVAL

    total_seconds = total_timeout.to_seconds()
    interval_seconds = query_interval.to_seconds()
    if interval_seconds <= 0:
        raise ValueError("queryInterval must be greater than zero")
    if total_seconds < interval_seconds:
        raise ValueError(
            f"totalTimeout ({total_seconds}s) must be greater than or equal to "
            f"queryInterval ({interval_seconds}s)"
        )

    max_attempts = math.ceil(total_seconds / interval_seconds)
    if max_attempts > MAX_WAITER_ATTEMPTS:
        raise ValueError(
            f"totalTimeout/queryInterval results in {max_attempts} polling attempts, "
            f"the maximum is {MAX_WAITER_ATTEMPTS}"
        )

    return RetryPolicy(interval=query_interval, max_attempts=max_attempts)


class Provider(Construct):
    """
    Deploys the custom resource provider framework around user supplied
    handlers. `service_token` is what a `cdk.CustomResource` points at.

    Without `is_complete_handler` the operation is reported as soon as the
    onEvent handler returns. With it, a waiter state machine polls the handler
    every `query_interval` until it reports completion or `total_timeout` passes.
    """

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        scope: Construct,
        _id: str,
        on_event_handler: _lambda.IFunction,
        is_complete_handler: _lambda.IFunction | None = None,
        query_interval: cdk.Duration | None = None,
        total_timeout: cdk.Duration | None = None,
        log_retention: logs.RetentionDays | None = None,
        include_stack_traces: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(scope, _id, **kwargs)

        if not is_complete_handler and (query_interval or total_timeout):
            raise ValueError(
                '"queryInterval" and "totalTimeout" can only be configured '
                'if "isCompleteHandler" is specified'
            )

        self.on_event_handler = on_event_handler
        self.is_complete_handler = is_complete_handler
        self._log_retention = log_retention or DEFAULT_LOG_RETENTION
        self._include_stack_traces = include_stack_traces

        self._code = _lambda.Code.from_asset(RUNTIME_PATH, exclude=RUNTIME_ASSET_EXCLUDES)
        self.python_requirements_layer = _lambda.LayerVersion(
            self,
            "PythonRequirementsLayer",
            compatible_runtimes=[FRAMEWORK_RUNTIME],
            code=_lambda.Code.from_asset(PYTHON_REQUIREMENTS_PATH),
            removal_policy=cdk.RemovalPolicy.DESTROY,
        )

        self.on_event_function = self._create_framework_function("OnEvent", ON_EVENT_LAMBDA_FUNCTION_HANDLER)

        self.is_complete_function: _lambda.Function | None = None
        self.on_timeout_function: _lambda.Function | None = None
        self.waiter: WaiterStateMachine | None = None

        if is_complete_handler:
            retry_policy = calculate_retry_policy(query_interval, total_timeout)

            self.is_complete_function = self._create_framework_function(
                "IsComplete", IS_COMPLETE_LAMBDA_FUNCTION_HANDLER
            )
            self.on_timeout_function = self._create_framework_function(
                "OnTimeout", ON_TIMEOUT_LAMBDA_FUNCTION_HANDLER
            )

            self.waiter = WaiterStateMachine(
                self,
                "Waiter",
                is_complete_handler=self.is_complete_function,
                timeout_handler=self.on_timeout_function,
                interval=retry_policy.interval,
                max_attempts=retry_policy.max_attempts,
                backoff_rate=retry_policy.backoff_rate,
            )
            self.waiter.state_machine.grant_start_execution(self.on_event_function)
            self.on_event_function.add_environment(
                EnvVarsNames.WAITER_STATE_MACHINE_ARN, self.waiter.state_machine_arn
            )

    @property
    def service_token(self) -> str:
        return self.on_event_function.function_arn

    def _create_framework_function(self, _id: str, handler: str) -> _lambda.Function:
        environment = {
            EnvVarsNames.USER_ON_EVENT_FUNCTION_ARN: self.on_event_handler.function_arn,
            EnvVarsNames.INCLUDE_STACK_TRACES: str(self._include_stack_traces).lower(),
        }
        if self.is_complete_handler:
            environment[EnvVarsNames.USER_IS_COMPLETE_FUNCTION_ARN] = self.is_complete_handler.function_arn

        log_group = logs.LogGroup(
            self,
            f"{_id}LogGroup",
            retention=self._log_retention,
            removal_policy=cdk.RemovalPolicy.DESTROY,
        )

        framework_function = _lambda.Function(
            self,
            f"{_id}LambdaFunction",
            runtime=FRAMEWORK_RUNTIME,
            code=self._code,
            handler=handler,
            timeout=FRAMEWORK_FUNCTION_TIMEOUT,
            layers=[self.python_requirements_layer],
            environment=environment,
            log_group=log_group,
            description=f"AWS CDK resource provider framework - {_id}",
        )

        self.on_event_handler.grant_invoke(framework_function)
        if self.is_complete_handler:
            self.is_complete_handler.grant_invoke(framework_function)

        return framework_function
