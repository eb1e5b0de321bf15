# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

from typing import Any

import aws_cdk as cdk
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_logs as logs
from aws_cdk import aws_stepfunctions as stepfunctions
from aws_cdk import aws_stepfunctions_tasks as stepfunctions_tasks
from constructs import Construct

ALL_ERRORS = "States.ALL"


class WaiterStateMachine(Construct):
    """
    Polls the isComplete framework function until it stops raising `Retry`.
    Once the retry budget is spent the error is caught and handed to the
    timeout function, which reports the failure to CloudFormation.
    """

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        scope: Construct,
        _id: str,
        is_complete_handler: _lambda.IFunction,
        timeout_handler: _lambda.IFunction,
        interval: cdk.Duration,
        max_attempts: int,
        backoff_rate: float = 1,
        **kwargs: Any,
    ) -> None:
        super().__init__(scope, _id, **kwargs)

        state_machine_definition = self._create_state_machine_definition(
            is_complete_handler, timeout_handler, interval, max_attempts, backoff_rate
        )

        log_group = logs.LogGroup(
            self,
            "LogGroup",
            removal_policy=cdk.RemovalPolicy.DESTROY,
        )

        self.state_machine = stepfunctions.StateMachine(
            self,
            id="StateMachine",
            definition_body=stepfunctions.DefinitionBody.from_chainable(state_machine_definition),
            logs=stepfunctions.LogOptions(level=stepfunctions.LogLevel.ALL, destination=log_group),
            tracing_enabled=True,
        )

    @property
    def state_machine_arn(self) -> str:
        return self.state_machine.state_machine_arn

    def _create_state_machine_definition(
        self,
        is_complete_handler: _lambda.IFunction,
        timeout_handler: _lambda.IFunction,
        interval: cdk.Duration,
        max_attempts: int,
        backoff_rate: float,
    ) -> stepfunctions.Chain:
        is_complete_task = stepfunctions_tasks.LambdaInvoke(
            self,
            "IsComplete",
            lambda_function=is_complete_handler,
            payload_response_only=True,
        )

        on_timeout_task = stepfunctions_tasks.LambdaInvoke(
            self,
            "OnTimeout",
            lambda_function=timeout_handler,
            payload_response_only=True,
        )

        success = stepfunctions.Succeed(self, "Success")
        failed = stepfunctions.Fail(self, "Fail")

        is_complete_task.add_retry(
            errors=[ALL_ERRORS],
            interval=interval,
            max_attempts=max_attempts,
            backoff_rate=backoff_rate,
        )
        is_complete_task.add_catch(on_timeout_task, errors=[ALL_ERRORS])

        on_timeout_task.next(failed)

        return is_complete_task.next(success)
