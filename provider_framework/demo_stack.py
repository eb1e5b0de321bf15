# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import os
from typing import Any

import aws_cdk as cdk
import cdk_nag
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as _lambda
from constructs import Construct

import cdk_constants as constants
from provider_framework.provider import FRAMEWORK_RUNTIME
from provider_framework.provider import Provider

DEMO_PATH = os.path.join(os.path.dirname(os.path.realpath(__file__)), "demo")

ON_EVENT_LAMBDA_FUNCTION_HANDLER = "ssm_parameter.on_event"
IS_COMPLETE_LAMBDA_FUNCTION_HANDLER = "ssm_parameter.is_complete"


class DemoStack(cdk.Stack):
    """Manages an SSM parameter through the provider framework."""

    def __init__(self, scope: Construct, construct_id: str, **kwargs: Any) -> None:
        super().__init__(scope, construct_id, **kwargs)

        code = _lambda.Code.from_asset(DEMO_PATH, exclude=["__pycache__"])

        self.on_event_handler = _lambda.Function(
            self,
            "OnEventLambdaFunction",
            runtime=FRAMEWORK_RUNTIME,
            code=code,
            handler=ON_EVENT_LAMBDA_FUNCTION_HANDLER,
            timeout=cdk.Duration.minutes(1),
        )
        self.is_complete_handler = _lambda.Function(
            self,
            "IsCompleteLambdaFunction",
            runtime=FRAMEWORK_RUNTIME,
            code=code,
            handler=IS_COMPLETE_LAMBDA_FUNCTION_HANDLER,
            timeout=cdk.Duration.minutes(1),
        )
        self._allow_parameter_management(self.on_event_handler, ["ssm:PutParameter", "ssm:DeleteParameter"])
        self._allow_parameter_management(self.is_complete_handler, ["ssm:GetParameter"])

        self.provider = Provider(
            self,
            "Provider",
            on_event_handler=self.on_event_handler,
            is_complete_handler=self.is_complete_handler,
            query_interval=constants.DEMO_QUERY_INTERVAL,
            total_timeout=constants.DEMO_TOTAL_TIMEOUT,
        )

        self.parameter = cdk.CustomResource(
            self,
            "DemoParameter",
            service_token=self.provider.service_token,
            resource_type=constants.DEMO_RESOURCE_TYPE,
            properties={
                "ParameterName": constants.DEMO_PARAMETER_NAME,
                "Value": constants.DEMO_PARAMETER_VALUE,
            },
        )

        cdk.CfnOutput(self, "ParameterName", value=self.parameter.get_att_string("ParameterName"))
        cdk.CfnOutput(self, "ParameterVersion", value=self.parameter.get_att_string("Version"))

        self._add_cdk_nag_suppressions()

    def _allow_parameter_management(self, function: _lambda.Function, actions: list[str]) -> None:
        function.add_to_role_policy(
            iam.PolicyStatement(
                actions=actions,
                effect=iam.Effect.ALLOW,
                resources=[
                    cdk.Stack.of(self).format_arn(
                        service="ssm",
                        resource="parameter",
                        resource_name=constants.DEMO_PARAMETER_NAME.lstrip("/"),
                    )
                ],
            )
        )

    def _add_cdk_nag_suppressions(self) -> None:
        aws_managed_policies_suppression = cdk_nag.NagPackSuppression(
            id="AwsSolutions-IAM4",
            reason="Allow AWS managed policies",
        )
        lambda_runtime_suppression = cdk_nag.NagPackSuppression(
            id="AwsSolutions-L1",
            reason="Runtime is pinned to match the dependency layer",
        )
        cdk_nag.NagSuppressions.add_stack_suppressions(
            stack=self, suppressions=[aws_managed_policies_suppression, lambda_runtime_suppression]
        )

        aws_wildcard_policy_suppression = cdk_nag.NagPackSuppression(
            id="AwsSolutions-IAM5",
            reason="Allow wildcard policies for invoking function versions and writing X-Ray traces",
        )
        cdk_nag.NagSuppressions.add_resource_suppressions(
            self.provider,
            suppressions=[aws_wildcard_policy_suppression],
            apply_to_children=True,
        )
