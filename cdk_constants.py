# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

# This file is named cdk_constants.py to avoid conflict with the runtime constants file.

import os

import aws_cdk as cdk

# Unset values synthesize an environment-agnostic stack
ENVIRONMENT = cdk.Environment(
    account=os.getenv("CDK_DEFAULT_ACCOUNT"),
    region=os.getenv("CDK_DEFAULT_REGION"),
)

DEMO_STACK_NAME = "CustomResourceProviderDemo"

DEMO_RESOURCE_TYPE = "Custom::SsmParameter"
DEMO_PARAMETER_NAME = "/custom-resource-provider/demo"
DEMO_PARAMETER_VALUE = "provisioned by the custom resource provider framework"

DEMO_QUERY_INTERVAL = cdk.Duration.seconds(10)
DEMO_TOTAL_TIMEOUT = cdk.Duration.minutes(5)
