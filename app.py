#!/usr/bin/env python3

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import aws_cdk as cdk
import cdk_nag

import cdk_constants as constants
from provider_framework.demo_stack import DemoStack

app = cdk.App()
cdk.Aspects.of(app).add(cdk_nag.AwsSolutionsChecks())

DemoStack(
    app,
    constants.DEMO_STACK_NAME,
    env=constants.ENVIRONMENT,
)

app.synth()
