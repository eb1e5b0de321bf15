# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import os
import sys

# Lambda code is imported flat, the same way the Lambda runtime loads it from the asset root
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.realpath(__file__))))
RUNTIME_PATH = os.path.join(PROJECT_ROOT, "provider_framework", "runtime")
DEMO_PATH = os.path.join(PROJECT_ROOT, "provider_framework", "demo")

for path in (PROJECT_ROOT, RUNTIME_PATH, DEMO_PATH):
    if path not in sys.path:
        sys.path.insert(0, path)

os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "custom-resource-provider-tests")
