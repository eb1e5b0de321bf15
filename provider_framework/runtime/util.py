# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import os
import time
from typing import Callable, ParamSpec, TypeVar

from aws_lambda_powertools import Logger

LOGGER = Logger(service=os.getenv("POWERTOOLS_SERVICE_NAME", "custom-resource-provider"))

P = ParamSpec("P")
T = TypeVar("T")


def with_retries(fn: Callable[P, T], attempts: int, sleep: float) -> Callable[P, T]:
    """
    Wraps `fn` so that failed calls are retried up to `attempts` times in total,
    waiting a constant `sleep` seconds between attempts. The error raised by the
    last attempt is propagated to the caller.
    """

    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        attempt = 1
        while True:
            try:
                return fn(*args, **kwargs)
            # pylint: disable=broad-exception-caught
            except Exception as error:
                if attempt >= attempts:
                    raise
                LOGGER.warning(
                    "attempt failed, retrying",
                    extra={"attempt": attempt, "attempts": attempts, "error": str(error)},
                )
                attempt += 1
                time.sleep(sleep)

    return wrapper


def parse_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")
