# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: MIT-0

import copy
import functools
import json
import os
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Self
from urllib.parse import urlsplit

from aws_lambda_powertools.utilities.typing import LambdaContext
from constants import CREATE_FAILED_PHYSICAL_ID_MARKER
from constants import MISSING_PHYSICAL_ID_MARKER
from constants import REDACTED_VALUE
from constants import RESPONSE_ATTEMPTS
from constants import RESPONSE_SLEEP_SECONDS
from constants import RESPONSE_TIMEOUT_SECONDS
from constants import SANITIZED_RESPONSE_URL
from constants import EnvVarsNames
from constants import EventKeys
from constants import RequestType
from outbound import http_put
from util import LOGGER
from util import parse_bool
from util import with_retries

type ProvisioningEvent = dict[str, Any]
type EventBlock = Callable[[ProvisioningEvent], Any]
type LambdaHandler = Callable[[ProvisioningEvent, LambdaContext | None], None]


class CompletionStatus(Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class Retry(Exception):
    """
    Raised by a handler to ask the waiter state machine to invoke it again later.
    It is not a failure and is never reported to CloudFormation.
    """


class FailureKind(Enum):
    RETRY = "Retry"
    FAILURE = "Failure"


@dataclass(frozen=True)
class HandlerFailure:
    kind: FailureKind
    detail: str
    error: Exception

    @classmethod
    def from_exception(cls, error: Exception, include_stack_traces: bool) -> Self:
        if isinstance(error, Retry):
            return cls(FailureKind.RETRY, str(error), error)

        if include_stack_traces:
            detail = "".join(traceback.format_exception(error)).rstrip()
        else:
            detail = str(error) or type(error).__name__
        return cls(FailureKind.FAILURE, detail, error)


@dataclass(frozen=True)
class ReporterConfig:
    # Written once at start-up; tests pass their own config instead of mutating it.
    include_stack_traces: bool = True
    attempts: int = RESPONSE_ATTEMPTS
    sleep: float = RESPONSE_SLEEP_SECONDS
    timeout: float = RESPONSE_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> Self:
        return cls(
            include_stack_traces=parse_bool(os.getenv(EnvVarsNames.INCLUDE_STACK_TRACES), default=True),
        )


@dataclass
class StatusPayload:
    status: str
    reason: str
    stack_id: str
    request_id: str
    physical_resource_id: str
    logical_resource_id: str
    no_echo: bool | None = None
    data: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if not self.physical_resource_id:
            self.physical_resource_id = MISSING_PHYSICAL_ID_MARKER

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "Status": self.status,
            "Reason": self.reason,
            "StackId": self.stack_id,
            "RequestId": self.request_id,
            "PhysicalResourceId": self.physical_resource_id,
            "LogicalResourceId": self.logical_resource_id,
            "NoEcho": self.no_echo,
            "Data": self.data,
        }
        return {key: value for key, value in payload.items() if value is not None}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Self:
        return cls(
            status=payload["Status"],
            reason=payload["Reason"],
            stack_id=payload["StackId"],
            request_id=payload["RequestId"],
            physical_resource_id=payload.get("PhysicalResourceId", ""),
            logical_resource_id=payload["LogicalResourceId"],
            no_echo=payload.get("NoEcho"),
            data=payload.get("Data"),
        )


def redact_data_from_payload(payload: dict[str, Any]) -> dict[str, Any]:
    redacted_payload = copy.deepcopy(payload)

    if redacted_payload.get(EventKeys.Data):
        redacted_payload[EventKeys.Data] = {key: REDACTED_VALUE for key in redacted_payload[EventKeys.Data]}

    return redacted_payload


def logging_safe_url(url: str) -> str:
    # The query string carries the pre-signed credentials of the response URL
    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme}://{host}{parts.path}?***"


class CompletionReporter:
    def __init__(self, config: ReporterConfig | None = None) -> None:
        self.config = config or ReporterConfig()

    def submit(
        self,
        status: CompletionStatus | str,
        event: ProvisioningEvent,
        reason: str | None = None,
        no_echo: bool | None = None,
    ) -> None:
        """
        Sends the outcome of a custom resource operation to the pre-signed
        `ResponseURL` of the event. Delivery is retried, and the last transport
        error is raised once all attempts are exhausted.
        """

        status = CompletionStatus(status)
        payload = StatusPayload(
            status=status.value,
            reason=reason or status.value,
            stack_id=event[EventKeys.StackId],
            request_id=event[EventKeys.RequestId],
            physical_resource_id=event.get(EventKeys.PhysicalResourceId) or MISSING_PHYSICAL_ID_MARKER,
            logical_resource_id=event[EventKeys.LogicalResourceId],
            no_echo=no_echo,
            data=event.get(EventKeys.Data),
        )
        response_body = payload.to_json()

        response_url = event[EventKeys.ResponseURL]
        safe_url = logging_safe_url(response_url)
        if no_echo:
            LOGGER.info(
                "submit redacted response to cloudformation",
                extra={"url": safe_url, "payload": redact_data_from_payload(payload.to_dict())},
            )
        else:
            LOGGER.info(
                "submit response to cloudformation",
                extra={"url": safe_url, "payload": payload.to_dict()},
            )

        headers = {
            "content-type": "",
            "content-length": str(len(response_body.encode("utf-8"))),
        }
        send = with_retries(http_put, attempts=self.config.attempts, sleep=self.config.sleep)
        send(response_url, response_body, headers, self.config.timeout)

    def safe_handler(self, block: EventBlock) -> LambdaHandler:
        @functools.wraps(block)
        def handler(event: ProvisioningEvent, context: LambdaContext | None = None) -> None:
            # A DELETE that follows a failed CREATE has nothing to delete
            if (
                event.get(EventKeys.RequestType) == RequestType.DELETE
                and event.get(EventKeys.PhysicalResourceId) == CREATE_FAILED_PHYSICAL_ID_MARKER
            ):
                LOGGER.info("ignoring DELETE event caused by a failed CREATE event")
                self.submit(CompletionStatus.SUCCESS, event)
                return

            try:
                block(event)
            # pylint: disable=broad-exception-caught
            except Exception as error:
                failure = HandlerFailure.from_exception(error, self.config.include_stack_traces)
                if failure.kind is FailureKind.RETRY:
                    LOGGER.info("retry requested by handler")
                    raise

                LOGGER.exception("handler failed")
                self.report_failure(event, failure)

        return handler

    def report_failure(self, event: ProvisioningEvent, failure: HandlerFailure) -> None:
        if not event.get(EventKeys.PhysicalResourceId):
            if event.get(EventKeys.RequestType) == RequestType.CREATE:
                LOGGER.info(
                    "CREATE failed, responding with a marker physical resource id "
                    "so that the subsequent DELETE will be ignored"
                )
                event[EventKeys.PhysicalResourceId] = CREATE_FAILED_PHYSICAL_ID_MARKER
            else:
                # Every event other than CREATE must carry a physical resource id
                LOGGER.error(
                    'Malformed event. "PhysicalResourceId" is required',
                    extra={"event": {**event, EventKeys.ResponseURL: SANITIZED_RESPONSE_URL}},
                )

        self.submit(CompletionStatus.FAILED, event, reason=failure.detail)


DEFAULT_REPORTER = CompletionReporter(ReporterConfig.from_env())

submit_response = DEFAULT_REPORTER.submit
safe_handler = DEFAULT_REPORTER.safe_handler
