from __future__ import annotations

import base64
import contextlib
import copy
import datetime
import logging
from dataclasses import dataclass, field
from email.utils import getaddresses
from http import HTTPStatus
from typing import TYPE_CHECKING, Protocol

import requests

from ses_mailer.signer import SigningAlgorithm, http_date, sign

if TYPE_CHECKING:
    from collections.abc import Iterable
    from email.message import Message

logger = logging.getLogger(__name__)

ACTION = "SendRawEmail"
DEFAULT_VERSION = "2010-12-01"
DEFAULT_REGION = "us-east-1"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
LOG_PREFIX = "AmazonSES: "


class DebugLogger(Protocol):
    def debug(self, message: str) -> object: ...


class NullDebugLogger:
    """Debug logger used when the host environment provides none."""

    def debug(self, message: str) -> None:
        pass


@dataclass(frozen=True)
class Credentials:
    access_key: str
    secret_key: str

    def __post_init__(self) -> None:
        if not self.access_key:
            message = "Access key needed"
            raise ConfigurationError(message)
        if not self.secret_key:
            message = "Secret key needed"
            raise ConfigurationError(message)

    def __repr__(self) -> str:
        return f"Credentials(access_key={self.access_key!r}, secret_key='***')"


@dataclass(frozen=True)
class EndpointConfig:
    version: str = DEFAULT_VERSION
    endpoint: str = f"https://email.{DEFAULT_REGION}.amazonaws.com/"
    host: str = f"email.{DEFAULT_REGION}.amazonaws.com"

    @classmethod
    def for_region(cls, region: str, version: str = DEFAULT_VERSION) -> EndpointConfig:
        """Create the endpoint configuration for an SES region."""
        return cls(
            version=version,
            endpoint=f"https://email.{region}.amazonaws.com/",
            host=f"email.{region}.amazonaws.com",
        )


@dataclass(frozen=True)
class OutgoingMessage:
    """A complete RFC 822 message and the addresses it is delivered to."""

    raw: str | bytes
    destinations: Iterable[str] = ()

    def __post_init__(self) -> None:
        if not self.raw:
            message = "Raw message payload must not be empty"
            raise ValueError(message)
        object.__setattr__(self, "destinations", tuple(self.destinations))

    @classmethod
    def from_email_message(cls, message: Message) -> OutgoingMessage:
        """Create an outgoing message from a stdlib email message.

        Destinations are the To, Cc and Bcc addresses, in that order. The Bcc
        header is left out of the raw payload.

        Args:
            message: A fully constructed email message.
        """
        recipients = [
            value
            for header in ("To", "Cc", "Bcc")
            for value in message.get_all(header, [])
        ]
        payload = copy.deepcopy(message)
        del payload["Bcc"]
        return cls(
            raw=payload.as_bytes(),
            destinations=[address for _, address in getaddresses(recipients) if address],
        )

    @property
    def data(self) -> bytes:
        if isinstance(self.raw, bytes):
            return self.raw
        return self.raw.encode("utf-8")


@dataclass(frozen=True)
class SignedRequestEnvelope:
    """The signed parts of a single SendRawEmail request."""

    timestamp: str
    signature: str
    version: str
    host: str
    raw_message_data: str
    destinations: tuple[str, ...] = field(default_factory=tuple)
    action: str = ACTION

    def params(self) -> list[tuple[str, str]]:
        params = [
            ("Action", self.action),
            ("Version", self.version),
            ("RawMessage.Data", self.raw_message_data),
        ]
        params.extend(
            (f"Destinations.member.{index}", destination)
            for index, destination in enumerate(self.destinations, start=1)
        )
        return params

    def headers(self) -> dict[str, str]:
        return {
            "Date": self.timestamp,
            "Host": self.host,
            "X-Amzn-Authorization": self.signature,
            "Content-Type": FORM_CONTENT_TYPE,
        }


@dataclass(frozen=True)
class DeliverySuccess:
    body: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class DeliveryFailure:
    """A rejected or undelivered request; status_code is None without a response."""

    status_code: int | None
    body: str

    @property
    def ok(self) -> bool:
        return False


DeliveryOutcome = DeliverySuccess | DeliveryFailure


class Mailer:
    """Deliver raw email messages through the SES SendRawEmail query API.

    Requests are signed with AWS3-HTTPS signatures. The mailer keeps no state
    between deliveries, so a single instance can be shared across threads when
    the transport allows it.
    """

    def __init__(
        self,
        access_key: str | None = None,
        secret_key: str | None = None,
        version: str | None = None,
        endpoint: str | None = None,
        host: str | None = None,
        algorithm: SigningAlgorithm = SigningAlgorithm.HMAC_SHA256,
        debug_logger: DebugLogger | None = None,
        timeout: float = 30,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize mailer instance.

        Args:
            access_key: The AWS access key ID.
            secret_key: The AWS secret access key.
            version: The SES API version, "2010-12-01" by default.
            endpoint: The URL requests are posted to.
            host: The value of the Host header.
            algorithm: The signing algorithm, HmacSHA256 by default.
            debug_logger: An object with a debug method that receives each
            response body. Defaults to a no-op.
            timeout: Seconds to wait for the SES response.
            session: A requests session used instead of module level requests.
        """
        self._credentials = Credentials(access_key or "", secret_key or "")
        defaults = EndpointConfig()
        self._endpoint_config = EndpointConfig(
            version=version or defaults.version,
            endpoint=endpoint or defaults.endpoint,
            host=host or defaults.host,
        )
        self._algorithm = algorithm
        self._debug_logger: DebugLogger = debug_logger or NullDebugLogger()
        self._timeout = timeout
        self._session = session

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def endpoint_config(self) -> EndpointConfig:
        return self._endpoint_config

    @property
    def version(self) -> str:
        return self._endpoint_config.version

    @property
    def endpoint(self) -> str:
        return self._endpoint_config.endpoint

    @property
    def host(self) -> str:
        return self._endpoint_config.host

    @property
    def algorithm(self) -> SigningAlgorithm:
        return self._algorithm

    def build_request(
        self, message: OutgoingMessage, moment: datetime.datetime | None = None
    ) -> SignedRequestEnvelope:
        """Sign a message for delivery.

        Args:
            message: The message to deliver.
            moment: The request time, the current UTC time if not set.
        """
        timestamp = http_date(moment or datetime.datetime.now(tz=datetime.UTC))
        return SignedRequestEnvelope(
            timestamp=timestamp,
            signature=sign(
                self._credentials.access_key,
                self._credentials.secret_key,
                timestamp,
                self._algorithm,
            ),
            version=self.version,
            host=self.host,
            raw_message_data=base64.b64encode(message.data).decode("ascii"),
            destinations=message.destinations,
        )

    def deliver(self, message: OutgoingMessage) -> DeliveryOutcome:
        """Send a message via SES and report the outcome.

        Non-2xx responses and transport errors are returned as DeliveryFailure
        rather than raised. The response body is passed to the debug logger once
        per call.

        Args:
            message: The message to deliver.
        """
        envelope = self.build_request(message)
        logger.debug(
            "Posting %s to %s for %d destination(s)",
            envelope.action,
            self.endpoint,
            len(envelope.destinations),
        )
        outcome = self._dispatch(envelope)
        self._log_response(outcome.body)
        return outcome

    def _dispatch(self, envelope: SignedRequestEnvelope) -> DeliveryOutcome:
        post = self._session.post if self._session is not None else requests.post
        try:
            response = post(
                self.endpoint,
                data=envelope.params(),
                headers=envelope.headers(),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.exception("Error posting to SES endpoint %s", self.endpoint)
            return DeliveryFailure(status_code=None, body=str(e))

        logger.debug("Response code retrieved from SES: %s", response.status_code)
        if HTTPStatus.OK <= response.status_code < HTTPStatus.MULTIPLE_CHOICES:
            return DeliverySuccess(body=response.text)
        logger.error(
            "SES rejected message with status %s: %s", response.status_code, response.text
        )
        return DeliveryFailure(status_code=response.status_code, body=response.text)

    def _log_response(self, body: str) -> None:
        with contextlib.suppress(Exception):
            self._debug_logger.debug(f"{LOG_PREFIX}{body}")


class ConfigurationError(ValueError):
    pass
