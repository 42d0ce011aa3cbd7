import logging
import os
from collections.abc import Iterable
from typing import Any

import boto3
import sentry_sdk

from ses_mailer.mailer import ConfigurationError, Credentials, EndpointConfig

logger = logging.getLogger(__name__)


class Config:
    REQUIRED_ENV_VARS: Iterable[str] = ["WORKSPACE"]

    OPTIONAL_ENV_VARS: Iterable[str] = [
        "SENTRY_DSN",
        "LOG_LEVEL",
        "SES_ACCESS_KEY_ID",
        "SES_SECRET_ACCESS_KEY",
        "SES_REGION",
        "SES_API_VERSION",
        "SES_ENDPOINT",
        "SES_HOST",
        "SES_TIMEOUT",
    ]

    def __getattr__(self, name: str) -> Any:  # noqa: ANN401
        """Provide dot notation access to configurations and env vars on this class."""
        if name in self.REQUIRED_ENV_VARS or name in self.OPTIONAL_ENV_VARS:
            return os.getenv(name)
        message = f"'{name}' not a valid configuration variable"
        raise AttributeError(message)

    def check_required_env_vars(self) -> None:
        """Method to raise exception if required env vars not set."""
        missing_vars = [var for var in self.REQUIRED_ENV_VARS if not os.getenv(var)]
        if missing_vars:
            message = f"Missing required environment variables: {', '.join(missing_vars)}"
            raise OSError(message)

    def configure_logger(self) -> str:
        log_level = getattr(logging, self.LOG_LEVEL) if self.LOG_LEVEL else logging.INFO
        logging.basicConfig(
            format="%(levelname)-8s %(asctime)s %(message)s",
            level=log_level,
        )
        return f"Logger 'root' configured with level={logging.getLevelName(log_level)}"

    def configure_sentry(self) -> str:
        env = self.WORKSPACE
        sentry_dsn = self.SENTRY_DSN
        if sentry_dsn and sentry_dsn.lower() != "none":
            sentry_sdk.init(sentry_dsn, environment=env)
            return f"Sentry DSN found, exceptions will be sent to Sentry with env={env}"
        return "No Sentry DSN found, exceptions will not be sent to Sentry"

    def resolve_credentials(self) -> Credentials:
        """Get SES credentials from env vars or the boto3 default credential chain.

        SES_ACCESS_KEY_ID and SES_SECRET_ACCESS_KEY take precedence when both are
        set. Otherwise the credentials boto3 would use (environment, shared
        credentials file, instance role) are used.
        """
        if self.SES_ACCESS_KEY_ID and self.SES_SECRET_ACCESS_KEY:
            logger.debug("Using SES credentials from environment variables")
            return Credentials(self.SES_ACCESS_KEY_ID, self.SES_SECRET_ACCESS_KEY)
        session_credentials = boto3.Session().get_credentials()
        if session_credentials is None:
            message = "No AWS credentials found for SES"
            raise ConfigurationError(message)
        frozen = session_credentials.get_frozen_credentials()
        logger.debug("Using SES credentials from the boto3 credential chain")
        return Credentials(frozen.access_key, frozen.secret_key)

    def mailer_options(self) -> dict[str, Any]:
        """Build Mailer keyword arguments from credentials and SES env vars."""
        credentials = self.resolve_credentials()
        endpoint_config = (
            EndpointConfig.for_region(self.SES_REGION)
            if self.SES_REGION
            else EndpointConfig()
        )
        options: dict[str, Any] = {
            "access_key": credentials.access_key,
            "secret_key": credentials.secret_key,
            "version": self.SES_API_VERSION or endpoint_config.version,
            "endpoint": self.SES_ENDPOINT or endpoint_config.endpoint,
            "host": self.SES_HOST or endpoint_config.host,
        }
        if self.SES_TIMEOUT:
            options["timeout"] = float(self.SES_TIMEOUT)
        return options
