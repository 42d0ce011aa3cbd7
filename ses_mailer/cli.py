import datetime
import email
import logging

import click
import smart_open

from ses_mailer.config import Config
from ses_mailer.mailer import DeliveryFailure, Mailer, OutgoingMessage
from ses_mailer.signer import http_date, sign

logger = logging.getLogger(__name__)
CONFIG = Config()


@click.group()
def cli() -> None:
    """Deliver raw email messages through Amazon SES."""
    logger.info(CONFIG.configure_sentry())
    logger.info(CONFIG.configure_logger())
    CONFIG.check_required_env_vars()


@cli.command()
@click.option(
    "-m",
    "--message",
    "message_uri",
    required=True,
    help="Path or S3 URI of the raw RFC 822 message to send.",
)
@click.option(
    "-d",
    "--destination",
    "destinations",
    multiple=True,
    help="Recipient address. Repeat for several recipients. Defaults to the "
    "To, Cc and Bcc addresses of the message.",
)
@click.pass_context
def send(
    ctx: click.Context,
    message_uri: str,
    destinations: tuple[str, ...],
) -> None:
    """Send a raw email message via the SES SendRawEmail API."""
    with smart_open.open(message_uri, "rb") as message_file:
        raw = message_file.read()
    logger.debug("Read %d bytes from %s", len(raw), message_uri)

    try:
        message = OutgoingMessage(raw=raw, destinations=destinations)
    except ValueError:
        logger.exception("Unable to read a message from %s", message_uri)
        ctx.exit(1)
    if not destinations:
        message = OutgoingMessage.from_email_message(email.message_from_bytes(raw))

    mailer = Mailer(**CONFIG.mailer_options(), debug_logger=logger)
    outcome = mailer.deliver(message)
    if isinstance(outcome, DeliveryFailure):
        logger.error(
            "Message could not be sent, status: %s, response: %s",
            outcome.status_code,
            outcome.body,
        )
        ctx.exit(1)
    logger.info("Message sent to %s", ", ".join(message.destinations))
    logger.info("Application exiting")


@cli.command("sign")
@click.option(
    "-t",
    "--timestamp",
    help="RFC 1123 date to sign, e.g. 'Thu, 05 Nov 1970 00:00:00 GMT'. "
    "Defaults to the current time.",
)
def sign_timestamp(timestamp: str | None) -> None:
    """Print the X-Amzn-Authorization header value for a timestamp."""
    credentials = CONFIG.resolve_credentials()
    timestamp = timestamp or http_date(datetime.datetime.now(tz=datetime.UTC))
    click.echo(f"Date: {timestamp}")
    click.echo(
        "X-Amzn-Authorization: "
        f"{sign(credentials.access_key, credentials.secret_key, timestamp)}"
    )
