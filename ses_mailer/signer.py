import base64
import datetime
import hmac
from enum import Enum

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_NAMES = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)
HTTP_DATE_FORMAT = "%a, %d %b %Y %H:%M:%S GMT"


class SigningAlgorithm(Enum):
    HMAC_SHA256 = "HmacSHA256"
    HMAC_SHA1 = "HmacSHA1"

    @property
    def digestmod(self) -> str:
        return {"HmacSHA256": "sha256", "HmacSHA1": "sha1"}[self.value]


def strftime(moment: datetime.datetime, date_format: str) -> str:
    """Format a datetime with fixed English day and month names.

    Only the directives needed for HTTP dates are supported. Day and month names
    come from DAY_NAMES and MONTH_NAMES, so the result does not depend on the
    process locale or on any patched date formatting routine.

    Args:
        moment: The datetime to format.
        date_format: A format string using %a, %b, %d, %Y, %H, %M, %S or %%.
    """
    directives = {
        "a": DAY_NAMES[moment.weekday()],
        "b": MONTH_NAMES[moment.month - 1],
        "d": f"{moment.day:02d}",
        "Y": f"{moment.year:04d}",
        "H": f"{moment.hour:02d}",
        "M": f"{moment.minute:02d}",
        "S": f"{moment.second:02d}",
        "%": "%",
    }
    formatted = []
    characters = iter(date_format)
    for character in characters:
        if character != "%":
            formatted.append(character)
            continue
        directive = next(characters, "")
        if directive not in directives:
            message = f"Unsupported date format directive: '%{directive}'"
            raise ValueError(message)
        formatted.append(directives[directive])
    return "".join(formatted)


def http_date(moment: datetime.datetime) -> str:
    """Return the RFC 1123 GMT date string for a datetime, naive values being UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.UTC)
    return strftime(moment.astimezone(datetime.UTC), HTTP_DATE_FORMAT)


def compute_signature(
    secret_key: str,
    timestamp: str,
    algorithm: SigningAlgorithm = SigningAlgorithm.HMAC_SHA256,
) -> str:
    """Return the base64 encoded HMAC digest of the timestamp keyed by the secret."""
    digest = hmac.new(
        secret_key.encode("utf-8"),
        timestamp.encode("utf-8"),
        algorithm.digestmod,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def sign(
    access_key: str,
    secret_key: str,
    timestamp: str,
    algorithm: SigningAlgorithm = SigningAlgorithm.HMAC_SHA256,
) -> str:
    """Create the X-Amzn-Authorization header value for a request.

    Args:
        access_key: The AWS access key ID sent in clear with the signature.
        secret_key: The AWS secret access key used as the HMAC key.
        timestamp: The exact value of the request's Date header.
        algorithm: The HMAC algorithm, HmacSHA256 unless set otherwise.
    """
    signature = compute_signature(secret_key, timestamp, algorithm)
    return (
        f"AWS3-HTTPS AWSAccessKeyId={access_key},"
        f"Algorithm={algorithm.value},Signature={signature}"
    )
