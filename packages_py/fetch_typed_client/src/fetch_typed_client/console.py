"""
Console output for fetch_typed_client.

Request, response and stream fragment panels rendered with rich. Unless a
panel is marked public, sensitive headers, query parameters and JSON body
fields are masked before anything reaches the console.
"""
import json
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import urlsplit, urlunsplit

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax

from .config import LoggingConfig
from .types import ExchangeId, RequestDescriptor

SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "x-api-key",
        "x-auth-token",
        "proxy-authorization",
        "set-cookie",
    }
)

SENSITIVE_QUERY_PARAMS = frozenset(
    {"key", "token", "secret", "password", "apikey", "api_key", "access_token", "auth"}
)

# Substrings of JSON field names whose values are masked
SENSITIVE_FIELD_MARKERS = ("password", "passwd", "secret", "token", "api_key", "apikey", "credential")

MASK = "****"


def mask_sensitive(value: Optional[str], show_chars: int = 4) -> str:
    """Mask a value, keeping its first show_chars characters."""
    if value is None:
        return "<none>"
    if len(value) <= show_chars:
        return "*" * len(value)
    return value[:show_chars] + "*" * min(len(value) - show_chars, 11)


def redact_headers(
    headers: Mapping[str, str],
    extra_sensitive: Iterable[str] = (),
) -> dict:
    """Return a copy of headers with sensitive values masked."""
    sensitive = SENSITIVE_HEADERS | {name.lower() for name in extra_sensitive}
    return {
        key: mask_sensitive(value) if key.lower() in sensitive else value
        for key, value in headers.items()
    }


def mask_url(url: Optional[str], extra_sensitive: Iterable[str] = ()) -> str:
    """Mask the password and sensitive query parameters of a URL."""
    if not url:
        return "<none>"

    parts = urlsplit(url)
    netloc = parts.netloc
    if parts.password:
        netloc = netloc.replace(f":{parts.password}@", f":{MASK}@")

    query = parts.query
    if query:
        sensitive = SENSITIVE_QUERY_PARAMS | {name.lower() for name in extra_sensitive}
        masked = []
        for item in query.split("&"):
            name, sep, _ = item.partition("=")
            masked.append(f"{name}={MASK}" if sep and name.lower() in sensitive else item)
        query = "&".join(masked)

    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


def _is_sensitive_field(name: str) -> bool:
    lowered = name.lower()
    return any(marker in lowered for marker in SENSITIVE_FIELD_MARKERS)


def redact_json(value: Any) -> Any:
    """Mask sensitive fields of a decoded JSON value, recursively."""
    if isinstance(value, dict):
        return {
            key: MASK if isinstance(key, str) and _is_sensitive_field(key) else redact_json(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact_json(item) for item in value]
    return value


def format_body(body: Optional[bytes], public: bool = False) -> str:
    """Format body bytes for display, redacting JSON unless public."""
    if not body:
        return ""
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        return f"<binary data: {len(body)} bytes>"
    try:
        data = json.loads(text)
    except ValueError:
        return text if public else f"<non-JSON body: {len(body)} bytes>"
    if not public:
        data = redact_json(data)
    return json.dumps(data, indent=2, ensure_ascii=False)


class ConsoleLogger:
    """Prints request/response/fragment panels according to LoggingConfig."""

    def __init__(self, config: LoggingConfig, console: Console):
        self.config = config
        self.console = console

    def request(self, request: RequestDescriptor, extra_sensitive: Iterable[str] = ()) -> None:
        if not self.config.log_requests:
            return
        public = self.config.request_public
        extra = tuple(extra_sensitive)
        url = escape(request.url if public else mask_url(request.url, extra))
        headers = dict(request.headers) if public else redact_headers(request.headers, extra)

        self.console.print(
            Panel(f"[bold cyan]{request.method}[/bold cyan] {url}", title="[bold blue]Request[/bold blue]")
        )
        self.console.print("[bold]Headers:[/bold]", headers)
        body = format_body(request.body, public)
        if body:
            self.console.print(
                Panel(Syntax(body, "json", word_wrap=True), title="[bold]Request Body[/bold]")
            )

    def response(
        self,
        url: str,
        status_code: Optional[int],
        body: Optional[bytes],
        error: Optional[BaseException] = None,
        extra_sensitive: Iterable[str] = (),
    ) -> None:
        if not self.config.log_responses:
            return
        public = self.config.response_public
        shown_url = escape(url if public else mask_url(url, extra_sensitive))

        if error is not None:
            info = f"[bold red]{type(error).__name__}[/bold red] {escape(str(error))}"
        elif status_code is None:
            info = "[bold red]no status[/bold red]"
        else:
            color = "green" if 200 <= status_code <= 299 else "red"
            info = f"[bold {color}]{status_code}[/bold {color}]"
        self.console.print(Panel(info, title=f"[bold blue]Response[/bold blue] ({shown_url})"))

        text = format_body(body, public)
        if text:
            self.console.print(
                Panel(Syntax(text, "json", word_wrap=True), title=f"[bold]Response Body[/bold] (URL: {shown_url})")
            )

    def fragment(self, exchange_id: ExchangeId, data: bytes) -> None:
        if not self.config.log_responses:
            return
        text = format_body(data, self.config.response_public)
        self.console.print(
            Panel(Syntax(text, "json", word_wrap=True), title=f"[bold]Fragment[/bold] (exchange {exchange_id})")
        )
