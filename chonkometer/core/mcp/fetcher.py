"""
Fetcher - ket noi MCP server va lay toan bo definitions.

Control flow (single-threaded, sequential):
    McpSession.open -> collect_all(capabilities)
        -> collect(category) cho tung category theo thu tu co dinh
        -> FetchResult
Session luon duoc dong (with-block), ke ca khi loi hoac bi cancel.
Loi fatal bubble len nguyen ven; FetchResult chi tra ve khi run thanh cong.
"""

from typing import Optional, Sequence

from chonkometer.config.app_settings import AppSettings
from chonkometer.core.cancellation import CancellationToken
from chonkometer.core.logging_config import log_info
from chonkometer.core.mcp.enumerator import collect_all
from chonkometer.core.mcp.models import FetchResult
from chonkometer.core.mcp.session import McpSession


def fetch_definitions(
    command: str,
    args: Sequence[str] = (),
    *,
    settings: Optional[AppSettings] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> FetchResult:
    """
    Launch server va enumerate tools, prompts, resources, templates.

    Args:
        command: Executable cua server
        args: Arguments cho executable
        settings: AppSettings (timeouts, client identity)
        cancel_token: Optional cancellation signal

    Returns:
        FetchResult (server info, 4 lists definitions, warnings)

    Raises:
        ServerConnectionError: Spawn/handshake that bai
        FatalEnumerationError: Tools/prompts enumeration loi
        OperationCancelledError: Bi cancel / het overall timeout
    """
    with McpSession.open(
        command, args, settings=settings, cancel_token=cancel_token
    ) as session:
        result = FetchResult(server=session.server_info())

        for category, outcome in collect_all(session, session.capabilities()):
            result.definitions(category).extend(outcome.definitions)
            if outcome.warning:
                result.warnings.append(outcome.warning)

    log_info(
        f"[Fetcher] {len(result.tools)} tools, {len(result.prompts)} prompts, "
        f"{len(result.resources)} resources, {len(result.templates)} templates, "
        f"{len(result.warnings)} warnings"
    )
    return result
