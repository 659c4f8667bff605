"""
Error taxonomy cho chonkometer.

Fatal (bubble len CLI, exit code 1):
- InitializationError: vocabulary khong load duoc
- ServerConnectionError: spawn/handshake that bai, process chet giua chung
- FatalEnumerationError: tools/prompts enumeration loi
- OperationCancelledError: cancel hoac het overall timeout

Non-fatal:
- ProtocolError (RpcError, RequestTimeoutError) trong resources/templates
  duoc ghi thanh warning string, khong raise.
"""

from typing import Any, Optional


class ChonkometerError(Exception):
    """Base class cho moi loi cua chonkometer."""


class InitializationError(ChonkometerError):
    """Vocabulary table khong load duoc (missing, corrupt, unknown)."""


class ServerConnectionError(ChonkometerError, ConnectionError):
    """Khong spawn duoc server, handshake that bai, hoac transport da dong."""


class ProtocolError(ChonkometerError):
    """Server tra ve response sai format hoac vi pham protocol."""


class RpcError(ProtocolError):
    """JSON-RPC error response tu server."""

    def __init__(
        self, method: str, code: int, message: str, data: Optional[Any] = None
    ) -> None:
        self.method = method
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f'calling "{method}": {message}')


class RequestTimeoutError(ProtocolError):
    """Server khong tra loi request trong thoi gian cho phep."""

    def __init__(self, method: str, timeout: float) -> None:
        self.method = method
        self.timeout = timeout
        super().__init__(f'calling "{method}": no response after {timeout:g}s')


class FatalEnumerationError(ChonkometerError):
    """Tools/prompts enumeration that bai - abort ca run."""

    def __init__(self, category: str, cause: BaseException) -> None:
        self.category = category
        self.cause = cause
        super().__init__(f"listing {category}: {cause}")


class OperationCancelledError(ChonkometerError):
    """Run bi cancel (signal hoac overall timeout)."""
