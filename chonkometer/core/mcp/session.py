"""
Protocol Session - mot MCP server subprocess noi chuyen qua stdio.

MCP stdio transport: moi message la mot JSON-RPC 2.0 object tren mot dong
(newline-delimited) qua stdin/stdout cua server. stderr cua server chi
dung de log.

Vong doi:
    with McpSession.open("npx", ["-y", "@modelcontextprotocol/server-memory"]) as session:
        session.capabilities()
        session.request("tools/list", {})
    # close() luon duoc goi: subprocess bi terminate tren moi exit path

Threads:
- mcp-stdout: doc stdout, decode JSON, day vao queue
- mcp-stderr: doc stderr, giu tail cho error message, log debug
Main thread la thread duy nhat gui request va cho response (sequential).
"""

import json
import queue
import re
import subprocess
import threading
import time
from collections import deque
from typing import Any, Deque, Dict, Optional, Sequence, Tuple

from mcp import types as mcp_types
from pydantic import ValidationError

from chonkometer.config.app_settings import AppSettings
from chonkometer.core.cancellation import CancellationToken
from chonkometer.core.errors import (
    ProtocolError,
    RequestTimeoutError,
    RpcError,
    ServerConnectionError,
)
from chonkometer.core.logging_config import log_debug, log_info
from chonkometer.core.mcp.models import Capability, ServerInfo
from chonkometer.core.utils.subprocess_utils import popen_subprocess
from chonkometer.core.utils.text_utils import scrub_surrogates

# Thoi gian moi lan cho queue truoc khi check cancellation lai
POLL_INTERVAL = 0.1

# So dong stderr cuoi cung giu lai de dua vao error message
STDERR_TAIL_LINES = 20

JSONRPC_METHOD_NOT_FOUND = -32601

# Sentinel: stdout da dong (process exit hoac pipe dong)
_EOF = object()

# JSON escape cua surrogate (\ud800-\udfff); chi khi co moi can scrub message
_SURROGATE_ESCAPE = re.compile(rb"\\u[dD][89a-fA-F]")


def parse_initialize_result(result: Dict[str, Any]) -> Tuple[Capability, ServerInfo]:
    """
    Parse initialize result thanh (capabilities, server info).

    Capability co mat khi key ton tai va khong null (vd: "tools": {}).

    Raises:
        ServerConnectionError: Handshake response sai format
    """
    raw_caps = result.get("capabilities")
    if not isinstance(raw_caps, dict):
        raise ServerConnectionError(
            "malformed handshake response: missing capabilities object"
        )
    try:
        caps = mcp_types.ServerCapabilities.model_validate(raw_caps)
    except ValidationError as exc:
        raise ServerConnectionError(
            f"malformed handshake response: invalid capabilities: {exc}"
        ) from exc

    flags = Capability.NONE
    if caps.tools is not None:
        flags |= Capability.TOOLS
    if caps.prompts is not None:
        flags |= Capability.PROMPTS
    if caps.resources is not None:
        flags |= Capability.RESOURCES

    raw_info = result.get("serverInfo")
    if raw_info is None:
        return flags, ServerInfo()
    if not isinstance(raw_info, dict) or not isinstance(raw_info.get("name", ""), str):
        raise ServerConnectionError("malformed handshake response: invalid serverInfo")

    version = raw_info.get("version")
    return flags, ServerInfo(
        name=raw_info.get("name", ""),
        version=str(version) if version not in (None, "") else None,
    )


class McpSession:
    """
    Mot subprocess MCP server + JSON-RPC client dong bo.

    Khong tao truc tiep; dung McpSession.open().
    """

    def __init__(
        self,
        process: subprocess.Popen,
        settings: AppSettings,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        self._process = process
        self._settings = settings
        self._cancel = cancel_token or CancellationToken()

        self._messages: "queue.Queue[Any]" = queue.Queue()
        self._stderr_tail: Deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        self._write_lock = threading.Lock()
        self._next_id = 1
        self._closed = False

        self._capabilities = Capability.NONE
        self._server_info = ServerInfo()

        self._stdout_thread = threading.Thread(
            target=self._read_stdout, name="mcp-stdout", daemon=True
        )
        self._stderr_thread = threading.Thread(
            target=self._read_stderr, name="mcp-stderr", daemon=True
        )
        self._stdout_thread.start()
        self._stderr_thread.start()

    # ── Lifecycle ──────────────────────────────────────────────────

    @classmethod
    def open(
        cls,
        command: str,
        args: Sequence[str] = (),
        *,
        settings: Optional[AppSettings] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> "McpSession":
        """
        Spawn server va thuc hien initialize handshake.

        Args:
            command: Executable cua server (vd: "npx")
            args: Arguments cho executable
            settings: AppSettings (timeouts, client identity)
            cancel_token: Optional cancellation signal

        Returns:
            McpSession da handshake xong

        Raises:
            ServerConnectionError: Spawn that bai, process exit som,
                handshake timeout hoac response sai format
            OperationCancelledError: Bi cancel trong luc handshake
        """
        settings = settings or AppSettings()
        argv = [command, *args]
        log_debug(f"[Session] Starting server: {argv}")

        try:
            process = popen_subprocess(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            raise ServerConnectionError(f"starting {command!r}: {exc}") from exc

        session = cls(process, settings, cancel_token)
        log_debug(f"[Session] Server started (pid {session.pid})")
        try:
            session._handshake()
        except BaseException:
            session.close()
            raise
        return session

    def _handshake(self) -> None:
        params = {
            "protocolVersion": mcp_types.LATEST_PROTOCOL_VERSION,
            "capabilities": {},
            "clientInfo": {
                "name": self._settings.client_name,
                "version": self._settings.client_version,
            },
        }
        try:
            result = self.request(
                "initialize", params, timeout=self._settings.handshake_timeout
            )
        except ProtocolError as exc:
            raise ServerConnectionError(f"handshake failed: {exc}") from exc

        self._capabilities, self._server_info = parse_initialize_result(result)
        self.notify("notifications/initialized")

        log_info(
            f"[Session] Connected to {self._server_info.name or '<unnamed>'} "
            f"(capabilities: {self._capabilities})"
        )

    def close(self) -> None:
        """
        Dong stdin, cho server exit; het han thi terminate roi kill.

        Idempotent. Khi run bi cancel, bo qua buoc cho graceful exit.
        """
        if self._closed:
            return
        self._closed = True

        proc = self._process
        grace = 0.0 if self._cancel.is_cancelled() else self._settings.shutdown_timeout

        if proc.stdin is not None:
            try:
                proc.stdin.close()
            except OSError as exc:
                log_debug(f"[Session] Closing stdin: {exc}")

        try:
            proc.wait(timeout=grace)
        except subprocess.TimeoutExpired:
            proc.terminate()
            try:
                proc.wait(timeout=self._settings.shutdown_timeout)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()

        self._stdout_thread.join(timeout=1.0)
        self._stderr_thread.join(timeout=1.0)
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()

        log_debug(f"[Session] Server exited with code {proc.returncode}")

    def __enter__(self) -> "McpSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ── Accessors ──────────────────────────────────────────────────

    def capabilities(self) -> Capability:
        return self._capabilities

    def server_info(self) -> ServerInfo:
        return self._server_info

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._process.poll()

    # ── JSON-RPC ───────────────────────────────────────────────────

    def request(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Gui mot request va cho response.

        Returns:
            "result" object cua response

        Raises:
            RpcError: Server tra ve JSON-RPC error
            RequestTimeoutError: Khong co response trong `timeout` giay
            ProtocolError: Response sai format
            ServerConnectionError: Session da dong hoac process da exit
            OperationCancelledError: Cancellation token fired
        """
        if self._closed:
            raise ServerConnectionError(f'calling "{method}": session is closed')

        request_id = self._next_id
        self._next_id += 1

        message: Dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            message["params"] = params
        self._send(message, method)

        response = self._wait_for(
            request_id, method, timeout or self._settings.request_timeout
        )

        if "error" in response:
            error = response["error"]
            if not isinstance(error, dict):
                raise ProtocolError(f'calling "{method}": malformed error response')
            raise RpcError(
                method,
                error.get("code", 0),
                str(error.get("message", "")),
                error.get("data"),
            )

        result = response.get("result")
        if not isinstance(result, dict):
            raise ProtocolError(f'calling "{method}": result is not an object')
        return result

    def notify(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        message: Dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        self._send(message, method)

    def _send(self, message: Dict[str, Any], method: str) -> None:
        data = (json.dumps(message) + "\n").encode("utf-8")
        with self._write_lock:
            try:
                self._process.stdin.write(data)
                self._process.stdin.flush()
            except (OSError, ValueError) as exc:
                raise ServerConnectionError(
                    self._describe_exit(f'sending "{method}"')
                ) from exc

    def _wait_for(self, request_id: int, method: str, timeout: float) -> Dict[str, Any]:
        deadline = time.monotonic() + timeout
        while True:
            self._cancel.raise_if_cancelled()

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise RequestTimeoutError(method, timeout)

            try:
                message = self._messages.get(timeout=min(POLL_INTERVAL, remaining))
            except queue.Empty:
                continue

            if message is _EOF:
                # Giu sentinel cho cac request sau
                self._messages.put(_EOF)
                raise ServerConnectionError(
                    self._describe_exit(f'waiting for "{method}" response')
                )

            if not isinstance(message, dict):
                log_debug(f"[Session] Ignoring non-object message: {message!r}")
                continue

            if "method" in message:
                self._handle_server_message(message)
                continue

            if message.get("id") == request_id:
                return message

            log_debug(f"[Session] Ignoring response for unknown id {message.get('id')!r}")

    def _handle_server_message(self, message: Dict[str, Any]) -> None:
        method = message.get("method")
        if "id" not in message:
            log_debug(f"[Session] Notification from server: {method}")
            return

        # Server -> client request: chi ho tro ping
        if method == "ping":
            reply: Dict[str, Any] = {"jsonrpc": "2.0", "id": message["id"], "result": {}}
        else:
            reply = {
                "jsonrpc": "2.0",
                "id": message["id"],
                "error": {
                    "code": JSONRPC_METHOD_NOT_FOUND,
                    "message": f"Method not found: {method}",
                },
            }
        self._send(reply, str(method))

    def _describe_exit(self, action: str) -> str:
        try:
            code = self._process.wait(timeout=POLL_INTERVAL)
        except subprocess.TimeoutExpired:
            code = None

        if code is None:
            text = f"{action}: connection to server closed"
        else:
            text = f"{action}: server process exited with code {code}"

        # Doi stderr reader doc xong output cuoi
        self._stderr_thread.join(timeout=POLL_INTERVAL)
        if self._stderr_tail:
            text += f" (stderr: {' | '.join(list(self._stderr_tail)[-5:])})"
        return text

    # ── Reader threads ─────────────────────────────────────────────

    def _read_stdout(self) -> None:
        stream = self._process.stdout
        try:
            for raw in iter(stream.readline, b""):
                line = raw.strip()
                if not line:
                    continue
                try:
                    message = json.loads(line)
                except ValueError:
                    log_debug(f"[Session] Skipping non-JSON stdout line: {line[:200]!r}")
                    continue
                if _SURROGATE_ESCAPE.search(line):
                    # pydantic va UTF-8 encode deu tu choi surrogate le
                    message = scrub_surrogates(message)
                self._messages.put(message)
        except (OSError, ValueError) as exc:
            # Pipe bi dong trong luc close()
            log_debug(f"[Session] stdout reader stopped: {exc}")
        finally:
            self._messages.put(_EOF)

    def _read_stderr(self) -> None:
        stream = self._process.stderr
        try:
            for raw in iter(stream.readline, b""):
                line = raw.decode("utf-8", errors="replace").rstrip()
                if line:
                    self._stderr_tail.append(line)
                    log_debug(f"[server] {line}")
        except (OSError, ValueError) as exc:
            log_debug(f"[Session] stderr reader stopped: {exc}")
