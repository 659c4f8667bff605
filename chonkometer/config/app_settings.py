"""
AppSettings - Typed settings dataclass cho chonkometer.

Thay the Dict[str, Any] bang dataclass co type hints va default values.
Tat ca settings duoc truy cap qua typed fields thay vi string keys.

Modules:
- AppSettings: Dataclass chua toan bo settings
- from_dict(): Tao AppSettings tu dict (settings.json)
- to_dict(): Chuyen doi AppSettings thanh dict (log debug)

Su dung:
    settings = load_app_settings()
    session = McpSession.open(command, args, settings=settings)
"""

import typing
from dataclasses import dataclass, field, fields
from typing import Any

from chonkometer import __version__


@dataclass
class AppSettings:
    """
    Typed settings cho chonkometer.

    Moi field tuong ung voi mot key trong settings.json.
    Default values duoc su dung khi settings.json chua co key tuong ung.
    """

    # --- Tokenizer ---
    # Ten vocabulary (tiktoken encoding) dung de dem token
    encoding_name: str = "cl100k_base"
    # Match literal special tokens (vd: "<|endoftext|>") truoc khi split
    allow_special_tokens: bool = True

    # --- MCP client identity ---
    client_name: str = "chonkometer"
    client_version: str = __version__

    # --- Timeouts (seconds) ---
    handshake_timeout: float = 60.0
    request_timeout: float = 60.0
    shutdown_timeout: float = 5.0
    # 0 = khong gioi han thoi gian toan bo run
    overall_timeout: float = 0.0

    # --- Counting ---
    # > 1 thi dem token song song bang ThreadPoolExecutor
    max_workers: int = 1

    # --- Estimate ---
    # "flat", "weighted" hoac "none"
    estimator: str = "flat"
    estimate_factor: float = 1.23
    estimate_label: str = "Claude"
    # Weights theo category cho estimator "weighted" (vd: {"tools": 1.3})
    category_weights: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppSettings":
        """
        Tao AppSettings tu dict, chi lay cac keys trung voi field names.

        Neu value co type khong khop voi field declaration,
        se bo qua va dung default thay the.

        Args:
            data: Dict settings (thuong tu settings.json)

        Returns:
            AppSettings instance voi values tu dict, fallback ve defaults
        """
        hints = typing.get_type_hints(cls)

        filtered: dict[str, Any] = {}
        for key, value in data.items():
            if key not in hints:
                continue

            expected_type = hints[key]

            # isinstance(True, int) == True, nhung bool khong phai so hop le
            if expected_type in (int, float) and isinstance(value, bool):
                continue

            # Cho phep int o cho float ("timeout": 30)
            if expected_type is float and isinstance(value, int):
                filtered[key] = float(value)
                continue

            origin = typing.get_origin(expected_type)
            check_type = origin if origin is not None else expected_type

            if isinstance(value, check_type):
                filtered[key] = value

        return cls(**filtered)

    def to_dict(self) -> dict[str, Any]:
        """
        Chuyen doi AppSettings thanh dict de luu xuong file.

        Returns:
            Dict voi toan bo settings
        """
        return {f.name: getattr(self, f.name) for f in fields(self)}
