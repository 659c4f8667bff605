"""
Shared fixtures.

CHONKOMETER_HOME duoc tro vao temp dir TRUOC khi import chonkometer,
de log file va settings.json cua tests khong dung vao ~/.chonkometer.
"""

import json
import os
import sys
import tempfile
from pathlib import Path

os.environ.setdefault("CHONKOMETER_HOME", tempfile.mkdtemp(prefix="chonkometer-tests-"))

import pytest

from chonkometer.config.app_settings import AppSettings
from chonkometer.core.errors import InitializationError
from chonkometer.core.tokenization.bpe import BPETokenizer
from chonkometer.core.tokenization.vocabulary import VocabularyTable, load_vocabulary

FAKE_SERVER = Path(__file__).parent / "fixtures" / "fake_mcp_server.py"

# Vocabulary nho: 256 byte don + vai merges, rank == id
SIMPLE_PATTERN = r" ?\p{L}+| ?\p{N}+| ?[^\s\p{L}\p{N}]+|\s+"


def build_synthetic_ranks(merges):
    ranks = {bytes([b]): b for b in range(256)}
    for merge in merges:
        ranks[merge] = len(ranks)
    return ranks


SYNTHETIC_MERGES = [b"ab", b"bc", b"abc", b"he", b"ll", b"hell", b"hello", b" w"]


@pytest.fixture
def synthetic_vocabulary():
    """VocabularyTable offline voi special token <|end|>."""
    ranks = build_synthetic_ranks(SYNTHETIC_MERGES)
    return VocabularyTable.from_ranks(
        "synthetic",
        ranks,
        SIMPLE_PATTERN,
        special_tokens={"<|end|>": 1000, "<|end|><|x|>": 1001},
    )


@pytest.fixture
def synthetic_tokenizer(synthetic_vocabulary):
    return BPETokenizer(synthetic_vocabulary)


@pytest.fixture(scope="session")
def cl100k_vocabulary():
    """Vocabulary cl100k_base that; skip khi khong load duoc (offline)."""
    try:
        return load_vocabulary("cl100k_base")
    except InitializationError as e:
        pytest.skip(f"cl100k_base unavailable: {e}")


@pytest.fixture(scope="session")
def cl100k_tokenizer(cl100k_vocabulary):
    return BPETokenizer(cl100k_vocabulary)


@pytest.fixture
def fast_settings():
    """Timeouts ngan cho tests voi fake server."""
    return AppSettings(
        handshake_timeout=10.0,
        request_timeout=5.0,
        shutdown_timeout=0.5,
    )


@pytest.fixture
def fake_server(tmp_path):
    """
    Factory: ghi scenario ra file va tra ve (command, args) de launch
    fake MCP server bang interpreter hien tai.
    """

    def _make(**scenario):
        scenario.setdefault("log_file", str(tmp_path / "received.jsonl"))
        scenario_file = tmp_path / "scenario.json"
        scenario_file.write_text(json.dumps(scenario), encoding="utf-8")
        return sys.executable, [str(FAKE_SERVER), str(scenario_file)]

    return _make


@pytest.fixture
def received_messages(tmp_path):
    """Doc cac message fake server da nhan (sau khi session dong)."""

    def _read():
        log_file = tmp_path / "received.jsonl"
        if not log_file.exists():
            return []
        return [
            json.loads(line)
            for line in log_file.read_text(encoding="utf-8").splitlines()
            if line.strip()
        ]

    return _read


def tool(name, description="", **extra):
    """Tool definition toi thieu hop le."""
    definition = {"name": name, "inputSchema": {"type": "object"}}
    if description:
        definition["description"] = description
    definition.update(extra)
    return definition
