"""Contract ABI loading."""

import json
from pathlib import Path
from typing import Any

from .errors import AbiNotFoundError, AbiParseError
from .logging_setup import get_logger
from .threads import run_in_daemon_thread


log = get_logger(__name__)


def check_abi_exists(path: Path | str) -> Path:
    path = Path(path)
    if not path.exists():
        raise AbiNotFoundError(str(path))
    return path


def parse_abi(text: str, path: Path | str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise AbiParseError(f"Invalid JSON in ABI file {path}: {e}") from e


def read_abi(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise AbiParseError(f"ABI file {path} is not UTF-8 text: {e}") from e
    except OSError as e:
        raise AbiParseError(f"Failed to read ABI file {path}: {e}") from e


def load_abi(path: Path | str) -> Any:
    """Load a contract ABI, checking existence before parsing.

    A missing file raises ``AbiNotFoundError``; a file that exists but is not
    valid JSON raises ``AbiParseError``.
    """
    path = check_abi_exists(path)
    abi = parse_abi(read_abi(path), path)
    if isinstance(abi, list):
        log.debug("abi_loaded", path=str(path), entries=len(abi))
    return abi


async def load_abi_async(path: Path | str) -> Any:
    """Same as ``load_abi`` with the file read done off the event loop."""
    path = check_abi_exists(path)
    text = await run_in_daemon_thread(read_abi, path)
    return parse_abi(text, path)
