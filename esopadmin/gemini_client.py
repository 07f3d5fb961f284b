"""Gemini CLI wrapper for reading structured data out of documents.

The document is staged in a scratch directory so the CLI can open it from
its own workspace, and the model's answer is parsed as a single JSON object.
"""

import json
import pathlib
import re
import shutil
import subprocess
import tempfile
from typing import Optional

GEMINI_COMMAND = "gemini"

JSON_INSTRUCTIONS = """You read documents and answer with structured JSON.

Rules for your answer:
1. Output one JSON object and nothing else: no markdown fences, no commentary
2. Numbers are JSON numbers, not strings
3. Dates are YYYY-MM-DD
4. If the document does not contain what is asked for, answer
   {"error": true, "message": "what is missing", "details": "anything useful"}

DOCUMENT: {file_path}

TASK:
"""

JSON_REMINDER = """

Answer with the JSON object only."""


def _run_gemini_cli(prompt: str, timeout: int = 120, cwd: Optional[str] = None) -> str:
    """Run the Gemini CLI non-interactively and return its stdout.

    Raises:
        RuntimeError: If the executable is missing, exits non-zero or times out.
    """
    cmd = [GEMINI_COMMAND, "--allowed-mcp-server-names", "none", "-o", "text", prompt]
    try:
        completed = subprocess.run(
            cmd, capture_output=True, text=True, check=True, timeout=timeout, cwd=cwd,
        )
    except FileNotFoundError as e:
        raise RuntimeError(f"'{GEMINI_COMMAND}' not found on PATH") from e
    except subprocess.TimeoutExpired as e:
        raise RuntimeError(f"Gemini CLI timed out after {timeout}s") from e
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"Gemini CLI exited with {e.returncode}: {e.stderr.strip()}") from e
    return completed.stdout.strip()


def extract_json(response: str) -> dict:
    """Parse the JSON object in a model response.

    Tolerates a surrounding ```json fence and text before or after the object.

    Raises:
        ValueError: If no JSON object can be parsed (json.JSONDecodeError
            for malformed text).
    """
    fenced = re.search(r"```(?:json)?\s*(.*?)```", response, re.DOTALL)
    if fenced:
        response = fenced.group(1)

    start, end = response.find("{"), response.rfind("}")
    if start >= 0 and end > start:
        response = response[start:end + 1]

    data = json.loads(response)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _staged_name(path: pathlib.Path) -> str:
    # The CLI is given the bare name; keep it free of spaces and quotes
    return re.sub(r"[^A-Za-z0-9_-]", "_", path.stem) + path.suffix


def process_file(prompt: str, data_file_path: str, timeout: int = 120) -> dict:
    """Ask Gemini to extract data from one file.

    Args:
        prompt: What to extract. "{file_path}" is replaced with the staged
            file name.
        data_file_path: Document to read (PDF, image, text).
        timeout: Seconds to wait for the CLI.

    Returns:
        The parsed JSON answer. A model that could not do the task answers
        with {"error": true, "message": ...}; that is returned, not raised.

    Raises:
        RuntimeError: If the file is missing, the CLI fails, or the answer
            is not JSON.
    """
    source = pathlib.Path(data_file_path)
    if not source.exists():
        raise RuntimeError(f"File not found: {data_file_path}")

    staged_name = _staged_name(source)
    full_prompt = (JSON_INSTRUCTIONS + prompt + JSON_REMINDER).replace("{file_path}", staged_name)

    workdir = tempfile.mkdtemp(prefix="esop_gemini_")
    response = ""
    try:
        shutil.copy(source, pathlib.Path(workdir) / staged_name)
        response = _run_gemini_cli(full_prompt, timeout=timeout, cwd=workdir)
        return extract_json(response)
    except ValueError as e:
        raise RuntimeError(f"Gemini answer is not a JSON object ({e}): {response[:500]}") from e
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
