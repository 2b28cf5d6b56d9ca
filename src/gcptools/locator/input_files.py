"""Flat input files and principal strings for the IAM tools."""

import re
from pathlib import Path
from typing import List
from ..utils.errors import ParseError
from ..utils.logging import get_logger

logger = get_logger("locator.input_files")

PRINCIPAL_RE = re.compile(r"^(serviceAccount|user|group):.+$")


def read_list_file(path: str) -> List[str]:
    """
    Read one entry per line.
    
    Blank lines and ``#`` comment lines are ignored; surrounding whitespace
    is trimmed.
    
    Raises:
        ParseError: If the file is missing or unreadable
    """
    file_path = Path(path)
    if not file_path.exists():
        raise ParseError(f"Input file not found: {path}")
    if not file_path.is_file():
        raise ParseError(f"Path is not a file: {path}")
    
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            lines = f.readlines()
    except OSError as e:
        raise ParseError(f"Error reading input file {path}: {e}")
    
    entries = []
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        entries.append(stripped)
    
    logger.info(f"Read {len(entries)} entries from {path}")
    return entries


def validate_principal(principal: str) -> str:
    """
    Validate an IAM member string (``user:``, ``group:`` or ``serviceAccount:``).
    
    Raises:
        ParseError: If the format is not recognised
    """
    value = (principal or "").strip()
    if not PRINCIPAL_RE.match(value):
        raise ParseError(
            f"Invalid principal '{principal}'. Must be type:identifier with type one of "
            "serviceAccount, user, group (e.g. user:jane@example.com)"
        )
    return value
