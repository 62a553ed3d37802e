"""
================================================================================
Allure Report Utilities
================================================================================

Attachment helpers used by the WebDriver action layer.

Features:
- Text and JSON attachments
- Expected-vs-actual comparison attachments for assertions
- File attachments for screenshots and saved page sources

================================================================================
"""

import json
from pathlib import Path
from typing import Any, Optional, Union

import allure
from loguru import logger


# File suffix -> Allure attachment type
_FILE_ATTACHMENT_TYPES = {
    ".png": allure.attachment_type.PNG,
    ".jpg": allure.attachment_type.JPG,
    ".html": allure.attachment_type.HTML,
    ".json": allure.attachment_type.JSON,
    ".txt": allure.attachment_type.TEXT,
}


def attach_json(data: Any, name: str = "Data"):
    """
    Attach JSON data to Allure report.

    Args:
        data: Data to attach (will be JSON serialized)
        name: Attachment name
    """
    json_str = json.dumps(data, indent=2, default=str)
    allure.attach(
        json_str,
        name=name,
        attachment_type=allure.attachment_type.JSON
    )


def attach_text(text: str, name: str = "Text"):
    """
    Attach text content to Allure report.

    Args:
        text: Text to attach
        name: Attachment name
    """
    allure.attach(
        text,
        name=name,
        attachment_type=allure.attachment_type.TEXT
    )


def attach_comparison(expected: Any, actual: Any, name: str = "Comparison"):
    """
    Attach an expected/actual pair to the current step.

    Args:
        expected: Expected value
        actual: Actual value
        name: Attachment name
    """
    attach_text(f"Expected: {expected}\nActual: {actual}", name=name)


def attach_file(path: Union[str, Path], name: Optional[str] = None) -> bool:
    """
    Attach a file from disk, picking the attachment type from its suffix.

    Args:
        path: File to attach
        name: Attachment name (defaults to the file name)

    Returns:
        True if the file existed and was attached
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Attachment file not found: {path}")
        return False

    allure.attach.file(
        str(path),
        name=name or path.name,
        attachment_type=_FILE_ATTACHMENT_TYPES.get(path.suffix.lower()),
    )
    return True


__all__ = [
    "attach_comparison",
    "attach_file",
    "attach_json",
    "attach_text",
]
