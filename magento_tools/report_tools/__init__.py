from .allure_utils import (
    attach_comparison,
    attach_file,
    attach_json,
    attach_text,
)

__all__ = [
    "attach_comparison",
    "attach_file",
    "attach_json",
    "attach_text",
]
