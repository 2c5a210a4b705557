"""
Static validation of virtual endpoint code.

Gives fast feedback before saving or running: errors block saving, warnings
do not. The code is wrapped and compiled exactly as the executor does it, so
code reported valid here always compiles at execution time. Validation
never raises.
"""

import re

from ..schemas.execute import ValidationResult
from .errors import EmptyCode
from .executor import compile_wrapped, wrap_code


# Discouraged patterns: (compiled regex, warning message)
DISCOURAGED_PATTERNS = [
    (
        re.compile(r"\beval\s*\("),
        "eval() is discouraged for security reasons",
    ),
    (
        re.compile(r"\b(?:exec|compile)\s*\(\s*[rRbBfFuU]{0,2}['\"]"),
        "exec()/compile() with a string is discouraged",
    ),
    (
        re.compile(r"^\s*(?:import\s+\w|from\s+[\w.]+\s+import\b)", re.MULTILINE),
        "import statements are not available inside virtual endpoints; use context.utils",
    ),
]


def validate_virtual_endpoint_code(code: str | None) -> ValidationResult:
    """
    Validate a virtual endpoint code body.

    Args:
        code: Source text in any of the accepted shapes

    Returns:
        ValidationResult with ``valid`` False when there is any error
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(code, str) or not code.strip():
        errors.append("Code cannot be empty")
        return ValidationResult(valid=False, errors=errors, warnings=warnings)

    for pattern, message in DISCOURAGED_PATTERNS:
        if pattern.search(code):
            warnings.append(message)

    try:
        wrapped = wrap_code(code)
        compile_wrapped(wrapped)
    except EmptyCode as e:
        errors.append(str(e))
    except SyntaxError as e:
        line = e.lineno + wrapped.line_offset if e.lineno else 0
        location = f" (line {line})" if line > 0 else ""
        errors.append(f"Syntax error: {e.msg}{location}")
    except ValueError as e:
        errors.append(f"Syntax error: {e}")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
