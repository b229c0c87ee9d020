"""
Terminal display utilities with colors and formatting
"""

import json
from typing import Any


# ANSI color codes
class Colors:
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


def truncate_to_lines(text: str, max_lines: int = 6) -> str:
    """Truncate text to max_lines, adding '...' if truncated"""
    lines = text.split("\n")
    if len(lines) <= max_lines:
        return text
    return (
        "\n".join(lines[:max_lines])
        + f"\n{Colors.CYAN}... ({len(lines) - max_lines} more lines){Colors.RESET}"
    )


def format_tool_call(tool_name: str, arguments: dict[str, Any], max_len: int = 100) -> str:
    args = json.dumps(arguments, ensure_ascii=False)
    if len(args) > max_len:
        args = args[:max_len] + "..."
    return f"{Colors.YELLOW}🔧 {tool_name}{Colors.RESET} {args}"


def format_tool_output(output: str, success: bool) -> str:
    color = Colors.GREEN if success else Colors.RED
    status = "✅" if success else "❌"
    return f"{color}{status}{Colors.RESET} {truncate_to_lines(output)}"


def format_plan(plan: str) -> str:
    return f"{Colors.MAGENTA}📝 Plan{Colors.RESET}\n{truncate_to_lines(plan, max_lines=12)}"


def format_answer(content: str) -> str:
    return f"\n{Colors.BOLD}🎩 Alfred:{Colors.RESET} {content}"


def format_error(message: str) -> str:
    """Format an error message in red"""
    return f"{Colors.RED}❌ Error: {message}{Colors.RESET}"
