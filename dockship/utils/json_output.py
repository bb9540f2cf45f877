"""
JSON output utilities for dockship.

This module provides standardized JSON output for the ``--json`` flag.
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from .logging import console


class JSONOutput:
    """Standardized JSON output formatter for dockship commands."""

    @staticmethod
    def success(message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Format a successful operation result."""
        result = {
            "success": True,
            "message": message,
            "timestamp": datetime.now().isoformat(),
        }
        if data:
            result["data"] = data
        return result

    @staticmethod
    def error(message: str, error_code: Optional[str] = None,
              details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Format an error result."""
        result = {
            "success": False,
            "error": message,
            "timestamp": datetime.now().isoformat(),
        }
        if error_code:
            result["error_code"] = error_code
        if details:
            result["details"] = details
        return result

    @staticmethod
    def print_json(data: Any) -> None:
        """Print data as JSON without rich markup processing."""
        console.print(json.dumps(data, indent=2, default=str), markup=False, highlight=False, soft_wrap=True)

    @staticmethod
    def print_error(message: str, error_code: Optional[str] = None,
                    details: Optional[Dict[str, Any]] = None) -> None:
        JSONOutput.print_json(JSONOutput.error(message, error_code, details))
