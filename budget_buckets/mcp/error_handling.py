"""Consistent error handling for MCP tool functions."""

from __future__ import annotations

import functools
import logging
from typing import Callable

from pydantic import ValidationError

from budget_buckets.core.budget_store import BudgetStoreError
from budget_buckets.core.resolvers import ResolverError
from budget_buckets.core.validation import BudgetDataError

logger = logging.getLogger("budget_buckets")


def handle_tool_errors(fn: Callable) -> Callable:
    """Decorator that catches known exceptions and returns user-friendly error strings.

    MCP tools must return ``str``, not raise.  This ensures all tools
    follow that contract without duplicating try/except blocks.
    """

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except ResolverError as e:
            return str(e)
        except BudgetDataError as e:
            return f"Could not import budget: {e}"
        except BudgetStoreError as e:
            return f"Storage error: {e}"
        except ValidationError as e:
            return f"Invalid data: {e.error_count()} validation error(s). Check your input."
        except OSError as e:
            logger.error("File error in tool %s: %s", fn.__name__, e)
            return f"Could not read or write the budget file: {e.strerror or e}"
        except Exception as e:
            logger.exception("Unexpected error in tool %s", fn.__name__)
            return f"Unexpected error: {type(e).__name__}: {e}"

    return wrapper
