"""
Result comparison for binary correct/incorrect grading
"""
import json
import logging
from numbers import Number
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

Rows = List[Dict[str, Any]]


class ComparisonService:
    """
    Exact structural comparison of two result sets

    Positional (row order matters) and type-sensitive: "75000" never
    equals 75000, and True never equals 1. Integers and floats share one
    numeric domain, so a REAL column read back as 75000.0 matches 75000.
    """

    def compare(
        self,
        actual: Optional[Union[str, Rows]],
        expected: Optional[Union[str, Rows]]
    ) -> bool:
        """
        Decide whether actual rows equal expected rows

        Args:
            actual: Rows or their JSON serialization
            expected: Rows or their JSON serialization

        Returns:
            True only when every row agrees
        """
        if actual is None or expected is None:
            return False

        actual_rows = self._load(actual)
        expected_rows = self._load(expected)
        if actual_rows is None or expected_rows is None:
            return False

        if len(actual_rows) != len(expected_rows):
            return False

        for actual_row, expected_row in zip(actual_rows, expected_rows):
            if not isinstance(actual_row, dict) or not isinstance(expected_row, dict):
                return False

            if len(actual_row) != len(expected_row):
                return False

            for key, expected_value in expected_row.items():
                if key not in actual_row:
                    return False
                if not self._strict_equal(actual_row[key], expected_value):
                    return False

        return True

    def _load(self, value: Union[str, Rows]) -> Optional[Rows]:
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                logger.warning("Result set is not valid JSON, treating as mismatch")
                return None

        if not isinstance(value, list):
            return None
        return value

    @staticmethod
    def _strict_equal(left: Any, right: Any) -> bool:
        if left is None or right is None:
            return left is None and right is None

        # bool is a subclass of int
        if isinstance(left, bool) or isinstance(right, bool):
            return isinstance(left, bool) and isinstance(right, bool) and left == right

        if isinstance(left, Number) and isinstance(right, Number):
            return left == right

        return type(left) is type(right) and left == right


# Global instance
comparison_service = ComparisonService()
