# estimator/core/exceptions.py

from enum import Enum
from typing import Optional, Dict, Any, List
import logging

logger = logging.getLogger(__name__)

class ErrorCode(Enum):
    """Standardized error codes for the application."""

    # Parameter validation errors
    INVALID_PARAMETERS = "INVALID_PARAMETERS"

    # Rule table errors
    RULE_DATA_INVALID = "RULE_DATA_INVALID"
    INVALID_RULE_BOUNDS = "INVALID_RULE_BOUNDS"
    UNKNOWN_SETTINGS_KEY = "UNKNOWN_SETTINGS_KEY"

    # Pricing calculation errors
    MISSING_WELD_RATE = "MISSING_WELD_RATE"
    PRICING_CALCULATION_FAILED = "PRICING_CALCULATION_FAILED"

    # System errors
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

class EstimatorError(Exception):
    """Base exception for all estimator errors."""

    def __init__(
        self,
        code: ErrorCode,
        user_message: str,
        technical_details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        suggested_action: Optional[str] = None
    ):
        self.code = code
        self.user_message = user_message
        self.technical_details = technical_details
        self.context = context or {}
        self.suggested_action = suggested_action

        # Log the error
        logger.error(
            f"Estimator Error: {code.value}",
            extra={
                "error_code": code.value,
                "user_message": user_message,
                "technical_details": technical_details,
                "context": self.context,
                "suggested_action": suggested_action
            }
        )

        super().__init__(self.user_message)

    def to_response(self) -> Dict[str, Any]:
        """Convert to API response format."""
        response = {
            "error": {
                "code": self.code.value,
                "message": self.user_message,
                "context": self.context
            }
        }

        if self.suggested_action:
            response["error"]["suggested_action"] = self.suggested_action

        return response

class MissingRateError(EstimatorError):
    """No weld rate for the grade and no default rate configured."""

    def __init__(self, material_grade: Optional[str], configured_grades: List[str]):
        grade_label = material_grade or "(no grade)"
        super().__init__(
            code=ErrorCode.MISSING_WELD_RATE,
            user_message=f"No weld rate configured for '{grade_label}' and no default weld rate is set",
            technical_details=f"Configured grades: {', '.join(configured_grades) or 'none'}",
            context={
                "material_grade": material_grade,
                "configured_grades": configured_grades
            },
            suggested_action="Add a rate for this grade or a default rate under Admin > Weld Rates"
        )
        self.material_grade = material_grade

class InvalidRuleBounds(EstimatorError):
    """A rule's lower bound exceeds its upper bound."""

    def __init__(
        self,
        table_key: str,
        rule_index: int,
        field_name: str,
        lower: Any,
        upper: Any
    ):
        super().__init__(
            code=ErrorCode.INVALID_RULE_BOUNDS,
            user_message=f"Rule {rule_index + 1} in '{table_key}' has min {field_name} {lower} greater than max {field_name} {upper}",
            context={
                "table_key": table_key,
                "rule_index": rule_index,
                "field": field_name,
                "min": str(lower),
                "max": str(upper)
            },
            suggested_action=f"Make min {field_name} less than or equal to max {field_name}"
        )

class RuleDataError(EstimatorError):
    """Rule data is malformed or missing required fields."""

    def __init__(self, table_key: str, technical_details: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            code=ErrorCode.RULE_DATA_INVALID,
            user_message=f"Settings table '{table_key}' contains malformed rule data",
            technical_details=technical_details,
            context={"table_key": table_key, "errors": errors or []},
            suggested_action="Fix the listed fields and save the table again"
        )

class UnknownSettingsKeyError(EstimatorError):
    """Requested settings table does not exist."""

    def __init__(self, key: str, known_keys: List[str]):
        super().__init__(
            code=ErrorCode.UNKNOWN_SETTINGS_KEY,
            user_message=f"Unknown settings table '{key}'",
            context={"key": key, "known_keys": known_keys},
            suggested_action=f"Use one of: {', '.join(known_keys)}"
        )

class PricingError(EstimatorError):
    """Specific error for pricing calculation issues."""

# Convenience functions for common errors
def raise_pricing_error(message: str, technical_details: str = None, context: Dict[str, Any] = None):
    """Raise a pricing calculation error."""
    raise PricingError(
        code=ErrorCode.PRICING_CALCULATION_FAILED,
        user_message=message,
        technical_details=technical_details,
        context=context
    )
