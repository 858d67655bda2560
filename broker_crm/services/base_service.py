from typing import Any, Awaitable, Callable, Optional

from broker_crm.core.exceptions import AppError
from broker_crm.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseService:
    """Base class for application services.

    Provides a standardized execution flow with validation and error handling.
    """

    def __init__(self, repository: Optional[Any] = None):
        """Initialize the service.

        Args:
            repository: Optional primary repository for the service
        """
        self.repository = repository
        self.logger = LOGGER

    async def execute(
        self,
        operation: str,
        func: Callable[..., Awaitable[Any]],
        *args,
        **kwargs,
    ) -> Any:
        """Execute one service operation.

        This template method handles:
        1. Input validation
        2. Core logic execution
        3. Standardized error handling

        Args:
            operation: Operation name, used in logs and error messages
            func: Coroutine function implementing the operation
            *args: Positional arguments for ``func``
            **kwargs: Keyword arguments for ``func``

        Returns:
            Result of the operation

        Raises:
            AppError: If execution fails
        """
        try:
            self.validate(operation, *args, **kwargs)

            return await func(*args, **kwargs)

        except AppError:
            raise

        except Exception as e:
            self.logger.error(
                f"Service execution failed: {str(e)}",
                exc_info=True,
                extra={"service": self.__class__.__name__, "operation": operation},
            )
            raise AppError(f"{operation} failed: {str(e)}", original_error=e)

    def validate(self, operation: str, *args, **kwargs):
        """Validate service input.

        Override this method to implement custom validation logic.

        Raises:
            ValidationError: If input is invalid
        """
        pass
