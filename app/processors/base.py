from abc import ABC, abstractmethod
from typing import Dict, Any


class BaseProcessor(ABC):
    """Abstract base for a push-payment provider."""

    @abstractmethod
    async def stk_push(
        self,
        phone: str,
        amount: int,
        callback_url: str,
        account_reference: str,
        description: str,
    ) -> Dict[str, Any]:
        """
        Ask the provider to prompt the buyer's phone for payment.
        Returns the provider's raw acknowledgment dict.
        Raises UpstreamError when the provider rejects or cannot be reached.
        """
        pass

    @property
    @abstractmethod
    def processor_name(self) -> str:
        pass
