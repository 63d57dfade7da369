from abc import ABC, abstractmethod
from typing import Dict, Optional


class INotificationSender(ABC):
    @abstractmethod
    def send(self, body: str, from_: Optional[str] = None, to: Optional[str] = None) -> Dict[str, str]:
        """Returns {"id": ..., "status": ...} from the provider."""
        pass
