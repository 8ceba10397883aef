from abc import ABC, abstractmethod
from typing import Any


class BaseConnector(ABC):
    @abstractmethod
    def fetch_values(self, a1_range: str) -> list[list[Any]]:
        """
        Return the cell grid for an A1 range ("Sheet!A:J"), header row first.
        Raise UpstreamFetchError when the source can't be read.
        """
        raise NotImplementedError
