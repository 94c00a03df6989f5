# budget_tracker/loaders/base.py
from abc import ABC, abstractmethod
from typing import Iterator

from budget_tracker.core.models import Transaction


class BaseLoader(ABC):
    @abstractmethod
    def load(self, file_path) -> Iterator[Transaction]:
        """Yield validated transactions; raise ValueError naming the bad row."""
