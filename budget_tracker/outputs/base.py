# budget_tracker/outputs/base.py
from abc import ABC, abstractmethod


class BaseOutput(ABC):
    def __init__(self, config):
        self.config = config
        self.output_dir = config.get('output_dir', 'data')

    @abstractmethod
    def write(self, transactions):
        """Write API-shaped transaction dicts; return the file path, or None when empty."""
