from abc import ABC, abstractmethod
from typing import List

from blockparty.models import PropDefinition


class PropsExtractor(ABC):
    """Pulls the props definition out of a component module's default export."""

    @abstractmethod
    def extract_props(self, source_file) -> List[PropDefinition]:
        pass

    @abstractmethod
    def process_file(self, file_path: str):
        pass

    @abstractmethod
    def write_to_file(self, output_path: str):
        pass

    @abstractmethod
    def extract_all_props(self) -> List[PropDefinition]:
        pass
