from abc import ABC, abstractmethod


class AssetProbe(ABC):
    provider_name: str

    @abstractmethod
    def exists(self, url: str) -> bool:
        """Returns True when the asset at url can be fetched."""
        raise NotImplementedError
