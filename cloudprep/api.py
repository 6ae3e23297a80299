"""Provisioning contract shared by every cloud implementation."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


# Protocols a port can be opened for
SUPPORTED_PROTOCOLS = ("tcp", "udp")


@dataclass(frozen=True)
class PortSpec:
    """A port to open and its protocol (tcp or udp)."""

    port: int
    protocol: str

    def __str__(self) -> str:
        return f"{self.port}/{self.protocol}"


@dataclass
class PrepareForSubmarinerInput:
    """Input for preparing a cloud for Submariner."""

    internal_ports: list[PortSpec] = field(default_factory=list)


class Reporter(ABC):
    """Receives progress events while a cloud is prepared or cleaned up.

    Messages are printf-style: ``reporter.started("Opening %s", name)``.
    """

    @abstractmethod
    def started(self, message: str, *args) -> None:
        """A step has started."""

    @abstractmethod
    def succeeded(self, message: str, *args) -> None:
        """The current step finished successfully."""

    @abstractmethod
    def failed(self, *errors: BaseException) -> None:
        """The current step failed."""

    @abstractmethod
    def warning(self, message: str, *args) -> None:
        """Something unexpected happened but the step carries on."""


class Cloud(ABC):
    """A cloud that can be prepared for Submariner and cleaned up afterwards."""

    @abstractmethod
    def prepare_for_submariner(self, input: PrepareForSubmarinerInput, reporter: Reporter) -> None:
        """Open the ports Submariner needs on the cloud."""

    @abstractmethod
    def cleanup_after_submariner(self, reporter: Reporter) -> None:
        """Revoke everything prepare_for_submariner opened."""
