"""Cloud preparation for the Submariner cross-cluster networking add-on."""

from cloudprep.api import Cloud, PortSpec, PrepareForSubmarinerInput, Reporter
from cloudprep.errors import CloudPrepareError

__all__ = ["Cloud", "CloudPrepareError", "PortSpec", "PrepareForSubmarinerInput", "Reporter"]
