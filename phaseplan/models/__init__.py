"""ORM model package."""

from phaseplan.models.entities import Client, Estimate

__all__ = [
    "Client",
    "Estimate",
]
