"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .settings import RifLookupSettings


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Passed to the service to avoid global state and enable testing.
    """

    settings: RifLookupSettings
    logger: logging.Logger
