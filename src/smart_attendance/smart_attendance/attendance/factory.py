from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import AuthMode
from ..core.exceptions import ValidationError
from .strategies.base import VerificationStrategy
from .strategies.dual_auth_strategy import DualAuthStrategy
from .strategies.face_only_strategy import FaceOnlyStrategy
from .strategies.rfid_only_strategy import RfidOnlyStrategy, RfidOrFaceStrategy


@dataclass
class VerificationStrategyFactory:
    """Factory Pattern: choose the strategy for the configured authentication mode."""

    def for_mode(self, mode: AuthMode) -> VerificationStrategy:
        if mode == AuthMode.RFID_ONLY:
            return RfidOnlyStrategy()
        if mode == AuthMode.RFID_OR_FACE:
            return RfidOrFaceStrategy()
        if mode == AuthMode.FACE_ONLY:
            return FaceOnlyStrategy()
        if mode == AuthMode.DUAL_AUTH:
            return DualAuthStrategy()
        raise ValidationError(f"Unsupported attendance mode: {mode!r}")
