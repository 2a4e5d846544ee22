import asyncio

import structlog

from transfer_client.domain.models import BiometricError, BiometricResult, BiometricType


logger = structlog.get_logger()


class SimulatedBiometricAuthenticator:
    """
    Stand-in for the platform biometric subsystem.

    Reports whatever hardware/enrollment state it was built with and answers
    every challenge with `outcome` after `delay_seconds`. `outcome=None` means
    the challenge succeeds.
    """

    def __init__(
        self,
        has_hardware: bool = True,
        is_enrolled: bool = True,
        types: set[BiometricType] | None = None,
        outcome: BiometricError | None = None,
        delay_seconds: float = 0.8,
    ) -> None:
        self._has_hardware = has_hardware
        self._is_enrolled = is_enrolled
        self._types = types if types is not None else {BiometricType.FINGERPRINT}
        self._outcome = outcome
        self._delay_seconds = delay_seconds

    def has_hardware(self) -> bool:
        return self._has_hardware

    def is_enrolled(self) -> bool:
        return self._has_hardware and self._is_enrolled

    def supported_types(self) -> set[BiometricType]:
        if not self._has_hardware:
            return set()
        return set(self._types)

    async def authenticate(self, prompt: str) -> BiometricResult:
        logger.debug("biometric_challenge", prompt=prompt)
        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)

        if not self.is_enrolled():
            return BiometricResult(success=False, error=BiometricError.SYSTEM_ERROR)
        if self._outcome is not None:
            return BiometricResult(success=False, error=self._outcome)
        return BiometricResult(success=True)
