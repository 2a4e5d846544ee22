from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import structlog

from transfer_client.config import settings
from transfer_client.domain.models import BiometricError, BiometricResult, BiometricType
from transfer_client.infrastructure.metrics import AUTH_ATTEMPTS_TOTAL


logger = structlog.get_logger()

DENIED_CANCELLED = "cancelled"
DENIED_LOCKED_OUT = "locked out"


class AuthState(Enum):
    START = "START"
    PLATFORM_CHECK = "PLATFORM_CHECK"
    BIOMETRIC_PROMPT = "BIOMETRIC_PROMPT"
    PIN_PROMPT = "PIN_PROMPT"
    MANUAL_CONFIRM = "MANUAL_CONFIRM"
    GRANTED = "GRANTED"
    DENIED = "DENIED"


TERMINAL_STATES = frozenset({AuthState.GRANTED, AuthState.DENIED})


class AuthMethod(Enum):
    BIOMETRIC = "BIOMETRIC"
    PIN = "PIN"
    OVERRIDE = "OVERRIDE"


class FallbackChoice(Enum):
    USE_PIN = "USE_PIN"
    OVERRIDE = "OVERRIDE"
    CANCEL = "CANCEL"


@dataclass(frozen=True)
class AuthVerdict:
    granted: bool
    method: AuthMethod | None = None
    reason: str | None = None

    @classmethod
    def grant(cls, method: AuthMethod) -> "AuthVerdict":
        return cls(granted=True, method=method)

    @classmethod
    def deny(cls, reason: str) -> "AuthVerdict":
        return cls(granted=False, reason=reason)


class BiometricAuthenticator(Protocol):
    def has_hardware(self) -> bool: ...

    def is_enrolled(self) -> bool: ...

    def supported_types(self) -> set[BiometricType]: ...

    async def authenticate(self, prompt: str) -> BiometricResult: ...


class UserPrompt(Protocol):
    """Asks the user to pick a way forward when biometrics are not an option."""

    async def choose_fallback(self, reason: str) -> FallbackChoice: ...

    async def request_pin(self, retry: bool) -> str | None:
        """Return the entered code, or None if the user cancelled."""
        ...


def next_after_platform_check(biometric_available: bool) -> AuthState:
    return AuthState.BIOMETRIC_PROMPT if biometric_available else AuthState.MANUAL_CONFIRM


def next_after_biometric(result: BiometricResult) -> AuthState:
    if result.success:
        return AuthState.GRANTED
    if result.error in (BiometricError.USER_CANCEL, BiometricError.LOCKOUT):
        return AuthState.DENIED
    return AuthState.MANUAL_CONFIRM


def next_after_choice(choice: FallbackChoice) -> AuthState:
    if choice is FallbackChoice.USE_PIN:
        return AuthState.PIN_PROMPT
    if choice is FallbackChoice.OVERRIDE:
        return AuthState.GRANTED
    return AuthState.DENIED


def pin_accepted(code: str, min_length: int) -> bool:
    # Placeholder gate: nothing is compared against a stored secret.
    return code.isdigit() and len(code) >= min_length


class AuthenticationEscalator:
    """
    Authorizes a single transfer attempt.

    Escalates biometric -> PIN -> manual override. The user always takes an
    explicit action before a transfer is granted; nothing falls back to
    GRANTED on its own. No state survives between calls to `authorize`.
    """

    def __init__(
        self,
        biometrics: BiometricAuthenticator,
        prompt: UserPrompt,
        pin_min_length: int | None = None,
        prompt_message: str | None = None,
    ) -> None:
        self._biometrics = biometrics
        self._prompt = prompt
        self._pin_min_length = settings.pin_min_length if pin_min_length is None else pin_min_length
        self._prompt_message = settings.biometric_prompt if prompt_message is None else prompt_message

    def biometric_available(self) -> bool:
        return self._biometrics.has_hardware() and self._biometrics.is_enrolled()

    async def authorize(self, prompt_message: str | None = None) -> AuthVerdict:
        message = self._prompt_message if prompt_message is None else prompt_message
        state = AuthState.START
        method: AuthMethod | None = None
        reason: str | None = None
        fallback_reason = "biometric authentication unavailable"
        pin_retry = False

        while state not in TERMINAL_STATES:
            logger.debug("auth_state", state=state.value)

            if state is AuthState.START:
                state = AuthState.PLATFORM_CHECK

            elif state is AuthState.PLATFORM_CHECK:
                available = self.biometric_available()
                if available:
                    logger.debug(
                        "biometric_available",
                        types=sorted(t.value for t in self._biometrics.supported_types()),
                    )
                state = next_after_platform_check(available)

            elif state is AuthState.BIOMETRIC_PROMPT:
                result = await self._biometrics.authenticate(message)
                state = next_after_biometric(result)
                if state is AuthState.GRANTED:
                    method = AuthMethod.BIOMETRIC
                elif state is AuthState.DENIED:
                    reason = DENIED_LOCKED_OUT if result.error is BiometricError.LOCKOUT else DENIED_CANCELLED
                else:
                    error = result.error.value if result.error else "unknown"
                    fallback_reason = f"biometric authentication failed ({error})"
                    logger.info("biometric_failed", error=error)

            elif state is AuthState.MANUAL_CONFIRM:
                choice = await self._prompt.choose_fallback(fallback_reason)
                state = next_after_choice(choice)
                if state is AuthState.GRANTED:
                    method = AuthMethod.OVERRIDE
                elif state is AuthState.DENIED:
                    reason = DENIED_CANCELLED

            elif state is AuthState.PIN_PROMPT:
                code = await self._prompt.request_pin(retry=pin_retry)
                if code is None:
                    state = AuthState.DENIED
                    reason = DENIED_CANCELLED
                elif pin_accepted(code, self._pin_min_length):
                    state = AuthState.GRANTED
                    method = AuthMethod.PIN
                else:
                    pin_retry = True
                    logger.info("pin_rejected", length=len(code))

        if state is AuthState.GRANTED and method is not None:
            verdict = AuthVerdict.grant(method)
            logger.info("auth_granted", method=method.value)
        else:
            verdict = AuthVerdict.deny(reason or DENIED_CANCELLED)
            logger.info("auth_denied", reason=verdict.reason)

        AUTH_ATTEMPTS_TOTAL.labels(
            method=verdict.method.value if verdict.method else "NONE",
            verdict="GRANTED" if verdict.granted else "DENIED",
        ).inc()
        return verdict
