"""Authentication for tgterm: TOTP codes and the owner access gate.

Public API:
    TotpEngine -- secret provisioning and code verification
    AccessGate -- owner pinning, OTP login and session timeout
"""

from tgterm.auth.gate import AccessGate, GateOutcome
from tgterm.auth.totp import SecretUnavailableError, TotpEngine

__all__ = ["AccessGate", "GateOutcome", "SecretUnavailableError", "TotpEngine"]
