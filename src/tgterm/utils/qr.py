"""Console display of the TOTP provisioning code."""

from __future__ import annotations

import io

import qrcode


def render_qr(text: str) -> str:
    """Render ``text`` as a compact QR code made of half-block characters."""
    qr = qrcode.QRCode(border=1, error_correction=qrcode.constants.ERROR_CORRECT_L)
    qr.add_data(text)
    qr.make(fit=True)
    out = io.StringIO()
    qr.print_ascii(out=out, invert=True)
    return out.getvalue()


def format_provisioning(uri: str, base32_secret: str) -> str:
    """Banner printed once when a new TOTP secret is generated."""
    return (
        "\n=== TOTP Setup ===\n"
        "Scan this QR code with Google Authenticator:\n\n"
        f"{render_qr(uri)}\n"
        f"Or enter this secret manually: {base32_secret}\n"
        "==================\n"
    )
