"""Request dependencies."""

from fastapi import Request

from basewallet.core import WalletCore


def get_core(request: Request) -> WalletCore:
    """The WalletCore attached to the application at startup."""
    return request.app.state.core
