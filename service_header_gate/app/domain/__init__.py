"""Cross-cutting request handling for the Header Gate (admission middleware)."""

from .gate import HeaderGate, install_header_gate

__all__ = ["HeaderGate", "install_header_gate"]
