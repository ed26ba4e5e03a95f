"""DesktopSetup - macOS workstation bootstrap for developer and AI tooling."""

__version__ = "0.3.0"
