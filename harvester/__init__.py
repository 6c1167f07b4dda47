"""vsix-harvester - download VS Code extensions for offline use."""

__version__ = "0.4.0"
