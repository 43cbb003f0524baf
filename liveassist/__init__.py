"""LiveAssist: session engine for a multimodal voice/text assistant."""

__version__ = "0.1.0"
