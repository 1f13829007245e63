"""hexseal: AES-256-GCM text envelopes shared by the server and browser runtimes."""

__version__ = "1.0.0"
