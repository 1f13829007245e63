"""
Exceptions for the hexseal codec
Every error carries a stable ``kind`` tag so callers (CLI, transport) can report it
"""


class HexSealError(Exception):
    # general container for errors
    kind = "error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"[{self.kind}] {self.detail}"


class ConfigurationError(HexSealError):
    # raised when secret/salt/IV material is missing or malformed; fatal
    kind = "configuration"


class FormatError(HexSealError):
    # raised when input is not a well-formed envelope, or decrypted text is not what was asked for
    kind = "format"


class AuthenticationError(HexSealError):
    # raised when the GCM tag does not verify (tampered data, wrong key or IV)
    kind = "authentication"
