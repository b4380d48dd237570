from enum import IntEnum


class X402Version(IntEnum):
    Version1 = 1
    Version2 = 2

    @classmethod
    def from_value(cls, value):
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise ValueError(f"Unsupported x402 version: {value}")
