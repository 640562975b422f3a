from __future__ import annotations

import secrets
from typing import Protocol


class OtpCodeGenerator(Protocol):
    def generate(self) -> str:
        ...


class NumericOtpCodeGenerator:
    def __init__(self, length: int = 6) -> None:
        if length < 1:
            raise ValueError("OTP length must be at least 1")
        self.length = length

    def generate(self) -> str:
        # zero-padded so leading zeros survive
        return f"{secrets.randbelow(10 ** self.length):0{self.length}d}"
