from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

# MSI versions are major.minor.build with an optional fourth field.
_FIELDS = 4


@dataclass(frozen=True, order=True)
class ProductVersion:
    parts: Tuple[int, ...]
    text: str = field(default="", compare=False)

    @classmethod
    def parse(cls, value: str) -> "ProductVersion":
        text = (value or "").strip()
        if not text:
            raise ValueError("empty version string")

        raw = text.split(".")
        if len(raw) > _FIELDS:
            raise ValueError(f"too many version fields: {text!r}")

        parts: list[int] = []
        for chunk in raw:
            if not chunk.isdigit():
                raise ValueError(f"invalid version {text!r}")
            parts.append(int(chunk))

        # "1.2.3" and "1.2.3.0" compare equal.
        parts.extend([0] * (_FIELDS - len(parts)))
        return cls(parts=tuple(parts), text=text)

    def __str__(self) -> str:
        return self.text or ".".join(str(p) for p in self.parts)
