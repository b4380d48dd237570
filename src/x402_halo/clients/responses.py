"""
Response shaping for generateContent-style APIs.

``RecoveredResponse`` stands in for the wrapped client's own success
object after a paid retry: ``.text`` returns the first candidate's text and
every native field of the JSON body stays reachable by key or attribute.
"""

from typing import Any, Dict, Iterator, Mapping, Optional


def candidate_text(data: Any) -> Optional[str]:
    """Return ``candidates[0].content.parts[0].text`` or ``None`` if any step is missing."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


class RecoveredResponse(Mapping[str, Any]):
    """
    Success result of a recovered call.

    Example:
        result = await model.generate_content("hi")
        result.text              # "hello"
        result["candidates"]     # native field, by key
        result.usageMetadata     # native field, by attribute
    """

    def __init__(self, data: Dict[str, Any], status_code: int = 200):
        self._data = dict(data)
        self.status_code = status_code

    @property
    def text(self) -> str:
        return candidate_text(self._data) or ""

    @property
    def response(self) -> "RecoveredResponse":
        return self

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__} has no field {name!r}") from None

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"RecoveredResponse(status_code={self.status_code}, fields={list(self._data)})"
