from collections.abc import Callable, Mapping
from typing import Any

# Adapters receive the captured bytes and their media type and return either a
# mapping or the raw JSON text produced by the model.
ExtractorResult = Mapping[str, Any] | str
ImageExtractor = Callable[[bytes, str], ExtractorResult]
AudioExtractor = Callable[[bytes, str], ExtractorResult]
